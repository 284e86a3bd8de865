from __future__ import annotations

import json
from contextlib import ExitStack
from pathlib import Path
from typing import Any

from spectacle.core.config import ForwarderConfig, load_config
from spectacle.core.rng import RNG
from spectacle.core.types import ContainerInfo, SystemClock
from spectacle.features.dispatch.http_client import HttpxClient
from spectacle.features.forwarder.service import Forwarder, ForwardResult, HostRuntime
from spectacle.features.identity.types import JsonFileCookieStore
from spectacle.features.logsink.duckdb_adapter import DuckDBAdapter
from spectacle.features.logsink.service import WarehouseSink, is_warehouse_logging_enabled


def load_json(path: str | Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at the top level.")
    return data


def build_host(
    cfg: ForwarderConfig,
    *,
    cookie_jar: str | Path,
    headers: dict[str, str],
    debug: bool = False,
) -> tuple[HostRuntime, JsonFileCookieStore]:
    cookies = JsonFileCookieStore(cookie_jar)
    clock = SystemClock()

    warehouse: WarehouseSink | None = None
    if is_warehouse_logging_enabled(cfg.logging.bigquery_log_type):
        adapter = DuckDBAdapter(
            path=cfg.warehouse.duckdb_path,
            table=cfg.warehouse.table,
            clean_slate=cfg.warehouse.clean_slate,
        )
        warehouse = WarehouseSink(adapter=adapter, clock=clock)

    host = HostRuntime(
        cookies=cookies,
        http=HttpxClient(),
        rng=RNG(),
        clock=clock,
        request_headers=headers,
        container=ContainerInfo(debug_mode=debug),
        warehouse=warehouse,
    )
    return host, cookies


def run(
    config_path: str,
    *,
    event_path: str,
    headers_path: str | None = None,
    cookie_jar: str = ".spectacle-cookies.json",
    debug: bool = False,
) -> ForwardResult:
    cfg = load_config(config_path)
    host, cookies = build_host(
        cfg,
        cookie_jar=cookie_jar,
        headers={str(k): str(v) for k, v in load_json(headers_path).items()},
        debug=debug,
    )

    forwarder = Forwarder(tag=cfg.tag, host=host, logging_cfg=cfg.logging)
    # callbacks run in reverse: drain sends, save cookies, then release clients
    with ExitStack() as cleanup:
        if host.warehouse is not None:
            cleanup.callback(host.warehouse.close)
        close_http = getattr(host.http, "close", None)
        if callable(close_http):
            cleanup.callback(close_http)
        cleanup.callback(cookies.save)
        cleanup.callback(forwarder.close)
        return forwarder.forward(load_json(event_path))
