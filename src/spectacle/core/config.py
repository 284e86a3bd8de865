from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


@dataclass(frozen=True)
class KeyValue:
    key: str
    value: Any


@dataclass(frozen=True)
class TagConfig:
    method_type: str
    workspace_id: str
    base_url: str
    cookie_domain: str | None = None
    ad_storage_consent: str = "optional"
    optimistic: bool = False
    timeout_ms: int = 5000
    do_not_save_user_email_as_user_id_cookie: bool = False

    # identify
    user_id: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    user_traits: tuple[KeyValue, ...] = ()

    # track
    event_name: str | None = None
    event_properties: tuple[KeyValue, ...] = ()
    revenue: Any = None
    currency: str | None = None

    # group
    group_id: str | None = None
    group_traits: tuple[KeyValue, ...] = ()


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    log_type: str | None = None  # None | "no" | "debug" | "always"
    bigquery_log_type: str = "no"  # "no" | "always"


@dataclass(frozen=True)
class WarehouseConfig:
    duckdb_path: str = "logs/spectacle.duckdb"
    table: str = "spectacle_logs"
    clean_slate: bool = False


@dataclass(frozen=True)
class ForwarderConfig:
    tag: TagConfig
    logging: LoggingConfig
    warehouse: WarehouseConfig
    raw: dict[str, Any]  # original parsed YAML (for debugging)


def load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    data = yaml.safe_load(p.read_text())
    if not isinstance(data, dict):
        raise ValueError("Config YAML must parse to a dict at the top level.")
    return data


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value)
    return s if s else None


def _log_type(value: Any) -> str | None:
    # YAML 1.1 reads bare no/yes as booleans
    if value is None:
        return None
    if value is False:
        return "no"
    if value is True:
        return "always"
    return str(value).strip().lower()


def _key_values(rows: Any, section: str) -> tuple[KeyValue, ...]:
    if rows is None:
        return ()
    if not isinstance(rows, list):
        raise ValueError(f"tag.{section} must be a list of {{key, value}} rows")
    out: list[KeyValue] = []
    for row in rows:
        if not isinstance(row, dict):
            raise ValueError(f"tag.{section} rows must be mappings, got {row!r}")
        out.append(KeyValue(key=str(row.get("key") or ""), value=row.get("value")))
    return tuple(out)


def parse_tag(tag: dict[str, Any]) -> TagConfig:
    for key in ["workspace_id", "base_url"]:
        if not tag.get(key):
            raise ValueError(f"Missing required tag setting: '{key}'")

    return TagConfig(
        method_type=str(tag.get("method_type", "page")).strip().lower(),
        workspace_id=str(tag["workspace_id"]),
        base_url=str(tag["base_url"]),
        cookie_domain=_opt_str(tag.get("cookie_domain")),
        ad_storage_consent=str(tag.get("ad_storage_consent", "optional")),
        optimistic=bool(tag.get("optimistic", False)),
        timeout_ms=int(tag.get("timeout_ms", 5000)),
        do_not_save_user_email_as_user_id_cookie=bool(
            tag.get("do_not_save_user_email_as_user_id_cookie", False)
        ),
        user_id=_opt_str(tag.get("user_id")),
        email=_opt_str(tag.get("email")),
        first_name=_opt_str(tag.get("first_name")),
        last_name=_opt_str(tag.get("last_name")),
        user_traits=_key_values(tag.get("user_traits"), "user_traits"),
        event_name=_opt_str(tag.get("event_name")),
        event_properties=_key_values(tag.get("event_properties"), "event_properties"),
        revenue=tag.get("revenue"),
        currency=_opt_str(tag.get("currency")),
        group_id=_opt_str(tag.get("group_id")),
        group_traits=_key_values(tag.get("group_traits"), "group_traits"),
    )


def parse_config(data: dict[str, Any]) -> ForwarderConfig:
    for key in ["tag", "logging"]:
        if key not in data:
            raise ValueError(f"Missing required top-level config section: '{key}'")

    tag = data.get("tag") or {}
    logging_cfg = data.get("logging") or {}
    warehouse = data.get("warehouse") or {}

    log_cfg = LoggingConfig(
        level=str(logging_cfg.get("level", "INFO")).upper(),
        log_type=_log_type(logging_cfg.get("log_type")),
        bigquery_log_type=_log_type(logging_cfg.get("bigquery_log_type")) or "no",
    )

    wh_cfg = WarehouseConfig(
        duckdb_path=str(warehouse.get("duckdb_path", "logs/spectacle.duckdb")),
        table=str(warehouse.get("table", "spectacle_logs")),
        clean_slate=bool(warehouse.get("clean_slate", False)),
    )

    return ForwarderConfig(tag=parse_tag(tag), logging=log_cfg, warehouse=wh_cfg, raw=data)


def load_config(path: str | Path) -> ForwarderConfig:
    data = load_yaml(path)
    return parse_config(data)
