from __future__ import annotations

import json
import logging

import duckdb

from spectacle.core.types import ContainerInfo
from spectacle.features.logsink.duckdb_adapter import DuckDBAdapter
from spectacle.features.logsink.service import (
    ConsoleSink,
    LogFanout,
    WarehouseSink,
    build_fanout,
    is_console_logging_enabled,
    is_warehouse_logging_enabled,
)
from spectacle.features.logsink.types import LogRecord


class FixedClock:
    def __init__(self, ms: int) -> None:
        self.ms = ms

    def now_millis(self) -> int:
        return self.ms


class ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


class RecordingSink:
    name = "recording"

    def __init__(self) -> None:
        self.records: list[dict] = []

    def write(self, record: dict) -> None:
        self.records.append(record)


class ExplodingSink:
    name = "exploding"

    def write(self, record: dict) -> None:
        raise RuntimeError("warehouse down")


def test_console_policy() -> None:
    debug = ContainerInfo(debug_mode=True)
    preview = ContainerInfo(preview_mode=True)
    live = ContainerInfo()

    assert is_console_logging_enabled(None, debug) is True
    assert is_console_logging_enabled(None, live) is False
    assert is_console_logging_enabled("debug", preview) is True
    assert is_console_logging_enabled("debug", live) is False
    assert is_console_logging_enabled("always", live) is True
    assert is_console_logging_enabled("no", debug) is False


def test_warehouse_policy() -> None:
    assert is_warehouse_logging_enabled("always") is True
    assert is_warehouse_logging_enabled("no") is False
    assert is_warehouse_logging_enabled(None) is False


def test_record_drops_unset_fields_and_adds_trace_id() -> None:
    sink = RecordingSink()
    fanout = LogFanout(sinks=[sink], trace_id="trace-1")
    fanout.log(LogRecord(type="Request", event_name="page", request_method="POST"))

    assert sink.records == [
        {
            "Name": "SpectacleServerTag",
            "Type": "Request",
            "EventName": "page",
            "RequestMethod": "POST",
            "TraceId": "trace-1",
        }
    ]


def test_sink_failure_is_swallowed_and_other_sinks_still_run() -> None:
    good = RecordingSink()
    fanout = LogFanout(sinks=[ExplodingSink(), good])
    fanout.log(LogRecord(type="Response", event_name="track", response_status_code=200))
    assert len(good.records) == 1


def test_console_sink_writes_one_json_string() -> None:
    logger = logging.getLogger("test.console.sink")
    logger.propagate = False
    handler = ListHandler()
    logger.addHandler(handler)
    logger.setLevel("INFO")

    ConsoleSink(logger).write({"Name": "SpectacleServerTag", "RequestBody": {"a": 1}})

    assert len(handler.messages) == 1
    assert json.loads(handler.messages[0]) == {"Name": "SpectacleServerTag", "RequestBody": {"a": 1}}


def test_warehouse_row_mapping() -> None:
    sink = WarehouseSink(adapter=DuckDBAdapter(":memory:"), clock=FixedClock(1_700_000_000_000))
    row = sink.to_row(
        {
            "Name": "SpectacleServerTag",
            "Type": "Response",
            "EventName": "page",
            "ResponseStatusCode": 200,
            "ResponseHeaders": {"content-type": "text/plain"},
            "ResponseBody": "ok",
            "Message": "kept as-is",
        }
    )
    assert row["tag_name"] == "SpectacleServerTag"
    assert row["type"] == "Response"
    assert row["event_name"] == "page"
    assert row["response_status_code"] == 200
    assert row["response_headers"] == '{"content-type":"text/plain"}'
    assert row["response_body"] == '"ok"'
    assert row["timestamp"] == 1_700_000_000_000
    assert row["Message"] == "kept as-is"
    assert "request_body" not in row


def test_warehouse_sink_inserts_into_duckdb(tmp_path) -> None:
    db_path = tmp_path / "logs" / "spectacle.duckdb"
    adapter = DuckDBAdapter(str(db_path), table="tag_logs", clean_slate=True)
    sink = WarehouseSink(adapter=adapter, clock=FixedClock(5))

    fanout = LogFanout(sinks=[sink], trace_id="t-42")
    fanout.log(
        LogRecord(
            type="Request",
            event_name="track",
            request_method="POST",
            request_url="https://collect.example/t",
            request_body={"type": "track"},
        )
    )
    fanout.log(LogRecord(type="Response", event_name="track", message="failed", reason='"boom"'))

    assert adapter.count_rows() == 2
    assert adapter.count_rows(trace_id="t-42") == 2
    sink.close()

    con = duckdb.connect(str(db_path), read_only=True)
    rows = con.execute(
        "SELECT type, request_body, timestamp FROM tag_logs ORDER BY type"
    ).fetchall()
    con.close()

    assert rows[0] == ("Request", '{"type":"track"}', 5)
    assert rows[1][0] == "Response"
    assert rows[1][1] is None


def test_build_fanout_selects_sinks() -> None:
    warehouse = WarehouseSink(adapter=DuckDBAdapter(":memory:"), clock=FixedClock(0))

    none = build_fanout(
        log_type="no", bigquery_log_type="no", container=ContainerInfo(), trace_id=None,
        warehouse=warehouse,
    )
    assert none.sinks == []

    both = build_fanout(
        log_type="always", bigquery_log_type="always", container=ContainerInfo(), trace_id="t",
        warehouse=warehouse,
    )
    assert [s.name for s in both.sinks] == ["console", "warehouse"]

    no_warehouse_configured = build_fanout(
        log_type="no", bigquery_log_type="always", container=ContainerInfo(), trace_id=None,
    )
    assert no_warehouse_configured.sinks == []
