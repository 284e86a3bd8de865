from __future__ import annotations

import json
import logging
import threading
from typing import Any

from spectacle.core.logging import get_logger
from spectacle.core.types import Clock, ContainerInfo

from .duckdb_adapter import DuckDBAdapter
from .schema import JSON_STRING_COLUMNS, WAREHOUSE_KEY_MAP
from .types import LogRecord, LogSink

# Outside the "spectacle" hierarchy: console output is governed by log_type, not logging.level
CONSOLE_LOGGER = "spectacle_console"


def is_console_logging_enabled(log_type: str | None, container: ContainerInfo) -> bool:
    """
    unset   -> on in debug/preview containers
    "no"    -> off
    "debug" -> on in debug/preview containers
    "always"-> on
    """
    if not log_type:
        return container.is_debug
    if log_type == "no":
        return False
    if log_type == "debug":
        return container.is_debug
    return log_type == "always"


def is_warehouse_logging_enabled(bigquery_log_type: str | None) -> bool:
    return bigquery_log_type == "always"


class ConsoleSink:
    name = "console"

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_logger(CONSOLE_LOGGER, "INFO")

    def write(self, record: dict[str, Any]) -> None:
        self._logger.info(json.dumps(record, separators=(",", ":"), default=str))


class WarehouseSink:
    """
    Rows into the analytics warehouse (DuckDB). Keys renamed to column names,
    nested values stored as JSON strings, unknown keys dropped by the adapter.
    """

    name = "warehouse"

    def __init__(self, *, adapter: DuckDBAdapter, clock: Clock) -> None:
        self.adapter = adapter
        self._clock = clock
        self._lock = threading.Lock()

    def to_row(self, record: dict[str, Any]) -> dict[str, Any]:
        row = {WAREHOUSE_KEY_MAP.get(k, k): v for k, v in record.items()}
        row["timestamp"] = self._clock.now_millis()
        for col in JSON_STRING_COLUMNS:
            if row.get(col) is not None:
                row[col] = json.dumps(row[col], separators=(",", ":"), default=str)
        return row

    def write(self, record: dict[str, Any]) -> None:
        row = self.to_row(record)
        # one DuckDB connection shared by foreground and optimistic background sends
        with self._lock:
            if not self.adapter.is_open:
                self.adapter.open()
            self.adapter.insert_rows([row])

    def close(self) -> None:
        with self._lock:
            self.adapter.close()


class LogFanout:
    """
    Mirrors request/response records to every enabled sink.
    Sink errors are logged and dropped; they never affect the invocation outcome.
    """

    def __init__(self, *, sinks: list[LogSink], trace_id: str | None = None) -> None:
        self.sinks = list(sinks)
        self.trace_id = trace_id
        self._logger = get_logger(__name__)

    def log(self, record: LogRecord) -> None:
        data = record.with_trace_id(self.trace_id).as_dict()
        for sink in self.sinks:
            try:
                sink.write(dict(data))
            except Exception as e:
                self._logger.warning(
                    "log sink %s failed: %s",
                    sink.name,
                    e,
                    extra={"trace_id": self.trace_id, "event_name": record.event_name},
                )


def build_fanout(
    *,
    log_type: str | None,
    bigquery_log_type: str | None,
    container: ContainerInfo,
    trace_id: str | None,
    warehouse: WarehouseSink | None = None,
) -> LogFanout:
    sinks: list[LogSink] = []
    if is_console_logging_enabled(log_type, container):
        sinks.append(ConsoleSink())
    if warehouse is not None and is_warehouse_logging_enabled(bigquery_log_type):
        sinks.append(warehouse)
    return LogFanout(sinks=sinks, trace_id=trace_id)
