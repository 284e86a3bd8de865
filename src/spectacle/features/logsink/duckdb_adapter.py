from __future__ import annotations

import os
import re
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import duckdb

from .schema import DEFAULT_TABLE_NAME, LOG_COLUMNS, create_schema

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class DuckDBWriteResult:
    num_rows: int
    duration_ms: float


class DuckDBAdapter:
    """
    DuckDB warehouse adapter for log rows. Owns the connection and schema.
    """

    def __init__(self, path: str, *, table: str = DEFAULT_TABLE_NAME, clean_slate: bool = False) -> None:
        if not _IDENT.match(table):
            raise ValueError(f"Invalid warehouse table name: {table!r}")
        self.path = path
        self.table = table
        self.clean_slate = clean_slate
        self._conn: duckdb.DuckDBPyConnection | None = None

    def open(self) -> None:
        if self.clean_slate and os.path.exists(self.path):
            os.remove(self.path)

        # Ensure parent dir exists
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        self._conn = duckdb.connect(self.path)
        create_schema(self._conn, self.table)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            raise RuntimeError("DuckDBAdapter not opened. Call open() first.")
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def insert_rows(self, rows: Sequence[Mapping[str, Any]]) -> DuckDBWriteResult:
        """
        Inserts rows keyed by column name. Keys that are not table columns are ignored.
        """
        if not rows:
            return DuckDBWriteResult(num_rows=0, duration_ms=0.0)

        t0 = time.perf_counter()

        cols = ", ".join(LOG_COLUMNS)
        marks = ", ".join("?" for _ in LOG_COLUMNS)
        self.conn.executemany(
            f"INSERT INTO {self.table} ({cols}) VALUES ({marks})",
            [tuple(row.get(c) for c in LOG_COLUMNS) for row in rows],
        )

        dt_ms = (time.perf_counter() - t0) * 1000.0
        return DuckDBWriteResult(num_rows=len(rows), duration_ms=dt_ms)

    def count_rows(self, *, trace_id: str | None = None) -> int:
        """
        Convenience method for sanity checks/tests.
        """
        if trace_id is None:
            res = self.conn.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()
        else:
            res = self.conn.execute(
                f"SELECT COUNT(*) FROM {self.table} WHERE trace_id = ?",
                [trace_id],
            ).fetchone()
        return int(res[0]) if res else 0
