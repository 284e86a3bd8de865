from __future__ import annotations

DEFAULT_TABLE_NAME = "spectacle_logs"

# Record key -> warehouse column
WAREHOUSE_KEY_MAP: dict[str, str] = {
    "Name": "tag_name",
    "Type": "type",
    "TraceId": "trace_id",
    "EventName": "event_name",
    "RequestMethod": "request_method",
    "RequestUrl": "request_url",
    "RequestBody": "request_body",
    "ResponseStatusCode": "response_status_code",
    "ResponseHeaders": "response_headers",
    "ResponseBody": "response_body",
}

# Nested values stored as JSON strings
JSON_STRING_COLUMNS: tuple[str, ...] = ("request_body", "response_headers", "response_body")

LOG_COLUMNS: tuple[str, ...] = (
    "timestamp",
    "tag_name",
    "type",
    "trace_id",
    "event_name",
    "request_method",
    "request_url",
    "request_body",
    "response_status_code",
    "response_headers",
    "response_body",
)


def logs_ddl(table: str) -> str:
    return f"""
CREATE TABLE IF NOT EXISTS {table} (
    timestamp BIGINT NOT NULL,

    tag_name TEXT,
    type TEXT,
    trace_id TEXT,
    event_name TEXT,

    request_method TEXT,
    request_url TEXT,
    request_body TEXT,

    response_status_code INTEGER,
    response_headers TEXT,
    response_body TEXT
);
"""


def create_schema(conn, table: str = DEFAULT_TABLE_NAME) -> None:
    """
    Create the log table. No migrations. Safe to call per run.
    """
    conn.execute(logs_ddl(table))
    conn.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_ts ON {table}(timestamp);")
