from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Protocol

TAG_NAME = "SpectacleServerTag"


@dataclass(frozen=True, slots=True)
class LogRecord:
    type: str  # "Request" | "Response"
    event_name: str
    name: str = TAG_NAME

    request_method: str | None = None
    request_url: str | None = None
    request_body: Any = None

    response_status_code: int | None = None
    response_headers: dict[str, str] | None = None
    response_body: Any = None

    message: str | None = None
    reason: str | None = None
    trace_id: str | None = None

    def with_trace_id(self, trace_id: str | None) -> LogRecord:
        return replace(self, trace_id=trace_id)

    def as_dict(self) -> dict[str, Any]:
        """Wire keys; unset fields are left out."""
        fields = {
            "Name": self.name,
            "Type": self.type,
            "EventName": self.event_name,
            "RequestMethod": self.request_method,
            "RequestUrl": self.request_url,
            "RequestBody": self.request_body,
            "ResponseStatusCode": self.response_status_code,
            "ResponseHeaders": self.response_headers,
            "ResponseBody": self.response_body,
            "Message": self.message,
            "Reason": self.reason,
            "TraceId": self.trace_id,
        }
        return {k: v for k, v in fields.items() if v is not None}


class LogSink(Protocol):
    name: str

    def write(self, record: dict[str, Any]) -> None: ...
