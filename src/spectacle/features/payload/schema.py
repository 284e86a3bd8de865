from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from spectacle.features.context.types import Context


class MethodType(str, Enum):
    PAGE = "page"
    IDENTIFY = "identify"
    TRACK = "track"
    GROUP = "group"

    @property
    def endpoint(self) -> str:
        return _ENDPOINTS[self]

    @classmethod
    def parse(cls, value: str | None) -> MethodType | None:
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return None


_ENDPOINTS: dict[MethodType, str] = {
    MethodType.PAGE: "/p",
    MethodType.IDENTIFY: "/i",
    MethodType.TRACK: "/t",
    MethodType.GROUP: "/g",
}


class MissingFieldError(ValueError):
    """A method-required field (event name, group id) could not be resolved."""

    def __init__(self, method: MethodType, field_name: str) -> None:
        super().__init__(f"No {field_name} provided for {method.value} call")
        self.method = method
        self.field_name = field_name


@dataclass(frozen=True, slots=True)
class Payload:
    type: MethodType
    context: Context
    user_id: str | None
    anonymous_id: str
    write_key: str

    # per-method fields; None means "not part of this shape"
    properties: dict[str, Any] | None = None
    traits: dict[str, Any] | None = None
    event: str | None = None
    group_id: str | None = None

    @property
    def endpoint(self) -> str:
        return self.type.endpoint

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": self.type.value,
            "context": self.context.as_dict(),
            "userId": self.user_id,
            "anonymousId": self.anonymous_id,
            "writeKey": self.write_key,
        }
        if self.event is not None:
            out["event"] = self.event
        if self.group_id is not None:
            out["groupId"] = self.group_id
        if self.properties is not None:
            out["properties"] = dict(self.properties)
        if self.traits is not None:
            out["traits"] = dict(self.traits)
        return out


def serialize(payload: Payload) -> str:
    return json.dumps(payload.as_dict(), separators=(",", ":"), ensure_ascii=False, default=str)
