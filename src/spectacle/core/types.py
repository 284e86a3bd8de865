from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


# ----------------------------
# Host capabilities
# ----------------------------
class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...


class Clock(Protocol):
    def now_millis(self) -> int: ...


@dataclass(frozen=True)
class CookieOptions:
    domain: str
    path: str = "/"
    max_age: int = 365 * 24 * 60 * 60
    secure: bool = True
    same_site: str = "lax"


class CookieStore(Protocol):
    def get(self, name: str) -> list[str]: ...

    def set(self, name: str, value: str, options: CookieOptions) -> None: ...


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""


class TransportError(RuntimeError):
    """Raised by an HttpClient when no response could be obtained (network, timeout)."""


class HttpClient(Protocol):
    def post(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        content: str,
        timeout_s: float | None,
    ) -> HttpResponse: ...


class Completion(Protocol):
    """Host callbacks; exactly one is invoked per invocation."""

    def on_success(self) -> None: ...

    def on_failure(self) -> None: ...


@dataclass(frozen=True)
class ContainerInfo:
    debug_mode: bool = False
    preview_mode: bool = False

    @property
    def is_debug(self) -> bool:
        return self.debug_mode or self.preview_mode


class SystemClock:
    def now_millis(self) -> int:
        return int(time.time() * 1000)


class NoopCompletion:
    def on_success(self) -> None:
        return None

    def on_failure(self) -> None:
        return None


# ----------------------------
# Inbound event data
# ----------------------------
class EventData:
    """
    Read-only view over the normalized event. Dotted keys walk nested mappings,
    but a literal top-level key (e.g. "x-ga-gcs") always wins.
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: Mapping[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._data:
            return self._data[key]
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return node

    def first(self, *keys: str) -> Any:
        """First truthy value among keys, else None."""
        for key in keys:
            value = self.get(key)
            if value:
                return value
        return None

    def as_dict(self) -> dict[str, Any]:
        return dict(self._data)


class RequestHeaders:
    """Case-insensitive header lookup."""

    def __init__(self, headers: Mapping[str, str] | None = None) -> None:
        self._headers = {str(k).lower(): str(v) for k, v in (headers or {}).items()}

    def get(self, name: str) -> str | None:
        return self._headers.get(name.lower())
