from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path

from spectacle.core.types import CookieOptions

ANON_COOKIE_KEY = "sp__anon_id"
USER_COOKIE_KEY = "sp__user_id"
COOKIE_EXPIRY_DAYS = 365


def cookie_policy(domain: str) -> CookieOptions:
    return CookieOptions(
        domain=domain,
        path="/",
        max_age=COOKIE_EXPIRY_DAYS * 24 * 60 * 60,
        secure=True,
        same_site="lax",
    )


@dataclass(frozen=True, slots=True)
class StoredCookie:
    value: str
    options: CookieOptions


@dataclass
class InMemoryCookieStore:
    """CookieStore backed by a dict; keeps the options of the last write for inspection."""

    cookies: dict[str, StoredCookie] = field(default_factory=dict)

    def get(self, name: str) -> list[str]:
        c = self.cookies.get(name)
        return [c.value] if c is not None else []

    def set(self, name: str, value: str, options: CookieOptions) -> None:
        self.cookies[name] = StoredCookie(value=value, options=options)


class JsonFileCookieStore(InMemoryCookieStore):
    """
    Cookie jar persisted as JSON between CLI runs:
      {"sp__anon_id": {"value": "...", "options": {...}}}
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            raw = json.loads(self.path.read_text() or "{}")
            for name, entry in raw.items():
                self.cookies[name] = StoredCookie(
                    value=str(entry["value"]),
                    options=CookieOptions(**entry.get("options", {"domain": "auto"})),
                )

    def save(self) -> None:
        if self.path.parent:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        out = {
            name: {"value": c.value, "options": asdict(c.options)} for name, c in self.cookies.items()
        }
        self.path.write_text(json.dumps(out, indent=2, sort_keys=True))
