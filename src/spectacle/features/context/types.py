from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# query param -> campaign field
UTM_PARAMS: tuple[tuple[str, str], ...] = (
    ("utm_source", "source"),
    ("utm_medium", "medium"),
    ("utm_campaign", "name"),
    ("utm_term", "term"),
    ("utm_content", "content"),
)


@dataclass(frozen=True, slots=True)
class ParsedUrl:
    hostname: str
    path: str
    search: str  # with leading "?" or ""
    hash: str  # with leading "#" or ""
    search_params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PageContext:
    path: str
    referrer: str
    search: str
    title: str
    url: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "referrer": self.referrer,
            "search": self.search,
            "title": self.title,
            "url": self.url,
        }


@dataclass(frozen=True, slots=True)
class Context:
    timezone: str
    campaign: dict[str, str]
    user_agent: str
    page: PageContext
    locale: str | None

    def as_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "campaign": dict(self.campaign),
            "userAgent": self.user_agent,
            "page": self.page.as_dict(),
            "locale": self.locale,
        }
