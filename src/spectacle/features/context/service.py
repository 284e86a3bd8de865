from __future__ import annotations

import ipaddress
from urllib.parse import parse_qsl, urlsplit

from spectacle.core.logging import get_logger
from spectacle.core.types import EventData, RequestHeaders

from .types import UTM_PARAMS, Context, PageContext, ParsedUrl

AUTO_COOKIE_DOMAIN = "auto"

# Second-level labels under two-letter country TLDs that act as public suffixes
# (example.co.uk, shop.com.au).
_COMMON_SECOND_LEVEL = frozenset({"co", "com", "net", "org", "gov", "edu", "ac", "ne", "or"})

_logger = get_logger(__name__)


def parse_url(url: str | None) -> ParsedUrl | None:
    """
    Absolute http(s)-style URL -> components. Returns None when the string has
    no scheme/host, which callers treat as "unparseable".
    """
    if not url:
        return None
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None

    params: dict[str, str] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=False):
        # first occurrence wins
        params.setdefault(key, value)

    return ParsedUrl(
        hostname=(parts.hostname or "").lower(),
        path=parts.path or "/",
        search=f"?{parts.query}" if parts.query else "",
        hash=f"#{parts.fragment}" if parts.fragment else "",
        search_params=params,
    )


def extract_campaign(url: str | None) -> dict[str, str]:
    """UTM query parameters -> campaign dict. Missing or empty params are omitted."""
    campaign: dict[str, str] = {}
    parsed = parse_url(url)
    if parsed is None:
        return campaign

    for param, field_name in UTM_PARAMS:
        value = parsed.search_params.get(param)
        if value:
            campaign[field_name] = value
    return campaign


def registrable_domain(hostname: str) -> str | None:
    """
    Effective TLD+1 for a hostname, or None for IPs / single-label hosts.
    Approximation: handles "<label>.<cc>" and "<sld>.<cc>" public suffixes only.
    """
    host = hostname.strip(".").lower()
    if not host:
        return None
    try:
        ipaddress.ip_address(host)
        return None
    except ValueError:
        pass

    labels = host.split(".")
    if len(labels) < 2:
        return None

    tld, second = labels[-1], labels[-2]
    if len(tld) == 2 and second in _COMMON_SECOND_LEVEL:
        if len(labels) < 3:
            return None
        return ".".join(labels[-3:])
    return ".".join(labels[-2:])


def resolve_cookie_domain(configured: str | None, page_url: str | None) -> str:
    if configured:
        domain = configured if configured.startswith(".") else f".{configured}"
        _logger.debug("final cookie domain: %s", domain)
        return domain

    parsed = parse_url(page_url)
    if parsed is None:
        return AUTO_COOKIE_DOMAIN

    domain = registrable_domain(parsed.hostname)
    if domain is None:
        return AUTO_COOKIE_DOMAIN
    return f".{domain}"


def parse_screen_resolution(value: str | None) -> tuple[int | None, int | None]:
    """'1920x1080' -> (1920, 1080); anything else -> (None, None)."""
    if not value or "x" not in value:
        return None, None
    width_s, _, height_s = value.strip().partition("x")
    width_s, height_s = width_s.strip(), height_s.strip()
    if not (width_s.isdecimal() and height_s.isdecimal()):
        return None, None
    try:
        return int(width_s), int(height_s)
    except ValueError:
        return None, None


class ContextBuilder:
    def __init__(self, *, event: EventData, headers: RequestHeaders) -> None:
        self._event = event
        self._headers = headers

    @property
    def page_location(self) -> str:
        return str(self._event.get("page_location") or "")

    def page_url(self) -> str | None:
        """Page URL used for gating and cookie scope: event location, else Referer."""
        return self._event.get("page_location") or self._headers.get("referer")

    def build_page(self) -> PageContext:
        url = self.page_location
        parsed = parse_url(url)
        return PageContext(
            path=parsed.path if parsed else "",
            referrer=str(self._event.get("page_referrer") or ""),
            search=parsed.search if parsed else "",
            title=str(self._event.get("page_title") or ""),
            url=url,
        )

    def build_context(self) -> Context:
        page = self.build_page()
        return Context(
            timezone=str(self._event.first("ga_session_data.timezone", "timezone") or "UTC"),
            campaign=extract_campaign(page.url),
            user_agent=str(self._event.first("user_agent") or self._headers.get("user-agent") or ""),
            page=page,
            locale=self._event.first("language", "user_properties.language"),
        )
