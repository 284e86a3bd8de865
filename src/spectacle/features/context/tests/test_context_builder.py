from __future__ import annotations

from spectacle.core.types import EventData, RequestHeaders
from spectacle.features.context.service import (
    ContextBuilder,
    extract_campaign,
    parse_screen_resolution,
    parse_url,
    registrable_domain,
    resolve_cookie_domain,
)


def make_builder(event: dict | None = None, headers: dict | None = None) -> ContextBuilder:
    return ContextBuilder(event=EventData(event or {}), headers=RequestHeaders(headers or {}))


def test_campaign_keeps_only_present_utm_params() -> None:
    campaign = extract_campaign("https://shop.example.com/?utm_source=a&utm_medium=b&utm_campaign=c")
    assert campaign == {"source": "a", "medium": "b", "name": "c"}
    assert "term" not in campaign
    assert "content" not in campaign


def test_campaign_maps_all_five_params_and_skips_empty() -> None:
    url = (
        "https://x.io/landing?utm_source=news&utm_medium=email&utm_campaign=spring"
        "&utm_term=shoes&utm_content=hero&utm_id=&other=1"
    )
    assert extract_campaign(url) == {
        "source": "news",
        "medium": "email",
        "name": "spring",
        "term": "shoes",
        "content": "hero",
    }
    assert extract_campaign("https://x.io/?utm_source=") == {}


def test_campaign_empty_for_missing_or_relative_url() -> None:
    assert extract_campaign(None) == {}
    assert extract_campaign("") == {}
    assert extract_campaign("/just/a/path?utm_source=a") == {}


def test_parse_url_components() -> None:
    parsed = parse_url("https://Example.com/a/b?x=1&x=2#top")
    assert parsed is not None
    assert parsed.hostname == "example.com"
    assert parsed.path == "/a/b"
    assert parsed.search == "?x=1&x=2"
    assert parsed.hash == "#top"
    assert parsed.search_params == {"x": "1"}

    bare = parse_url("https://example.com")
    assert bare is not None
    assert bare.path == "/"
    assert bare.search == ""
    assert bare.hash == ""


def test_screen_resolution() -> None:
    assert parse_screen_resolution("1920x1080") == (1920, 1080)
    assert parse_screen_resolution(None) == (None, None)
    assert parse_screen_resolution("") == (None, None)
    assert parse_screen_resolution("1920") == (None, None)
    assert parse_screen_resolution("axb") == (None, None)
    assert parse_screen_resolution("1920x") == (None, None)
    # non-ASCII digits pass str.isdigit but not int()
    assert parse_screen_resolution("\u00b2x1080") == (None, None)
    assert parse_screen_resolution("1920x\u00b9") == (None, None)


def test_cookie_domain_configured_gets_leading_dot() -> None:
    assert resolve_cookie_domain("example.com", None) == ".example.com"
    assert resolve_cookie_domain(".example.com", "https://other.org/") == ".example.com"


def test_cookie_domain_computed_from_page_url() -> None:
    assert resolve_cookie_domain(None, "https://www.shop.example.com/p") == ".example.com"
    assert resolve_cookie_domain(None, "https://www.example.co.uk/") == ".example.co.uk"
    assert resolve_cookie_domain(None, "http://localhost:8080/") == "auto"
    assert resolve_cookie_domain(None, "http://127.0.0.1/") == "auto"
    assert resolve_cookie_domain(None, None) == "auto"


def test_registrable_domain_edge_cases() -> None:
    assert registrable_domain("example.com") == "example.com"
    assert registrable_domain("co.uk") is None
    assert registrable_domain("") is None


def test_build_context_from_event_data() -> None:
    builder = make_builder(
        {
            "page_location": "https://example.com/pricing?utm_source=google#plans",
            "page_referrer": "https://google.com/",
            "page_title": "Pricing",
            "ga_session_data": {"timezone": "Europe/Prague"},
            "timezone": "America/New_York",
            "user_properties": {"language": "cs-CZ"},
        },
        {"User-Agent": "Mozilla/5.0"},
    )
    ctx = builder.build_context()

    assert ctx.timezone == "Europe/Prague"
    assert ctx.locale == "cs-CZ"
    assert ctx.user_agent == "Mozilla/5.0"
    assert ctx.campaign == {"source": "google"}
    assert ctx.as_dict()["page"] == {
        "path": "/pricing",
        "referrer": "https://google.com/",
        "search": "?utm_source=google",
        "title": "Pricing",
        "url": "https://example.com/pricing?utm_source=google#plans",
    }


def test_build_context_defaults() -> None:
    ctx = make_builder().build_context()
    assert ctx.timezone == "UTC"
    assert ctx.locale is None
    assert ctx.user_agent == ""
    assert ctx.campaign == {}
    assert ctx.page.path == ""
    assert ctx.page.url == ""


def test_event_user_agent_beats_header() -> None:
    ctx = make_builder({"user_agent": "event-ua"}, {"user-agent": "header-ua"}).build_context()
    assert ctx.user_agent == "event-ua"


def test_page_url_falls_back_to_referer_header() -> None:
    builder = make_builder({}, {"Referer": "https://example.com/from-header"})
    assert builder.page_url() == "https://example.com/from-header"
