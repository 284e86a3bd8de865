from __future__ import annotations

from spectacle.core.types import EventData

MEASUREMENT_PROTOCOL_PREFIX = "https://gtm-msr.appspot.com/"


def is_consent_given_or_not_required(ad_storage_consent: str, event: EventData) -> bool:
    """
    ad_storage consent gate.
    - setting != "required" -> always proceed
    - consent_state present -> its ad_storage flag
    - else x-ga-gcs packed string, e.g. "G110": third char "1" means granted
    """
    if ad_storage_consent != "required":
        return True

    consent_state = event.get("consent_state")
    # any mapping counts as present, even an empty one; other falsy values fall through
    if consent_state or isinstance(consent_state, dict):
        return isinstance(consent_state, dict) and bool(consent_state.get("ad_storage"))

    gcs = str(event.get("x-ga-gcs") or "")
    return len(gcs) > 2 and gcs[2] == "1"


def is_measurement_protocol_hit(page_url: str | None) -> bool:
    """Health-check hits from the tag manager's measurement server are ignored."""
    return bool(page_url) and str(page_url).startswith(MEASUREMENT_PROTOCOL_PREFIX)
