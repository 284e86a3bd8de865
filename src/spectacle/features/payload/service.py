from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from spectacle.core.config import KeyValue, TagConfig
from spectacle.core.types import EventData
from spectacle.features.context.service import ContextBuilder, parse_screen_resolution, parse_url
from spectacle.features.identity.service import IdentityResolver

from .schema import MethodType, MissingFieldError, Payload


def key_value_rows(rows: Iterable[KeyValue]) -> dict[str, Any]:
    """Configured {key, value} rows -> dict; rows missing key or value are skipped."""
    out: dict[str, Any] = {}
    for row in rows:
        if row.key and row.value:
            out[row.key] = row.value
    return out


class PayloadAssembler:
    """
    Builds one of the four payload shapes.

    Every shape shares {type, context, userId, anonymousId, writeKey}. Building the
    base refreshes the anonymous id cookie, even for calls that later fail validation.
    """

    def __init__(
        self,
        *,
        tag: TagConfig,
        event: EventData,
        context: ContextBuilder,
        identity: IdentityResolver,
    ) -> None:
        self._tag = tag
        self._event = event
        self._context = context
        self._identity = identity

    def assemble(self, method: MethodType) -> Payload:
        builders = {
            MethodType.PAGE: self.page,
            MethodType.IDENTIFY: self.identify,
            MethodType.TRACK: self.track,
            MethodType.GROUP: self.group,
        }
        return builders[method]()

    def _base(self, method: MethodType) -> dict[str, Any]:
        anonymous_id = self._identity.resolve_anonymous_id()
        user_id = self._identity.resolve_user_id(self._event)
        return {
            "type": method,
            "context": self._context.build_context(),
            "user_id": str(user_id) if user_id else None,
            "anonymous_id": anonymous_id,
            "write_key": self._tag.workspace_id,
        }

    def page(self) -> Payload:
        base = self._base(MethodType.PAGE)

        location = self._context.page_location
        parsed = parse_url(location)
        width, height = parse_screen_resolution(self._event.get("screen_resolution"))

        properties = {
            "title": str(self._event.get("page_title") or ""),
            "url": location,
            "path": parsed.path if parsed else "",
            "hash": parsed.hash if parsed else "",
            "search": parsed.search if parsed else "",
            "width": width,
            "height": height,
        }
        return Payload(**base, properties=properties)

    def identify(self) -> Payload:
        base = self._base(MethodType.IDENTIFY)
        tag, ev = self._tag, self._event

        email = tag.email or ev.first("user_data.email_address", "user_properties.email")
        user_id = tag.user_id or ev.first("user_id", "user_data.email_address")
        if user_id:
            base["user_id"] = str(user_id)
            self._identity.store_user_id(base["user_id"], email=email)

        traits: dict[str, Any] = {}
        if email:
            traits["email"] = email

        first_name = tag.first_name or ev.first("user_data.first_name", "user_properties.first_name")
        if first_name:
            traits["firstName"] = first_name

        last_name = tag.last_name or ev.first("user_data.last_name", "user_properties.last_name")
        if last_name:
            traits["lastName"] = last_name

        phone = ev.first("user_data.phone_number", "user_properties.phone")
        if phone:
            traits["phone"] = phone

        traits.update(key_value_rows(tag.user_traits))
        return Payload(**base, traits=traits)

    def track(self) -> Payload:
        base = self._base(MethodType.TRACK)

        event_name = self._tag.event_name or self._event.first("event_name")
        if not event_name:
            raise MissingFieldError(MethodType.TRACK, "event name")

        properties: dict[str, Any] = {}
        if self._tag.revenue:
            properties["revenue"] = self._tag.revenue
        if self._tag.currency:
            properties["currency"] = self._tag.currency
        properties.update(key_value_rows(self._tag.event_properties))

        return Payload(**base, event=str(event_name), properties=properties)

    def group(self) -> Payload:
        base = self._base(MethodType.GROUP)

        group_id = self._tag.group_id or self._event.first("group_id")
        if not group_id:
            raise MissingFieldError(MethodType.GROUP, "group ID")

        traits = key_value_rows(self._tag.group_traits)
        return Payload(**base, group_id=str(group_id), traits=traits)
