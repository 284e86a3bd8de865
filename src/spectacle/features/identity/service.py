from __future__ import annotations

from spectacle.core.ids import generate_anonymous_id
from spectacle.core.logging import get_logger
from spectacle.core.types import CookieStore, EventData, RandomSource

from .types import ANON_COOKIE_KEY, USER_COOKIE_KEY, cookie_policy


class IdentityResolver:
    """
    Anonymous + known identity for one invocation.
    - Anonymous id: cookie, else freshly generated; cookie is re-set every call.
    - User id: cookie beats event data.
    """

    def __init__(
        self,
        *,
        cookies: CookieStore,
        rng: RandomSource,
        cookie_domain: str,
        verbose: bool = False,
        skip_email_user_id: bool = False,
    ) -> None:
        self._cookies = cookies
        self._rng = rng
        self.cookie_domain = cookie_domain
        self._verbose = verbose
        self._skip_email_user_id = skip_email_user_id
        self._logger = get_logger(__name__)

    def resolve_anonymous_id(self) -> str:
        anonymous_id = _first(self._cookies.get(ANON_COOKIE_KEY))
        if anonymous_id:
            if self._verbose:
                self._logger.info("found existing anonymous id: %s", anonymous_id)
        else:
            anonymous_id = generate_anonymous_id(self._rng)
            if self._verbose:
                self._logger.info("generated new anonymous id: %s", anonymous_id)

        # refresh expiry on every invocation
        self._cookies.set(ANON_COOKIE_KEY, anonymous_id, cookie_policy(self.cookie_domain))
        return anonymous_id

    def stored_user_id(self) -> str | None:
        return _first(self._cookies.get(USER_COOKIE_KEY))

    def resolve_user_id(self, event: EventData) -> str | None:
        return self.stored_user_id() or event.get("user_id") or None

    def store_user_id(self, user_id: str | None, *, email: str | None = None) -> bool:
        """Persist user id; returns False when nothing was written."""
        if not user_id:
            return False
        if self._skip_email_user_id and email and str(user_id) == str(email):
            self._logger.debug("user id equals email; not persisting user id cookie")
            return False
        self._cookies.set(USER_COOKIE_KEY, str(user_id), cookie_policy(self.cookie_domain))
        return True


def _first(values: list[str] | None) -> str | None:
    if values:
        return values[0] or None
    return None
