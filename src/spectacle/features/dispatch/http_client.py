from __future__ import annotations

from collections.abc import Mapping

import httpx

from spectacle.core.types import HttpResponse, TransportError


class HttpxClient:
    """HttpClient backed by a shared httpx.Client."""

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client(follow_redirects=False)

    def post(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        content: str,
        timeout_s: float | None,
    ) -> HttpResponse:
        try:
            response = self._client.post(
                url,
                headers=dict(headers),
                content=content.encode("utf-8"),
                timeout=timeout_s,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.text,
        )

    def close(self) -> None:
        self._client.close()
