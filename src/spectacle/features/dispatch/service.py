from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from concurrent.futures import Executor, Future, ThreadPoolExecutor

from spectacle.core.logging import get_logger
from spectacle.core.types import HttpClient, HttpResponse, Outcome, TransportError
from spectacle.features.logsink.service import LogFanout
from spectacle.features.logsink.types import LogRecord
from spectacle.features.payload.schema import Payload, serialize


def is_success_status(status_code: int) -> bool:
    return 200 <= status_code < 300


def wait_for(futures: Iterable[Future[Outcome]], logger: logging.Logger) -> list[Outcome]:
    """Block on background sends. A crashed send is logged and counted as FAILURE."""
    outcomes: list[Outcome] = []
    for f in futures:
        try:
            outcomes.append(f.result())
        except Exception:
            logger.exception("background send failed")
            outcomes.append(Outcome.FAILURE)
    return outcomes


class Dispatcher:
    """
    POSTs an assembled payload to {base_url}{endpoint}.

    Normal mode: outcome follows the response (2xx -> success).
    Optimistic mode: the request runs on a background worker and SUCCESS is
    returned immediately; the eventual response is only logged. Pass a shared
    executor to reuse one worker across dispatchers.
    """

    def __init__(
        self,
        *,
        base_url: str,
        http: HttpClient,
        log: LogFanout,
        timeout_ms: int | None = 5000,
        optimistic: bool = False,
        executor: Executor | None = None,
    ) -> None:
        self.base_url = base_url
        self._http = http
        self._log = log
        self.timeout_ms = timeout_ms
        self.optimistic = optimistic
        self._executor = executor
        self._owns_executor = executor is None
        self._pending: list[Future[Outcome]] = []
        self._logger = get_logger(__name__)

    @property
    def pending(self) -> list[Future[Outcome]]:
        return list(self._pending)

    def send(self, endpoint: str, payload: Payload) -> Outcome:
        url = self.base_url + endpoint
        body = serialize(payload)
        headers = {
            "Content-Type": "text/plain",
            "User-Agent": payload.context.user_agent,
        }

        self._log.log(
            LogRecord(
                type="Request",
                event_name=payload.type.value,
                request_method="POST",
                request_url=url,
                request_body=json.loads(body),
            )
        )

        if self.optimistic:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="spectacle")
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(self._executor.submit(self._post, url, headers, body, payload))
            return Outcome.SUCCESS

        return self._post(url, headers, body, payload)

    def _post(self, url: str, headers: dict[str, str], body: str, payload: Payload) -> Outcome:
        event_name = payload.type.value
        timeout_s = self.timeout_ms / 1000.0 if self.timeout_ms else None
        try:
            result = self._http.post(url, headers=headers, content=body, timeout_s=timeout_s)
        except TransportError as e:
            self._logger.warning(
                "request failed: %s", e, extra={"event_name": event_name, "endpoint": url}
            )
            self._log.log(
                LogRecord(
                    type="Response",
                    event_name=event_name,
                    message="Spectacle Request failed.",
                    reason=json.dumps(str(e)),
                )
            )
            return Outcome.FAILURE

        self._log.log(
            LogRecord(
                type="Response",
                event_name=event_name,
                response_status_code=result.status_code,
                response_headers=result.headers,
                response_body=result.body,
            )
        )
        return self._outcome(result, event_name=event_name, url=url)

    def _outcome(self, result: HttpResponse, *, event_name: str, url: str) -> Outcome:
        if is_success_status(result.status_code):
            return Outcome.SUCCESS

        self._logger.warning(
            "error response: %s",
            result.body,
            extra={"event_name": event_name, "endpoint": url, "status_code": result.status_code},
        )
        return Outcome.FAILURE

    def drain(self) -> list[Outcome]:
        """Wait for optimistic sends; returns their (unreported) outcomes."""
        done = wait_for(self._pending, self._logger)
        self._pending.clear()
        return done

    def close(self) -> None:
        self.drain()
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
