from __future__ import annotations

from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from spectacle.core.config import LoggingConfig, TagConfig
from spectacle.core.logging import get_logger, set_level
from spectacle.core.types import (
    Clock,
    Completion,
    ContainerInfo,
    CookieStore,
    EventData,
    HttpClient,
    NoopCompletion,
    Outcome,
    RandomSource,
    RequestHeaders,
    SystemClock,
)
from spectacle.features.consent.service import (
    is_consent_given_or_not_required,
    is_measurement_protocol_hit,
)
from spectacle.features.context.service import ContextBuilder, resolve_cookie_domain
from spectacle.features.dispatch.service import Dispatcher, wait_for
from spectacle.features.identity.service import IdentityResolver
from spectacle.features.logsink.service import WarehouseSink, build_fanout
from spectacle.features.payload.schema import MethodType, MissingFieldError
from spectacle.features.payload.service import PayloadAssembler


@dataclass
class HostRuntime:
    """Capabilities the hosting tag runtime provides to one invocation."""

    cookies: CookieStore
    http: HttpClient
    rng: RandomSource
    clock: Clock = field(default_factory=SystemClock)
    request_headers: Mapping[str, str] = field(default_factory=dict)
    container: ContainerInfo = field(default_factory=ContainerInfo)
    warehouse: WarehouseSink | None = None


@dataclass(frozen=True)
class ForwardResult:
    outcome: Outcome
    dispatched: bool
    reason: str | None = None


class Forwarder:
    """
    One tag invocation: consent gate -> identity/context -> payload -> dispatch -> completion.

    Exactly one completion callback fires per invocation, and the same outcome is
    returned in the ForwardResult.
    """

    def __init__(
        self,
        *,
        tag: TagConfig,
        host: HostRuntime,
        logging_cfg: LoggingConfig | None = None,
    ) -> None:
        self.tag = tag
        self.host = host
        self.logging_cfg = logging_cfg or LoggingConfig()
        set_level(self.logging_cfg.level)
        self._logger = get_logger("spectacle")
        self._executor: ThreadPoolExecutor | None = None
        self._pending: list[Future[Outcome]] = []

    def forward(
        self,
        event_data: Mapping[str, Any],
        completion: Completion | None = None,
    ) -> ForwardResult:
        completion = completion or NoopCompletion()
        try:
            result = self._run(EventData(event_data))
        except Exception:
            self._logger.exception(
                "invocation failed", extra={"method_type": self.tag.method_type}
            )
            result = ForwardResult(Outcome.FAILURE, dispatched=False, reason="error")
        if result.outcome is Outcome.SUCCESS:
            completion.on_success()
        else:
            completion.on_failure()
        return result

    def _run(self, event: EventData) -> ForwardResult:
        headers = RequestHeaders(self.host.request_headers)
        context = ContextBuilder(event=event, headers=headers)
        page_url = context.page_url()

        if not is_consent_given_or_not_required(self.tag.ad_storage_consent, event):
            return ForwardResult(Outcome.SUCCESS, dispatched=False, reason="consent_not_granted")

        if is_measurement_protocol_hit(page_url):
            return ForwardResult(Outcome.SUCCESS, dispatched=False, reason="measurement_protocol")

        method = MethodType.parse(self.tag.method_type)
        if method is None:
            self._logger.warning(
                "unknown method type: %s", self.tag.method_type,
                extra={"method_type": self.tag.method_type},
            )
            return ForwardResult(Outcome.FAILURE, dispatched=False, reason="unknown_method")

        log_type = self.logging_cfg.log_type
        identity = IdentityResolver(
            cookies=self.host.cookies,
            rng=self.host.rng,
            cookie_domain=resolve_cookie_domain(self.tag.cookie_domain, page_url),
            verbose=log_type in ("debug", "always"),
            skip_email_user_id=self.tag.do_not_save_user_email_as_user_id_cookie,
        )
        assembler = PayloadAssembler(tag=self.tag, event=event, context=context, identity=identity)

        try:
            payload = assembler.assemble(method)
        except MissingFieldError as e:
            self._logger.warning(str(e), extra={"method_type": method.value})
            return ForwardResult(Outcome.FAILURE, dispatched=False, reason="missing_field")

        fanout = build_fanout(
            log_type=log_type,
            bigquery_log_type=self.logging_cfg.bigquery_log_type,
            container=self.host.container,
            trace_id=headers.get("trace-id"),
            warehouse=self.host.warehouse,
        )
        dispatcher = Dispatcher(
            base_url=self.tag.base_url,
            http=self.host.http,
            log=fanout,
            timeout_ms=self.tag.timeout_ms,
            optimistic=self.tag.optimistic,
            executor=self._background() if self.tag.optimistic else None,
        )
        outcome = dispatcher.send(method.endpoint, payload)
        if self.tag.optimistic:
            self._pending = [f for f in self._pending if not f.done()] + dispatcher.pending
        return ForwardResult(outcome, dispatched=True)

    def _background(self) -> ThreadPoolExecutor:
        # one worker shared by every optimistic invocation of this forwarder
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="spectacle")
        return self._executor

    @property
    def pending(self) -> list[Future[Outcome]]:
        return list(self._pending)

    def close(self) -> None:
        """Wait for in-flight optimistic requests and stop the background worker."""
        wait_for(self._pending, self._logger)
        self._pending.clear()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
