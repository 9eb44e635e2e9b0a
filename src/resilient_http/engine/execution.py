"""
Execution engine: one logical call from first attempt to terminal outcome.

Per-attempt loop:
    1. Build a fresh RequestDraft from the immutable CallConfig
    2. Run the middleware pipeline, abortable (stop -> MiddlewareAbort, terminal)
    3. Race the transport against the per-attempt timeout and the abort signal
    4. Classify the outcome and ask the RetryController what to do
    5. RETRYING: wait for the delay (abortable), advance, loop
    6. SUCCEEDED / FAILED / ABORTED: return the CallOutcome

Usage:
    engine = ExecutionEngine(transport, pipeline)
    value = await engine.execute(call_config)
"""

import asyncio
import random
import time
from typing import Any, Awaitable, Optional, TypeVar

import structlog

from resilient_http.conversion.converter import Converter, convert
from resilient_http.engine.abort import AbortController
from resilient_http.engine.draft import build_draft
from resilient_http.exceptions import (
    ABORT_REASON_TIMEOUT,
    AbortError,
    ConversionError,
    HTTPError,
    MiddlewareAbort,
    NetworkError,
    RequestClientError,
)
from resilient_http.logging_config import call_context
from resilient_http.middleware.pipeline import MiddlewarePipeline
from resilient_http.models.enums import CallState, OutcomeKind
from resilient_http.models.request_models import CallConfig, RequestDraft
from resilient_http.models.response_models import RawResponse
from resilient_http.monitoring.metrics import (
    attempt_latency_seconds,
    attempts_total,
    calls_total,
    retries_total,
    retry_delay_seconds,
)
from resilient_http.retry.controller import RetryController
from resilient_http.retry.metadata import AttemptRecord, CallOutcome
from resilient_http.transport.base_transport import BaseTransport
from resilient_http.transport.exceptions import TransportError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _outcome_label(error: Optional[RequestClientError]) -> str:
    if error is None:
        return "succeeded"
    if isinstance(error, AbortError):
        return "aborted"
    if isinstance(error, HTTPError):
        return "http_error"
    if isinstance(error, NetworkError):
        return "network_error"
    if isinstance(error, ConversionError):
        return "conversion_error"
    if isinstance(error, MiddlewareAbort):
        return "middleware_abort"
    return "error"


class _Aborted(Exception):
    """Internal signal: the attempt ended because of timeout or abort."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ExecutionEngine:
    """
    Orchestrates attempts for logical calls.

    The engine is stateless between calls: every execute() creates its own
    RetryController, drafts and contexts. The only shared state is the
    middleware pipeline, which snapshots its entries on every apply().

    Attributes:
        transport: Sends drafts and returns RawResponse
        pipeline: Middleware applied before every attempt
        converter: Converts success bodies by ConvertType
        rng: Random source for jitter (None uses the random module)
    """

    def __init__(
        self,
        transport: BaseTransport,
        pipeline: Optional[MiddlewarePipeline] = None,
        converter: Converter = convert,
        rng: Optional[random.Random] = None,
    ):
        self.transport = transport
        self.pipeline = pipeline if pipeline is not None else MiddlewarePipeline()
        self.converter = converter
        self.rng = rng

    async def execute(self, config: CallConfig) -> Any:
        """
        Run one logical call and return its result.

        Returns:
            Value returned by on_success (the converted body by default)

        Raises:
            HTTPError, NetworkError, AbortError, ConversionError, MiddlewareAbort
        """
        outcome = await self.execute_outcome(config)
        return outcome.unwrap()

    async def execute_outcome(self, config: CallConfig) -> CallOutcome:
        """Run one logical call and return its CallOutcome without raising."""
        with call_context(config.method, config.endpoint):
            return await self._run(config)

    async def _run(self, config: CallConfig) -> CallOutcome:
        controller = RetryController.from_call_config(config, rng=self.rng)
        abort = config.abort_controller
        started_at = time.monotonic()
        history: list[AttemptRecord] = []

        logger.info(
            "Starting call",
            max_attempts=controller.max_attempts,
            timeout=config.timeout,
        )

        while True:
            context = controller.context(time.monotonic() - started_at)

            # Abort is checked before anything else at every attempt boundary
            if abort is not None and abort.aborted:
                return self._finish(
                    config, controller, started_at, history, error=AbortError(abort.reason)
                )

            draft = build_draft(config)
            try:
                piped = await self._race(self.pipeline.apply(draft, context), abort)
            except _Aborted as aborted:
                logger.warning(
                    "Call aborted during middleware",
                    attempt=context.attempt_index,
                    reason=aborted.reason,
                )
                return self._finish(
                    config, controller, started_at, history, error=AbortError(aborted.reason)
                )
            if piped.should_stop:
                history.append(AttemptRecord(context.attempt_index, "middleware_abort"))
                return self._finish(
                    config, controller, started_at, history,
                    error=MiddlewareAbort(piped.stopped_by or ""),
                )

            attempt_start = time.monotonic()
            try:
                response = await self._send(piped.draft, config.timeout, abort)
            except _Aborted as aborted:
                history.append(self._record(context.attempt_index, "aborted", attempt_start))
                logger.warning("Attempt aborted", attempt=context.attempt_index, reason=aborted.reason)
                return self._finish(
                    config, controller, started_at, history, error=AbortError(aborted.reason)
                )
            except TransportError as e:
                kind, payload, status_code = OutcomeKind.NETWORK_ERROR, e, None
            else:
                status_code = response.status_code
                if not response.is_success:
                    kind, payload = OutcomeKind.HTTP_ERROR, response
                else:
                    kind = OutcomeKind.SUCCESS
                    try:
                        payload = self.converter(response, config.convert_type)
                    except ConversionError as e:
                        history.append(
                            self._record(context.attempt_index, "conversion_error", attempt_start, status_code)
                        )
                        attempts_total.labels(method=config.method, result=kind.value).inc()
                        logger.error(
                            "Response conversion failed",
                            convert_type=config.convert_type.value,
                            status_code=status_code,
                            error=e.message,
                        )
                        return self._finish(config, controller, started_at, history, error=e)

            latency = time.monotonic() - attempt_start
            attempts_total.labels(method=config.method, result=kind.value).inc()
            attempt_latency_seconds.labels(method=config.method).observe(latency)

            decision = await controller.decide(kind, payload, context)

            history.append(
                AttemptRecord(
                    attempt_index=context.attempt_index,
                    outcome=kind.value,
                    status_code=status_code,
                    error_type=type(payload).__name__ if kind == OutcomeKind.NETWORK_ERROR else None,
                    latency_ms=int(latency * 1000),
                    delay=decision.delay if decision.retry else 0.0,
                )
            )

            if decision.state == CallState.SUCCEEDED:
                return self._finish(config, controller, started_at, history, value=decision.value)

            if decision.state == CallState.FAILED:
                return self._finish(config, controller, started_at, history, error=decision.error)

            retries_total.labels(reason=kind.value).inc()
            retry_delay_seconds.labels(source="server" if decision.server_hint else "backoff").observe(decision.delay)

            if await self._pause(decision.delay, abort):
                logger.warning("Call aborted during retry delay", attempt=context.attempt_index)
                return self._finish(
                    config, controller, started_at, history, error=AbortError(abort.reason)
                )

            controller.advance()

    async def _send(
        self,
        draft: RequestDraft,
        timeout: Optional[float],
        abort: Optional[AbortController],
    ) -> RawResponse:
        """
        Race the transport against the timeout and the abort signal.

        Raises:
            _Aborted: timeout or abort won the race (transport task cancelled)
            TransportError: the transport failed
        """
        return await self._race(self.transport.send(draft), abort, timeout)

    @staticmethod
    async def _race(
        awaitable: Awaitable[T],
        abort: Optional[AbortController],
        timeout: Optional[float] = None,
    ) -> T:
        """
        Await awaitable unless the timeout expires or the abort signal fires first.

        Raises:
            _Aborted: timeout or abort won the race (the awaitable is cancelled)
        """
        if abort is None and timeout is None:
            return await awaitable

        work = asyncio.ensure_future(awaitable)
        abort_task = asyncio.ensure_future(abort.wait()) if abort is not None else None
        waiting = {work} if abort_task is None else {work, abort_task}

        try:
            done, _ = await asyncio.wait(
                waiting, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )

            # Abort wins ties with a completed result
            if abort is not None and abort.aborted:
                raise _Aborted(abort.reason)
            if work not in done:
                raise _Aborted(ABORT_REASON_TIMEOUT)

            return work.result()
        finally:
            for task in (work, abort_task):
                if task is not None and not task.done():
                    task.cancel()
            pending = [t for t in (work, abort_task) if t is not None]
            await asyncio.gather(*pending, return_exceptions=True)

    async def _pause(self, delay: float, abort: Optional[AbortController]) -> bool:
        """
        Wait for delay seconds unless aborted first.

        Returns:
            True if the abort signal fired during the wait
        """
        if abort is None:
            await asyncio.sleep(delay)
            return False
        if abort.aborted:
            return True

        abort_task = asyncio.ensure_future(abort.wait())
        try:
            await asyncio.wait({abort_task}, timeout=delay)
        finally:
            if not abort_task.done():
                abort_task.cancel()
            await asyncio.gather(abort_task, return_exceptions=True)
        return abort.aborted

    @staticmethod
    def _record(
        attempt_index: int,
        outcome: str,
        attempt_start: float,
        status_code: Optional[int] = None,
    ) -> AttemptRecord:
        return AttemptRecord(
            attempt_index=attempt_index,
            outcome=outcome,
            status_code=status_code,
            latency_ms=int((time.monotonic() - attempt_start) * 1000),
        )

    def _finish(
        self,
        config: CallConfig,
        controller: RetryController,
        started_at: float,
        history: list[AttemptRecord],
        value: Any = None,
        error: Optional[RequestClientError] = None,
    ) -> CallOutcome:
        if error is None:
            state = CallState.SUCCEEDED
        elif isinstance(error, AbortError):
            state = CallState.ABORTED
        else:
            state = CallState.FAILED

        attempts = sum(1 for record in history if record.outcome != "middleware_abort")
        if error is not None:
            error.attempts = attempts
        elapsed = time.monotonic() - started_at
        label = _outcome_label(error)
        calls_total.labels(method=config.method, outcome=label).inc()

        logger.info(
            "Call finished",
            outcome=label,
            attempts=attempts,
            max_attempts=controller.max_attempts,
            elapsed_ms=int(elapsed * 1000),
        )

        return CallOutcome(
            state=state,
            value=value,
            error=error,
            attempts=attempts,
            elapsed=elapsed,
            history=history,
        )
