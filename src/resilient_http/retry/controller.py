"""
Retry controller: per-call attempt counting and retry decisions.

State machine per logical call:

    ATTEMPTING -> SUCCEEDED   success status, on_success returned
    ATTEMPTING -> RETRYING    retryable failure with budget left
    ATTEMPTING -> FAILED      failure vetoed, budget exhausted, or conversion failed
    ATTEMPTING -> ABORTED     abort signal or timeout (decided by the engine)

The controller never sleeps and never talks to the transport. It turns one
attempt's outcome into a RetryDecision that the ExecutionEngine acts on.
Callbacks that raise propagate out of decide() unchanged.
"""

import random
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from resilient_http.exceptions import HTTPError, NetworkError, RequestClientError
from resilient_http.models.callbacks import Callbacks, maybe_await
from resilient_http.models.enums import CallState, OutcomeKind
from resilient_http.models.request_models import (
    AttemptContext,
    CallConfig,
    RetryAfterCallback,
    RetryOptions,
)
from resilient_http.models.response_models import RawResponse
from resilient_http.retry.delay import compute_delay, parse_retry_after
from resilient_http.transport.exceptions import TransportError

logger = structlog.get_logger(__name__)

RETRY_AFTER_AUTO = "auto"


@dataclass(frozen=True)
class RetryDecision:
    """
    Result of classifying one attempt.

    Attributes:
        state: SUCCEEDED, RETRYING or FAILED
        delay: Seconds to wait before the next attempt (RETRYING only)
        value: Call result (SUCCEEDED only)
        error: Terminal error (FAILED only)
        server_hint: Whether the delay came from a Retry-After header
    """

    state: CallState
    delay: float = 0.0
    value: Any = None
    error: Optional[RequestClientError] = None
    server_hint: bool = False

    @property
    def retry(self) -> bool:
        return self.state == CallState.RETRYING


class RetryController:
    """
    Owns the attempt counter and retry policy for one logical call.

    Attributes:
        callbacks: Resolved policy hooks (defaults already merged)
        retry_options: Backoff configuration
        retry_after_codes: Status codes whose Retry-After header is honoured
        retry_after_callback: Optional per-call override of the retry-after policy
        attempt_index: Current attempt, 0-based
        max_attempts: num_retries + 1
    """

    def __init__(
        self,
        callbacks: Callbacks,
        retry_options: RetryOptions,
        num_retries: int = 0,
        retry_after_codes: frozenset[int] = frozenset(),
        retry_after_callback: Optional[RetryAfterCallback] = None,
        rng: Optional[random.Random] = None,
    ):
        if num_retries < 0:
            raise ValueError("num_retries must be >= 0")

        self.callbacks = callbacks
        self.retry_options = retry_options
        self.retry_after_codes = frozenset(retry_after_codes)
        self.retry_after_callback = retry_after_callback
        self.rng = rng
        self.attempt_index = 0
        self.max_attempts = num_retries + 1

    @classmethod
    def from_call_config(
        cls, config: CallConfig, rng: Optional[random.Random] = None
    ) -> "RetryController":
        return cls(
            callbacks=config.callbacks,
            retry_options=config.retry_options,
            num_retries=config.num_retries,
            retry_after_codes=config.retry_after_codes,
            retry_after_callback=config.retry_after_callback,
            rng=rng,
        )

    @property
    def attempts_made(self) -> int:
        return self.attempt_index + 1

    def context(self, elapsed: float = 0.0) -> AttemptContext:
        """Fresh immutable snapshot for the current attempt."""
        return AttemptContext(
            attempt_index=self.attempt_index,
            max_attempts=self.max_attempts,
            elapsed=max(elapsed, 0.0),
        )

    def advance(self) -> None:
        if self.attempt_index + 1 >= self.max_attempts:
            raise RuntimeError("attempt budget exhausted")
        self.attempt_index += 1

    async def decide(
        self, kind: OutcomeKind, payload: Any, context: AttemptContext
    ) -> RetryDecision:
        """
        Classify one attempt's outcome.

        Args:
            kind: SUCCESS, HTTP_ERROR or NETWORK_ERROR
            payload: Converted body, RawResponse or TransportError respectively
            context: Snapshot of the attempt being classified

        Returns:
            RetryDecision for the engine to act on
        """
        if kind == OutcomeKind.SUCCESS:
            return await self._on_success(payload)
        if kind == OutcomeKind.HTTP_ERROR:
            return await self._on_http_error(payload, context)
        if kind == OutcomeKind.NETWORK_ERROR:
            return await self._on_network_error(payload, context)
        raise ValueError(f"Unknown outcome kind: {kind}")

    async def _on_success(self, value: Any) -> RetryDecision:
        result = await self.callbacks.handle_success(value)
        return RetryDecision(state=CallState.SUCCEEDED, value=result)

    async def _on_network_error(
        self, error: TransportError, context: AttemptContext
    ) -> RetryDecision:
        wants_retry = await self.callbacks.handle_network_error(error)

        if not wants_retry or context.is_last_attempt:
            logger.warning(
                "Network error is terminal",
                attempt=context.attempt_index,
                max_attempts=context.max_attempts,
                callback_retry=wants_retry,
                error_type=type(error).__name__,
            )
            return RetryDecision(
                state=CallState.FAILED,
                error=NetworkError(error, attempts=context.attempt_index + 1),
            )

        delay = compute_delay(context.attempt_index, self.retry_options, rng=self.rng)
        logger.info(
            "Retrying after network error",
            attempt=context.attempt_index,
            delay_seconds=round(delay, 3),
            error_type=type(error).__name__,
        )
        return RetryDecision(state=CallState.RETRYING, delay=delay)

    async def _on_http_error(
        self, response: RawResponse, context: AttemptContext
    ) -> RetryDecision:
        is_last = context.is_last_attempt
        wants_retry = await self.callbacks.handle_error(response, is_last)

        if not wants_retry or is_last:
            logger.warning(
                "HTTP error is terminal",
                status_code=response.status_code,
                attempt=context.attempt_index,
                max_attempts=context.max_attempts,
                callback_retry=wants_retry,
            )
            return self._http_failure(response, context)

        directive = RETRY_AFTER_AUTO
        if self.retry_after_callback is not None:
            directive = await maybe_await(self.retry_after_callback(response, context))

        if directive is False:
            logger.info(
                "Retry vetoed by retry-after callback",
                status_code=response.status_code,
                attempt=context.attempt_index,
            )
            return self._http_failure(response, context)

        if directive is None or directive is True or directive == RETRY_AFTER_AUTO:
            server_hint = self._server_hint(response)
            delay = compute_delay(
                context.attempt_index, self.retry_options, server_hint, rng=self.rng
            )
            from_hint = server_hint is not None
        elif isinstance(directive, (int, float)):
            delay = max(float(directive), 0.0)
            from_hint = False
        else:
            raise TypeError(
                f"retry_after_callback must return a number, 'auto', None or a bool, "
                f"got {directive!r}"
            )

        logger.info(
            "Retrying after HTTP error",
            status_code=response.status_code,
            attempt=context.attempt_index,
            delay_seconds=round(delay, 3),
            server_hint=from_hint,
        )
        return RetryDecision(state=CallState.RETRYING, delay=delay, server_hint=from_hint)

    def _server_hint(self, response: RawResponse) -> Optional[float]:
        if response.status_code not in self.retry_after_codes:
            return None
        return parse_retry_after(response.headers.get("retry-after"))

    def _http_failure(self, response: RawResponse, context: AttemptContext) -> RetryDecision:
        return RetryDecision(
            state=CallState.FAILED,
            error=HTTPError(response, attempts=context.attempt_index + 1),
        )
