"""
Call outcome and attempt history tracking.

This module defines the CallOutcome dataclass that captures the terminal
result of a logical call together with its attempt history, for debugging
and metrics.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from resilient_http.exceptions import RequestClientError
from resilient_http.models.enums import CallState


@dataclass(frozen=True)
class AttemptRecord:
    """
    One attempt within a logical call.

    Attributes:
        attempt_index: 0-based attempt index
        outcome: "success", "http_error", "network_error", "aborted",
            "conversion_error" or "middleware_abort"
        status_code: Response status, when a response was received
        error_type: Exception class name, when the attempt raised
        latency_ms: Time spent in the transport (ms)
        delay: Wait scheduled after this attempt (seconds, 0 if none)
    """

    attempt_index: int
    outcome: str
    status_code: Optional[int] = None
    error_type: Optional[str] = None
    latency_ms: int = 0
    delay: float = 0.0


@dataclass(frozen=True)
class CallOutcome:
    """
    Terminal result of one logical call.

    Exactly one of value/error is meaningful: value when state is SUCCEEDED,
    error otherwise.

    Attributes:
        state: SUCCEEDED, FAILED or ABORTED
        value: Result returned by on_success (SUCCEEDED only)
        error: Terminal error (FAILED / ABORTED only)
        attempts: Number of transport attempts started
        elapsed: Seconds from call start to terminal state
        history: Per-attempt records, in order
    """

    state: CallState
    value: Any = None
    error: Optional[RequestClientError] = None
    attempts: int = 0
    elapsed: float = 0.0
    history: list[AttemptRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate outcome invariants."""
        if not self.state.is_terminal:
            raise ValueError(f"CallOutcome state must be terminal, got {self.state.value}")

        if self.state == CallState.SUCCEEDED and self.error is not None:
            raise ValueError("a succeeded outcome cannot carry an error")

        if self.state != CallState.SUCCEEDED and self.error is None:
            raise ValueError(f"a {self.state.value} outcome must carry an error")

        if self.attempts < 0:
            raise ValueError("attempts must be >= 0")

        if self.elapsed < 0:
            raise ValueError("elapsed must be >= 0")

    @property
    def ok(self) -> bool:
        return self.state == CallState.SUCCEEDED

    def unwrap(self) -> Any:
        """Return the success value or raise the terminal error."""
        if self.error is not None:
            raise self.error
        return self.value
