"""
Request-side data models for the execution engine.

RequestDraft and AttemptContext are created fresh for every attempt and
discarded at its end. RetryOptions and CallConfig are created once per
logical call and never mutated while the attempt loop runs.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, model_validator

from resilient_http.models.callbacks import Callbacks
from resilient_http.models.enums import BackoffStrategy, ConvertType

if TYPE_CHECKING:
    from resilient_http.engine.abort import AbortController
    from resilient_http.models.response_models import RawResponse


@dataclass
class RequestDraft:
    """
    Mutable description of one outbound attempt.

    Headers are an httpx.Headers instance: ordered, case-insensitive keys,
    and assignment replaces any earlier value (last write wins).

    Attributes:
        method: Upper-case HTTP method
        url: Absolute request URL (query string included)
        headers: Outbound headers
        body: Serialized payload, or None when the request has no body
    """

    method: str
    url: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Optional[bytes] = None

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def remove_header(self, name: str) -> None:
        if name in self.headers:
            del self.headers[name]


@dataclass(frozen=True)
class AttemptContext:
    """
    Immutable snapshot visible to middleware and callbacks.

    Attributes:
        attempt_index: Current attempt, 0-based
        max_attempts: Attempt budget for the call (num_retries + 1)
        elapsed: Seconds since the logical call started
    """

    attempt_index: int
    max_attempts: int
    elapsed: float = 0.0

    def __post_init__(self) -> None:
        """Validate context invariants."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        if not 0 <= self.attempt_index < self.max_attempts:
            raise ValueError(
                f"attempt_index {self.attempt_index} outside [0, {self.max_attempts})"
            )

        if self.elapsed < 0:
            raise ValueError("elapsed must be >= 0")

    @property
    def is_last_attempt(self) -> bool:
        return self.attempt_index + 1 == self.max_attempts


class RetryOptions(BaseModel):
    """
    Backoff configuration for one logical call.

    Delays are expressed in seconds. Invariant: 0 <= min_delay <= max_delay.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: BackoffStrategy = Field(
        default=BackoffStrategy.EXPONENTIAL,
        description="Delay growth policy between attempts",
    )
    min_delay: float = Field(default=0.5, ge=0.0, description="Base delay in seconds")
    max_delay: float = Field(default=30.0, ge=0.0, description="Delay cap in seconds")
    do_jitter: bool = Field(
        default=True,
        description="Scale each delay by a uniform factor in [0.5, 1.0]",
    )

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> "RetryOptions":
        if self.min_delay > self.max_delay:
            raise ValueError(
                f"min_delay ({self.min_delay}) must not exceed max_delay ({self.max_delay})"
            )
        return self


# Returns a delay in seconds, "auto", None/True (auto) or False (veto retrying).
RetryAfterCallback = Callable[["RawResponse", AttemptContext], Any]


@dataclass(frozen=True)
class CallConfig:
    """
    Immutable configuration of one logical call.

    The engine rebuilds a fresh RequestDraft from this object before every
    attempt, so middleware mutations never leak across attempts.
    """

    method: str
    endpoint: str
    base_url: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Optional[Mapping[str, Any]] = None
    body: Any = None
    convert_type: ConvertType = ConvertType.JSON
    callbacks: Callbacks = field(default_factory=Callbacks)
    retry_options: RetryOptions = field(default_factory=RetryOptions)
    retry_after_codes: frozenset[int] = frozenset({413, 429, 503})
    retry_after_callback: Optional[RetryAfterCallback] = None
    num_retries: int = 0
    timeout: Optional[float] = None
    abort_controller: Optional["AbortController"] = None

    def __post_init__(self) -> None:
        if self.num_retries < 0:
            raise ValueError("num_retries must be >= 0")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0 when set")

        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "retry_after_codes", frozenset(self.retry_after_codes))

    @property
    def max_attempts(self) -> int:
        return self.num_retries + 1
