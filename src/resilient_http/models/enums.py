"""
Enumerations for resilient-http data models.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum


class BackoffStrategy(str, Enum):
    """
    Delay-growth policy between attempts.

    LINEAR grows as min_delay * (attempt + 1).
    EXPONENTIAL grows as min_delay * 2^attempt.
    Both are capped at max_delay.
    """

    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class ConvertType(str, Enum):
    """
    Tag selecting how a successful response body is converted.

    RESPONSE is the identity conversion (the raw response is returned).
    """

    JSON = "json"
    TEXT = "text"
    BLOB = "blob"
    BYTES = "bytes"
    ARRAYBUFFER = "arraybuffer"
    FORMDATA = "formdata"
    RESPONSE = "response"


class CallState(str, Enum):
    """
    States of the per-call attempt state machine.

    ATTEMPTING is the only non-terminal state besides RETRYING, which loops
    back into ATTEMPTING after the inter-attempt delay.
    """

    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (CallState.SUCCEEDED, CallState.FAILED, CallState.ABORTED)


class OutcomeKind(str, Enum):
    """Classification of a single attempt's transport outcome."""

    SUCCESS = "success"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
