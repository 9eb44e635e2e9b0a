"""
Terminal error taxonomy for logical calls.

Only the terminal outcome of a call crosses the client boundary. Intermediate
attempt failures are resolved by the retry controller and never observed by
the caller. Each error carries enough structure to tell the five kinds apart
and, where applicable, the underlying response or transport error.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from resilient_http.models.enums import ConvertType
    from resilient_http.models.response_models import RawResponse
    from resilient_http.transport.exceptions import TransportError


ABORT_REASON_TIMEOUT = "timeout"
ABORT_REASON_USER = "user-abort"


class RequestClientError(Exception):
    """
    Base exception for all terminal call failures.

    Attributes:
        message: Human-readable description
        details: Structured context for logging
        attempts: Number of transport attempts made before the call ended
    """

    def __init__(self, message: str, details: dict | None = None, attempts: int = 0):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.attempts = attempts


class HTTPError(RequestClientError):
    """
    Raised when the transport succeeded but the final status indicates failure.

    Retries were exhausted or vetoed by the on_error callback.
    """

    def __init__(self, response: "RawResponse", attempts: int = 0):
        super().__init__(
            f"HTTP {response.status_code} for {response.method} {response.url}",
            details={"status_code": response.status_code, "url": response.url},
            attempts=attempts,
        )
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code


class NetworkError(RequestClientError):
    """
    Raised when the transport itself failed on the final attempt.

    Connection, DNS and TLS failures land here once retries are exhausted or
    vetoed by the on_network_error callback.
    """

    def __init__(self, cause: "TransportError", attempts: int = 0):
        super().__init__(
            f"Network error: {cause}",
            details={"error_type": type(cause).__name__, **cause.details},
            attempts=attempts,
        )
        self.cause = cause


class AbortError(RequestClientError):
    """
    Raised when the call was cancelled by its abort controller or timed out.

    Always terminal, never retried. `reason` is "timeout" for a per-attempt
    timeout and the controller's reason (default "user-abort") otherwise.
    """

    def __init__(self, reason: str = ABORT_REASON_USER, attempts: int = 0):
        super().__init__(
            f"Request aborted: {reason}",
            details={"reason": reason},
            attempts=attempts,
        )
        self.reason = reason

    @property
    def is_timeout(self) -> bool:
        return self.reason == ABORT_REASON_TIMEOUT


class ConversionError(RequestClientError):
    """
    Raised when a success-status body cannot be converted to the requested type.

    Terminal: retrying would reproduce the same malformed body.
    """

    def __init__(
        self,
        message: str,
        convert_type: "ConvertType",
        response: Optional["RawResponse"] = None,
        attempts: int = 0,
    ):
        super().__init__(
            message,
            details={"convert_type": convert_type.value},
            attempts=attempts,
        )
        self.convert_type = convert_type
        self.response = response


class MiddlewareAbort(RequestClientError):
    """
    Raised when a middleware step halted the pipeline.

    The request was never sent for that attempt, so neither on_error nor
    on_network_error is consulted.
    """

    def __init__(self, middleware: str, attempts: int = 0):
        super().__init__(
            f"Middleware '{middleware}' stopped the request",
            details={"middleware": middleware},
            attempts=attempts,
        )
        self.middleware = middleware
