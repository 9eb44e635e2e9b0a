"""
resilient-http: asynchronous HTTP client with retries and request middleware.

Wraps a raw request/response transport with:
- Automatic retries (linear/exponential backoff, jitter, Retry-After)
- Named, ordered request middleware (auth, headers, tracing)
- Configurable body conversion (JSON, text, bytes, form data, raw)
- Per-attempt timeouts and cooperative abort

Architecture: RequestClient facade -> ExecutionEngine -> MiddlewarePipeline
-> transport (httpx) -> RetryController
"""

__version__ = "0.1.0"

from resilient_http.client import ClientConfig, RequestClient
from resilient_http.engine.abort import AbortController
from resilient_http.exceptions import (
    AbortError,
    ConversionError,
    HTTPError,
    MiddlewareAbort,
    NetworkError,
    RequestClientError,
)
from resilient_http.middleware import MiddlewareResult
from resilient_http.models import (
    AttemptContext,
    BackoffStrategy,
    Callbacks,
    ConvertType,
    RawResponse,
    RequestDraft,
    RetryOptions,
)
from resilient_http.retry import CallOutcome

__all__ = [
    "__version__",
    "AbortController",
    "AbortError",
    "AttemptContext",
    "BackoffStrategy",
    "CallOutcome",
    "Callbacks",
    "ClientConfig",
    "ConversionError",
    "ConvertType",
    "HTTPError",
    "MiddlewareAbort",
    "MiddlewareResult",
    "NetworkError",
    "RawResponse",
    "RequestClient",
    "RequestClientError",
    "RequestDraft",
    "RetryOptions",
]
