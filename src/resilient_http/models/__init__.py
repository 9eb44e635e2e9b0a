"""
Data models for resilient-http.

Includes:
- Enums (BackoffStrategy, ConvertType, CallState, OutcomeKind)
- Request models (RequestDraft, AttemptContext, RetryOptions, CallConfig)
- Response models (RawResponse)
- Callbacks (retry policy hooks)
"""

from resilient_http.models.callbacks import Callbacks, maybe_await
from resilient_http.models.enums import BackoffStrategy, CallState, ConvertType, OutcomeKind
from resilient_http.models.request_models import (
    AttemptContext,
    CallConfig,
    RequestDraft,
    RetryAfterCallback,
    RetryOptions,
)
from resilient_http.models.response_models import RawResponse

__all__ = [
    # Enums
    "BackoffStrategy",
    "CallState",
    "ConvertType",
    "OutcomeKind",
    # Request models
    "AttemptContext",
    "CallConfig",
    "RequestDraft",
    "RetryAfterCallback",
    "RetryOptions",
    # Response models
    "RawResponse",
    # Callbacks
    "Callbacks",
    "maybe_await",
]
