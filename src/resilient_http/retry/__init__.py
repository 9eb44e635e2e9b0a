"""
Retry policy for logical calls.

Main Components:
    - compute_delay: Backoff + jitter + Retry-After delay computation
    - parse_retry_after: Retry-After header parsing (seconds or HTTP-date)
    - RetryController: Per-call attempt counter and retry/no-retry decisions
    - CallOutcome: Terminal result of a call with its attempt history

Usage:
    >>> from resilient_http.retry import RetryController
    >>> controller = RetryController.from_call_config(call_config)
    >>> decision = await controller.decide(kind, payload, controller.context())
"""

from resilient_http.retry.controller import RETRY_AFTER_AUTO, RetryController, RetryDecision
from resilient_http.retry.delay import backoff_delay, compute_delay, parse_retry_after
from resilient_http.retry.metadata import AttemptRecord, CallOutcome

__all__ = [
    "RETRY_AFTER_AUTO",
    "RetryController",
    "RetryDecision",
    "backoff_delay",
    "compute_delay",
    "parse_retry_after",
    "AttemptRecord",
    "CallOutcome",
]
