"""Monitoring and metrics instrumentation for resilient-http.

Exports Prometheus metrics for operational monitoring and alerting.
"""

from resilient_http.monitoring.metrics import (
    attempt_latency_seconds,
    attempts_total,
    calls_total,
    retries_total,
    retry_delay_seconds,
)

__all__ = [
    "attempts_total",
    "attempt_latency_seconds",
    "retries_total",
    "retry_delay_seconds",
    "calls_total",
]
