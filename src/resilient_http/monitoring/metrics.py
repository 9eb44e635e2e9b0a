"""Prometheus metrics for resilient-http.

Metrics are registered in the default prometheus_client registry and can be
exposed by the host application (e.g. prometheus_client.start_http_server).
Useful alert signals:
- http_client_retries_total (high retry rate indicates upstream instability)
- http_client_calls_total{outcome="aborted"} (timeouts creeping up)
- http_client_calls_total{outcome="middleware_abort"} (credential problems)
"""

from prometheus_client import Counter, Histogram

# === Attempt Metrics ===

attempts_total = Counter(
    "http_client_attempts_total",
    "Total transport attempts by method and result",
    ["method", "result"],
)
"""
Transport attempts counter.

Labels:
- method: HTTP method (GET, POST, ...)
- result: success, http_error, network_error
"""

attempt_latency_seconds = Histogram(
    "http_client_attempt_latency_seconds",
    "Transport latency per attempt in seconds",
    ["method"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)
"""
Per-attempt transport latency histogram.

Only attempts that produced a response or a transport error are observed;
aborted attempts are not.
"""

# === Retry Metrics ===

retries_total = Counter(
    "http_client_retries_total",
    "Total retries scheduled by reason",
    ["reason"],
)
"""
Retries counter.

Labels:
- reason: http_error, network_error
"""

retry_delay_seconds = Histogram(
    "http_client_retry_delay_seconds",
    "Delay scheduled before a retry in seconds",
    ["source"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)
"""
Retry delay histogram.

Labels:
- source: backoff (computed), server (Retry-After header)
"""

# === Call Metrics ===

calls_total = Counter(
    "http_client_calls_total",
    "Total logical calls by method and terminal outcome",
    ["method", "outcome"],
)
"""
Logical calls counter.

Labels:
- method: HTTP method
- outcome: succeeded, http_error, network_error, aborted, conversion_error,
  middleware_abort
"""
