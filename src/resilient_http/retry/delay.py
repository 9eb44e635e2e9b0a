"""
Delay computation between attempts.

Two inputs decide how long the engine waits before retrying:

1. **Backoff**: LINEAR or EXPONENTIAL growth from min_delay, capped at
   max_delay, optionally scaled down by jitter.
2. **Server hint**: a parsed Retry-After header. When present it replaces
   the backoff math entirely.

All durations are seconds.
"""

import math
import random
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from resilient_http.models.enums import BackoffStrategy
from resilient_http.models.request_models import RetryOptions

JITTER_LOW = 0.5
JITTER_HIGH = 1.0


def backoff_delay(attempt_index: int, options: RetryOptions) -> float:
    """Deterministic backoff for an attempt, before jitter."""
    if attempt_index < 0:
        raise ValueError("attempt_index must be >= 0")

    if options.strategy == BackoffStrategy.LINEAR:
        delay = options.min_delay * (attempt_index + 1)
    else:
        # Cap the exponent so huge attempt indices do not overflow float math
        delay = options.min_delay * (2 ** min(attempt_index, 64))

    return min(delay, options.max_delay)


def compute_delay(
    attempt_index: int,
    options: RetryOptions,
    server_hint: Optional[float] = None,
    *,
    rng: Optional[random.Random] = None,
) -> float:
    """
    Compute the wait before the attempt following attempt_index.

    Args:
        attempt_index: 0-based index of the attempt that just failed
        options: Backoff configuration for the call
        server_hint: Parsed Retry-After delay in seconds (bypasses backoff)
        rng: Random source for jitter (defaults to the module-level generator)

    Returns:
        Non-negative delay in seconds
    """
    if server_hint is not None:
        return max(server_hint, 0.0)

    delay = backoff_delay(attempt_index, options)

    if options.do_jitter:
        uniform = rng.uniform if rng is not None else random.uniform
        delay *= uniform(JITTER_LOW, JITTER_HIGH)

    return max(delay, 0.0)


def parse_retry_after(value: Optional[str], *, now: Optional[float] = None) -> Optional[float]:
    """
    Parse a Retry-After header value into seconds.

    Accepts delta-seconds ("120", "1.5") or an HTTP-date
    ("Wed, 21 Oct 2015 07:28:00 GMT"). Dates already in the past clamp to 0.

    Args:
        value: Raw header value (None when the header is absent)
        now: Current POSIX timestamp (defaults to time.time())

    Returns:
        Delay in seconds, or None when the value is absent or unparseable
    """
    if value is None:
        return None

    value = value.strip()
    if not value:
        return None

    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            return None
        return max(seconds, 0.0)

    try:
        retry_at: datetime = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if retry_at is None:
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)

    current = time.time() if now is None else now
    return max(retry_at.timestamp() - current, 0.0)
