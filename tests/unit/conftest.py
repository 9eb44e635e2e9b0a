"""Unit test fixtures (mocks and stubs).

Provides small building blocks for testing components in isolation.
"""

import httpx
import pytest

from resilient_http.models.callbacks import Callbacks
from resilient_http.models.request_models import AttemptContext, RequestDraft


@pytest.fixture
def draft() -> RequestDraft:
    """Plain GET draft with one header."""
    return RequestDraft(
        method="GET",
        url="https://api.example.com/v1/items",
        headers=httpx.Headers({"Accept": "application/json"}),
    )


@pytest.fixture
def first_attempt() -> AttemptContext:
    """Context for the first of three attempts."""
    return AttemptContext(attempt_index=0, max_attempts=3, elapsed=0.0)


@pytest.fixture
def last_attempt() -> AttemptContext:
    """Context for the last of three attempts."""
    return AttemptContext(attempt_index=2, max_attempts=3, elapsed=1.5)


@pytest.fixture
def always_retry() -> Callbacks:
    """Callbacks that ask for a retry on every failure."""
    return Callbacks(
        on_error=lambda response, is_last: True,
        on_network_error=lambda error: True,
    )
