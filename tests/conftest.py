"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import json
from typing import Any, Awaitable, Callable, Optional, Union

import httpx
import pytest

from resilient_http.config import Settings
from resilient_http.models.enums import BackoffStrategy
from resilient_http.models.request_models import CallConfig, RequestDraft, RetryOptions
from resilient_http.models.response_models import RawResponse
from resilient_http.transport.base_transport import BaseTransport

Outcome = Union[RawResponse, Exception, Callable[[RequestDraft], Awaitable[RawResponse]]]


class ScriptedTransport(BaseTransport):
    """
    Transport double that replays a script of outcomes.

    Each send() consumes the next outcome; the last one repeats once the
    script runs out. Outcomes may be a RawResponse, an exception to raise,
    or an async callable receiving the draft.
    """

    def __init__(self, outcomes: list[Outcome]):
        if not outcomes:
            raise ValueError("ScriptedTransport needs at least one outcome")
        self.outcomes = list(outcomes)
        self.calls: list[RequestDraft] = []
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def send(self, draft: RequestDraft) -> RawResponse:
        self.calls.append(
            RequestDraft(
                method=draft.method,
                url=draft.url,
                headers=httpx.Headers(draft.headers),
                body=draft.body,
            )
        )
        outcome = self.outcomes[min(len(self.calls), len(self.outcomes)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        if callable(outcome):
            return await outcome(draft)
        return outcome

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.NUM_RETRIES = 5
    """
    return Settings(
        # === Application ===
        APP_NAME="resilient-http (Test)",
        ENVIRONMENT="development",
        LOG_LEVEL="DEBUG",

        # === Requests ===
        BASE_URL="https://api.example.com/v1",
        DEFAULT_HEADERS={"User-Agent": "resilient-http-tests"},
        TIMEOUT=5.0,

        # === Retry ===
        NUM_RETRIES=2,
        RETRY_AFTER_CODES=[429, 503],
        RETRY_STRATEGY=BackoffStrategy.EXPONENTIAL,
        RETRY_MIN_DELAY=0.0,
        RETRY_MAX_DELAY=0.0,
        RETRY_JITTER=False,
    )


@pytest.fixture
def no_delay_options() -> RetryOptions:
    """Retry options that never wait between attempts."""
    return RetryOptions(min_delay=0.0, max_delay=0.0, do_jitter=False)


@pytest.fixture
def create_test_response():
    """Factory fixture to create RawResponse with custom values.

    Usage:
        def test_something(create_test_response):
            response = create_test_response(503, headers={"Retry-After": "1"})
    """
    def _create(
        status_code: int = 200,
        json_body: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[dict[str, str]] = None,
        url: str = "https://api.example.com/v1/items",
        method: str = "GET",
    ) -> RawResponse:
        response_headers = httpx.Headers(headers or {})
        if content is None:
            if json_body is not None:
                content = json.dumps(json_body).encode("utf-8")
                response_headers.setdefault("content-type", "application/json")
            else:
                content = b""
        return RawResponse(
            status_code=status_code,
            headers=response_headers,
            content=content,
            url=url,
            method=method,
        )

    return _create


@pytest.fixture
def create_scripted_transport():
    """Factory fixture to create a ScriptedTransport.

    Usage:
        def test_something(create_scripted_transport, create_test_response):
            transport = create_scripted_transport([create_test_response(500)])
    """
    def _create(outcomes: list[Outcome]) -> ScriptedTransport:
        return ScriptedTransport(outcomes)

    return _create


@pytest.fixture
def create_call_config(no_delay_options: RetryOptions):
    """Factory fixture to create CallConfig with fast, deterministic retries."""
    def _create(**overrides: Any) -> CallConfig:
        values: dict[str, Any] = {
            "method": "GET",
            "endpoint": "/items",
            "base_url": "https://api.example.com/v1",
            "retry_options": no_delay_options,
        }
        values.update(overrides)
        return CallConfig(**values)

    return _create
