"""
Ready-made middleware steps.

Each factory returns a step suitable for MiddlewarePipeline.use():

    client.use("auth", bearer_auth(token_store.get_token))
    client.use("tracing", request_id_header())
"""

import uuid
from typing import Awaitable, Callable, Mapping, Optional, Union

import structlog

from resilient_http.middleware.pipeline import MiddlewareResult, MiddlewareStep
from resilient_http.models.callbacks import maybe_await
from resilient_http.models.request_models import AttemptContext, RequestDraft

logger = structlog.get_logger(__name__)

TokenProvider = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]


def static_headers(headers: Mapping[str, str]) -> MiddlewareStep:
    """Set fixed headers on every attempt (overwriting earlier values)."""
    frozen = dict(headers)

    def step(draft: RequestDraft, context: AttemptContext) -> MiddlewareResult:
        for name, value in frozen.items():
            draft.set_header(name, value)
        return MiddlewareResult(draft=draft)

    return step


def bearer_auth(token_provider: TokenProvider, header: str = "Authorization") -> MiddlewareStep:
    """
    Attach a bearer token fetched before every attempt.

    The provider may be sync or async and is awaited fully before the
    request proceeds. When it returns no token the step stops propagation,
    so the call fails with MiddlewareAbort instead of sending an
    unauthenticated request.
    """

    async def step(draft: RequestDraft, context: AttemptContext) -> MiddlewareResult:
        token = await maybe_await(token_provider())
        if not token:
            logger.warning(
                "No credentials available, stopping request",
                attempt=context.attempt_index,
                url=draft.url,
            )
            return MiddlewareResult(draft=draft, stop_propagation=True)

        draft.set_header(header, f"Bearer {token}")
        return MiddlewareResult(draft=draft)

    return step


def request_id_header(
    header: str = "X-Request-ID",
    factory: Callable[[], str] = lambda: uuid.uuid4().hex,
) -> MiddlewareStep:
    """Stamp a request id unless the caller already set one."""

    def step(draft: RequestDraft, context: AttemptContext) -> MiddlewareResult:
        if header not in draft.headers:
            draft.set_header(header, factory())
        return MiddlewareResult(draft=draft)

    return step
