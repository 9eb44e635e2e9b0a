"""
Abstract base transport.

Defines the narrow capability contract the execution engine relies on.
Swapping transports (httpx, a test double, a recording proxy) never changes
retry, middleware or conversion behaviour.
"""

from abc import ABC, abstractmethod

import structlog

from resilient_http.models.request_models import RequestDraft
from resilient_http.models.response_models import RawResponse

logger = structlog.get_logger(__name__)


class BaseTransport(ABC):
    """
    Abstract base class for request transports.

    Responsibilities:
    - Send one HTTP request and return status, headers and body
    - Map low-level failures to TransportError subclasses
    - Release resources promptly when the send task is cancelled

    Does NOT handle:
    - Retries (that's RetryController's job)
    - Per-attempt timeouts and aborts (that's ExecutionEngine's job)
    - Body conversion (that's the converter's job)
    """

    @abstractmethod
    async def send(self, draft: RequestDraft) -> RawResponse:
        """
        Send one request.

        Cancellation is delivered by cancelling the task awaiting this
        coroutine; implementations must not shield the underlying I/O.

        Args:
            draft: Final draft after middleware

        Returns:
            RawResponse with the fully-read body

        Raises:
            TransportError: The request produced no HTTP response
        """
        pass

    async def close(self) -> None:
        """
        Release connections held by the transport.

        Default implementation does nothing. Subclasses should override if
        they hold persistent connections.
        """
        logger.debug("Closing transport", transport_class=self.__class__.__name__)

    async def __aenter__(self) -> "BaseTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
