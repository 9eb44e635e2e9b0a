"""
httpx-backed transport.

Sends drafts through a persistent httpx.AsyncClient. Connection pooling,
HTTP/2, TLS and proxies are all httpx's concern; this module only adapts
drafts to httpx requests and httpx failures to TransportError.
"""

import time
from typing import Optional

import httpx
import structlog

from resilient_http.models.request_models import RequestDraft
from resilient_http.models.response_models import RawResponse
from resilient_http.transport.base_transport import BaseTransport
from resilient_http.transport.exceptions import (
    TransportConnectError,
    TransportError,
    TransportTimeoutError,
)

logger = structlog.get_logger(__name__)


class HttpxTransport(BaseTransport):
    """
    Transport using httpx for async HTTP communication.

    Features:
    - Connection pooling via a lazily created persistent AsyncClient
    - Optional custom httpx transport (e.g. httpx.MockTransport in tests)
    - Failure mapping: timeouts, connect errors, other transport errors
    """

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        follow_redirects: bool = True,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize httpx transport.

        Args:
            timeout: httpx-level timeout in seconds (None leaves timing to the engine)
            follow_redirects: Follow 3xx responses inside httpx (default True, matching Settings.FOLLOW_REDIRECTS)
            connection_limits: httpx connection pool limits (default: 20 max connections)
            transport: Custom httpx transport for the internal client
            client: Pre-built AsyncClient to use instead of creating one
        """
        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=10,
                max_connections=20,
                keepalive_expiry=30.0
            )

        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self._connection_limits = connection_limits
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = client
        self._owns_client = client is None

        logger.info(
            "httpx transport initialized",
            timeout=timeout,
            follow_redirects=follow_redirects,
            custom_transport=transport is not None,
            external_client=client is not None,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                follow_redirects=self.follow_redirects,
                transport=self._transport,
            )
            self._owns_client = True
            logger.debug("Created new httpx AsyncClient")
        return self._client

    async def send(self, draft: RequestDraft) -> RawResponse:
        client = await self._get_client()
        start_time = time.monotonic()

        try:
            request = client.build_request(
                draft.method,
                draft.url,
                headers=draft.headers,
                content=draft.body,
            )
            response = await client.send(request)
        except httpx.TimeoutException as e:
            logger.warning("Transport timeout", method=draft.method, url=draft.url, error=str(e))
            raise TransportTimeoutError(
                f"Timed out talking to {draft.url}",
                details={"url": draft.url, "error_type": type(e).__name__},
            ) from e
        except httpx.ConnectError as e:
            logger.warning("Transport connect error", method=draft.method, url=draft.url, error=str(e))
            raise TransportConnectError(
                f"Could not connect to {draft.url}: {e}",
                details={"url": draft.url, "error_type": type(e).__name__},
            ) from e
        except httpx.TransportError as e:
            logger.warning("Transport error", method=draft.method, url=draft.url, error=str(e))
            raise TransportError(
                f"Transport failure: {e}",
                details={"url": draft.url, "error_type": type(e).__name__},
            ) from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            # Redirect loops, bad Content-Encoding and malformed URLs never yield a usable response
            logger.warning("Request failed", method=draft.method, url=draft.url, error=str(e))
            raise TransportError(
                f"Request failed: {e}",
                details={"url": draft.url, "error_type": type(e).__name__},
            ) from e

        elapsed = time.monotonic() - start_time
        logger.debug(
            "Transport response received",
            method=draft.method,
            url=draft.url,
            status_code=response.status_code,
            elapsed_ms=int(elapsed * 1000),
        )

        return RawResponse(
            status_code=response.status_code,
            headers=response.headers,
            content=response.content,
            url=str(response.url),
            method=draft.method,
            elapsed=elapsed,
        )

    async def close(self) -> None:
        """Close the HTTP client connection."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed httpx transport connection")

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"timeout={self.timeout}, "
            f"follow_redirects={self.follow_redirects})"
        )
