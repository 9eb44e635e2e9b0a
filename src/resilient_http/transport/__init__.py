"""
Transport abstraction and implementations.

Components:
- BaseTransport: Abstract capability contract consumed by the engine
- HttpxTransport: Implementation over httpx.AsyncClient
- exceptions: Transport-level failures
"""

from resilient_http.transport.base_transport import BaseTransport
from resilient_http.transport.exceptions import (
    TransportConnectError,
    TransportError,
    TransportTimeoutError,
)
from resilient_http.transport.httpx_transport import HttpxTransport

__all__ = [
    "BaseTransport",
    "HttpxTransport",
    "TransportConnectError",
    "TransportError",
    "TransportTimeoutError",
]
