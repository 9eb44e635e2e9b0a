"""
Custom exceptions for the transport layer.

Transports raise these when the request never produced an HTTP response
(connection refused, DNS failure, TLS failure, read timeout). The execution
engine classifies every TransportError as a network error and hands it to
the retry controller.
"""


class TransportError(Exception):
    """
    Base exception for all transport failures.

    All transport-specific exceptions inherit from this to allow catching
    any transport-level error with a single except clause.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransportConnectError(TransportError):
    """
    Raised when a connection to the remote host could not be established.

    Includes refused connections, DNS resolution failures and TLS handshake
    failures.
    """
    pass


class TransportTimeoutError(TransportError):
    """
    Raised when the underlying transport gave up waiting.

    Separate from the engine's own per-attempt timeout, which ends the call
    with an AbortError instead of a network error.
    """
    pass
