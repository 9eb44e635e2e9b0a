"""
Cooperative cancellation for logical calls.

An AbortController is passed explicitly in the call configuration and
observed by the engine at every suspension point: before each attempt,
while the transport call is in flight, and during the inter-attempt delay.
"""

import asyncio
from typing import Optional

from resilient_http.exceptions import ABORT_REASON_USER


class AbortController:
    """
    One-shot abort signal with a reason.

    Must be used from the event loop running the call. Aborting twice keeps
    the first reason.

    Example:
        >>> controller = AbortController()
        >>> task = asyncio.create_task(client.get("/slow", abort_controller=controller))
        >>> controller.abort()
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def abort(self, reason: str = ABORT_REASON_USER) -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    async def wait(self) -> str:
        """Suspend until abort() is called; returns the reason."""
        await self._event.wait()
        return self._reason or ABORT_REASON_USER

    def __repr__(self) -> str:
        return f"AbortController(aborted={self.aborted}, reason={self._reason!r})"
