"""
User-supplied retry policy callbacks.

Callbacks may be plain functions or coroutine functions. A missing callback
falls back to the built-in default:

- on_success: return the converted body unchanged
- on_error: do not retry an HTTP error response
- on_network_error: retry (bounded by the attempt budget)
"""

import inspect
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Optional, Union

OnSuccess = Callable[[Any], Union[Any, Awaitable[Any]]]
OnError = Callable[[Any, bool], Union[bool, Awaitable[bool]]]
OnNetworkError = Callable[[Exception], Union[bool, Awaitable[bool]]]


async def maybe_await(value: Any) -> Any:
    """Await value if it is awaitable, otherwise return it as is."""
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass(frozen=True)
class Callbacks:
    """
    Retry policy hooks for one logical call.

    Attributes:
        on_success: Receives the converted body; its return value becomes the call result
        on_error: Receives (response, is_last_attempt); True requests a retry
        on_network_error: Receives the transport error; True requests a retry
    """

    on_success: Optional[OnSuccess] = None
    on_error: Optional[OnError] = None
    on_network_error: Optional[OnNetworkError] = None

    def merged_with(self, defaults: Optional["Callbacks"]) -> "Callbacks":
        """Fill unset hooks from defaults (per-call hooks win)."""
        if defaults is None:
            return self
        return replace(
            defaults,
            **{
                name: hook
                for name, hook in (
                    ("on_success", self.on_success),
                    ("on_error", self.on_error),
                    ("on_network_error", self.on_network_error),
                )
                if hook is not None
            },
        )

    async def handle_success(self, value: Any) -> Any:
        if self.on_success is None:
            return value
        return await maybe_await(self.on_success(value))

    async def handle_error(self, response: Any, is_last_attempt: bool) -> bool:
        if self.on_error is None:
            return False
        return bool(await maybe_await(self.on_error(response, is_last_attempt)))

    async def handle_network_error(self, error: Exception) -> bool:
        if self.on_network_error is None:
            return True
        return bool(await maybe_await(self.on_network_error(error)))
