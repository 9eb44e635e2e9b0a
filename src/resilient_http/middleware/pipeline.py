"""
Middleware Pipeline: ordered, named request-transforming steps.

Steps run strictly in insertion order before every attempt. Each step
receives the draft produced by the previous step plus the shared
AttemptContext, and may run arbitrary async work (e.g. token refresh)
before returning. A step returning stop_propagation=True halts the
pipeline; the engine then fails the call with MiddlewareAbort.

Registration is process-wide state of one client. It may change while calls
are in flight: each apply() works on a snapshot taken when it starts.
"""

import threading
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

import structlog

from resilient_http.models.callbacks import maybe_await
from resilient_http.models.request_models import AttemptContext, RequestDraft

logger = structlog.get_logger(__name__)


@dataclass
class MiddlewareResult:
    """
    Value returned by a middleware step.

    Attributes:
        draft: Draft handed to the next step
        stop_propagation: True halts the pipeline and the request is not sent
    """

    draft: RequestDraft
    stop_propagation: bool = False


StepReturn = Union[MiddlewareResult, RequestDraft]
MiddlewareStep = Callable[
    [RequestDraft, AttemptContext], Union[StepReturn, Awaitable[StepReturn]]
]


@dataclass(frozen=True)
class MiddlewareEntry:
    """A registered step and its unique name."""

    name: str
    step: MiddlewareStep


@dataclass(frozen=True)
class PipelineResult:
    """
    Outcome of running the whole pipeline for one attempt.

    Attributes:
        draft: Final draft after all executed steps
        should_stop: True when a step halted propagation
        stopped_by: Name of the halting step (None when not stopped)
    """

    draft: RequestDraft
    should_stop: bool = False
    stopped_by: Optional[str] = None


class MiddlewarePipeline:
    """
    Ordered mapping from name to step.

    Re-registering a name replaces the step at its first-insertion position.
    Removal by name is O(1). A dict keeps both properties: insertion order
    survives value replacement and deletion is a hash lookup.
    """

    def __init__(self) -> None:
        self._entries: dict[str, MiddlewareEntry] = {}
        self._lock = threading.Lock()

    def use(self, name: str, step: MiddlewareStep) -> None:
        """
        Register step under name.

        Args:
            name: Unique key; an existing entry with this name is replaced in place
            step: Callable (draft, context) -> MiddlewareResult | RequestDraft, sync or async
        """
        if not name:
            raise ValueError("middleware name must be a non-empty string")
        if not callable(step):
            raise TypeError(f"middleware step for '{name}' must be callable")

        with self._lock:
            replaced = name in self._entries
            self._entries[name] = MiddlewareEntry(name=name, step=step)

        logger.debug("Middleware registered", middleware=name, replaced=replaced)

    def unuse(self, name: str) -> bool:
        """Remove the entry registered under name. Returns False if absent."""
        with self._lock:
            removed = self._entries.pop(name, None) is not None

        logger.debug("Middleware removed", middleware=name, removed=removed)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def names(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def snapshot(self) -> list[MiddlewareEntry]:
        with self._lock:
            return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    async def apply(self, draft: RequestDraft, context: AttemptContext) -> PipelineResult:
        """
        Run every registered step in order.

        Args:
            draft: Fresh draft for this attempt
            context: Shared snapshot for this attempt

        Returns:
            PipelineResult with the final draft and stop information
        """
        for entry in self.snapshot():
            returned = await maybe_await(entry.step(draft, context))

            if isinstance(returned, RequestDraft):
                draft = returned
                continue

            if not isinstance(returned, MiddlewareResult):
                raise TypeError(
                    f"middleware '{entry.name}' returned {type(returned).__name__}, "
                    "expected MiddlewareResult or RequestDraft"
                )

            draft = returned.draft
            if returned.stop_propagation:
                logger.info(
                    "Middleware stopped propagation",
                    middleware=entry.name,
                    attempt=context.attempt_index,
                )
                return PipelineResult(draft=draft, should_stop=True, stopped_by=entry.name)

        return PipelineResult(draft=draft)
