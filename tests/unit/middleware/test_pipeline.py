"""
Unit tests for MiddlewarePipeline.

Tests registration order, replacement, removal, async steps, stop
propagation and snapshot isolation.
"""

from unittest.mock import MagicMock

import pytest

from resilient_http.middleware.pipeline import MiddlewarePipeline, MiddlewareResult
from resilient_http.models.request_models import RequestDraft


def tagging_step(tag: str, log: list):
    """Step that appends its tag to a header and records the call."""

    def step(draft: RequestDraft, context):
        log.append(tag)
        previous = draft.headers.get("X-Trail", "")
        draft.set_header("X-Trail", f"{previous}{tag}")
        return MiddlewareResult(draft=draft)

    return step


# ============================================================================
# Registration
# ============================================================================


def test_use_preserves_insertion_order():
    pipeline = MiddlewarePipeline()
    pipeline.use("a", tagging_step("a", []))
    pipeline.use("b", tagging_step("b", []))
    pipeline.use("c", tagging_step("c", []))

    assert pipeline.names == ["a", "b", "c"]
    assert len(pipeline) == 3
    assert "b" in pipeline


def test_reregistering_replaces_in_place():
    pipeline = MiddlewarePipeline()
    first = tagging_step("a", [])
    replacement = tagging_step("A", [])
    pipeline.use("a", first)
    pipeline.use("b", tagging_step("b", []))
    pipeline.use("a", replacement)

    entries = pipeline.snapshot()
    assert [entry.name for entry in entries] == ["a", "b"]
    assert entries[0].step is replacement


def test_unuse_removes_entry():
    pipeline = MiddlewarePipeline()
    pipeline.use("a", tagging_step("a", []))
    pipeline.use("b", tagging_step("b", []))

    assert pipeline.unuse("a") is True
    assert pipeline.names == ["b"]
    assert pipeline.unuse("missing") is False


def test_clear_empties_pipeline():
    pipeline = MiddlewarePipeline()
    pipeline.use("a", tagging_step("a", []))
    pipeline.clear()

    assert len(pipeline) == 0


def test_use_rejects_empty_name():
    with pytest.raises(ValueError):
        MiddlewarePipeline().use("", tagging_step("a", []))


def test_use_rejects_non_callable():
    with pytest.raises(TypeError):
        MiddlewarePipeline().use("bad", "not a function")


# ============================================================================
# Apply
# ============================================================================


@pytest.mark.asyncio
async def test_apply_runs_steps_in_order(draft, first_attempt):
    log: list[str] = []
    pipeline = MiddlewarePipeline()
    pipeline.use("a", tagging_step("a", log))
    pipeline.use("b", tagging_step("b", log))
    pipeline.use("c", tagging_step("c", log))

    result = await pipeline.apply(draft, first_attempt)

    assert log == ["a", "b", "c"]
    assert result.draft.headers["X-Trail"] == "abc"
    assert not result.should_stop
    assert result.stopped_by is None


@pytest.mark.asyncio
async def test_replaced_step_runs_at_original_position(draft, first_attempt):
    log: list[str] = []
    pipeline = MiddlewarePipeline()
    pipeline.use("a", tagging_step("a", log))
    pipeline.use("b", tagging_step("b", log))
    pipeline.use("a", tagging_step("A", log))

    result = await pipeline.apply(draft, first_attempt)

    assert log == ["A", "b"]
    assert result.draft.headers["X-Trail"] == "Ab"


@pytest.mark.asyncio
async def test_empty_pipeline_returns_draft_unchanged(draft, first_attempt):
    result = await MiddlewarePipeline().apply(draft, first_attempt)

    assert result.draft is draft
    assert not result.should_stop


@pytest.mark.asyncio
async def test_async_step_is_awaited_before_next(draft, first_attempt):
    log: list[str] = []

    async def refresh_token(draft, context):
        log.append("refresh")
        draft.set_header("Authorization", "Bearer fresh")
        return MiddlewareResult(draft=draft)

    def check(draft, context):
        log.append(draft.headers.get("Authorization"))
        return MiddlewareResult(draft=draft)

    pipeline = MiddlewarePipeline()
    pipeline.use("auth", refresh_token)
    pipeline.use("check", check)

    await pipeline.apply(draft, first_attempt)

    assert log == ["refresh", "Bearer fresh"]


@pytest.mark.asyncio
async def test_stop_propagation_skips_later_steps(draft, first_attempt):
    later = MagicMock()

    def gate(draft, context):
        return MiddlewareResult(draft=draft, stop_propagation=True)

    pipeline = MiddlewarePipeline()
    pipeline.use("gate", gate)
    pipeline.use("later", later)

    result = await pipeline.apply(draft, first_attempt)

    assert result.should_stop
    assert result.stopped_by == "gate"
    later.assert_not_called()


@pytest.mark.asyncio
async def test_step_may_return_draft_directly(draft, first_attempt):
    replacement = RequestDraft(method="POST", url="https://other.example.com/")

    pipeline = MiddlewarePipeline()
    pipeline.use("swap", lambda draft, context: replacement)

    result = await pipeline.apply(draft, first_attempt)

    assert result.draft is replacement


@pytest.mark.asyncio
async def test_step_returning_garbage_raises(draft, first_attempt):
    pipeline = MiddlewarePipeline()
    pipeline.use("broken", lambda draft, context: None)

    with pytest.raises(TypeError, match="broken"):
        await pipeline.apply(draft, first_attempt)


@pytest.mark.asyncio
async def test_step_receives_context(draft, last_attempt):
    seen = []

    def record(draft, context):
        seen.append(context)
        return MiddlewareResult(draft=draft)

    pipeline = MiddlewarePipeline()
    pipeline.use("record", record)

    await pipeline.apply(draft, last_attempt)

    assert seen == [last_attempt]


@pytest.mark.asyncio
async def test_apply_uses_snapshot_taken_at_start(draft, first_attempt):
    """A step registering another step does not affect the running apply()."""
    log: list[str] = []
    pipeline = MiddlewarePipeline()

    def registrar(draft, context):
        log.append("registrar")
        pipeline.use("late", tagging_step("late", log))
        return MiddlewareResult(draft=draft)

    pipeline.use("registrar", registrar)

    await pipeline.apply(draft, first_attempt)
    assert log == ["registrar"]

    await pipeline.apply(draft, first_attempt)
    assert log == ["registrar", "registrar", "late"]
