"""Tests for the concurrency helpers."""

import asyncio
import threading

import pytest

from certkeeper.infrastructure.concurrency import gather_outcomes, run_blocking


@pytest.mark.asyncio
async def test_run_blocking_uses_worker_thread():
    """Test that blocking calls run off the event loop thread."""
    main_thread = threading.get_ident()

    def work(value, *, suffix):
        return threading.get_ident(), f"{value}{suffix}"

    thread_id, result = await run_blocking(work, "a", suffix="b")

    assert result == "ab"
    assert thread_id != main_thread


@pytest.mark.asyncio
async def test_gather_outcomes_collects_every_outcome():
    """Test that results and exceptions are both collected."""
    async def succeed(value):
        await asyncio.sleep(0.01)
        return value

    async def fail(message):
        raise ValueError(message)

    outcomes = await gather_outcomes(
        [("slow", succeed(1)), ("broken", fail("boom")), ("fast", succeed(2))]
    )

    assert [tag for tag, _ in outcomes] == ["slow", "broken", "fast"]
    assert outcomes[0][1] == 1
    assert isinstance(outcomes[1][1], ValueError)
    assert str(outcomes[1][1]) == "boom"
    assert outcomes[2][1] == 2


@pytest.mark.asyncio
async def test_gather_outcomes_does_not_cancel_siblings():
    """Test that a failure does not cancel the other tasks."""
    finished = []

    async def fail_fast():
        raise RuntimeError("first")

    async def finish_later():
        await asyncio.sleep(0.02)
        finished.append(True)
        return "done"

    outcomes = await gather_outcomes([("a", fail_fast()), ("b", finish_later())])

    assert finished == [True]
    assert outcomes[1] == ("b", "done")


@pytest.mark.asyncio
async def test_gather_outcomes_empty():
    """Test gathering no tasks."""
    assert await gather_outcomes([]) == []


@pytest.mark.asyncio
async def test_gather_outcomes_reraises_cancellation():
    """Test that cancellation is propagated, not collected."""
    async def cancelled():
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await gather_outcomes([("a", cancelled())])
