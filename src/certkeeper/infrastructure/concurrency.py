"""
Concurrency helpers for fanning out AWS calls.

boto3 is blocking, so every network round trip runs in a worker thread via
run_blocking. gather_outcomes joins a set of independent operations without
short-circuiting: each operation yields its own result or exception, paired
with the tag it was submitted under, so a failure stays attributable to its
target.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from functools import partial
from typing import Any, TypeVar

T = TypeVar("T")
K = TypeVar("K")


async def run_blocking(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """
    Run a blocking call (a boto3 client method) in a worker thread.

    Args:
        func: Callable to run
        *args: Positional arguments
        **kwargs: Keyword arguments (boto3 request parameters)

    Returns:
        The call's return value
    """
    return await asyncio.to_thread(partial(func, *args, **kwargs))


async def gather_outcomes(
    tagged: Iterable[tuple[K, Awaitable[T]]],
) -> list[tuple[K, T | Exception]]:
    """
    Await every operation and collect every outcome.

    All operations are scheduled before any is awaited. A failing operation
    never cancels its siblings; its exception is returned in place of a
    result. Outcomes are returned in submission order, each paired with
    its tag.

    Args:
        tagged: (tag, awaitable) pairs; tags identify the write target

    Returns:
        (tag, result or exception) pairs

    Raises:
        BaseException: Non-Exception errors (e.g. cancellation) are re-raised
    """
    pairs = list(tagged)
    outcomes = await asyncio.gather(
        *(awaitable for _, awaitable in pairs), return_exceptions=True
    )

    for outcome in outcomes:
        if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
            raise outcome

    return [(tag, outcome) for (tag, _), outcome in zip(pairs, outcomes, strict=True)]
