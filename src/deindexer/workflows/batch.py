"""Bounded, chunked fan-out of async operations."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from .errors import BatchAbortedError

T = TypeVar("T")

BatchHook = Callable[[int, int], None]


def chunked(items: Sequence[T], size: int) -> List[Sequence[T]]:
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [items[start:start + size] for start in range(0, len(items), size)]


async def run_batches(
    operation: Callable[[T], Awaitable[None]],
    items: Sequence[T],
    concurrency: int,
    on_batch_done: Optional[BatchHook] = None,
) -> None:
    """Run ``operation`` over ``items`` in sequential chunks of ``concurrency``.

    Items inside a chunk run concurrently; the next chunk starts only once
    every operation of the current one has settled. A failure lets its chunk
    settle, then raises :class:`BatchAbortedError` chained to the first error.
    Cancellation is re-raised unwrapped.
    """

    batches = chunked(list(items), concurrency)
    total = len(batches)
    for index, batch in enumerate(batches):
        outcomes = await asyncio.gather(*(operation(item) for item in batch), return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
        for item, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                raise BatchAbortedError(index, total, item) from outcome
        if on_batch_done is not None:
            on_batch_done(index, total)


__all__ = ["chunked", "run_batches", "BatchHook"]
