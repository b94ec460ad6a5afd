import asyncio

import pytest

from deindexer.workflows.batch import chunked, run_batches
from deindexer.workflows.errors import BatchAbortedError


def test_chunked_sizes():
    assert chunked(list(range(7)), 3) == [[0, 1, 2], [3, 4, 5], [6]]
    assert chunked([], 3) == []
    with pytest.raises(ValueError):
        chunked([1], 0)


def test_run_batches_callbacks_and_barrier():
    items = list(range(11))
    events = []
    callbacks = []

    async def op(item):
        events.append(("start", item))
        # later items finish first to shuffle completion order inside a chunk
        await asyncio.sleep(0.001 * (5 - item % 5))
        events.append(("end", item))

    def on_done(index, total):
        callbacks.append((index, total))
        events.append(("batch", index))

    asyncio.run(run_batches(op, items, 5, on_done))

    assert callbacks == [(0, 3), (1, 3), (2, 3)]
    for index, batch in enumerate(chunked(items, 5)):
        barrier = events.index(("batch", index))
        for item in batch:
            assert events.index(("end", item)) < barrier
        for later in items[(index + 1) * 5:]:
            assert events.index(("start", later)) > barrier


def test_run_batches_runs_chunk_concurrently():
    in_flight = {"now": 0, "peak": 0}

    async def op(item):
        in_flight["now"] += 1
        in_flight["peak"] = max(in_flight["peak"], in_flight["now"])
        await asyncio.sleep(0.001)
        in_flight["now"] -= 1

    asyncio.run(run_batches(op, list(range(10)), 4))
    assert in_flight["peak"] == 4


def test_run_batches_empty_input_never_calls_back():
    calls = []

    async def op(item):
        raise AssertionError("should not run")

    asyncio.run(run_batches(op, [], 5, lambda i, t: calls.append((i, t))))
    assert calls == []


def test_run_batches_aborts_after_failing_chunk_settles():
    started = []
    finished = []
    callbacks = []

    async def op(item):
        started.append(item)
        if item == 1:
            raise RuntimeError("boom")
        await asyncio.sleep(0.001)
        finished.append(item)

    with pytest.raises(BatchAbortedError) as excinfo:
        asyncio.run(run_batches(op, [0, 1, 2, 3, 4], 3, lambda i, t: callbacks.append(i)))

    assert excinfo.value.batch_index == 0
    assert excinfo.value.batch_count == 2
    assert excinfo.value.item == 1
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    # the rest of the failing chunk still settled, nothing after it started
    assert sorted(finished) == [0, 2]
    assert sorted(started) == [0, 1, 2]
    assert callbacks == []


def test_run_batches_propagates_cancellation_unwrapped():
    seen = []

    async def op(item):
        seen.append(item)
        if item == 1:
            raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(run_batches(op, [0, 1, 2, 3], 2))
    assert seen == [0, 1]
