# SPDX-License-Identifier: MIT
"""Tests for the bounded request queue."""

from __future__ import annotations

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from llm.queue import TaskMeta, TaskQueue


def test_rejects_invalid_configuration() -> None:
    with pytest.raises(ValueError):
        TaskQueue(max_concurrency=0)
    with pytest.raises(ValueError):
        TaskQueue(request_delay=-1)
    with pytest.raises(ValueError):
        TaskQueue(operation_timeout=0)


def test_defaults_match_reference_behaviour() -> None:
    q = TaskQueue()
    assert q.max_concurrency == 2
    assert q.request_delay == 1.0
    assert q.idle


@pytest.mark.asyncio()
async def test_enqueue_returns_future_and_notifies_synchronously() -> None:
    events: list[tuple[int, int]] = []
    q = TaskQueue(max_concurrency=1, request_delay=0, observer=lambda a, w: events.append((a, w)))

    async def op() -> str:
        return "done"

    future = q.enqueue(op)
    assert isinstance(future, asyncio.Future)
    # Enqueue and dispatch both happened before the operation ran.
    assert events == [(0, 1), (1, 0)]
    assert await future == "done"
    assert events[-1] == (0, 0)


@pytest.mark.asyncio()
async def test_failure_is_forwarded_unchanged() -> None:
    q = TaskQueue(max_concurrency=2, request_delay=0)
    error = ValueError("permission denied")

    async def op() -> None:
        raise error

    with pytest.raises(ValueError) as info:
        await q.enqueue(op)
    assert info.value is error
    await q.join()
    assert q.idle


@pytest.mark.asyncio()
async def test_waiting_tasks_dispatch_in_submission_order() -> None:
    q = TaskQueue(max_concurrency=1, request_delay=0)
    started: list[int] = []

    def make(i: int):
        async def op() -> int:
            started.append(i)
            await asyncio.sleep(0.001 * (5 - i))
            return i

        return op

    futures = [q.enqueue(make(i)) for i in range(5)]
    assert await asyncio.gather(*futures) == [0, 1, 2, 3, 4]
    assert started == [0, 1, 2, 3, 4]


@pytest.mark.asyncio()
async def test_four_tasks_with_two_slots_respect_request_delay() -> None:
    delay = 0.05
    q = TaskQueue(max_concurrency=2, request_delay=delay)
    loop = asyncio.get_running_loop()
    started: dict[str, float] = {}
    finished: dict[str, float] = {}

    def make(name: str, duration: float):
        async def op() -> str:
            started[name] = loop.time()
            await asyncio.sleep(duration)
            finished[name] = loop.time()
            return name

        return op

    futures = [
        q.enqueue(make("T1", 0.01)),
        q.enqueue(make("T2", 0.02)),
        q.enqueue(make("T3", 0.01)),
        q.enqueue(make("T4", 0.01)),
    ]
    # T1 and T2 are active immediately, T3 and T4 wait.
    assert q.active_count == 2
    assert q.waiting_count == 2

    results = await asyncio.gather(*futures)

    assert results == ["T1", "T2", "T3", "T4"]
    first_free = min(finished["T1"], finished["T2"])
    assert started["T3"] >= first_free + delay * 0.9
    assert started["T4"] >= started["T3"]
    assert started["T4"] >= max(finished["T1"], finished["T2"]) + delay * 0.9


@given(
    limit=st.integers(min_value=1, max_value=3),
    durations=st.lists(st.integers(min_value=0, max_value=3), min_size=1, max_size=12),
)
@settings(max_examples=25, deadline=None)
def test_concurrency_bound_and_exactly_once_dispatch(limit, durations) -> None:
    async def scenario() -> None:
        q = TaskQueue(max_concurrency=limit, request_delay=0)
        running = 0
        peak = 0
        calls = [0] * len(durations)

        def make(i: int, duration: int):
            async def op() -> int:
                nonlocal running, peak
                calls[i] += 1
                running += 1
                peak = max(peak, running)
                try:
                    await asyncio.sleep(duration / 1000)
                    return i
                finally:
                    running -= 1

            return op

        futures = [q.enqueue(make(i, d)) for i, d in enumerate(durations)]
        results = await asyncio.gather(*futures)
        assert results == list(range(len(durations)))
        assert calls == [1] * len(durations)
        assert peak <= limit
        assert q.idle

    asyncio.run(scenario())


@pytest.mark.asyncio()
async def test_observer_reports_every_transition() -> None:
    q = TaskQueue(max_concurrency=2, request_delay=0)
    events: list[tuple[int, int]] = []

    def observer(active: int, waiting: int) -> None:
        assert active == q.active_count
        assert waiting == q.waiting_count
        events.append((active, waiting))

    q.set_observer(observer)

    async def op() -> None:
        await asyncio.sleep(0.001)

    await asyncio.gather(*(q.enqueue(op) for _ in range(5)))

    # One notification per enqueue, dispatch and settlement.
    assert len(events) == 15
    deltas = [b[0] - a[0] for a, b in zip([(0, 0)] + events, events)]
    assert deltas.count(1) == 5
    assert deltas.count(-1) == 5
    assert max(active for active, _ in events) <= 2
    assert events[-1] == (0, 0)


@pytest.mark.asyncio()
async def test_last_registered_observer_wins() -> None:
    first: list[tuple[int, int]] = []
    second: list[tuple[int, int]] = []
    q = TaskQueue(request_delay=0, observer=lambda a, w: first.append((a, w)))
    q.set_observer(lambda a, w: second.append((a, w)))

    async def op() -> int:
        return 1

    await q.enqueue(op)
    assert first == []
    assert second

    q.set_observer(None)
    await q.enqueue(op)
    assert len(second) == 3


@pytest.mark.asyncio()
async def test_timeout_frees_the_slot() -> None:
    q = TaskQueue(max_concurrency=1, request_delay=0, operation_timeout=0.02)
    never = asyncio.Event()

    async def hung() -> None:
        await never.wait()

    async def quick() -> str:
        return "ok"

    hung_future = q.enqueue(hung)
    quick_future = q.enqueue(quick)
    with pytest.raises(TimeoutError):
        await hung_future
    assert await quick_future == "ok"


@pytest.mark.asyncio()
async def test_per_task_timeout_overrides_default() -> None:
    q = TaskQueue(max_concurrency=1, request_delay=0)

    async def slow() -> None:
        await asyncio.sleep(1)

    with pytest.raises(TimeoutError):
        await q.enqueue(slow, timeout=0.01)


@pytest.mark.asyncio()
async def test_submit_waits_for_result_and_join_waits_for_idle() -> None:
    q = TaskQueue(max_concurrency=1, request_delay=0.01)
    done: list[str] = []

    async def op(label: str) -> str:
        await asyncio.sleep(0.005)
        done.append(label)
        return label

    assert await q.submit(lambda: op("a"), meta=TaskMeta(label="a")) == "a"
    q.enqueue(lambda: op("b"))
    q.enqueue(lambda: op("c"))
    await q.join()
    assert done == ["a", "b", "c"]
    assert q.idle


@pytest.mark.asyncio()
async def test_independent_queues_do_not_share_state() -> None:
    q1 = TaskQueue(max_concurrency=1, request_delay=0)
    q2 = TaskQueue(max_concurrency=1, request_delay=0)
    gate = asyncio.Event()

    async def blocked() -> None:
        await gate.wait()

    async def free() -> str:
        return "free"

    pending = q1.enqueue(blocked)
    assert await q2.enqueue(free) == "free"
    assert q1.active_count == 1
    gate.set()
    await pending
