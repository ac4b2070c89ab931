import asyncio

import pytest

from runtime.environment import RuntimeEnv
from runtime.settings import Settings


def test_instance_requires_initialisation():
    with pytest.raises(RuntimeError):
        RuntimeEnv.instance()


def test_initialize_builds_queue_and_policy_from_settings():
    events: list[tuple[int, int]] = []
    settings = Settings(
        max_concurrency=3,
        request_delay=0.25,
        max_retry_attempts=2,
        retry_base_delay=0.5,
        operation_timeout=10,
    )
    env = RuntimeEnv.initialize(settings, observer=lambda a, w: events.append((a, w)))

    assert RuntimeEnv.instance() is env
    assert env.settings is settings
    assert env.task_queue.max_concurrency == 3
    assert env.task_queue.request_delay == 0.25
    assert env.retry_policy.max_attempts == 2
    assert env.retry_policy.base_delay == 0.5


def test_reset_clears_instance():
    RuntimeEnv.initialize(Settings())
    RuntimeEnv.reset()
    with pytest.raises(RuntimeError):
        RuntimeEnv.instance()


@pytest.mark.asyncio()
async def test_queue_is_shared_across_callers():
    RuntimeEnv.initialize(Settings(max_concurrency=1, request_delay=0))
    queue = RuntimeEnv.instance().task_queue
    order: list[int] = []

    async def op(i: int) -> int:
        await asyncio.sleep(0)
        order.append(i)
        return i

    async def caller(i: int) -> int:
        assert RuntimeEnv.instance().task_queue is queue
        return await queue.submit(lambda: op(i))

    async with asyncio.TaskGroup() as tg:
        tasks = [tg.create_task(caller(i)) for i in range(10)]

    assert [t.result() for t in tasks] == list(range(10))
    assert order == list(range(10))
