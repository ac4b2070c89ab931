# SPDX-License-Identifier: MIT
"""Bounded request queue for remote calls.

:class:`TaskQueue` keeps at most ``max_concurrency`` operations in flight and
waits ``request_delay`` seconds after a slot frees before dispatching the
next waiting operation. Waiting operations dispatch in submission order.
Completion order is not guaranteed.

The queue runs on a single event loop and mutates its state only between
suspension points, so no lock guards ``_pending`` or ``_active``. Callers
must use it from the loop it was first used on.

An optional observer receives ``(active, waiting)`` synchronously on every
state change, which is how a status readout stays current.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Protocol, TypeVar

import logfire

T = TypeVar("T")


class QueueObserver(Protocol):
    def __call__(self, active: int, waiting: int) -> None: ...


def _no_observer(active: int, waiting: int) -> None:
    return None


@dataclass
class TaskMeta:
    """Optional metadata for tracing."""

    label: str | None = None


@dataclass
class QueuedTask(Generic[T]):
    """Operation waiting for a slot together with its caller's future."""

    operation: Callable[[], Awaitable[T]]
    future: asyncio.Future[T]
    meta: TaskMeta | None = None
    timeout: float | None = None


class TaskQueue:
    """Bounded concurrency queue with a fixed delay between dispatches."""

    def __init__(
        self,
        max_concurrency: int = 2,
        request_delay: float = 1.0,
        *,
        observer: QueueObserver | None = None,
        operation_timeout: float | None = None,
    ) -> None:
        """Create the queue.

        Args:
            max_concurrency: Maximum number of operations in flight.
            request_delay: Seconds to wait after a settlement before the freed
                slot dispatches the next waiting operation.
            observer: Callback receiving ``(active, waiting)`` on each change.
            operation_timeout: Default seconds after which a dispatched
                operation fails with :class:`TimeoutError` and frees its slot.
                ``None`` lets operations run indefinitely.
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        if request_delay < 0:
            raise ValueError("request_delay must be >= 0")
        if operation_timeout is not None and operation_timeout <= 0:
            raise ValueError("operation_timeout must be positive")
        self._max_concurrency = max_concurrency
        self._request_delay = request_delay
        self._operation_timeout = operation_timeout
        self._observer: QueueObserver = observer or _no_observer
        self._pending: deque[QueuedTask[Any]] = deque()
        self._active = 0
        self._running: set[asyncio.Task[None]] = set()
        self._timers: set[asyncio.TimerHandle] = set()
        self._idle: asyncio.Event | None = None
        self._inflight = logfire.metric_gauge("task_queue_inflight")
        self._waiting = logfire.metric_gauge("task_queue_waiting")
        self._submitted = logfire.metric_counter("task_queue_submitted")
        self._completed = logfire.metric_counter("task_queue_completed")
        self._failed = logfire.metric_counter("task_queue_failed")

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @property
    def request_delay(self) -> float:
        return self._request_delay

    @property
    def active_count(self) -> int:
        """Number of operations currently in flight."""
        return self._active

    @property
    def waiting_count(self) -> int:
        """Number of operations waiting for a slot."""
        return len(self._pending)

    @property
    def idle(self) -> bool:
        return self._active == 0 and not self._pending

    def set_observer(self, observer: QueueObserver | None) -> None:
        """Replace the registered observer; ``None`` removes it."""
        self._observer = observer or _no_observer

    def enqueue(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        meta: TaskMeta | None = None,
        timeout: float | None = None,
    ) -> asyncio.Future[T]:
        """Queue ``operation`` and return a future for its outcome.

        Must be called while an event loop is running. The future resolves
        with the operation's result or fails with its exception.

        Args:
            operation: Zero-arg coroutine factory for the remote call.
            meta: Optional metadata recorded for tracing.
            timeout: Per-operation override of ``operation_timeout``.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()
        task = QueuedTask(
            operation=operation,
            future=future,
            meta=meta,
            timeout=timeout if timeout is not None else self._operation_timeout,
        )
        self._pending.append(task)
        self._submitted.add(1)
        self._notify()
        self._try_dispatch()
        return future

    async def submit(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        meta: TaskMeta | None = None,
    ) -> T:
        """Queue ``operation`` and wait for its result."""
        return await self.enqueue(operation, meta=meta)

    async def join(self) -> None:
        """Wait until no operation is active or waiting."""
        if self.idle:
            return
        if self._idle is None:
            self._idle = asyncio.Event()
        self._idle.clear()
        await self._idle.wait()

    def _notify(self) -> None:
        active, waiting = self._active, len(self._pending)
        self._inflight.set(active)
        self._waiting.set(waiting)
        if self._idle is not None and active == 0 and waiting == 0:
            self._idle.set()
        self._observer(active, waiting)

    def _try_dispatch(self) -> None:
        if self._active >= self._max_concurrency or not self._pending:
            return
        task = self._pending.popleft()
        self._active += 1
        self._notify()
        runner = asyncio.get_running_loop().create_task(self._run(task))
        self._running.add(runner)
        runner.add_done_callback(self._running.discard)

    def _schedule_dispatch(self) -> None:
        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle | None = None

        def _fire() -> None:
            if handle is not None:
                self._timers.discard(handle)
            self._try_dispatch()

        handle = loop.call_later(self._request_delay, _fire)
        self._timers.add(handle)

    async def _run(self, task: QueuedTask[Any]) -> None:
        label = task.meta.label if task.meta else None
        attrs = {"label": label} if label else {}
        try:
            with logfire.span("task_queue.dispatch", **attrs):
                if task.timeout is not None:
                    result = await asyncio.wait_for(task.operation(), task.timeout)
                else:
                    result = await task.operation()
        except asyncio.CancelledError:
            if not task.future.done():
                task.future.cancel()
            raise
        except Exception as exc:
            self._failed.add(1)
            if not task.future.done():
                task.future.set_exception(exc)
        else:
            self._completed.add(1)
            if not task.future.done():
                task.future.set_result(result)
        finally:
            self._active -= 1
            self._notify()
            self._schedule_dispatch()


__all__ = ["QueueObserver", "QueuedTask", "TaskMeta", "TaskQueue"]
