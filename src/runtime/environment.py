# SPDX-License-Identifier: MIT
"""Process-wide runtime state.

:class:`RuntimeEnv` is the composition root: it turns :class:`Settings` into
the one :class:`~llm.queue.TaskQueue` and :class:`~llm.retry.RetryPolicy`
that every diary call shares.
"""

from __future__ import annotations

from threading import Lock
from typing import TYPE_CHECKING

import logfire

from llm.queue import QueueObserver, TaskQueue
from llm.retry import RetryPolicy

if TYPE_CHECKING:  # pragma: no cover - for type checkers only
    from runtime.settings import Settings


class RuntimeEnv:
    """Singleton holding settings, the request queue and the retry policy.

    Code that needs an isolated queue (tests, embedding in another loop)
    can construct :class:`~llm.queue.TaskQueue` directly instead.
    """

    _instance: "RuntimeEnv" | None = None
    _lock = Lock()

    def __init__(
        self, settings: "Settings", observer: QueueObserver | None = None
    ) -> None:
        self.settings = settings
        self._task_queue = TaskQueue(
            settings.max_concurrency,
            settings.request_delay,
            observer=observer,
            operation_timeout=settings.operation_timeout,
        )
        self._retry_policy = RetryPolicy(
            max_attempts=settings.max_retry_attempts,
            base_delay=settings.retry_base_delay,
        )
        logfire.debug("Runtime environment built", settings=repr(settings))

    @property
    def task_queue(self) -> TaskQueue:
        return self._task_queue

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    @classmethod
    def initialize(
        cls, settings: "Settings", observer: QueueObserver | None = None
    ) -> "RuntimeEnv":
        """Replace the active environment with one built from ``settings``.

        ``observer`` is registered on the new queue before any call is made.
        """
        with logfire.span("runtime_env.initialize"), cls._lock:
            logfire.info(
                "Starting request queue",
                max_concurrency=settings.max_concurrency,
                request_delay=settings.request_delay,
                max_retry_attempts=settings.max_retry_attempts,
            )
            cls._instance = cls(settings, observer)
            return cls._instance

    @classmethod
    def instance(cls) -> "RuntimeEnv":
        """Return the active environment.

        Raises:
            RuntimeError: If :meth:`initialize` has not run yet.
        """
        current = cls._instance
        if current is None:
            logfire.error("Runtime environment used before initialize()")
            raise RuntimeError("RuntimeEnv.initialize() must be called first")
        return current

    @classmethod
    def reset(cls) -> None:
        """Forget the active environment.

        Calls already queued on the old instance still run to completion.
        """
        with logfire.span("runtime_env.reset"), cls._lock:
            cls._instance = None
            logfire.debug("Runtime environment cleared")


__all__ = ["RuntimeEnv"]
