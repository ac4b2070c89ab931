# SPDX-License-Identifier: MIT
"""Retry helpers for remote calls.

This module centralises exponential backoff and failure classification so
every use case shares the same retry behaviour. Only transient failures are
retried; anything else propagates on the first occurrence.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import logfire

from .errors import ErrorClass, classify_error

T = TypeVar("T")

Classifier = Callable[[BaseException], ErrorClass]

_RETRIES = logfire.metric_counter("remote_call_retries")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff base for a single call.

    Attributes:
        max_attempts: Total number of attempts including the first one.
        base_delay: Delay in seconds before the second attempt. Each further
            retry doubles it.
    """

    max_attempts: int = 5
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    def backoff(self, attempt: int) -> float:
        """Return the wait after zero-based ``attempt`` failed."""
        return self.base_delay * (2**attempt)


DEFAULT_POLICY = RetryPolicy()


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy | None = None,
    classifier: Classifier = classify_error,
    precondition: Callable[[], None] | None = None,
) -> T:
    """Execute ``operation`` retrying transient failures with backoff.

    Args:
        operation: Zero-arg coroutine factory performing the remote call.
        policy: Attempt budget and backoff base. Defaults to five attempts
            starting at one second.
        classifier: Maps an exception to :class:`ErrorClass`.
        precondition: Optional check run before each attempt. Whatever it
            raises is treated like any other failure of the attempt, so a
            :class:`~llm.errors.ConfigurationError` stops the loop before the
            operation is ever invoked.

    Returns:
        The first successful result of ``operation``.

    Raises:
        Exception: The original fatal error, or the last retriable error once
            all attempts are used.
    """
    policy = policy or DEFAULT_POLICY
    last_attempt = policy.max_attempts - 1
    for attempt in range(policy.max_attempts):
        try:
            if precondition is not None:
                precondition()
            return await operation()
        except Exception as exc:
            if classifier(exc) is ErrorClass.FATAL:
                logfire.debug(
                    "Fatal remote error", attempt=attempt + 1, error=str(exc)
                )
                raise
            if attempt == last_attempt:
                logfire.error(
                    "All retry attempts failed",
                    max_attempts=policy.max_attempts,
                    error=str(exc),
                )
                raise
            delay = policy.backoff(attempt)
            _RETRIES.add(1)
            logfire.warning(
                "Service unavailable, retrying request",
                attempt=attempt + 1,
                max_attempts=policy.max_attempts,
                backoff_delay=delay,
            )
            await asyncio.sleep(delay)
    # max_attempts >= 1, so every path above returns or raises.
    raise RuntimeError("retry loop ended without an outcome")  # pragma: no cover


__all__ = ["Classifier", "DEFAULT_POLICY", "RetryPolicy", "with_retry"]
