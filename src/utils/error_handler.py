"""Error reporting abstractions used by the file loaders."""

from __future__ import annotations

from abc import ABC, abstractmethod

import logfire


class ErrorHandler(ABC):
    """Interface for reporting errors.

    Implementations must not raise; the caller decides whether to re-raise.
    """

    @abstractmethod
    def handle(self, message: str, exc: Exception | None = None) -> None:
        """Record ``message`` with optional ``exc`` context."""


class LoggingErrorHandler(ErrorHandler):
    """Error handler that logs via ``logfire``."""

    def handle(self, message: str, exc: Exception | None = None) -> None:
        if exc is None:
            logfire.error(message)
            return
        logfire.error(
            "{message}: {error}",
            message=message,
            error=str(exc),
            error_type=type(exc).__name__,
        )


__all__ = ["ErrorHandler", "LoggingErrorHandler"]
