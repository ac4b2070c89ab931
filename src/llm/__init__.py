"""Outbound request governor for remote generative-AI calls."""

from .errors import (
    ConfigurationError,
    ErrorClass,
    RemoteCallError,
    classify_error,
    classify_status,
)
from .queue import QueueObserver, TaskMeta, TaskQueue
from .retry import RetryPolicy, with_retry

__all__ = [
    "ConfigurationError",
    "ErrorClass",
    "QueueObserver",
    "RemoteCallError",
    "RetryPolicy",
    "TaskMeta",
    "TaskQueue",
    "classify_error",
    "classify_status",
    "with_retry",
]
