# SPDX-License-Identifier: MIT
"""Failure classification for remote calls.

Errors raised by remote operations fall into two groups: transient service
unavailability that is worth retrying, and everything else. Collaborators
should raise :class:`RemoteCallError` with an explicit :class:`ErrorClass`
when they know the answer (for example from an HTTP status code). Exceptions
without that information are classified by inspecting their text, matching
the historic behaviour of the diary client.
"""

from __future__ import annotations

from enum import Enum


class ErrorClass(str, Enum):
    """Whether a failure may be retried."""

    RETRIABLE = "retriable"
    FATAL = "fatal"


RETRIABLE_MARKERS: tuple[str, ...] = ("503", "unavailable", "overloaded")
"""Case-insensitive substrings marking an error as transient."""

RETRIABLE_STATUS_CODES: frozenset[int] = frozenset({503})

RETRIABLE_STATUSES: frozenset[str] = frozenset({"UNAVAILABLE"})


class RemoteCallError(Exception):
    """Error raised by a remote collaborator.

    ``error_class`` is optional. Left as ``None``, the error is classified by
    its text like any other exception.
    """

    def __init__(
        self,
        message: str,
        *,
        error_class: ErrorClass | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.error_class = error_class
        self.status_code = status_code

    @property
    def retriable(self) -> bool:
        return classify_error(self) is ErrorClass.RETRIABLE


class ConfigurationError(RemoteCallError):
    """Missing credential or configuration; never retried."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_class=ErrorClass.FATAL)


def describe_error(exc: BaseException) -> str:
    """Return the textual form used for classification, e.g. ``"ValueError: x"``."""
    return f"{type(exc).__name__}: {exc}"


def classify_text(text: str) -> ErrorClass:
    """Classify an error description using :data:`RETRIABLE_MARKERS`."""
    lowered = text.lower()
    if any(marker in lowered for marker in RETRIABLE_MARKERS):
        return ErrorClass.RETRIABLE
    return ErrorClass.FATAL


def classify_error(exc: BaseException) -> ErrorClass:
    """Return the :class:`ErrorClass` for ``exc``.

    An explicit ``error_class`` attribute set by the collaborator wins. Other
    exceptions, including a :class:`RemoteCallError` whose class is ``None``,
    fall back to :func:`classify_text` on :func:`describe_error`.
    Network-reachability errors are therefore fatal unless their message
    mentions one of the retriable markers.
    """
    explicit = getattr(exc, "error_class", None)
    if isinstance(explicit, ErrorClass):
        return explicit
    return classify_text(describe_error(exc))


def classify_status(code: int | None, status: str | None = None) -> ErrorClass:
    """Map a remote status code or status name to an :class:`ErrorClass`."""
    if code in RETRIABLE_STATUS_CODES:
        return ErrorClass.RETRIABLE
    if status and status.upper() in RETRIABLE_STATUSES:
        return ErrorClass.RETRIABLE
    return ErrorClass.FATAL


__all__ = [
    "ConfigurationError",
    "ErrorClass",
    "RETRIABLE_MARKERS",
    "RemoteCallError",
    "classify_error",
    "classify_status",
    "classify_text",
    "describe_error",
]
