# SPDX-License-Identifier: MIT
"""Queue observer that turns queue transitions into a status readout."""

from __future__ import annotations

from dataclasses import dataclass

import logfire


@dataclass
class QueueStatusReporter:
    """Remember the latest ``(active, waiting)`` counts and log changes.

    Instances are callable so they can be registered directly with
    :meth:`llm.queue.TaskQueue.set_observer`.
    """

    active: int = 0
    waiting: int = 0
    peak_active: int = 0
    updates: int = 0

    def __call__(self, active: int, waiting: int) -> None:
        self.active = active
        self.waiting = waiting
        self.peak_active = max(self.peak_active, active)
        self.updates += 1
        logfire.debug("Queue status", active=active, waiting=waiting)

    def describe(self) -> str:
        """Return a one-line description suitable for a status line."""
        if self.waiting:
            return f"Waiting for a slot ({self.waiting} ahead)"
        if self.active:
            return f"Working ({self.active} in flight)"
        return "Idle"


__all__ = ["QueueStatusReporter"]
