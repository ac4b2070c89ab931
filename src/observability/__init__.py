"""Telemetry helpers for the diary client.

Exports:
    init_logfire: Configure Pydantic Logfire output.
    QueueStatusReporter: Queue observer that logs active and waiting counts.
"""

from .monitoring import init_logfire
from .status import QueueStatusReporter

__all__ = ["init_logfire", "QueueStatusReporter"]
