# SPDX-License-Identifier: MIT
"""Process-wide configuration and the shared request queue.

Exports:
    RuntimeEnv: Singleton owning the settings, queue and retry policy.
    Settings: Validated configuration from YAML and ``DIARY_*`` variables.
    load_settings: Build :class:`Settings` from disk and the environment.
"""

from .environment import RuntimeEnv
from .settings import Settings, load_settings

__all__ = ["RuntimeEnv", "Settings", "load_settings"]
