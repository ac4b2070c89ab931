"""Project-wide constants and default paths.

This module centralises small constants that are imported across the
application. Keep this file minimal and free of side effects.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_DIR = Path("config")
DEFAULT_CONFIG_FILE = Path("app.yaml")

SERVICE_NAME = "sketch-diary"

# Maximum length of place details shown next to a search result.
PLACE_DETAILS_LIMIT = 100

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
    "PLACE_DETAILS_LIMIT",
    "SERVICE_NAME",
]
