"""Input and output helpers for configuration and diary files.

Exports:
    load_app_config: Read and validate ``config/app.yaml``.
    load_entries: Read a JSON array of diary entries.
    save_entries: Write diary entries as a JSON array.
    prepend_entry: Store a new entry ahead of the saved ones.
"""

from .loader import load_app_config, load_entries, prepend_entry, save_entries

__all__ = ["load_app_config", "load_entries", "prepend_entry", "save_entries"]
