# SPDX-License-Identifier: MIT
"""File access for the configuration and the diary store.

The diary is kept as a JSON array of :class:`~models.DiaryEntry`, newest
first. Parse and validation problems are reported through an
:class:`~utils.ErrorHandler` and surface as ``RuntimeError``; a missing file
keeps its ``FileNotFoundError`` so callers can decide whether that matters.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, TypeVar

import logfire
import yaml
from pydantic import TypeAdapter, ValidationError

from models import AppConfig, DiaryEntry
from utils import ErrorHandler, LoggingErrorHandler

T = TypeVar("T")

Decoder = Callable[[str], Any]

_ENTRIES = TypeAdapter(list[DiaryEntry])


def _read_file(path: Path, error_handler: ErrorHandler | None = None) -> str:
    """Return the stripped text stored at ``path``.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        RuntimeError: If the file exists but cannot be read.
    """
    handler = error_handler or LoggingErrorHandler()
    with logfire.span("fs.read_text", path=str(path)):
        try:
            text = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError as exc:
            handler.handle(f"File not found: {path}", exc)
            raise
        except OSError as exc:
            handler.handle(f"Could not read {path}", exc)
            raise RuntimeError(f"Unable to read {path}: {exc}") from exc
        logfire.debug("Read file", path=str(path), chars=len(text))
        return text


def _load_validated(
    path: Path,
    schema: type[T],
    decode: Decoder,
    kind: str,
    error_handler: ErrorHandler | None = None,
) -> T:
    """Decode ``path`` with ``decode`` and validate it against ``schema``."""
    handler = error_handler or LoggingErrorHandler()
    text = _read_file(path, handler)
    try:
        return TypeAdapter(schema).validate_python(decode(text))
    except (ValidationError, ValueError, yaml.YAMLError) as exc:
        handler.handle(f"Error reading {kind} file {path}", exc)
        raise RuntimeError(f"Invalid {kind} in {path}: {exc}") from exc


def _read_json_file(
    path: Path, schema: type[T], error_handler: ErrorHandler | None = None
) -> T:
    return _load_validated(path, schema, json.loads, "JSON", error_handler)


def _read_yaml_file(
    path: Path, schema: type[T], error_handler: ErrorHandler | None = None
) -> T:
    # An empty YAML document is treated as an empty mapping.
    return _load_validated(
        path, schema, lambda text: yaml.safe_load(text) or {}, "YAML", error_handler
    )


def load_app_config(
    base_dir: Path | str = Path("config"),
    filename: Path | str = Path("app.yaml"),
) -> AppConfig:
    """Return the configuration stored in ``base_dir / filename``.

    Without a file the defaults apply, so the client can be configured from
    ``DIARY_*`` environment variables alone.
    """
    path = Path(base_dir) / filename
    if not path.exists():
        logfire.debug("No configuration file, using defaults", path=str(path))
        return AppConfig()
    return _read_yaml_file(path, AppConfig)


def load_entries(
    path: Path | str, error_handler: ErrorHandler | None = None
) -> list[DiaryEntry]:
    """Return the diary entries stored at ``path``.

    Raises:
        FileNotFoundError: If the file does not exist.
        RuntimeError: If the file is not a valid entry list.
    """
    return _read_json_file(Path(path), list[DiaryEntry], error_handler)


def save_entries(path: Path | str, entries: list[DiaryEntry]) -> None:
    """Write ``entries`` to ``path`` as an indented JSON array."""
    target = Path(path)
    with logfire.span("fs.write_entries", path=str(target), count=len(entries)):
        target.write_bytes(_ENTRIES.dump_json(entries, indent=2))


def prepend_entry(path: Path | str, entry: DiaryEntry) -> list[DiaryEntry]:
    """Store ``entry`` ahead of the entries already saved at ``path``.

    Returns:
        The full list as written.
    """
    target = Path(path)
    entries = [entry, *(load_entries(target) if target.exists() else [])]
    save_entries(target, entries)
    return entries


__all__ = ["load_app_config", "load_entries", "prepend_entry", "save_entries"]
