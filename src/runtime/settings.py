# SPDX-License-Identifier: MIT
"""Application settings for the diary client.

:class:`Settings` is a ``pydantic-settings`` model. Values come from
``config/app.yaml`` first; any ``DIARY_*`` environment variable (or a line in
a local ``.env`` file) replaces the corresponding file value. Nested model
names use a double underscore, e.g. ``DIARY_MODELS__SKETCH``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from constants import DEFAULT_CONFIG_DIR, DEFAULT_CONFIG_FILE
from io_utils.loader import load_app_config
from models import AppConfig, ModelNames


class Settings(BaseSettings):
    """Validated runtime configuration."""

    api_key: str | None = Field(
        None, description="Gemini API key.", repr=False
    )
    log_level: str = Field("INFO", description="Logging verbosity level.")
    logfire_token: str | None = Field(
        None, description="Token for exporting telemetry to Logfire.", repr=False
    )
    models: ModelNames = Field(
        default_factory=ModelNames, description="Remote model per use case."
    )

    # Request governor
    max_concurrency: int = Field(
        2, ge=1, description="Maximum number of concurrent remote calls."
    )
    request_delay: float = Field(
        1.0,
        ge=0,
        description="Seconds to wait after a call settles before the next dispatch.",
    )
    max_retry_attempts: int = Field(
        5, ge=1, description="Attempts per remote call, including the first."
    )
    retry_base_delay: float = Field(
        1.0, ge=0, description="Initial backoff delay in seconds."
    )
    operation_timeout: float | None = Field(
        None,
        gt=0,
        description="Seconds before an in-flight call fails and frees its slot.",
    )

    model_config = SettingsConfigDict(
        env_prefix="DIARY_",
        env_nested_delimiter="__",
        extra="ignore",
        validate_assignment=True,
    )


def _read_config(config_path: Path | str | None) -> AppConfig:
    if not config_path:
        return load_app_config(DEFAULT_CONFIG_DIR, DEFAULT_CONFIG_FILE)
    path = Path(config_path)
    return load_app_config(path.parent, path.name)


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``overrides`` laid over it, nested dicts included."""
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _format_errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Return settings merged from the YAML file and the environment.

    Args:
        config_path: YAML file to read instead of ``config/app.yaml``. A
            missing default file simply leaves the defaults in place.

    Raises:
        RuntimeError: If the file is unreadable or any merged value fails
            validation.
    """
    file_values: dict[str, Any] = _read_config(config_path).model_dump(
        exclude_unset=True
    )
    dotenv = Path(".env")
    env_file = dotenv if dotenv.exists() else None
    try:
        # Constructor arguments outrank the environment in pydantic-settings,
        # so environment values are collected first and laid over the file.
        # Only keys the environment actually set are kept, at every depth.
        from_env = Settings(_env_file=env_file)
        overrides = from_env.model_dump(exclude_unset=True)
        settings = Settings(**_merge(file_values, overrides), _env_file=env_file)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {_format_errors(exc)}") from exc
    return settings


__all__ = ["Settings", "load_settings"]
