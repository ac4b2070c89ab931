# SPDX-License-Identifier: MIT
"""Pydantic models describing diary data, remote results and configuration.

These definitions are the contract between the command-line shell, the diary
use cases and the configuration loader.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class StrictModel(BaseModel):
    """Base model with strict settings to prevent shape drift."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=False)


class DiaryEntry(StrictModel):
    """A single diary entry produced from a photo and a voice transcript."""

    id: Annotated[str, Field(min_length=1, description="Entry identifier.")]
    date: str = Field(..., description="Entry date as displayed to the user.")
    original_photo_url: str = Field("", description="Source photo reference.")
    transcription: str = Field("", description="Voice transcript text.")
    generated_text: str = Field(..., description="Generated diary text.")
    generated_image_url: str = Field("", description="Generated sketch reference.")
    place_name: str | None = Field(None, description="Optional place name.")


class Place(StrictModel):
    """Place returned by a maps-grounded lookup."""

    name: Annotated[str, Field(min_length=1)]
    details: str = ""


class DaySummary(BaseModel):
    """Summary of a day's entries with an overall mood score."""

    summary: str = Field(..., description="Summary of the whole day.")
    score: int = Field(..., ge=1, le=10, description="Mood score from 1 to 10.")


class ModelNames(StrictModel):
    """Remote model identifiers per use case."""

    diary: str = "gemini-2.5-flash"
    sketch: str = "gemini-2.5-flash-image"
    summary: str = "gemini-2.5-pro"
    places: str = "gemini-2.5-flash"


class AppConfig(StrictModel):
    """Top-level application configuration read from ``config/app.yaml``."""

    log_level: Annotated[
        str, Field(min_length=1, description="Logging verbosity level.")
    ] = "INFO"
    models: ModelNames = Field(default_factory=ModelNames)
    max_concurrency: int = Field(
        2, ge=1, description="Maximum number of concurrent remote calls."
    )
    request_delay: float = Field(
        1.0, ge=0, description="Seconds between a settlement and the next dispatch."
    )
    max_retry_attempts: int = Field(
        5, ge=1, description="Attempts per remote call, including the first."
    )
    retry_base_delay: float = Field(
        1.0, ge=0, description="Initial backoff delay in seconds."
    )
    operation_timeout: float | None = Field(
        None, gt=0, description="Seconds before an in-flight call is abandoned."
    )


__all__ = [
    "AppConfig",
    "DaySummary",
    "DiaryEntry",
    "ModelNames",
    "Place",
    "StrictModel",
]
