# SPDX-License-Identifier: MIT
"""Unit tests for Pydantic models."""

import pytest
from pydantic import ValidationError

from models import AppConfig, DaySummary, DiaryEntry, ModelNames, Place


def test_diary_entry_defaults() -> None:
    entry = DiaryEntry(id="1", date="2026-10-19", generated_text="Text.")
    assert entry.place_name is None
    assert entry.original_photo_url == ""


def test_strict_models_reject_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        Place(name="Cafe", rating=5)
    with pytest.raises(ValidationError):
        ModelNames(chat="x")


@pytest.mark.parametrize("score", [0, 11])
def test_day_summary_score_range(score: int) -> None:
    with pytest.raises(ValidationError):
        DaySummary(summary="s", score=score)


def test_app_config_bounds() -> None:
    with pytest.raises(ValidationError):
        AppConfig(max_concurrency=0)
    with pytest.raises(ValidationError):
        AppConfig(request_delay=-0.5)
    assert AppConfig(operation_timeout=30).operation_timeout == 30
