"""Prompt templates for the diary use cases."""

from __future__ import annotations

from typing import Iterable

from models import DiaryEntry

PLACES_TEMPLATE = (
    "Use the Google Maps tool to find places that exactly match the following"
    " search term. Use the term literally without interpreting it."
    ' Search term: "{query}"'
)

DIARY_TEMPLATE = (
    "Write a short, heartfelt diary text based on the following voice note."
    " Use a friendly tone and output exactly three sentences."
    '\n\nVoice note: "{transcription}"'
)

DIARY_WITH_PLACE_TEMPLATE = (
    'Write a short, heartfelt diary text based on the following voice note and'
    ' the place "{place_name}". The text must be grounded in what the voice'
    " note says. Use a friendly tone, mention the place naturally and output"
    " exactly three sentences written in the first person. Output only the"
    ' diary text.\n\nVoice note: "{transcription}"'
)

SKETCH_TEMPLATE = (
    "Turn the provided image into a warm, emotional hand-drawn sketch. Use the"
    " voice note below to set the mood and emotional tone of the drawing. Keep"
    " the composition and main subjects of the original photo while expressing"
    ' the emotional context of the voice note in an artistic style.\n\nVoice'
    ' note: "{transcription}"'
)

SUMMARY_TEMPLATE = (
    "Below are several diary entries written today. Summarise the whole day in"
    " one or two sentences and express the overall mood as a score out of 10."
    " The response must follow the given JSON format.\n\nEntries:\n{entries}"
)

UNKNOWN_PLACE = "somewhere"


def places_prompt(query: str) -> str:
    return PLACES_TEMPLATE.format(query=query)


def diary_prompt(transcription: str, place_name: str | None = None) -> str:
    if place_name:
        return DIARY_WITH_PLACE_TEMPLATE.format(
            transcription=transcription, place_name=place_name
        )
    return DIARY_TEMPLATE.format(transcription=transcription)


def sketch_prompt(transcription: str) -> str:
    return SKETCH_TEMPLATE.format(transcription=transcription)


def summary_prompt(entries: Iterable[DiaryEntry]) -> str:
    """Join entries as ``[place] text`` blocks separated by ``---``."""
    body = "\n---\n".join(
        f"[{entry.place_name or UNKNOWN_PLACE}] {entry.generated_text}"
        for entry in entries
    )
    return SUMMARY_TEMPLATE.format(entries=body)


__all__ = ["diary_prompt", "places_prompt", "sketch_prompt", "summary_prompt"]
