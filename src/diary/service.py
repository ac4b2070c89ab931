# SPDX-License-Identifier: MIT
"""Diary use cases built on the request queue.

Each public coroutine submits one remote call to the shared
:class:`~llm.queue.TaskQueue`, wrapped in :func:`~llm.retry.with_retry`, so
every call the diary makes is rate limited and retried the same way.
Response parsing lives in small module-level helpers that operate on the raw
SDK response objects.
"""

from __future__ import annotations

import base64
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, Sequence, TypeVar

import logfire
from pydantic import ValidationError

from constants import PLACE_DETAILS_LIMIT
from llm.errors import ErrorClass, RemoteCallError
from llm.queue import TaskMeta, TaskQueue
from llm.retry import RetryPolicy, with_retry
from models import DaySummary, DiaryEntry, ModelNames, Place

from . import prompts
from .gemini import GeminiGateway

T = TypeVar("T")

SKETCH_MIME_TYPE = "image/jpeg"

DIARY_GENERATION_CONFIG: dict[str, Any] = {
    "temperature": 0.5,
    "max_output_tokens": 100,
    "top_k": 40,
}


class MalformedResponseError(RemoteCallError):
    """The service answered but the payload was unusable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_class=ErrorClass.FATAL)


class SketchGenerationError(RemoteCallError):
    """No image came back from the sketch request."""

    def __init__(
        self,
        message: str,
        *,
        finish_reason: str | None = None,
        category: str | None = None,
    ) -> None:
        super().__init__(message, error_class=ErrorClass.FATAL)
        self.finish_reason = finish_reason
        self.category = category


def _enum_name(value: Any) -> str | None:
    if value is None:
        return None
    return str(getattr(value, "value", value))


def _first_candidate(response: Any) -> Any | None:
    candidates = getattr(response, "candidates", None) or []
    return candidates[0] if candidates else None


def _place_details(maps: Any) -> str:
    sources = getattr(maps, "place_answer_sources", None)
    if isinstance(sources, (list, tuple)):
        sources = sources[0] if sources else None
    snippets = getattr(sources, "review_snippets", None) or []
    text = None
    if snippets:
        text = getattr(snippets[0], "text", None) or getattr(
            snippets[0], "review", None
        )
    return text or getattr(maps, "uri", None) or ""


def extract_places(response: Any) -> list[Place]:
    """Return places from maps grounding chunks, deduplicated by name.

    Later duplicates replace earlier ones but keep the first position.
    """
    candidate = _first_candidate(response)
    metadata = getattr(candidate, "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None)
    if not chunks:
        return []
    places: dict[str, Place] = {}
    for chunk in chunks:
        maps = getattr(chunk, "maps", None)
        title = getattr(maps, "title", None)
        if not title:
            continue
        details = _place_details(maps)[:PLACE_DETAILS_LIMIT]
        places[title] = Place(name=title, details=details)
    return list(places.values())


def extract_text(response: Any) -> str:
    """Return the response text or raise :class:`MalformedResponseError`."""
    text = getattr(response, "text", None)
    if not text:
        raise MalformedResponseError("Model returned an empty response")
    return text


def extract_image(response: Any) -> str:
    """Return base64 image data from the first candidate.

    Raises:
        SketchGenerationError: If the response carries no image, with the
            blocking category when the request was stopped for safety.
    """
    candidate = _first_candidate(response)
    content = getattr(candidate, "content", None)
    for part in getattr(content, "parts", None) or []:
        data = getattr(getattr(part, "inline_data", None), "data", None)
        if data:
            if isinstance(data, bytes):
                return base64.b64encode(data).decode("ascii")
            return str(data)

    finish_reason = _enum_name(getattr(candidate, "finish_reason", None))
    if finish_reason == "SAFETY":
        ratings = getattr(candidate, "safety_ratings", None) or []
        blocked = next((r for r in ratings if getattr(r, "blocked", False)), None)
        category = _enum_name(getattr(blocked, "category", None)) or "Unknown"
        raise SketchGenerationError(
            f"Image generation was blocked for safety reasons (reason: {category})."
            " Adjust the prompt or image and try again.",
            finish_reason=finish_reason,
            category=category,
        )
    if finish_reason:
        raise SketchGenerationError(
            f"Image generation failed (reason: {finish_reason})",
            finish_reason=finish_reason,
        )
    raise SketchGenerationError(
        "Image generation failed: the model returned no image data."
    )


def parse_summary(response: Any) -> DaySummary:
    """Validate the JSON summary payload."""
    try:
        return DaySummary.model_validate_json(extract_text(response))
    except ValidationError as exc:
        raise MalformedResponseError(f"Invalid summary payload: {exc}") from exc


class DiaryService:
    """Diary generation, sketching, summaries and place lookup."""

    def __init__(
        self,
        gateway: GeminiGateway,
        queue: TaskQueue,
        *,
        policy: RetryPolicy | None = None,
        models: ModelNames | None = None,
    ) -> None:
        self._gateway = gateway
        self._queue = queue
        self._policy = policy
        self._models = models or ModelNames()

    def _call(self, label: str, operation: Callable[[], Awaitable[T]]) -> Awaitable[T]:
        """Queue ``operation`` behind the retry wrapper."""

        def attempt() -> Awaitable[T]:
            return with_retry(
                operation,
                policy=self._policy,
                precondition=self._gateway.ensure_configured,
            )

        return self._queue.enqueue(attempt, meta=TaskMeta(label=label))

    async def search_places(self, query: str) -> list[Place]:
        """Return places matching ``query`` literally."""

        async def run() -> list[Place]:
            response = await self._gateway.generate(
                model=self._models.places,
                contents=prompts.places_prompt(query),
                config={"tools": [{"google_maps": {}}]},
            )
            return extract_places(response)

        return await self._call("places", run)

    async def generate_diary_entry(
        self, transcription: str, place_name: str | None = None
    ) -> str:
        """Return a three-sentence diary text for ``transcription``."""

        async def run() -> str:
            response = await self._gateway.generate(
                model=self._models.diary,
                contents=prompts.diary_prompt(transcription, place_name),
                config=dict(DIARY_GENERATION_CONFIG),
            )
            return extract_text(response)

        return await self._call("diary", run)

    async def generate_sketch(
        self, photo_base64: str, mime_type: str, transcription: str
    ) -> str:
        """Return base64 sketch data derived from the photo and transcript."""
        photo = base64.b64decode(photo_base64)

        async def run() -> str:
            response = await self._gateway.generate(
                model=self._models.sketch,
                contents=[
                    {
                        "role": "user",
                        "parts": [
                            {"inline_data": {"data": photo, "mime_type": mime_type}},
                            {"text": prompts.sketch_prompt(transcription)},
                        ],
                    }
                ],
                config={"response_modalities": ["IMAGE"]},
            )
            return extract_image(response)

        return await self._call("sketch", run)

    async def summarize_day(self, entries: Sequence[DiaryEntry]) -> DaySummary:
        """Return a summary and mood score for ``entries``."""

        async def run() -> DaySummary:
            response = await self._gateway.generate(
                model=self._models.summary,
                contents=prompts.summary_prompt(entries),
                config={
                    "response_mime_type": "application/json",
                    "response_schema": DaySummary,
                },
            )
            return parse_summary(response)

        return await self._call("summary", run)

    async def create_entry(
        self,
        photo: bytes,
        mime_type: str,
        transcription: str,
        place_name: str | None = None,
        *,
        now: datetime | None = None,
    ) -> DiaryEntry:
        """Generate diary text and a sketch, then assemble the entry.

        Raises:
            ValueError: If the photo or transcription is missing, or the file
                is not an image.
        """
        if not photo or not transcription.strip():
            raise ValueError("Both a photo and a voice transcript are required")
        if not mime_type or not mime_type.startswith("image/"):
            raise ValueError(f"Unsupported photo type: {mime_type!r}")
        now = now or datetime.now()
        photo_base64 = base64.b64encode(photo).decode("ascii")

        text = await self.generate_diary_entry(transcription, place_name)
        sketch = await self.generate_sketch(photo_base64, mime_type, transcription)
        logfire.info("Diary entry created", place=place_name)
        return DiaryEntry(
            id=now.isoformat(),
            date=now.date().isoformat(),
            original_photo_url=f"data:{mime_type};base64,{photo_base64}",
            transcription=transcription,
            generated_text=text,
            generated_image_url=f"data:{SKETCH_MIME_TYPE};base64,{sketch}",
            place_name=place_name,
        )

    async def summarize_today(
        self, entries: Iterable[DiaryEntry], *, today: datetime | None = None
    ) -> DaySummary:
        """Summarise the entries dated today.

        Raises:
            ValueError: If no entry was written today.
        """
        day = (today or datetime.now()).date().isoformat()
        todays = [entry for entry in entries if entry.date == day]
        if not todays:
            raise ValueError("No diary entries were written today")
        return await self.summarize_day(todays)


__all__ = [
    "DiaryService",
    "MalformedResponseError",
    "SketchGenerationError",
    "extract_image",
    "extract_places",
    "extract_text",
    "parse_summary",
]
