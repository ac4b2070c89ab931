"""Diary use cases backed by the Gemini API."""

from .gemini import GeminiGateway
from .service import DiaryService, MalformedResponseError, SketchGenerationError

__all__ = [
    "DiaryService",
    "GeminiGateway",
    "MalformedResponseError",
    "SketchGenerationError",
]
