# SPDX-License-Identifier: MIT
"""Test configuration for sketch-diary.

Keeps Logfire output local, isolates tests from the developer's environment
and provides fakes for the Gemini gateway.
"""

from __future__ import annotations

import os
from types import SimpleNamespace
from typing import Any

import logfire
import pytest

logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path):
    """Drop ``DIARY_*`` variables and run from an empty directory."""
    for key in list(os.environ):
        if key.startswith("DIARY_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _reset_runtime_env():
    from runtime.environment import RuntimeEnv

    RuntimeEnv.reset()
    yield
    RuntimeEnv.reset()


class FakeGateway:
    """Stand-in for :class:`diary.gemini.GeminiGateway`.

    ``outcomes`` is consumed in order; exceptions are raised, anything else is
    returned as the response.
    """

    def __init__(self, *outcomes: Any, api_key: str | None = "test-key") -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []
        self.api_key = api_key

    def ensure_configured(self) -> None:
        from llm.errors import ConfigurationError

        if not self.api_key:
            raise ConfigurationError("API key is not set")

    async def generate(self, *, model: str, contents: Any, config: Any = None) -> Any:
        self.calls.append({"model": model, "contents": contents, "config": config})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def text_response(text: str | None) -> SimpleNamespace:
    return SimpleNamespace(text=text, candidates=[])


@pytest.fixture()
def fake_gateway_cls():
    return FakeGateway


@pytest.fixture()
def make_text_response():
    return text_response
