# SPDX-License-Identifier: MIT
"""Gateway to the Gemini API.

:class:`GeminiGateway` is the only place that talks to ``google-genai``. It
turns SDK errors into :class:`~llm.errors.RemoteCallError` with an explicit
classification: retriable when the status is 503/``UNAVAILABLE`` or the
error text carries one of the retriable markers, fatal otherwise.
"""

from __future__ import annotations

from typing import Any, Callable

import logfire
from google import genai
from google.genai import errors as genai_errors

from llm.errors import (
    ConfigurationError,
    ErrorClass,
    RemoteCallError,
    classify_status,
    classify_text,
)

ClientFactory = Callable[[str], Any]


def _default_client(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


class GeminiGateway:
    """Thin async wrapper around ``google.genai.Client``."""

    def __init__(
        self, api_key: str | None, client_factory: ClientFactory | None = None
    ) -> None:
        """Create the gateway.

        Args:
            api_key: Gemini API key. A missing key is reported when a call is
                attempted, not here.
            client_factory: Builds the SDK client from the key. Tests inject
                fakes through this.
        """
        self._api_key = api_key
        self._client_factory = client_factory or _default_client
        self._client: Any | None = None

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def ensure_configured(self) -> None:
        """Raise :class:`ConfigurationError` when no API key is available."""
        if not self._api_key:
            raise ConfigurationError("API key is not set")

    def _get_client(self) -> Any:
        self.ensure_configured()
        if self._client is None:
            self._client = self._client_factory(self._api_key or "")
        return self._client

    async def generate(
        self,
        *,
        model: str,
        contents: Any,
        config: Any | None = None,
    ) -> Any:
        """Call ``models.generate_content`` and return the raw response.

        Raises:
            ConfigurationError: If the API key is missing.
            RemoteCallError: If the service rejects the request.
        """
        client = self._get_client()
        with logfire.span("gemini.generate_content", model=model):
            try:
                return await client.aio.models.generate_content(
                    model=model, contents=contents, config=config
                )
            except genai_errors.APIError as exc:
                # A non-503 status can still carry an "overloaded" message.
                error_class = classify_status(exc.code, exc.status)
                if error_class is ErrorClass.FATAL:
                    error_class = classify_text(str(exc))
                logfire.warning(
                    "Gemini request failed",
                    model=model,
                    code=exc.code,
                    status=exc.status,
                    error_class=error_class.value,
                )
                raise RemoteCallError(
                    str(exc), error_class=error_class, status_code=exc.code
                ) from exc


__all__ = ["ClientFactory", "GeminiGateway"]
