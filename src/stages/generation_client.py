"""OpenAI-compatible text generation client.

Thin synchronous client over ``/chat/completions`` so the enrichment
stage stays vendor-neutral. One ``httpx.Client`` is shared by all worker
threads of a run; httpx clients are safe to use concurrently.
"""

from __future__ import annotations

from typing import Protocol

import httpx

from core.config import Settings
from core.errors import ConduitGenerationError

_SYSTEM_PROMPT = (
    "You extract structured marketing attributes from campaign records. "
    "Reply with one JSON object and nothing else."
)


class TextGenerator(Protocol):
    """Minimal contract the enrichment stage depends on."""

    def generate(self, prompt: str) -> str: ...


class ChatCompletionsClient:
    """Text generator backed by an OpenAI-compatible HTTP endpoint."""

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None) -> None:
        if not settings.llm_base_url:
            raise ConduitGenerationError(
                "Generative enrichment requires llm_base_url. Set CONDUIT_LLM_BASE_URL."
            )
        headers = {}
        if settings.llm_api_key:
            headers["Authorization"] = f"Bearer {settings.llm_api_key}"
        self._url = f"{settings.llm_base_url.rstrip('/')}/chat/completions"
        self._model = settings.llm_model
        self._client = httpx.Client(
            headers=headers,
            timeout=settings.request_timeout,
            transport=transport,
        )

    def __enter__(self) -> "ChatCompletionsClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def generate(self, prompt: str) -> str:
        """Send one prompt and return the assistant message text.

        Raises:
            httpx.TransportError: If the service cannot be reached.
            httpx.HTTPStatusError: If the service returns an error status.
            ValueError: If the response body has no message content.
        """
        payload = {
            "model": self._model,
            "temperature": 0,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        }
        response = self._client.post(self._url, json=payload)
        response.raise_for_status()
        data = response.json()
        try:
            return str(data["choices"][0]["message"]["content"]).strip()
        except (KeyError, IndexError, TypeError) as error:
            raise ValueError(f"response has no message content: {error}") from error
