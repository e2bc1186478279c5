"""Gemini REST client.

Talks to the generative language API directly over HTTP so that the
API version (v1 / v1beta) can be chosen per call, which the model
fallback chain relies on.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from resort.conf.config import settings
from resort.core.errors import GeminiError

logger = logging.getLogger(__name__)


def build_generate_body(
    model: str,
    messages: Sequence[Mapping[str, Any]],
    system_prompt: str,
    *,
    max_output_tokens: int = 500,
) -> dict[str, Any]:
    """Build a generateContent request body.

    1.5-generation models take the system prompt as ``systemInstruction``.
    Older models have no such field, so the prompt is folded into the first
    user turn (or becomes the first user turn).
    """
    contents: list[dict[str, Any]] = [
        {
            "role": "user" if m.get("role") == "user" else "model",
            "parts": [{"text": m.get("content") or ""}],
        }
        for m in messages
    ]

    body: dict[str, Any] = {
        "contents": contents,
        "generationConfig": {"maxOutputTokens": max_output_tokens},
    }

    if "1.5" in model:
        body["systemInstruction"] = {"parts": [{"text": system_prompt}]}
    elif contents and contents[0]["role"] == "user":
        first = contents[0]["parts"][0]
        first["text"] = f"{system_prompt}\n\n{first['text']}"
    else:
        contents.insert(0, {"role": "user", "parts": [{"text": system_prompt}]})

    return body


def extract_text(data: Mapping[str, Any]) -> str:
    """Pull the first candidate's text out of a generateContent response."""
    candidates = data.get("candidates") or []
    if not candidates or not candidates[0].get("content"):
        raise GeminiError("No content generated")
    parts = candidates[0]["content"].get("parts") or []
    if not parts or "text" not in parts[0]:
        raise GeminiError("No content generated")
    return parts[0]["text"]


class GeminiClient:
    """Minimal async client for generateContent and embedContent."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        max_output_tokens: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY.get_secret_value()
        self.base_url = (base_url or settings.GEMINI_API_BASE).rstrip("/")
        self.max_output_tokens = max_output_tokens or settings.GEMINI_MAX_OUTPUT_TOKENS
        self.timeout = timeout or settings.GEMINI_TIMEOUT_SECONDS
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _post(self, path: str, body: dict[str, Any], *, label: str) -> dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.post(path, params={"key": self.api_key}, json=body)
        except httpx.HTTPError as e:
            raise GeminiError(f"API {label} request error: {e}") from e

        if response.status_code >= 400:
            raise GeminiError(
                f"API {label} failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise GeminiError(f"API {label} returned invalid JSON") from e

    async def generate(
        self,
        model: str,
        version: str,
        messages: Sequence[Mapping[str, Any]],
        system_prompt: str,
    ) -> str:
        """Return the reply text for a conversation."""
        body = build_generate_body(
            model, messages, system_prompt, max_output_tokens=self.max_output_tokens
        )
        data = await self._post(
            f"/{version}/models/{model}:generateContent",
            body,
            label=f"{model} ({version})",
        )
        return extract_text(data)

    async def embed(
        self,
        text: str,
        *,
        model: str | None = None,
        version: str | None = None,
    ) -> list[float]:
        """Return the embedding vector for ``text``."""
        model = model or settings.GEMINI_EMBEDDING_MODEL
        version = version or settings.GEMINI_EMBEDDING_VERSION
        data = await self._post(
            f"/{version}/models/{model}:embedContent",
            {"model": f"models/{model}", "content": {"parts": [{"text": text}]}},
            label=f"{model} ({version}) embed",
        )
        values = (data.get("embedding") or {}).get("values")
        if not values:
            raise GeminiError("No embedding returned")
        return list(values)
