from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from fincast.core.config import Settings, get_settings
from fincast.core.errors import TextGenerationTimeoutError


logger = logging.getLogger("fincast.text_generation")


RISK_ADVISOR_SYSTEM_PROMPT = (
    "You are a financial risk advisor. Provide practical mitigation strategies. "
    "Keep the answer under 120 words and do not invent figures beyond the indicators given."
)


class TextGenerator(Protocol):
    def complete(self, prompt: str) -> str | None: ...


def _extract_gemini_text(payload: dict[str, Any]) -> str | None:
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content") if isinstance(first, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return None
    chunks: list[str] = []
    for part in parts:
        if isinstance(part, dict):
            text = part.get("text")
            if isinstance(text, str) and text.strip():
                chunks.append(text.strip())
    if not chunks:
        return None
    return "\n".join(chunks).strip()


class GeminiTextClient:
    """Blocking Gemini ``generateContent`` client with a bounded timeout.

    Returns ``None`` when no API key is configured so callers can fall back
    to static text without a network round trip.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        system_prompt: str = RISK_ADVISOR_SYSTEM_PROMPT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._system_prompt = system_prompt
        self._transport = transport

    def complete(self, prompt: str) -> str | None:
        api_key = self._settings.gemini_api_key.strip()
        if not api_key:
            return None

        url = f"{self._settings.gemini_base_url.rstrip('/')}/models/{self._settings.gemini_model}:generateContent"
        payload = {
            "systemInstruction": {
                "parts": [{"text": self._system_prompt}],
            },
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt}],
                }
            ],
            "generationConfig": {
                "temperature": self._settings.mitigation_temperature,
                "maxOutputTokens": self._settings.mitigation_max_output_tokens,
            },
        }

        try:
            with httpx.Client(
                timeout=self._settings.text_generation_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = client.post(
                    url,
                    params={"key": api_key},
                    headers={"Content-Type": "application/json"},
                    json=payload,
                )
        except httpx.TimeoutException as exc:
            raise TextGenerationTimeoutError(
                f"Gemini did not answer within {self._settings.text_generation_timeout_seconds}s."
            ) from exc
        if response.status_code >= 400:
            raise httpx.HTTPStatusError(
                message=f"Gemini request failed with status {response.status_code}",
                request=response.request,
                response=response,
            )
        return _extract_gemini_text(response.json())
