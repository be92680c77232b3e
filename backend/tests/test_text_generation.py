import json

import httpx
import pytest

from fincast.core.config import Settings
from fincast.core.errors import TextGenerationTimeoutError
from fincast.services.text_generation import GeminiTextClient


def _settings(**overrides) -> Settings:
    values = {"gemini_api_key": "test-key", "gemini_model": "gemini-test", "text_generation_timeout_seconds": 2.0}
    values.update(overrides)
    return Settings(**values)


def test_missing_api_key_skips_the_request() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    client = GeminiTextClient(_settings(gemini_api_key=""), transport=httpx.MockTransport(handler))

    assert client.complete("anything") is None
    assert calls == []


def test_generate_content_request_and_reply() -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"parts": [{"text": "Shorten terms."}, {"text": "Chase overdue."}]}}]},
        )

    client = GeminiTextClient(_settings(), transport=httpx.MockTransport(handler))

    assert client.complete("indicators") == "Shorten terms.\nChase overdue."
    assert "models/gemini-test:generateContent" in captured["url"]
    assert "key=test-key" in captured["url"]
    assert captured["body"]["contents"][0]["parts"][0]["text"] == "indicators"
    assert "financial risk advisor" in captured["body"]["systemInstruction"]["parts"][0]["text"]
    assert captured["body"]["generationConfig"] == {"temperature": 0.3, "maxOutputTokens": 200}


def test_timeout_is_raised_as_domain_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = GeminiTextClient(_settings(), transport=httpx.MockTransport(handler))

    with pytest.raises(TextGenerationTimeoutError):
        client.complete("indicators")


def test_error_status_raises_http_error() -> None:
    client = GeminiTextClient(
        _settings(),
        transport=httpx.MockTransport(lambda request: httpx.Response(503, json={"error": "unavailable"})),
    )

    with pytest.raises(httpx.HTTPStatusError):
        client.complete("indicators")


def test_reply_without_text_is_none() -> None:
    client = GeminiTextClient(
        _settings(),
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"candidates": []})),
    )

    assert client.complete("indicators") is None
