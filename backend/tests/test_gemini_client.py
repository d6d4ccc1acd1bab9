"""Tests for the Gemini REST client (HTTP mocked)."""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from booklog.services.ai.gemini_client import (
    GeminiClient,
    GeminiError,
    _model_candidates,
    get_gemini_client,
)

BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@pytest.fixture
def anyio_backend():
    return "asyncio"


def _response(status_code: int, payload: dict | None = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload or {}
    resp.text = str(payload)
    return resp


def _mock_http(*responses) -> AsyncMock:
    mock_client_instance = AsyncMock()
    mock_client_instance.post.side_effect = list(responses)
    mock_client_instance.__aenter__ = AsyncMock(return_value=mock_client_instance)
    mock_client_instance.__aexit__ = AsyncMock(return_value=False)
    return mock_client_instance


def _text_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_model_candidates_strip_unstable_suffix():
    assert _model_candidates("gemini-2.0-flash") == ["gemini-2.0-flash"]
    assert _model_candidates("gemini-2.0-flash-exp") == ["gemini-2.0-flash-exp", "gemini-2.0-flash"]
    assert _model_candidates("gemini-2.5-pro-preview-05-06") == [
        "gemini-2.5-pro-preview-05-06",
        "gemini-2.5-pro",
    ]


@pytest.mark.anyio
async def test_generate_sends_key_in_header_and_config():
    http = _mock_http(_response(200, _text_reply("우정, 모험")))
    client = GeminiClient("secret-key", BASE_URL, "gemini-2.0-flash")

    with patch("booklog.services.ai.gemini_client.httpx.AsyncClient", return_value=http):
        text = await client.generate(
            [{"text": "hello"}], system="sys", temperature=0.2, max_tokens=64, json_output=True
        )

    assert text == "우정, 모험"
    url = http.post.call_args[0][0]
    kwargs = http.post.call_args[1]
    assert url == f"{BASE_URL}/models/gemini-2.0-flash:generateContent"
    assert "secret-key" not in url
    assert kwargs["headers"]["x-goog-api-key"] == "secret-key"
    body = kwargs["json"]
    assert body["system_instruction"] == {"parts": [{"text": "sys"}]}
    assert body["generationConfig"] == {
        "temperature": 0.2,
        "maxOutputTokens": 64,
        "responseMimeType": "application/json",
    }


@pytest.mark.anyio
async def test_404_falls_back_to_stable_model():
    http = _mock_http(
        _response(404),
        _response(404),
        _response(200, _text_reply("ok")),
    )
    client = GeminiClient("k", BASE_URL, "gemini-2.0-flash-exp")

    with patch("booklog.services.ai.gemini_client.httpx.AsyncClient", return_value=http):
        assert await client.generate([{"text": "hi"}]) == "ok"

    last_url = http.post.call_args_list[-1][0][0]
    assert last_url == f"{BASE_URL}/models/gemini-2.0-flash:generateContent"


@pytest.mark.anyio
async def test_error_status_raises():
    http = _mock_http(_response(500, {"error": "boom"}))
    client = GeminiClient("k", BASE_URL, "gemini-2.0-flash")

    with patch("booklog.services.ai.gemini_client.httpx.AsyncClient", return_value=http):
        with pytest.raises(GeminiError, match="status=500"):
            await client.generate([{"text": "hi"}])


@pytest.mark.anyio
async def test_blocked_prompt_raises():
    http = _mock_http(_response(200, {"promptFeedback": {"blockReason": "SAFETY"}}))
    client = GeminiClient("k", BASE_URL, "gemini-2.0-flash")

    with patch("booklog.services.ai.gemini_client.httpx.AsyncClient", return_value=http):
        with pytest.raises(GeminiError, match="SAFETY"):
            await client.generate([{"text": "hi"}])


def test_client_requires_server_key():
    with patch.dict(os.environ, {"GEMINI_API_KEY": ""}):
        with pytest.raises(GeminiError, match="GEMINI_API_KEY"):
            get_gemini_client()


def test_client_from_environment():
    with patch.dict(os.environ, {"GEMINI_API_KEY": "abc", "GEMINI_MODEL": "gemini-1.5-pro"}):
        client = get_gemini_client()
    assert client.api_key == "abc"
    assert client.model == "gemini-1.5-pro"
    assert client.base_url == BASE_URL
