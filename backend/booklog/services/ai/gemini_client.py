"""Google Gemini client (direct HTTP, no heavy SDK)."""

import logging
import re

import httpx

from booklog.config import get_gemini_api_key, get_gemini_base_url, get_gemini_model

logger = logging.getLogger(__name__)

_BASE_HOST = "https://generativelanguage.googleapis.com"
_API_VERSIONS = ["v1beta", "v1alpha"]

# Experimental/preview models get graduated; strip the suffix to reach the GA model ID.
_UNSTABLE_SUFFIX = re.compile(r"-(exp|preview-\d{2}-\d{2})$")


class GeminiError(ValueError):
    """Gemini returned an error status or an unusable response."""


def _model_candidates(model: str) -> list[str]:
    """Return model IDs to try: original first, then without exp/preview suffix."""
    candidates = [model]
    base = _UNSTABLE_SUFFIX.sub("", model)
    if base != model:
        candidates.append(base)
    return candidates


class GeminiClient:
    def __init__(self, api_key: str, base_url: str, model: str):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model

    def _headers(self) -> dict[str, str]:
        """Return headers with API key (avoids exposing key in URL query params)."""
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    async def generate(
        self,
        parts: list[dict],
        *,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_output: bool = False,
    ) -> str:
        """Send one user turn (text and/or inline_data parts) and return the text reply."""
        body: dict = {"contents": [{"role": "user", "parts": parts}]}
        if system:
            body["system_instruction"] = {"parts": [{"text": system}]}

        generation_config: dict = {}
        if temperature is not None:
            generation_config["temperature"] = temperature
        if max_tokens is not None:
            generation_config["maxOutputTokens"] = max_tokens
        if json_output:
            generation_config["responseMimeType"] = "application/json"
        if generation_config:
            body["generationConfig"] = generation_config

        # On 404 try each API version, then the model with its suffix stripped
        urls_to_try: list[str] = []
        for m in _model_candidates(self.model):
            url = f"{self.base_url}/models/{m}:generateContent"
            if url not in urls_to_try:
                urls_to_try.append(url)
            for ver in _API_VERSIONS:
                alt = f"{_BASE_HOST}/{ver}/models/{m}:generateContent"
                if alt not in urls_to_try:
                    urls_to_try.append(alt)

        async with httpx.AsyncClient() as client:
            resp = None
            for url in urls_to_try:
                resp = await client.post(url, headers=self._headers(), json=body, timeout=60)
                if resp.status_code != 404:
                    break
                logger.info("Gemini 404 on %s, trying next", url)

            assert resp is not None
            if resp.status_code != 200:
                logger.error("Gemini API error %s: %s", resp.status_code, resp.text[:500])
                raise GeminiError(f"Gemini API error (status={resp.status_code})")
            data = resp.json()

        # Blocked or empty responses carry no text part
        candidates = data.get("candidates", [])
        if not candidates:
            feedback = data.get("promptFeedback", {})
            reason = feedback.get("blockReason", "unknown")
            raise GeminiError(f"Gemini returned no candidates (blockReason={reason})")
        content = candidates[0].get("content", {})
        parts_out = content.get("parts", [])
        if not parts_out or "text" not in parts_out[0]:
            finish = candidates[0].get("finishReason", "UNKNOWN")
            raise GeminiError(f"Gemini returned no text (finishReason={finish})")
        return parts_out[0]["text"]


def get_gemini_client() -> GeminiClient:
    """Build a client from server configuration; the key never comes from clients."""
    api_key = get_gemini_api_key()
    if not api_key:
        raise GeminiError("GEMINI_API_KEY is not configured")
    return GeminiClient(api_key=api_key, base_url=get_gemini_base_url(), model=get_gemini_model())
