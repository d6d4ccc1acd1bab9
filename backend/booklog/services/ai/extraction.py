"""AI-assisted form filling: book metadata from a link or photo, keywords from a review.

Neither entry point raises. Metadata failures come back as
``BookMetadata(error=...)`` with a message ready to show under the form;
keyword failures come back as an empty list.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from html.parser import HTMLParser
from urllib.parse import urljoin

import httpx

from booklog.models.book_models import MAX_KEYWORDS
from booklog.models.extraction_models import BookMetadata, SourceKind
from booklog.services.ai.gemini_client import GeminiClient, GeminiError, get_gemini_client
from booklog.services.ai.prompts import (
    KEYWORD_SYSTEM,
    METADATA_SYSTEM,
    build_image_metadata_prompt,
    build_keyword_prompt,
    build_link_metadata_prompt,
)
from booklog.services.ai.url_validator import check_public_url

logger = logging.getLogger(__name__)

MIN_KEYWORD_TEXT_LENGTH = 10
METADATA_ERROR_PREFIX = "도서 정보를 가져오는데 실패했습니다: "

MAX_IMAGE_BYTES = 10 * 1024 * 1024
_MAX_PAGE_BYTES = 2 * 1024 * 1024
_MAX_PAGE_TEXT = 4000
_MAX_REDIRECTS = 3
_PAGE_TIMEOUT = 15

_METADATA_FIELDS = ("title", "author", "publisher", "cover_url")


# --- response parsing ---


def _strip_markdown_fences(text: str) -> str:
    """Remove markdown code fences from LLM output."""
    text = text.strip()
    text = re.sub(r"^```(?:json)?\s*\n?", "", text)
    text = re.sub(r"\n?```\s*$", "", text)
    return text.strip()


def parse_metadata_json(raw: str) -> dict[str, str]:
    """Pull the known metadata fields out of the model's JSON reply."""
    cleaned = _strip_markdown_fences(raw)
    match = re.search(r"\{.*\}", cleaned, re.DOTALL)
    if not match:
        raise GeminiError("Model reply contained no JSON object")
    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise GeminiError("Model reply was not a JSON object")
    result: dict[str, str] = {}
    for field in _METADATA_FIELDS:
        value = data.get(field)
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value if v)
        if isinstance(value, str) and value.strip() and value.strip().lower() != "null":
            result[field] = value.strip()
    return result


def parse_keywords(raw: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """Split a comma/newline separated reply into distinct keywords."""
    keywords: list[str] = []
    seen: set[str] = set()
    for token in re.split(r"[,\n、，]", _strip_markdown_fences(raw)):
        token = token.strip().strip("\"'`*#-•. ").strip()
        key = token.casefold()
        if not token or key in seen:
            continue
        seen.add(key)
        keywords.append(token)
    return keywords[:limit]


# --- link pages ---


class _PageSummaryParser(HTMLParser):
    """Collects <title>, og:/description meta tags and visible body text."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.title = ""
        self.meta: dict[str, str] = {}
        self._text: list[str] = []
        self._in_title = False
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in ("script", "style", "noscript"):
            self._skip_depth += 1
        elif tag == "title":
            self._in_title = True
        elif tag == "meta":
            attr = dict(attrs)
            key = (attr.get("property") or attr.get("name") or "").lower()
            content = attr.get("content")
            if key and content and key not in self.meta:
                self.meta[key] = content.strip()

    def handle_endtag(self, tag):
        if tag in ("script", "style", "noscript") and self._skip_depth:
            self._skip_depth -= 1
        elif tag == "title":
            self._in_title = False

    def handle_data(self, data):
        if self._in_title:
            self.title += data
        elif not self._skip_depth:
            text = data.strip()
            if text:
                self._text.append(text)

    @property
    def text(self) -> str:
        return " ".join(self._text)


async def fetch_page(url: str) -> tuple[str, str]:
    """GET a public page, validating every redirect hop; return (final_url, html)."""
    async with httpx.AsyncClient(timeout=_PAGE_TIMEOUT, follow_redirects=False) as client:
        for _ in range(_MAX_REDIRECTS + 1):
            await check_public_url(url)
            async with client.stream(
                "GET", url, headers={"User-Agent": "Mozilla/5.0 (booklog)"}
            ) as resp:
                if resp.is_redirect:
                    url = urljoin(url, resp.headers.get("location", ""))
                    continue
                resp.raise_for_status()
                body = await _read_capped(resp, _MAX_PAGE_BYTES)
                return url, body.decode(resp.encoding or "utf-8", errors="replace")
    raise GeminiError("Too many redirects")


async def _read_capped(resp: httpx.Response, limit: int) -> bytes:
    """Read at most ``limit`` bytes of a streamed body; the rest is never downloaded."""
    chunks: list[bytes] = []
    total = 0
    async for chunk in resp.aiter_bytes():
        chunks.append(chunk[: limit - total])
        total += len(chunk)
        if total >= limit:
            break
    return b"".join(chunks)


def summarize_page(html: str) -> tuple[str, str | None]:
    """Return (summary text for the prompt, og:image URL if any)."""
    parser = _PageSummaryParser()
    parser.feed(html)
    lines = []
    if parser.title.strip():
        lines.append(f"Title tag: {parser.title.strip()}")
    for key in ("og:title", "og:description", "description", "book:author", "author"):
        if key in parser.meta:
            lines.append(f"{key}: {parser.meta[key]}")
    lines.append(parser.text[:_MAX_PAGE_TEXT])
    return "\n".join(lines), parser.meta.get("og:image")


# --- images ---


def decode_image(content: str) -> tuple[bytes, str]:
    """Decode base64 (or a data: URL) and sniff the image MIME type."""
    if content.startswith("data:") and "," in content:
        content = content.split(",", 1)[1]
    try:
        data = base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Image content is not valid base64") from exc
    if not data:
        raise ValueError("Image is empty")
    if len(data) > MAX_IMAGE_BYTES:
        raise ValueError(f"Image too large. Maximum size is {MAX_IMAGE_BYTES // (1024 * 1024)}MB.")
    return data, sniff_image_type(data)


def sniff_image_type(data: bytes) -> str:
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith(b"GIF8"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


# --- entry points ---


async def extract_book_metadata(
    source_kind: SourceKind,
    content: str,
    client: GeminiClient | None = None,
) -> BookMetadata:
    """Identify a book from a link or a base64 image."""
    try:
        client = client or get_gemini_client()
        cover_fallback = None
        if source_kind == SourceKind.LINK:
            final_url, html = await fetch_page(content.strip())
            summary, og_image = summarize_page(html)
            if og_image:
                cover_fallback = urljoin(final_url, og_image)
            parts = [{"text": build_link_metadata_prompt(final_url, summary)}]
        else:
            data, mime_type = decode_image(content)
            parts = [
                {"text": build_image_metadata_prompt()},
                {"inline_data": {"mime_type": mime_type, "data": base64.b64encode(data).decode()}},
            ]

        raw = await client.generate(
            parts, system=METADATA_SYSTEM, temperature=0.0, max_tokens=512, json_output=True
        )
        fields = parse_metadata_json(raw)
        if cover_fallback and not fields.get("cover_url"):
            fields["cover_url"] = cover_fallback
        if fields.get("cover_url", "").startswith("http:"):
            fields["cover_url"] = "https:" + fields["cover_url"][len("http:"):]
        return BookMetadata(**fields)
    except Exception as exc:
        logger.exception("Book metadata extraction failed (%s)", source_kind.value)
        return BookMetadata(error=METADATA_ERROR_PREFIX + (str(exc) or type(exc).__name__))


async def extract_keywords(
    review_text: str,
    client: GeminiClient | None = None,
    limit: int = MAX_KEYWORDS,
) -> list[str]:
    """Up to ``limit`` theme keywords for a review; [] for short text or on any failure."""
    if not review_text or len(review_text) < MIN_KEYWORD_TEXT_LENGTH:
        return []
    try:
        client = client or get_gemini_client()
        raw = await client.generate(
            [{"text": build_keyword_prompt(review_text, limit)}],
            system=KEYWORD_SYSTEM,
            temperature=0.2,
            max_tokens=128,
        )
    except Exception:
        logger.exception("Keyword extraction failed")
        return []
    return parse_keywords(raw, limit)
