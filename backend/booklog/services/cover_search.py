"""Cover lookup by title through the Google Books volumes API."""

from __future__ import annotations

import logging

import httpx

from booklog.config import get_google_books_api_key
from booklog.models.extraction_models import CoverSearchResult

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1/volumes"


class CoverSearchError(Exception):
    """Network or API failure (as opposed to simply finding nothing)."""


def _https(url: str) -> str:
    return "https:" + url[len("http:"):] if url.startswith("http:") else url


async def search_cover_by_title(title: str) -> CoverSearchResult | None:
    """Return the first Korean printed-book match, or None when nothing matches."""
    params = {"q": title, "langRestrict": "ko", "printType": "books"}
    api_key = get_google_books_api_key()
    if api_key:
        params["key"] = api_key

    try:
        async with httpx.AsyncClient(timeout=15.0) as client:
            resp = await client.get(GOOGLE_BOOKS_URL, params=params)
    except httpx.HTTPError as exc:
        logger.warning("Google Books request failed: %s", exc)
        raise CoverSearchError(str(exc) or "Google Books request failed") from exc

    if resp.status_code != 200:
        logger.warning("Google Books API error (status=%d)", resp.status_code)
        raise CoverSearchError(f"Google Books API error (status={resp.status_code})")

    try:
        data = resp.json()
    except ValueError as exc:
        logger.warning("Google Books returned a non-JSON body")
        raise CoverSearchError("Google Books returned an unreadable response") from exc
    if not isinstance(data, dict):
        raise CoverSearchError("Google Books returned an unexpected response")

    items = data.get("items") or []
    if not items:
        return None

    info = items[0].get("volumeInfo", {})
    images = info.get("imageLinks") or {}
    cover = images.get("thumbnail") or images.get("smallThumbnail")
    authors = info.get("authors") or []
    return CoverSearchResult(
        title=info.get("title"),
        cover_url=_https(cover) if cover else None,
        author=authors[0] if authors else None,
        publisher=info.get("publisher"),
    )
