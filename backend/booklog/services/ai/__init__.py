"""Gemini-backed metadata and keyword extraction."""

from booklog.services.ai.extraction import extract_book_metadata, extract_keywords

__all__ = [
    "extract_book_metadata",
    "extract_keywords",
]
