"""Saving books: derived fields are computed here, never taken from the client."""

from __future__ import annotations

import logging

from booklog.models.book_models import BookInput, BookRecord, review_word_count
from booklog.services.ai import extract_keywords
from booklog.services.store.base import BookStore, RecordNotFoundError

logger = logging.getLogger(__name__)

# Reviews at or below this length are saved without asking the model for keywords
KEYWORD_REVIEW_THRESHOLD = 20


async def _derived_fields(book: BookInput) -> dict:
    data = book.model_dump(mode="json")
    data["review_word_count"] = review_word_count(book.review_content)
    keywords: list[str] = []
    if len(book.review_content) > KEYWORD_REVIEW_THRESHOLD:
        keywords = await extract_keywords(book.review_content)
    data["keywords"] = keywords
    return data


async def create_book(store: BookStore, owner: str, book: BookInput) -> BookRecord:
    data = await _derived_fields(book)
    created = await store.create_book(owner, data)
    logger.info("Created book %s for %s (%d keywords)", created.id, owner, len(created.keywords))
    return created


async def get_owned_book(store: BookStore, owner: str, book_id: str) -> BookRecord:
    """Fetch a book, treating someone else's book as missing."""
    book = await store.get_book(book_id)
    if book.owner_id != owner:
        raise RecordNotFoundError(f"Book {book_id} not found")
    return book


async def update_book(store: BookStore, owner: str, book_id: str, book: BookInput) -> BookRecord:
    await get_owned_book(store, owner, book_id)
    data = await _derived_fields(book)
    return await store.update_book(book_id, data)


async def delete_book(store: BookStore, owner: str, book_id: str) -> None:
    await get_owned_book(store, owner, book_id)
    await store.delete_book(book_id)
