"""In-process store used in development and tests."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

from booklog.models.book_models import BookRecord, Profile
from booklog.services.store.base import BookStore, RecordNotFoundError


class InMemoryStore(BookStore):
    def __init__(self, profile_names: Sequence[str]):
        self._profiles: dict[str, Profile] = {}
        for name in profile_names:
            profile_id = str(uuid.uuid4())
            self._profiles[profile_id] = Profile(id=profile_id, name=name)
        self._books: dict[str, BookRecord] = {}

    async def list_profiles(self) -> list[Profile]:
        return [p.model_copy() for p in self._profiles.values()]

    async def get_profile(self, profile_id: str) -> Profile:
        profile = self._profiles.get(profile_id)
        if profile is None:
            raise RecordNotFoundError(f"Profile {profile_id} not found")
        return profile.model_copy()

    async def set_profile_pin(self, profile_id: str, pin: str) -> Profile | None:
        # No await between the check and the write
        profile = self._profiles.get(profile_id)
        if profile is None:
            raise RecordNotFoundError(f"Profile {profile_id} not found")
        if profile.pin is not None:
            return None
        updated = profile.model_copy(update={"pin": pin})
        self._profiles[profile_id] = updated
        return updated.model_copy()

    async def get_books_by_owner(self, owner_id: str) -> list[BookRecord]:
        # Reversed insertion order breaks created_at ties newest-first
        books = [b for b in reversed(self._books.values()) if b.owner_id == owner_id]
        return sorted(books, key=lambda b: b.created_at, reverse=True)

    async def list_all_books(self) -> list[BookRecord]:
        return list(self._books.values())

    async def get_book(self, book_id: str) -> BookRecord:
        book = self._books.get(book_id)
        if book is None:
            raise RecordNotFoundError(f"Book {book_id} not found")
        return book

    async def create_book(self, owner_id: str, data: dict) -> BookRecord:
        book = BookRecord(
            **data,
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            created_at=datetime.now(timezone.utc),
        )
        self._books[book.id] = book
        return book

    async def update_book(self, book_id: str, data: dict) -> BookRecord:
        current = await self.get_book(book_id)
        updated = BookRecord.model_validate({**current.model_dump(), **data})
        self._books[book_id] = updated
        return updated

    async def delete_book(self, book_id: str) -> None:
        if self._books.pop(book_id, None) is None:
            raise RecordNotFoundError(f"Book {book_id} not found")
