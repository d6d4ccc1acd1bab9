"""Abstract persistence interface for profiles and books."""

from abc import ABC, abstractmethod

from booklog.models.book_models import BookRecord, Profile


class DataAccessError(Exception):
    """A read or write against the persistence backend failed."""


class RecordNotFoundError(DataAccessError):
    """The requested profile or book does not exist."""


class BookStore(ABC):
    @abstractmethod
    async def list_profiles(self) -> list[Profile]:
        ...

    @abstractmethod
    async def get_profile(self, profile_id: str) -> Profile:
        ...

    @abstractmethod
    async def set_profile_pin(self, profile_id: str, pin: str) -> Profile | None:
        """Store the PIN only while none is set; None when one already exists."""
        ...

    @abstractmethod
    async def get_books_by_owner(self, owner_id: str) -> list[BookRecord]:
        """Return the owner's books, newest first."""
        ...

    @abstractmethod
    async def list_all_books(self) -> list[BookRecord]:
        ...

    @abstractmethod
    async def get_book(self, book_id: str) -> BookRecord:
        ...

    @abstractmethod
    async def create_book(self, owner_id: str, data: dict) -> BookRecord:
        """Insert a book; ``data`` holds column values without id/owner/created_at."""
        ...

    @abstractmethod
    async def update_book(self, book_id: str, data: dict) -> BookRecord:
        ...

    @abstractmethod
    async def delete_book(self, book_id: str) -> None:
        ...
