"""Pydantic models for profiles and book records.

Rows coming back from the persistence layer are loosely typed (nullable
columns, ``user_id`` instead of ``owner_id``); ``BookRecord.from_row`` is the
single place where they are normalized before reaching the graph or stats code.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

MAX_KEYWORDS = 5

PIN_PATTERN = re.compile(r"[0-9]{4}")


def review_word_count(review_content: str) -> int:
    """Character count of the trimmed review, as shown on the challenge board."""
    return len(review_content.strip())


def clean_keywords(value: Any) -> list[str]:
    """Coerce a stored keyword value into at most MAX_KEYWORDS distinct non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return []
    cleaned = [str(k).strip() for k in value if k is not None]
    # Duplicates collapse before the cap so they do not use up slots
    return list(dict.fromkeys(k for k in cleaned if k))[:MAX_KEYWORDS]


class Profile(BaseModel):
    id: str
    name: str
    pin: str | None = None


class ProfileSummary(BaseModel):
    """Public view of a profile (the PIN is never exposed)."""

    id: str
    name: str
    has_pin: bool
    color: str


class LoginRequest(BaseModel):
    pin: str


class LoginResponse(BaseModel):
    token: str
    name: str
    pin_created: bool = False


class BookInput(BaseModel):
    """Fields a profile can edit on the add/edit form."""

    title: str = Field(min_length=1, max_length=500)
    author: str = ""
    publisher: str = ""
    cover_url: str = ""
    rating: int = Field(default=5, ge=1, le=5)
    review_content: str = Field(default="", max_length=20000)
    recommend_to: str = ""
    read_date: date | None = None
    link: str = ""

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must not be blank")
        return v.strip()


class BookRecord(BaseModel):
    id: str
    title: str
    author: str = ""
    publisher: str = ""
    cover_url: str = ""
    rating: int = Field(default=5, ge=1, le=5)
    review_content: str = ""
    review_word_count: int = Field(default=0, ge=0)
    recommend_to: str = ""
    read_date: date | None = None
    link: str = ""
    owner_id: str
    keywords: list[str] = Field(default_factory=list)
    created_at: datetime | None = None

    @field_validator("keywords", mode="before")
    @classmethod
    def _coerce_keywords(cls, v: Any) -> list[str]:
        return clean_keywords(v)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> BookRecord:
        """Build a record from a raw database row."""
        review = row.get("review_content") or ""
        word_count = row.get("review_word_count")
        rating = row.get("rating") or 5
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            author=row.get("author") or "",
            publisher=row.get("publisher") or "",
            cover_url=row.get("cover_url") or "",
            rating=min(max(int(rating), 1), 5),
            review_content=review,
            review_word_count=word_count if word_count is not None else review_word_count(review),
            recommend_to=row.get("recommend_to") or "",
            read_date=row.get("read_date") or None,
            link=row.get("link") or "",
            owner_id=str(row.get("owner_id") or row.get("user_id") or ""),
            keywords=row.get("keywords"),
            created_at=row.get("created_at") or None,
        )

    def to_row(self) -> dict[str, Any]:
        """Serialize to the ``books`` table column layout."""
        data = self.model_dump(mode="json", exclude={"owner_id"})
        data["user_id"] = self.owner_id
        return data
