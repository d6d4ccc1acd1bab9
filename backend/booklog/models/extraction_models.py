"""Pydantic models for AI metadata extraction and cover search."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class SourceKind(str, Enum):
    LINK = "link"
    IMAGE = "image"


class MetadataRequest(BaseModel):
    source_kind: SourceKind
    # A URL for links, base64 (optionally a data: URL) for images
    content: str = Field(min_length=1)


class BookMetadata(BaseModel):
    title: str | None = None
    author: str | None = None
    publisher: str | None = None
    cover_url: str | None = None
    error: str | None = None


class KeywordRequest(BaseModel):
    review_text: str = ""


class KeywordResponse(BaseModel):
    keywords: list[str]


class CoverSearchRequest(BaseModel):
    title: str = ""


class CoverSearchResult(BaseModel):
    title: str | None = None
    cover_url: str | None = None
    author: str | None = None
    publisher: str | None = None
