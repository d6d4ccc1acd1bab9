"""Pydantic models for the reading challenge board."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class StatsMetric(str, Enum):
    COUNT = "count"
    TOTAL_WORDS = "totalWords"


class ProfileStats(BaseModel):
    name: str
    count: int = 0
    words: int = 0


class ChallengeEntry(BaseModel):
    name: str
    count: int
    words: int
    value: int
    rank: int | None = None  # 0, 1, 2 or None
    is_winner: bool = False
    bar_height: float
    color: str
    display_value: str


class ChallengeBoard(BaseModel):
    metric: StatsMetric
    max_value: int
    entries: list[ChallengeEntry]
