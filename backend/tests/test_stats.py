"""Tests for the reading challenge aggregation and the /api/stats endpoint."""

import pytest
from httpx import ASGITransport, AsyncClient

from booklog.main import app
from booklog.models.book_models import BookRecord
from booklog.models.stats_models import ProfileStats, StatsMetric
from booklog.services.stats_service import (
    aggregate_stats,
    bar_height,
    build_challenge_board,
    rank,
    ranking,
)

PROFILES = ["아빠", "엄마", "찬민", "재민"]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client(store):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _book(owner: str, review: str = "", n: int = 0) -> BookRecord:
    return BookRecord(
        id=f"{owner}-{n}",
        title="t",
        owner_id=owner,
        review_content=review,
        review_word_count=len(review.strip()),
    )


def _stats(*counts: int) -> list[ProfileStats]:
    return [ProfileStats(name=name, count=c) for name, c in zip(PROFILES, counts)]


# --- aggregation ---


def test_aggregate_counts_and_words_per_profile():
    books = [
        _book("아빠", "좋았다", 1),
        _book("아빠", " 재미있다 ", 2),
        _book("찬민", "최고", 3),
        _book("이웃", "무시됨", 4),
    ]
    stats = aggregate_stats(books, PROFILES)
    assert [s.name for s in stats] == PROFILES
    by_name = {s.name: s for s in stats}
    assert (by_name["아빠"].count, by_name["아빠"].words) == (2, 3 + 4)
    assert (by_name["찬민"].count, by_name["찬민"].words) == (1, 2)
    assert (by_name["엄마"].count, by_name["엄마"].words) == (0, 0)


def test_ranking_is_stable_for_ties():
    stats = _stats(3, 3, 1, 0)
    ordered = [s.name for s in ranking(stats, StatsMetric.COUNT)]
    assert ordered == ["아빠", "엄마", "찬민", "재민"]


def test_rank_positions_and_zero_values():
    stats = _stats(3, 3, 1, 0)
    assert rank("아빠", stats, StatsMetric.COUNT) == 0
    assert rank("엄마", stats, StatsMetric.COUNT) == 1
    assert rank("찬민", stats, StatsMetric.COUNT) == 2
    assert rank("재민", stats, StatsMetric.COUNT) is None


def test_fourth_place_gets_no_medal():
    stats = _stats(1, 2, 3, 4)
    assert rank("아빠", stats, StatsMetric.COUNT) is None
    assert rank("재민", stats, StatsMetric.COUNT) == 0


def test_all_zero_has_no_ranks():
    stats = _stats(0, 0, 0, 0)
    assert all(rank(s.name, stats, StatsMetric.COUNT) is None for s in stats)


def test_bar_height_scaling():
    assert bar_height(4, 4) == 75
    assert bar_height(2, 4) == 37.5
    assert bar_height(0, 4) == 2
    assert bar_height(0, 0) == 2


# --- board ---


def test_board_for_count_metric():
    books = [_book("아빠", n=i) for i in range(3)] + [_book("엄마", n=i) for i in range(3)]
    books.append(_book("찬민", n=9))
    board = build_challenge_board(books, PROFILES, StatsMetric.COUNT)

    assert board.max_value == 3
    entries = {e.name: e for e in board.entries}
    assert [e.name for e in board.entries] == PROFILES
    assert entries["아빠"].rank == 0 and entries["아빠"].is_winner
    assert entries["엄마"].rank == 1 and not entries["엄마"].is_winner
    assert entries["찬민"].rank == 2
    assert entries["재민"].rank is None
    assert entries["아빠"].bar_height == 75
    assert entries["찬민"].bar_height == pytest.approx(25)
    assert entries["재민"].bar_height == 2
    assert entries["아빠"].display_value == "3권"
    assert entries["아빠"].color == "#4a90e2"


def test_board_for_total_words_metric():
    books = [_book("재민", "가" * 1234, 1), _book("엄마", "나" * 10, 2)]
    board = build_challenge_board(books, PROFILES, StatsMetric.TOTAL_WORDS)
    entries = {e.name: e for e in board.entries}
    assert board.max_value == 1234
    assert entries["재민"].is_winner
    assert entries["재민"].display_value == "1,234자"
    assert entries["엄마"].rank == 1


def test_empty_board_has_no_winner():
    board = build_challenge_board([], PROFILES, StatsMetric.COUNT)
    assert not any(e.is_winner for e in board.entries)
    assert all(e.bar_height == 2 for e in board.entries)


# --- API ---


@pytest.mark.anyio
async def test_stats_endpoint_is_public(client: AsyncClient, store):
    await store.create_book("찬민", {"title": "하나", "review_content": "abc", "review_word_count": 3})
    resp = await client.get("/api/stats")
    assert resp.status_code == 200
    data = resp.json()
    assert data["metric"] == "count"
    entries = {e["name"]: e for e in data["entries"]}
    assert entries["찬민"]["count"] == 1
    assert entries["찬민"]["is_winner"] is True


@pytest.mark.anyio
async def test_stats_endpoint_total_words(client: AsyncClient, store):
    await store.create_book("엄마", {"title": "하나", "review_content": "abcde", "review_word_count": 5})
    resp = await client.get("/api/stats", params={"metric": "totalWords"})
    assert resp.status_code == 200
    entries = {e["name"]: e for e in resp.json()["entries"]}
    assert entries["엄마"]["value"] == 5
    assert entries["엄마"]["display_value"] == "5자"


@pytest.mark.anyio
async def test_stats_endpoint_rejects_unknown_metric(client: AsyncClient):
    resp = await client.get("/api/stats", params={"metric": "pages"})
    assert resp.status_code == 422
