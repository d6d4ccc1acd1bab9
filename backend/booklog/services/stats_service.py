"""Reading challenge: per-profile book counts and review lengths, ranked."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from booklog.config import get_profile_color
from booklog.models.book_models import BookRecord
from booklog.models.stats_models import ChallengeBoard, ChallengeEntry, ProfileStats, StatsMetric

# Tallest bar uses this share of the chart height, leaving room for medals
BAR_HEADROOM_PERCENT = 75.0
MIN_BAR_PERCENT = 2.0
MEDAL_RANKS = 3


def aggregate_stats(books: Iterable[BookRecord], profile_names: Sequence[str]) -> list[ProfileStats]:
    """Group books by owner; books of unknown owners are ignored."""
    stats = {name: ProfileStats(name=name) for name in profile_names}
    for book in books:
        entry = stats.get(book.owner_id)
        if entry is None:
            continue
        entry.count += 1
        entry.words += book.review_word_count or 0
    return [stats[name] for name in profile_names]


def metric_value(stats: ProfileStats, metric: StatsMetric) -> int:
    return stats.count if metric == StatsMetric.COUNT else stats.words


def ranking(stats: Sequence[ProfileStats], metric: StatsMetric) -> list[ProfileStats]:
    """Descending by metric; ties keep profile-list order (sorted() is stable)."""
    return sorted(stats, key=lambda s: metric_value(s, metric), reverse=True)


def rank(name: str, stats: Sequence[ProfileStats], metric: StatsMetric) -> int | None:
    """Medal position 0, 1 or 2 for ``name``, or None (no medal / zero value)."""
    for position, entry in enumerate(ranking(stats, metric)):
        if entry.name != name:
            continue
        if position < MEDAL_RANKS and metric_value(entry, metric) > 0:
            return position
        return None
    return None


def bar_height(value: int, max_value: int) -> float:
    """Bar height in percent of the chart area."""
    return max(value / max(max_value, 1) * BAR_HEADROOM_PERCENT, MIN_BAR_PERCENT)


def format_value(value: int, metric: StatsMetric) -> str:
    return f"{value}권" if metric == StatsMetric.COUNT else f"{value:,}자"


def build_challenge_board(
    books: Iterable[BookRecord],
    profile_names: Sequence[str],
    metric: StatsMetric,
) -> ChallengeBoard:
    stats = aggregate_stats(books, profile_names)
    max_value = max((metric_value(s, metric) for s in stats), default=0)

    entries = []
    for s in stats:
        value = metric_value(s, metric)
        position = rank(s.name, stats, metric)
        entries.append(
            ChallengeEntry(
                name=s.name,
                count=s.count,
                words=s.words,
                value=value,
                rank=position,
                is_winner=position == 0,
                bar_height=bar_height(value, max_value),
                color=get_profile_color(s.name),
                display_value=format_value(value, metric),
            )
        )
    return ChallengeBoard(metric=metric, max_value=max_value, entries=entries)
