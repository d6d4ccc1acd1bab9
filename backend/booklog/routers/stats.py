"""Reading challenge board (public, shown from the profile picker)."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from booklog.config import get_family_profiles
from booklog.models.stats_models import ChallengeBoard, StatsMetric
from booklog.services.stats_service import build_challenge_board
from booklog.services.store import BookStore, DataAccessError, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=ChallengeBoard)
async def get_challenge_board(
    metric: StatsMetric = StatsMetric.COUNT,
    store: BookStore = Depends(get_store),
) -> ChallengeBoard:
    """Per-profile book counts or review lengths with medal ranks and bar heights."""
    try:
        books = await store.list_all_books()
    except DataAccessError:
        logger.exception("Loading books for stats failed")
        raise HTTPException(status_code=502, detail="Could not load books")
    return build_challenge_board(books, get_family_profiles(), metric)
