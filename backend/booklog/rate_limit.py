"""Shared slowapi limiter and per-route limits (kept apart to avoid circular imports)."""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

# PIN guessing: a 4-digit space is small, so login is the tightest limit
LOGIN_LIMIT = "10/minute"
EXTRACTION_LIMIT = "20/minute"
COVER_SEARCH_LIMIT = "30/minute"

# Tests set BOOKLOG_NO_RATE_LIMIT=true; limits are keyed by client address
_enabled = os.environ.get("BOOKLOG_NO_RATE_LIMIT", "").lower() != "true"

limiter = Limiter(key_func=get_remote_address, enabled=_enabled)
