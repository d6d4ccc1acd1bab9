"""Persistence backends and the process-wide store singleton."""

from __future__ import annotations

import logging

from booklog.config import get_family_profiles, get_store_backend, get_supabase_settings
from booklog.services.store.base import BookStore, DataAccessError, RecordNotFoundError
from booklog.services.store.memory_store import InMemoryStore
from booklog.services.store.supabase_store import SupabaseStore

logger = logging.getLogger(__name__)

_store: BookStore | None = None


def _create_store() -> BookStore:
    backend = get_store_backend()
    if backend == "supabase":
        url, key = get_supabase_settings()
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY are required for the supabase store")
        logger.info("Using Supabase store at %s", url)
        return SupabaseStore(url, key)
    if backend == "memory":
        logger.info("Using in-memory store")
        return InMemoryStore(get_family_profiles())
    raise ValueError(f"Unknown store backend: {backend}")


def get_store() -> BookStore:
    """FastAPI dependency returning the configured store (created on first use)."""
    global _store
    if _store is None:
        _store = _create_store()
    return _store


__all__ = [
    "BookStore",
    "DataAccessError",
    "InMemoryStore",
    "RecordNotFoundError",
    "SupabaseStore",
    "get_store",
]
