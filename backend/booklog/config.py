"""Environment-driven settings: family profiles, store backend, external API keys."""

from __future__ import annotations

import os

DEFAULT_FAMILY_PROFILES = ("아빠", "엄마", "찬민", "재민")

# Bar colors on the challenge board, keyed by profile name
PROFILE_COLORS: dict[str, str] = {
    "아빠": "#4a90e2",
    "엄마": "#e91e63",
    "찬민": "#2ecc71",
    "재민": "#f39c12",
}
DEFAULT_PROFILE_COLOR = "#cccccc"

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


def get_family_profiles() -> list[str]:
    """Return the fixed profile names in display order."""
    raw = os.environ.get("FAMILY_PROFILES", "")
    names = [n.strip() for n in raw.split(",") if n.strip()]
    return names or list(DEFAULT_FAMILY_PROFILES)


def get_profile_color(name: str) -> str:
    return PROFILE_COLORS.get(name, DEFAULT_PROFILE_COLOR)


def get_store_backend() -> str:
    return os.environ.get("BOOKLOG_STORE", "memory").strip().lower() or "memory"


def get_supabase_settings() -> tuple[str | None, str | None]:
    return os.environ.get("SUPABASE_URL"), os.environ.get("SUPABASE_KEY")


def get_gemini_api_key() -> str | None:
    # Server-side only; never echoed to clients.
    return os.environ.get("GEMINI_API_KEY") or None


def get_gemini_model() -> str:
    return os.environ.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL


def get_gemini_base_url() -> str:
    return os.environ.get("GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL


def get_google_books_api_key() -> str | None:
    return os.environ.get("GOOGLE_BOOKS_API_KEY") or None


def get_cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "http://localhost:5173")
    return [o.strip() for o in raw.split(",") if o.strip()]


def allow_private_urls() -> bool:
    return os.environ.get("ALLOW_PRIVATE_URLS", "").lower() == "true"
