"""Request helpers for the session set up by SessionAuthMiddleware."""

from __future__ import annotations

from fastapi import HTTPException, Request

from booklog.services.session_auth import SESSION_HEADER


def extract_session_token(request: Request) -> str | None:
    """Extract the session token from the X-Session-Token header."""
    return request.headers.get(SESSION_HEADER) or None


def current_profile(request: Request) -> str:
    """Name of the logged-in profile (dependency for protected routes)."""
    name = getattr(request.state, "profile_name", None)
    if not name:
        raise HTTPException(status_code=401, detail="Login required")
    return name
