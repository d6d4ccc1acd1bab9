"""PIN login and session tokens.

Each profile has a shared 4-digit PIN. The first successful login stores the
PIN; later logins must match it exactly. A login hands out an opaque session
token that the client sends back in the X-Session-Token header. Sessions live
in process memory and are lost on restart; they expire after SESSION_TTL_SECONDS
and at most MAX_SESSIONS are kept (oldest dropped first).
"""

from __future__ import annotations

import logging
import secrets
import time

from booklog.models.book_models import PIN_PATTERN, LoginResponse
from booklog.services.store.base import BookStore

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Token"
SESSION_TTL_SECONDS = 7 * 24 * 3600
MAX_SESSIONS = 1000

_clock = time.monotonic

# token -> (profile name, expiry on the monotonic clock); insertion-ordered
_sessions: dict[str, tuple[str, float]] = {}


class InvalidPinFormatError(ValueError):
    """PIN is not exactly four digits."""


class PinMismatchError(Exception):
    """PIN does not match the stored one."""


async def login(store: BookStore, profile_id: str, pin: str) -> LoginResponse:
    """Set the PIN on first login, otherwise verify it; return a new session.

    Raises InvalidPinFormatError, PinMismatchError, or DataAccessError from
    the store (including RecordNotFoundError for an unknown profile).
    """
    if not PIN_PATTERN.fullmatch(pin or ""):
        raise InvalidPinFormatError("PIN must be 4 digits")

    profile = await store.get_profile(profile_id)
    pin_created = False
    if profile.pin is None:
        updated = await store.set_profile_pin(profile_id, pin)
        if updated is not None:
            pin_created = True
            logger.info("PIN set for profile %s", profile.name)
        else:
            # Another login stored a PIN first; verify against that one
            profile = await store.get_profile(profile_id)
    if not pin_created and (
        profile.pin is None or not secrets.compare_digest(profile.pin, pin)
    ):
        raise PinMismatchError(profile.name)

    token = _new_session(profile.name)
    return LoginResponse(token=token, name=profile.name, pin_created=pin_created)


def _new_session(name: str) -> str:
    now = _clock()
    _prune(now)
    while len(_sessions) >= MAX_SESSIONS:
        _sessions.pop(next(iter(_sessions)))
    token = secrets.token_urlsafe(32)
    _sessions[token] = (name, now + SESSION_TTL_SECONDS)
    return token


def _prune(now: float) -> None:
    expired = [token for token, (_, expires) in _sessions.items() if expires <= now]
    for token in expired:
        del _sessions[token]


def resolve_session(token: str | None) -> str | None:
    """Return the profile name for a live session token, or None."""
    if not token:
        return None
    entry = _sessions.get(token)
    if entry is None:
        return None
    name, expires = entry
    if expires <= _clock():
        _sessions.pop(token, None)
        return None
    return name


def end_session(token: str | None) -> str | None:
    """Forget a session; returns the profile name it belonged to."""
    if not token:
        return None
    entry = _sessions.pop(token, None)
    return entry[0] if entry else None


def clear_sessions() -> None:
    _sessions.clear()
