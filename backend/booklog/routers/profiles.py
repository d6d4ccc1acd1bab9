"""Profile selection, PIN login and logout."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from booklog.config import get_family_profiles, get_profile_color
from booklog.models.book_models import LoginRequest, LoginResponse, ProfileSummary
from booklog.rate_limit import LOGIN_LIMIT, limiter
from booklog.services.auth import extract_session_token
from booklog.services.graph_view import view_registry
from booklog.services.session_auth import (
    InvalidPinFormatError,
    PinMismatchError,
    end_session,
    login,
)
from booklog.services.store import BookStore, DataAccessError, RecordNotFoundError, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["profiles"])


@router.get("/profiles", response_model=list[ProfileSummary])
async def list_profiles(store: BookStore = Depends(get_store)) -> list[ProfileSummary]:
    """List the family profiles in display order."""
    try:
        profiles = await store.list_profiles()
    except DataAccessError:
        logger.exception("Listing profiles failed")
        raise HTTPException(status_code=502, detail="프로필을 불러오지 못했습니다.")

    order = get_family_profiles()
    profiles.sort(key=lambda p: order.index(p.name) if p.name in order else len(order))
    return [
        ProfileSummary(
            id=p.id,
            name=p.name,
            has_pin=p.pin is not None,
            color=get_profile_color(p.name),
        )
        for p in profiles
    ]


@router.post("/profiles/{profile_id}/login", response_model=LoginResponse)
@limiter.limit(LOGIN_LIMIT)
async def login_profile(
    profile_id: str,
    body: LoginRequest,
    request: Request,
    store: BookStore = Depends(get_store),
) -> LoginResponse:
    """Set the PIN on first login, otherwise check it."""
    try:
        return await login(store, profile_id, body.pin)
    except InvalidPinFormatError:
        raise HTTPException(status_code=400, detail="4자리 비밀번호를 입력해주세요.")
    except PinMismatchError:
        raise HTTPException(status_code=401, detail="비밀번호가 일치하지 않습니다.")
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Profile not found")
    except DataAccessError:
        logger.exception("Login failed for profile %s", profile_id)
        raise HTTPException(status_code=502, detail="비밀번호 저장 중 오류가 발생했습니다.")


@router.delete("/session", status_code=204)
async def logout(request: Request) -> Response:
    name = end_session(extract_session_token(request))
    if name:
        view_registry.close(name)
    return Response(status_code=204)
