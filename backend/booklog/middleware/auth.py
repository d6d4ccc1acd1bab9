"""Session authentication middleware.

Checks the X-Session-Token header on the protected /api/* prefixes and stores
the logged-in profile name on ``request.state.profile_name``. Profile listing,
login, health and the challenge board stay public.
"""

from __future__ import annotations

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from booklog.services.session_auth import SESSION_HEADER, resolve_session

_PROTECTED_PREFIXES = (
    "/api/books",
    "/api/graph",
    "/api/extract",
    "/api/covers",
    "/api/session",
)


class SessionAuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path

        if not path.startswith(_PROTECTED_PREFIXES) or request.method == "OPTIONS":
            return await call_next(request)

        profile_name = resolve_session(request.headers.get(SESSION_HEADER, ""))
        if profile_name is None:
            return JSONResponse(
                status_code=401,
                content={"detail": "Invalid or missing session token"},
            )

        request.state.profile_name = profile_name
        return await call_next(request)
