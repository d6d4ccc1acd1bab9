import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from booklog.config import get_cors_origins
from booklog.middleware.auth import SessionAuthMiddleware
from booklog.rate_limit import limiter
from booklog.routers.books import router as books_router
from booklog.routers.extraction import router as extraction_router
from booklog.routers.graph import router as graph_router
from booklog.routers.profiles import router as profiles_router
from booklog.routers.stats import router as stats_router
from booklog.services.session_auth import SESSION_HEADER

app = FastAPI(title="Family Booklog API", version="0.1.0")

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(SessionAuthMiddleware)

# CORS: load origins from env (comma-separated), default to localhost dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", SESSION_HEADER, "X-Requested-With"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["X-Content-Type-Options"] = "nosniff"
    # The print page is opened in a new window, never framed
    response.headers["X-Frame-Options"] = "DENY"
    return response


app.include_router(profiles_router)
app.include_router(books_router)
app.include_router(stats_router)
app.include_router(graph_router)
app.include_router(extraction_router)


@app.get("/api/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# Serve the built web app as static files (SPA fallback to index.html)
web_dir = os.environ.get("BOOKLOG_WEB_DIR")
if web_dir and os.path.isdir(web_dir):
    from starlette.exceptions import HTTPException as StarletteHTTPException
    from starlette.staticfiles import StaticFiles
    from starlette.types import Receive, Scope, Send

    class SPAStaticFiles(StaticFiles):
        async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
            try:
                await super().__call__(scope, receive, send)
            except StarletteHTTPException as exc:
                if exc.status_code != 404:
                    raise
                # SPA fallback: serve index.html for unknown paths
                scope["path"] = "/"
                await super().__call__(scope, receive, send)

    app.mount("/", SPAStaticFiles(directory=web_dir, html=True), name="static")
