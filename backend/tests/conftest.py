import os

import pytest

# Use the in-process store and keep AI calls offline
os.environ["BOOKLOG_STORE"] = "memory"
os.environ["GEMINI_API_KEY"] = ""
os.environ["GOOGLE_BOOKS_API_KEY"] = ""
# Disable rate limiting for tests
os.environ["BOOKLOG_NO_RATE_LIMIT"] = "true"


@pytest.fixture
def store():
    """Fresh in-memory store wired into the app; sessions and views reset afterwards."""
    from booklog.config import get_family_profiles
    from booklog.main import app
    from booklog.services.graph_view import view_registry
    from booklog.services.session_auth import clear_sessions
    from booklog.services.store import InMemoryStore, get_store

    s = InMemoryStore(get_family_profiles())
    app.dependency_overrides[get_store] = lambda: s
    yield s
    app.dependency_overrides.pop(get_store, None)
    clear_sessions()
    for name in get_family_profiles():
        view_registry.close(name)


async def profile_id_for(store, name: str) -> str:
    for profile in await store.list_profiles():
        if profile.name == name:
            return profile.id
    raise KeyError(name)


async def login_headers(client, store, name: str = "찬민", pin: str = "1234") -> dict[str, str]:
    """Log in as ``name`` (setting the PIN on first use) and return the session header."""
    profile_id = await profile_id_for(store, name)
    resp = await client.post(f"/api/profiles/{profile_id}/login", json={"pin": pin})
    assert resp.status_code == 200, resp.text
    return {"X-Session-Token": resp.json()["token"]}
