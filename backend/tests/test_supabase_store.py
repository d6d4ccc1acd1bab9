"""Tests for the PostgREST-backed store (HTTP mocked)."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from booklog.services.store import DataAccessError, RecordNotFoundError, SupabaseStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


def _response(status_code: int = 200, payload=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = b"" if payload is None else b"x"
    resp.json.return_value = payload
    resp.text = str(payload)
    return resp


def _mock_http(response=None, error=None) -> AsyncMock:
    mock_client_instance = AsyncMock()
    if error is not None:
        mock_client_instance.request.side_effect = error
    else:
        mock_client_instance.request.return_value = response
    mock_client_instance.__aenter__ = AsyncMock(return_value=mock_client_instance)
    mock_client_instance.__aexit__ = AsyncMock(return_value=False)
    return mock_client_instance


BOOK_ROW = {
    "id": 7,
    "title": "토지",
    "author": None,
    "publisher": "마로니에북스",
    "cover_url": None,
    "rating": None,
    "review_content": "  대하소설  ",
    "review_word_count": None,
    "recommend_to": None,
    "read_date": "2024-01-15",
    "link": None,
    "user_id": "아빠",
    "keywords": ["역사", "", None, "가족"],
    "created_at": "2024-01-16T09:30:00+00:00",
}


@pytest.fixture
def store():
    return SupabaseStore("https://example.supabase.co/", "anon-key")


@pytest.mark.anyio
async def test_books_by_owner_query_and_normalization(store):
    http = _mock_http(_response(payload=[BOOK_ROW]))
    with patch("booklog.services.store.supabase_store.httpx.AsyncClient", return_value=http):
        books = await store.get_books_by_owner("아빠")

    method, url = http.request.call_args[0]
    kwargs = http.request.call_args[1]
    assert method == "GET"
    assert url == "https://example.supabase.co/rest/v1/books"
    assert kwargs["params"] == {"select": "*", "user_id": "eq.아빠", "order": "created_at.desc"}
    assert kwargs["headers"]["apikey"] == "anon-key"
    assert kwargs["headers"]["Authorization"] == "Bearer anon-key"

    book = books[0]
    assert book.id == "7"
    assert book.owner_id == "아빠"
    assert book.author == ""
    assert book.rating == 5
    assert book.review_word_count == len("대하소설")
    assert book.keywords == ["역사", "가족"]
    assert str(book.read_date) == "2024-01-15"


@pytest.mark.anyio
async def test_create_book_sends_owner_as_user_id(store):
    http = _mock_http(_response(201, [BOOK_ROW]))
    with patch("booklog.services.store.supabase_store.httpx.AsyncClient", return_value=http):
        book = await store.create_book("아빠", {"title": "토지"})

    assert http.request.call_args[0][0] == "POST"
    assert http.request.call_args[1]["json"] == {"title": "토지", "user_id": "아빠"}
    assert book.title == "토지"


@pytest.mark.anyio
async def test_set_pin_patches_profile(store):
    http = _mock_http(_response(payload=[{"id": "u1", "name": "엄마", "pin": "1234"}]))
    with patch("booklog.services.store.supabase_store.httpx.AsyncClient", return_value=http):
        profile = await store.set_profile_pin("u1", "1234")

    assert http.request.call_args[0][0] == "PATCH"
    assert http.request.call_args[1]["params"] == {"id": "eq.u1", "pin": "is.null"}
    assert http.request.call_args[1]["json"] == {"pin": "1234"}
    assert profile.pin == "1234"


@pytest.mark.anyio
async def test_set_pin_matches_nothing_once_pin_exists(store):
    http = _mock_http(_response(payload=[]))
    with patch("booklog.services.store.supabase_store.httpx.AsyncClient", return_value=http):
        assert await store.set_profile_pin("u1", "5678") is None


@pytest.mark.anyio
async def test_missing_rows_raise_not_found(store):
    http = _mock_http(_response(payload=[]))
    with patch("booklog.services.store.supabase_store.httpx.AsyncClient", return_value=http):
        with pytest.raises(RecordNotFoundError):
            await store.get_book("404")
        with pytest.raises(RecordNotFoundError):
            await store.get_profile("404")


@pytest.mark.anyio
async def test_error_status_raises_data_access_error(store):
    http = _mock_http(_response(500, {"message": "boom"}))
    with patch("booklog.services.store.supabase_store.httpx.AsyncClient", return_value=http):
        with pytest.raises(DataAccessError, match="500"):
            await store.list_all_books()


@pytest.mark.anyio
async def test_network_error_raises_data_access_error(store):
    http = _mock_http(error=httpx.ConnectTimeout("timed out"))
    with patch("booklog.services.store.supabase_store.httpx.AsyncClient", return_value=http):
        with pytest.raises(DataAccessError):
            await store.list_profiles()
