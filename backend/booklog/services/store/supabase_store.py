"""Supabase (PostgREST) store over direct HTTP, no client SDK."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from booklog.models.book_models import BookRecord, Profile
from booklog.services.store.base import BookStore, DataAccessError, RecordNotFoundError

logger = logging.getLogger(__name__)

_TIMEOUT = 15


class SupabaseStore(BookStore):
    """Reads/writes the ``users`` and ``books`` tables through the REST API."""

    def __init__(self, url: str, api_key: str):
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> list[dict]:
        url = f"{self.base_url}/{table}"
        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
                resp = await client.request(
                    method, url, headers=self._headers(), params=params, json=json
                )
        except httpx.HTTPError as exc:
            logger.warning("Supabase %s %s failed: %s", method, table, exc)
            raise DataAccessError(f"{method} {table} failed") from exc

        if resp.status_code >= 400:
            logger.error(
                "Supabase %s %s error (status=%d): %s",
                method, table, resp.status_code, resp.text[:500],
            )
            raise DataAccessError(f"{method} {table} failed with status {resp.status_code}")
        if not resp.content:
            return []
        data = resp.json()
        return data if isinstance(data, list) else [data]

    # --- profiles ---

    async def list_profiles(self) -> list[Profile]:
        rows = await self._request("GET", "users", params={"select": "*"})
        return [Profile(id=str(r["id"]), name=r["name"], pin=r.get("pin")) for r in rows]

    async def get_profile(self, profile_id: str) -> Profile:
        rows = await self._request(
            "GET", "users", params={"select": "*", "id": f"eq.{profile_id}"}
        )
        if not rows:
            raise RecordNotFoundError(f"Profile {profile_id} not found")
        r = rows[0]
        return Profile(id=str(r["id"]), name=r["name"], pin=r.get("pin"))

    async def set_profile_pin(self, profile_id: str, pin: str) -> Profile | None:
        # Conditional update: matches no row once a PIN has been stored
        rows = await self._request(
            "PATCH",
            "users",
            params={"id": f"eq.{profile_id}", "pin": "is.null"},
            json={"pin": pin},
        )
        if not rows:
            return None
        r = rows[0]
        return Profile(id=str(r["id"]), name=r["name"], pin=r.get("pin"))

    # --- books ---

    async def get_books_by_owner(self, owner_id: str) -> list[BookRecord]:
        rows = await self._request(
            "GET",
            "books",
            params={"select": "*", "user_id": f"eq.{owner_id}", "order": "created_at.desc"},
        )
        return [BookRecord.from_row(r) for r in rows]

    async def list_all_books(self) -> list[BookRecord]:
        rows = await self._request("GET", "books", params={"select": "*"})
        return [BookRecord.from_row(r) for r in rows]

    async def get_book(self, book_id: str) -> BookRecord:
        rows = await self._request(
            "GET", "books", params={"select": "*", "id": f"eq.{book_id}"}
        )
        if not rows:
            raise RecordNotFoundError(f"Book {book_id} not found")
        return BookRecord.from_row(rows[0])

    async def create_book(self, owner_id: str, data: dict) -> BookRecord:
        rows = await self._request("POST", "books", json={**data, "user_id": owner_id})
        if not rows:
            raise DataAccessError("Insert returned no row")
        return BookRecord.from_row(rows[0])

    async def update_book(self, book_id: str, data: dict) -> BookRecord:
        rows = await self._request("PATCH", "books", params={"id": f"eq.{book_id}"}, json=data)
        if not rows:
            raise RecordNotFoundError(f"Book {book_id} not found")
        return BookRecord.from_row(rows[0])

    async def delete_book(self, book_id: str) -> None:
        rows = await self._request("DELETE", "books", params={"id": f"eq.{book_id}"})
        if not rows:
            raise RecordNotFoundError(f"Book {book_id} not found")
