"""CRUD for the logged-in profile's books."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from booklog.models.book_models import BookInput, BookRecord
from booklog.services import book_service
from booklog.services.auth import current_profile
from booklog.services.graph_view import view_registry
from booklog.services.store import BookStore, DataAccessError, RecordNotFoundError, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/books", tags=["books"])


@router.get("", response_model=list[BookRecord])
async def list_books(
    owner: str = Depends(current_profile),
    store: BookStore = Depends(get_store),
) -> list[BookRecord]:
    """The profile's books, newest first."""
    try:
        return await store.get_books_by_owner(owner)
    except DataAccessError:
        logger.exception("Listing books failed for %s", owner)
        raise HTTPException(status_code=502, detail="책 목록을 불러오지 못했습니다.")


@router.post("", response_model=BookRecord, status_code=201)
async def create_book(
    body: BookInput,
    owner: str = Depends(current_profile),
    store: BookStore = Depends(get_store),
) -> BookRecord:
    try:
        book = await book_service.create_book(store, owner, body)
    except DataAccessError:
        logger.exception("Creating book failed for %s", owner)
        raise HTTPException(status_code=502, detail="책을 저장하지 못했습니다.")
    view_registry.close(owner)
    return book


@router.put("/{book_id}", response_model=BookRecord)
async def update_book(
    book_id: str,
    body: BookInput,
    owner: str = Depends(current_profile),
    store: BookStore = Depends(get_store),
) -> BookRecord:
    try:
        book = await book_service.update_book(store, owner, book_id, body)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Book not found")
    except DataAccessError:
        logger.exception("Updating book %s failed", book_id)
        raise HTTPException(status_code=502, detail="책을 저장하지 못했습니다.")
    view_registry.close(owner)
    return book


@router.delete("/{book_id}", status_code=204)
async def delete_book(
    book_id: str,
    owner: str = Depends(current_profile),
    store: BookStore = Depends(get_store),
) -> Response:
    try:
        await book_service.delete_book(store, owner, book_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Book not found")
    except DataAccessError:
        logger.exception("Deleting book %s failed", book_id)
        raise HTTPException(status_code=502, detail="책을 삭제하지 못했습니다.")
    view_registry.close(owner)
    return Response(status_code=204)
