"""AI form filling (metadata, keywords) and cover search."""

import base64
import logging

from fastapi import APIRouter, HTTPException, Request, UploadFile

from booklog.models.extraction_models import (
    BookMetadata,
    CoverSearchRequest,
    CoverSearchResult,
    KeywordRequest,
    KeywordResponse,
    MetadataRequest,
    SourceKind,
)
from booklog.rate_limit import COVER_SEARCH_LIMIT, EXTRACTION_LIMIT, limiter
from booklog.services.ai.extraction import (
    MAX_IMAGE_BYTES,
    extract_book_metadata,
    extract_keywords,
)
from booklog.services.cover_search import CoverSearchError, search_cover_by_title

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["extraction"])

_CHUNK_SIZE = 8 * 1024  # 8 KB


@router.post("/extract/metadata", response_model=BookMetadata)
@limiter.limit(EXTRACTION_LIMIT)
async def extract_metadata(request: Request, body: MetadataRequest) -> BookMetadata:
    """Fill title/author/publisher/cover from a link or a base64 photo."""
    return await extract_book_metadata(body.source_kind, body.content)


@router.post("/extract/image", response_model=BookMetadata)
@limiter.limit(EXTRACTION_LIMIT)
async def extract_metadata_from_upload(request: Request, file: UploadFile) -> BookMetadata:
    # Stream in chunks to enforce the size limit without full buffering
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum size is {MAX_IMAGE_BYTES // (1024 * 1024)}MB.",
            )
        chunks.append(chunk)
    if not total:
        raise HTTPException(status_code=400, detail="Empty file")

    content = base64.b64encode(b"".join(chunks)).decode()
    return await extract_book_metadata(SourceKind.IMAGE, content)


@router.post("/extract/keywords", response_model=KeywordResponse)
@limiter.limit(EXTRACTION_LIMIT)
async def extract_review_keywords(request: Request, body: KeywordRequest) -> KeywordResponse:
    return KeywordResponse(keywords=await extract_keywords(body.review_text))


@router.post("/covers/search", response_model=CoverSearchResult)
@limiter.limit(COVER_SEARCH_LIMIT)
async def search_cover(request: Request, body: CoverSearchRequest) -> CoverSearchResult:
    """Look up cover, author and publisher by title."""
    title = body.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="제목을 입력해주세요.")
    try:
        result = await search_cover_by_title(title)
    except CoverSearchError:
        raise HTTPException(status_code=502, detail="표지 검색 실패")
    if result is None:
        raise HTTPException(status_code=404, detail="책을 찾을 수 없습니다.")
    return result
