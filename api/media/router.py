"""
Media API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response

from core import responses
from core.db import Database
from core.dependencies import get_database
from core.enums import FileType
from core.errors import ConflictError, ForeignKeyViolationError
from core.pagination import PageParams, page_params

from .repository import MediaRepository
from .schemas import CreateMediaRequest, MediaFilter, UpdateMediaRequest

router = APIRouter(prefix="/media")


def get_repository(db: Database = Depends(get_database)) -> MediaRepository:
    return MediaRepository(db)


@router.get("")
async def list_media(
    params: PageParams = Depends(page_params),
    file_type: str | None = Query(default=None),
    search: str | None = Query(default=None),
    repo: MediaRepository = Depends(get_repository),
) -> JSONResponse:
    media_filter = MediaFilter(
        file_type=FileType.parse_or_none(file_type),
        search=search,
        page=params,
    )
    return responses.paginated(await repo.list(media_filter))


@router.post("")
async def create_media(
    request: CreateMediaRequest,
    repo: MediaRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.created(await repo.create(request))


@router.get("/{media_id}")
async def get_media(
    media_id: UUID,
    repo: MediaRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.get_by_id(media_id))


@router.put("/{media_id}")
async def update_media(
    media_id: UUID,
    request: UpdateMediaRequest,
    repo: MediaRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.update(media_id, request))


@router.delete("/{media_id}")
async def delete_media(
    media_id: UUID,
    repo: MediaRepository = Depends(get_repository),
) -> Response:
    try:
        await repo.delete(media_id)
    except ForeignKeyViolationError as exc:
        raise ConflictError(exc.message) from exc
    return responses.no_content()
