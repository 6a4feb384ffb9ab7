"""
Content type API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response

from core import responses
from core.db import Database
from core.dependencies import get_database
from core.errors import ConflictError, ForeignKeyViolationError
from core.pagination import PageParams, page_params
from core.query import optional_bool

from .repository import ContentTypeRepository
from .schemas import ContentTypeFilter, CreateContentTypeRequest, UpdateContentTypeRequest

router = APIRouter(prefix="/content-types")


def get_repository(db: Database = Depends(get_database)) -> ContentTypeRepository:
    return ContentTypeRepository(db)


@router.get("")
async def list_content_types(
    params: PageParams = Depends(page_params),
    is_active: str | None = Query(default=None),
    repo: ContentTypeRepository = Depends(get_repository),
) -> JSONResponse:
    page = await repo.list(ContentTypeFilter(is_active=optional_bool(is_active), page=params))
    return responses.paginated(page)


@router.post("")
async def create_content_type(
    request: CreateContentTypeRequest,
    repo: ContentTypeRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.created(await repo.create(request))


@router.get("/slug/{slug}")
async def get_content_type_by_slug(
    slug: str,
    repo: ContentTypeRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.get_by_slug(slug))


@router.get("/{content_type_id}")
async def get_content_type(
    content_type_id: UUID,
    repo: ContentTypeRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.get_by_id(content_type_id))


@router.put("/{content_type_id}")
async def update_content_type(
    content_type_id: UUID,
    request: UpdateContentTypeRequest,
    repo: ContentTypeRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.update(content_type_id, request))


@router.delete("/{content_type_id}")
async def delete_content_type(
    content_type_id: UUID,
    repo: ContentTypeRepository = Depends(get_repository),
) -> Response:
    try:
        await repo.delete(content_type_id)
    except ForeignKeyViolationError as exc:
        raise ConflictError(exc.message) from exc
    return responses.no_content()
