"""
Tag API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response

from core import responses
from core.db import Database
from core.dependencies import get_database
from core.pagination import PageParams, page_params

from .repository import TagRepository
from .schemas import CreateTagRequest, TagFilter, UpdateTagRequest

router = APIRouter(prefix="/tags")


def get_repository(db: Database = Depends(get_database)) -> TagRepository:
    return TagRepository(db)


@router.get("")
async def list_tags(
    params: PageParams = Depends(page_params),
    search: str | None = Query(default=None),
    repo: TagRepository = Depends(get_repository),
) -> JSONResponse:
    page = await repo.list(TagFilter(search=search, page=params))
    return responses.paginated(page)


@router.post("")
async def create_tag(
    request: CreateTagRequest,
    repo: TagRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.created(await repo.create(request))


@router.get("/slug/{slug}")
async def get_tag_by_slug(
    slug: str,
    repo: TagRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.get_by_slug(slug))


@router.get("/{tag_id}")
async def get_tag(
    tag_id: UUID,
    repo: TagRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.get_by_id(tag_id))


@router.put("/{tag_id}")
async def update_tag(
    tag_id: UUID,
    request: UpdateTagRequest,
    repo: TagRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.update(tag_id, request))


@router.delete("/{tag_id}")
async def delete_tag(
    tag_id: UUID,
    repo: TagRepository = Depends(get_repository),
) -> Response:
    await repo.delete(tag_id)
    return responses.no_content()
