"""
Post API endpoints, including media attachments.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import JSONResponse, Response

from core import responses
from core.db import Database
from core.dependencies import get_database
from core.enums import PostStatus
from core.pagination import PageParams, page_params
from core.query import optional_uuid

from . import service
from .repository import PostRepository
from .schemas import AttachMediaRequest, CreatePostRequest, PostFilter, UpdatePostRequest

router = APIRouter(prefix="/posts")


def get_repository(db: Database = Depends(get_database)) -> PostRepository:
    return PostRepository(db)


@router.get("")
async def list_posts(
    params: PageParams = Depends(page_params),
    content_type_id: str | None = Query(default=None),
    author_id: str | None = Query(default=None),
    status: str | None = Query(default=None),
    search: str | None = Query(default=None),
    repo: PostRepository = Depends(get_repository),
) -> JSONResponse:
    post_filter = PostFilter(
        content_type_id=optional_uuid(content_type_id),
        author_id=optional_uuid(author_id),
        status=PostStatus.parse_or_none(status),
        search=search,
        page=params,
    )
    return responses.paginated(await repo.list(post_filter))


@router.post("")
async def create_post(
    request: CreatePostRequest,
    repo: PostRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.created(await repo.create(request))


@router.get("/slug/{slug}")
async def get_post_by_slug(
    slug: str,
    background_tasks: BackgroundTasks,
    repo: PostRepository = Depends(get_repository),
) -> JSONResponse:
    post = await repo.get_by_slug(slug)

    # Counted after the response; the returned view_count excludes this view.
    background_tasks.add_task(service.increment_view_count_background, repo, post.id)
    return responses.ok(post)


@router.get("/{post_id}")
async def get_post(
    post_id: UUID,
    repo: PostRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.get_by_id(post_id))


@router.put("/{post_id}")
async def update_post(
    post_id: UUID,
    request: UpdatePostRequest,
    repo: PostRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.update(post_id, request))


@router.delete("/{post_id}")
async def delete_post(
    post_id: UUID,
    repo: PostRepository = Depends(get_repository),
) -> Response:
    await repo.delete(post_id)
    return responses.no_content()


@router.post("/{post_id}/media")
async def attach_media(
    post_id: UUID,
    request: AttachMediaRequest,
    repo: PostRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.created(await repo.attach_media(post_id, request))


@router.delete("/{post_id}/media/{media_id}")
async def detach_media(
    post_id: UUID,
    media_id: UUID,
    repo: PostRepository = Depends(get_repository),
) -> Response:
    await repo.detach_media(post_id, media_id)
    return responses.no_content()
