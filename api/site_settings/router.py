"""
Settings API endpoints.

`/upsert` and `/bulk` are POST-only, so they never collide with the
GET/PUT/DELETE `/{key}` routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response

from core import responses
from core.db import Database
from core.dependencies import get_database
from core.pagination import PageParams, page_params

from .repository import SettingRepository
from .schemas import (
    BulkSettingsRequest,
    CreateSettingRequest,
    SettingFilter,
    UpdateSettingRequest,
    UpsertSettingRequest,
)

router = APIRouter(prefix="/settings")


def get_repository(db: Database = Depends(get_database)) -> SettingRepository:
    return SettingRepository(db)


@router.get("")
async def list_settings(
    params: PageParams = Depends(page_params),
    search: str | None = Query(default=None),
    repo: SettingRepository = Depends(get_repository),
) -> JSONResponse:
    page = await repo.list(SettingFilter(search=search, page=params))
    return responses.paginated(page)


@router.post("")
async def create_setting(
    request: CreateSettingRequest,
    repo: SettingRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.created(await repo.create(request))


@router.post("/upsert")
async def upsert_setting(
    request: UpsertSettingRequest,
    repo: SettingRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.upsert(request))


@router.post("/bulk")
async def get_settings_bulk(
    request: BulkSettingsRequest,
    repo: SettingRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.get_multiple(request.keys))


@router.get("/{key}")
async def get_setting(
    key: str,
    repo: SettingRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.get_by_key(key))


@router.put("/{key}")
async def update_setting(
    key: str,
    request: UpdateSettingRequest,
    repo: SettingRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.update(key, request))


@router.delete("/{key}")
async def delete_setting(
    key: str,
    repo: SettingRepository = Depends(get_repository),
) -> Response:
    await repo.delete(key)
    return responses.no_content()
