"""
Content type persistence (raw SQL).
"""

from __future__ import annotations

from uuid import UUID, uuid4

from core.db import Database
from core.errors import NotFoundError, StorageError, storage_errors
from core.pagination import Page
from core.query import Conditions, order_by, set_clause

from .schemas import (
    ContentType,
    ContentTypeFilter,
    CreateContentTypeRequest,
    UpdateContentTypeRequest,
)

COLUMNS = "id, name, slug, schema_fields, is_active, display_order, created_at, updated_at"

SORTABLE = {
    "name": "name",
    "slug": "slug",
    "display_order": "display_order",
    "created_at": "created_at",
    "updated_at": "updated_at",
}
DEFAULT_ORDER = "display_order ASC, created_at DESC"

NOT_FOUND = "Content type not found"
DUPLICATE = "Content type with this name or slug already exists"
IN_USE = "Cannot delete content type with existing posts"


class ContentTypeRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def create(self, request: CreateContentTypeRequest) -> ContentType:
        with storage_errors("create content type", duplicate=DUPLICATE):
            row = await self._db.fetch_one(
                f"""
                INSERT INTO content_types (id, name, slug, schema_fields, is_active, display_order)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING {COLUMNS}
                """,
                uuid4(),
                request.name,
                request.slug,
                request.schema_fields,
                request.is_active,
                request.display_order,
            )
        if row is None:
            raise StorageError("Failed to create content type")
        return ContentType.model_validate(row)

    async def get_by_id(self, content_type_id: UUID) -> ContentType:
        with storage_errors("get content type"):
            row = await self._db.fetch_one(
                f"SELECT {COLUMNS} FROM content_types WHERE id = $1",
                content_type_id,
            )
        if row is None:
            raise NotFoundError(NOT_FOUND)
        return ContentType.model_validate(row)

    async def get_by_slug(self, slug: str) -> ContentType:
        with storage_errors("get content type by slug"):
            row = await self._db.fetch_one(
                f"SELECT {COLUMNS} FROM content_types WHERE slug = $1",
                slug,
            )
        if row is None:
            raise NotFoundError(NOT_FOUND)
        return ContentType.model_validate(row)

    async def list(self, ct_filter: ContentTypeFilter) -> Page[ContentType]:
        conditions = Conditions().equals("is_active", ct_filter.is_active)
        order = order_by(ct_filter.page, SORTABLE, DEFAULT_ORDER)
        args, limit, offset = conditions.paged_args(ct_filter.page)

        with storage_errors("list content types"):
            total = await self._db.fetch_value(
                f"SELECT COUNT(*) FROM content_types {conditions.where}",
                *conditions.args,
            )
            rows = await self._db.fetch_all(
                f"""
                SELECT {COLUMNS}
                FROM content_types
                {conditions.where}
                ORDER BY {order}
                LIMIT {limit} OFFSET {offset}
                """,
                *args,
            )
        return Page.of([ContentType.model_validate(r) for r in rows], int(total or 0), ct_filter.page)

    async def update(self, content_type_id: UUID, request: UpdateContentTypeRequest) -> ContentType:
        changes = request.changes()
        if not changes:
            return await self.get_by_id(content_type_id)

        assignments, args = set_clause(changes)
        with storage_errors("update content type", duplicate=DUPLICATE):
            row = await self._db.fetch_one(
                f"""
                UPDATE content_types
                SET {assignments}
                WHERE id = ${len(args) + 1}
                RETURNING {COLUMNS}
                """,
                *args,
                content_type_id,
            )
        if row is None:
            raise NotFoundError(NOT_FOUND)
        return ContentType.model_validate(row)

    async def delete(self, content_type_id: UUID) -> None:
        # content_posts.content_type_id is ON DELETE RESTRICT.
        with storage_errors("delete content type", foreign_key=IN_USE):
            deleted = await self._db.execute("DELETE FROM content_types WHERE id = $1", content_type_id)
        if deleted == 0:
            raise NotFoundError(NOT_FOUND)
