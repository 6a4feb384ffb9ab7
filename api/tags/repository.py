"""
Tag persistence (raw SQL).
"""

from __future__ import annotations

from uuid import UUID, uuid4

from core.db import Database
from core.errors import NotFoundError, StorageError, storage_errors
from core.pagination import Page
from core.query import Conditions, order_by, set_clause

from .schemas import CreateTagRequest, Tag, TagFilter, UpdateTagRequest

COLUMNS = "id, name, slug, created_at"

SORTABLE = {
    "name": "name",
    "slug": "slug",
    "created_at": "created_at",
}
DEFAULT_ORDER = "name ASC"

NOT_FOUND = "Tag not found"
DUPLICATE = "Tag with this name or slug already exists"


class TagRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def create(self, request: CreateTagRequest) -> Tag:
        with storage_errors("create tag", duplicate=DUPLICATE):
            row = await self._db.fetch_one(
                f"""
                INSERT INTO tags (id, name, slug)
                VALUES ($1, $2, $3)
                RETURNING {COLUMNS}
                """,
                uuid4(),
                request.name,
                request.slug,
            )
        if row is None:
            raise StorageError("Failed to create tag")
        return Tag.model_validate(row)

    async def get_by_id(self, tag_id: UUID) -> Tag:
        with storage_errors("get tag"):
            row = await self._db.fetch_one(f"SELECT {COLUMNS} FROM tags WHERE id = $1", tag_id)
        if row is None:
            raise NotFoundError(NOT_FOUND)
        return Tag.model_validate(row)

    async def get_by_slug(self, slug: str) -> Tag:
        with storage_errors("get tag by slug"):
            row = await self._db.fetch_one(f"SELECT {COLUMNS} FROM tags WHERE slug = $1", slug)
        if row is None:
            raise NotFoundError(NOT_FOUND)
        return Tag.model_validate(row)

    async def list(self, tag_filter: TagFilter) -> Page[Tag]:
        conditions = Conditions().contains(("name", "slug"), tag_filter.search)
        order = order_by(tag_filter.page, SORTABLE, DEFAULT_ORDER)
        args, limit, offset = conditions.paged_args(tag_filter.page)

        with storage_errors("list tags"):
            total = await self._db.fetch_value(
                f"SELECT COUNT(*) FROM tags {conditions.where}",
                *conditions.args,
            )
            rows = await self._db.fetch_all(
                f"""
                SELECT {COLUMNS}
                FROM tags
                {conditions.where}
                ORDER BY {order}
                LIMIT {limit} OFFSET {offset}
                """,
                *args,
            )
        return Page.of([Tag.model_validate(r) for r in rows], int(total or 0), tag_filter.page)

    async def update(self, tag_id: UUID, request: UpdateTagRequest) -> Tag:
        changes = request.changes()
        if not changes:
            return await self.get_by_id(tag_id)

        assignments, args = set_clause(changes)
        with storage_errors("update tag", duplicate=DUPLICATE):
            row = await self._db.fetch_one(
                f"UPDATE tags SET {assignments} WHERE id = ${len(args) + 1} RETURNING {COLUMNS}",
                *args,
                tag_id,
            )
        if row is None:
            raise NotFoundError(NOT_FOUND)
        return Tag.model_validate(row)

    async def delete(self, tag_id: UUID) -> None:
        with storage_errors("delete tag"):
            deleted = await self._db.execute("DELETE FROM tags WHERE id = $1", tag_id)
        if deleted == 0:
            raise NotFoundError(NOT_FOUND)
