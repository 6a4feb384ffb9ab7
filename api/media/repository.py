"""
Media persistence (raw SQL).
"""

from __future__ import annotations

from uuid import UUID, uuid4

from core.db import Database
from core.errors import ForeignKeyViolationError, NotFoundError, StorageError, storage_errors
from core.pagination import Page
from core.query import Conditions, db_value, order_by, set_clause

from .schemas import CreateMediaRequest, Media, MediaFilter, UpdateMediaRequest

COLUMNS = (
    "id, file_name, object_key, bucket_name, cdn_url, file_type, mime_type, "
    "file_size, dimensions, variants, alt_text, checksum, created_at"
)

SORTABLE = {
    "file_name": "file_name",
    "file_type": "file_type",
    "file_size": "file_size",
    "created_at": "created_at",
}
DEFAULT_ORDER = "created_at DESC"

NOT_FOUND = "Media not found"
DUPLICATE = "Media with this object key already exists"
IN_USE = "Cannot delete media that is attached to posts"


class MediaRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def create(self, request: CreateMediaRequest) -> Media:
        with storage_errors("create media", duplicate=DUPLICATE):
            row = await self._db.fetch_one(
                f"""
                INSERT INTO media (
                    id, file_name, object_key, bucket_name, cdn_url, file_type,
                    mime_type, file_size, dimensions, variants, alt_text, checksum
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
                RETURNING {COLUMNS}
                """,
                uuid4(),
                request.file_name,
                request.object_key,
                request.bucket_name,
                request.cdn_url,
                db_value(request.file_type),
                request.mime_type,
                request.file_size,
                request.dimensions,
                request.variants,
                request.alt_text,
                request.checksum,
            )
        if row is None:
            raise StorageError("Failed to create media")
        return Media.model_validate(row)

    async def get_by_id(self, media_id: UUID) -> Media:
        with storage_errors("get media"):
            row = await self._db.fetch_one(f"SELECT {COLUMNS} FROM media WHERE id = $1", media_id)
        if row is None:
            raise NotFoundError(NOT_FOUND)
        return Media.model_validate(row)

    async def list(self, media_filter: MediaFilter) -> Page[Media]:
        conditions = (
            Conditions()
            .equals("file_type", media_filter.file_type)
            .contains(("file_name", "alt_text"), media_filter.search)
        )
        order = order_by(media_filter.page, SORTABLE, DEFAULT_ORDER)
        args, limit, offset = conditions.paged_args(media_filter.page)

        with storage_errors("list media"):
            total = await self._db.fetch_value(
                f"SELECT COUNT(*) FROM media {conditions.where}",
                *conditions.args,
            )
            rows = await self._db.fetch_all(
                f"""
                SELECT {COLUMNS}
                FROM media
                {conditions.where}
                ORDER BY {order}
                LIMIT {limit} OFFSET {offset}
                """,
                *args,
            )
        return Page.of([Media.model_validate(r) for r in rows], int(total or 0), media_filter.page)

    async def update(self, media_id: UUID, request: UpdateMediaRequest) -> Media:
        changes = request.changes()
        if not changes:
            return await self.get_by_id(media_id)

        assignments, args = set_clause(changes)
        with storage_errors("update media"):
            row = await self._db.fetch_one(
                f"UPDATE media SET {assignments} WHERE id = ${len(args) + 1} RETURNING {COLUMNS}",
                *args,
                media_id,
            )
        if row is None:
            raise NotFoundError(NOT_FOUND)
        return Media.model_validate(row)

    async def delete(self, media_id: UUID) -> None:
        # post_media cascades on media delete, so attachments are checked here.
        with storage_errors("delete media", foreign_key=IN_USE):
            async with self._db.transaction() as tx:
                attached = await tx.fetch_value(
                    "SELECT EXISTS (SELECT 1 FROM post_media WHERE media_id = $1)",
                    media_id,
                )
                if attached:
                    raise ForeignKeyViolationError(IN_USE)
                deleted = await tx.execute("DELETE FROM media WHERE id = $1", media_id)
        if deleted == 0:
            raise NotFoundError(NOT_FOUND)
