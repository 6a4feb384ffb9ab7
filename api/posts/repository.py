"""
Post persistence (raw SQL).

Post writes and their tag associations always go through one transaction.
Reads of a single post assemble the aggregate from three queries: the post
joined with its content type and author, its tags, and its media
attachments.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from uuid import UUID, uuid4

from core.db import Database
from core.errors import NotFoundError, StorageError, storage_errors
from core.pagination import Page
from core.query import Conditions, db_value, order_by, set_clause

from .schemas import (
    AttachMediaRequest,
    CreatePostRequest,
    Post,
    PostFilter,
    PostMedia,
    PostSummary,
    UpdatePostRequest,
)

POST_COLUMNS = (
    "p.id, p.content_type_id, p.author_id, p.title, p.slug, p.excerpt, p.content, "
    "p.metadata, p.status, p.published_at, p.view_count, p.created_at, p.updated_at"
)

CONTENT_TYPE_COLUMNS = (
    "ct.id AS ct__id, ct.name AS ct__name, ct.slug AS ct__slug, "
    "ct.schema_fields AS ct__schema_fields, ct.is_active AS ct__is_active, "
    "ct.display_order AS ct__display_order, ct.created_at AS ct__created_at, "
    "ct.updated_at AS ct__updated_at"
)

AUTHOR_COLUMNS = (
    "u.id AS u__id, u.email AS u__email, u.full_name AS u__full_name, u.role AS u__role, "
    "u.is_active AS u__is_active, u.last_login AS u__last_login, "
    "u.created_at AS u__created_at, u.updated_at AS u__updated_at"
)

SUMMARY_JOIN_COLUMNS = (
    "ct.id AS ct__id, ct.name AS ct__name, ct.slug AS ct__slug, "
    "u.id AS u__id, u.full_name AS u__full_name"
)

ATTACHMENT_COLUMNS = "id, post_id, media_id, media_role, display_order, created_at"

MEDIA_COLUMNS = (
    "m.id AS m__id, m.file_name AS m__file_name, m.object_key AS m__object_key, "
    "m.bucket_name AS m__bucket_name, m.cdn_url AS m__cdn_url, m.file_type AS m__file_type, "
    "m.mime_type AS m__mime_type, m.file_size AS m__file_size, m.dimensions AS m__dimensions, "
    "m.variants AS m__variants, m.alt_text AS m__alt_text, m.checksum AS m__checksum, "
    "m.created_at AS m__created_at"
)

SORTABLE = {
    "title": "p.title",
    "slug": "p.slug",
    "status": "p.status",
    "published_at": "p.published_at",
    "view_count": "p.view_count",
    "created_at": "p.created_at",
    "updated_at": "p.updated_at",
}
DEFAULT_ORDER = "p.created_at DESC"

NOT_FOUND = "Post not found"
DUPLICATE = "Post with this slug already exists"
INVALID_REFERENCES = "Invalid content type ID or author ID"
INVALID_CONTENT_TYPE = "Invalid content type ID"
INVALID_TAG = "Invalid tag ID"
ATTACHMENT_NOT_FOUND = "Media attachment not found"
ALREADY_ATTACHED = "Media already attached to this post"
INVALID_ATTACHMENT = "Invalid post ID or media ID"


def _nested(row: dict[str, Any], prefix: str) -> dict[str, Any] | None:
    """
    Pop the `prefix`-aliased columns out of a joined row.

    Returns None when the joined row was missing (LEFT JOIN with no match).
    """
    values = {key[len(prefix):]: row.pop(key) for key in list(row) if key.startswith(prefix)}
    if values.get("id") is None:
        return None
    return values


class PostRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def create(self, request: CreatePostRequest) -> Post:
        post_id = uuid4()
        with storage_errors("create post", duplicate=DUPLICATE, foreign_key=INVALID_REFERENCES):
            async with self._db.transaction() as tx:
                await tx.execute(
                    """
                    INSERT INTO content_posts (
                        id, content_type_id, author_id, title, slug, excerpt,
                        content, metadata, status, published_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                    """,
                    post_id,
                    request.content_type_id,
                    request.author_id,
                    request.title,
                    request.slug,
                    request.excerpt,
                    request.content,
                    request.metadata,
                    db_value(request.status),
                    request.published_at,
                )
                await self._add_tags(tx, post_id, request.tag_ids)
        return await self.get_by_id(post_id)

    async def get_by_id(self, post_id: UUID) -> Post:
        with storage_errors("get post"):
            row = await self._db.fetch_one(
                f"""
                SELECT {POST_COLUMNS}, {CONTENT_TYPE_COLUMNS}, {AUTHOR_COLUMNS}
                FROM content_posts p
                LEFT JOIN content_types ct ON ct.id = p.content_type_id
                LEFT JOIN users u ON u.id = p.author_id
                WHERE p.id = $1
                """,
                post_id,
            )
            if row is None:
                raise NotFoundError(NOT_FOUND)

            tags = await self._db.fetch_all(
                """
                SELECT t.id, t.name, t.slug, t.created_at
                FROM tags t
                JOIN post_tags pt ON pt.tag_id = t.id
                WHERE pt.post_id = $1
                ORDER BY t.name
                """,
                post_id,
            )
            attachments = await self._db.fetch_all(
                f"""
                SELECT pm.id, pm.post_id, pm.media_id, pm.media_role, pm.display_order,
                       pm.created_at, {MEDIA_COLUMNS}
                FROM post_media pm
                JOIN media m ON m.id = pm.media_id
                WHERE pm.post_id = $1
                ORDER BY pm.display_order, pm.created_at
                """,
                post_id,
            )

        row["content_type"] = _nested(row, "ct__")
        row["author"] = _nested(row, "u__")
        row["tags"] = tags
        row["media"] = []
        for attachment in attachments:
            attachment["media"] = _nested(attachment, "m__")
            row["media"].append(attachment)
        return Post.model_validate(row)

    async def get_by_slug(self, slug: str) -> Post:
        with storage_errors("get post by slug"):
            post_id = await self._db.fetch_value("SELECT id FROM content_posts WHERE slug = $1", slug)
        if post_id is None:
            raise NotFoundError(NOT_FOUND)
        return await self.get_by_id(post_id)

    async def list(self, post_filter: PostFilter) -> Page[PostSummary]:
        conditions = (
            Conditions()
            .equals("p.content_type_id", post_filter.content_type_id)
            .equals("p.author_id", post_filter.author_id)
            .equals("p.status", post_filter.status)
            .contains(("p.title", "p.excerpt"), post_filter.search)
        )
        order = order_by(post_filter.page, SORTABLE, DEFAULT_ORDER)
        args, limit, offset = conditions.paged_args(post_filter.page)

        with storage_errors("list posts"):
            total = await self._db.fetch_value(
                f"SELECT COUNT(*) FROM content_posts p {conditions.where}",
                *conditions.args,
            )
            rows = await self._db.fetch_all(
                f"""
                SELECT {POST_COLUMNS}, {SUMMARY_JOIN_COLUMNS}
                FROM content_posts p
                LEFT JOIN content_types ct ON ct.id = p.content_type_id
                LEFT JOIN users u ON u.id = p.author_id
                {conditions.where}
                ORDER BY {order}
                LIMIT {limit} OFFSET {offset}
                """,
                *args,
            )

        posts = []
        for row in rows:
            row["content_type"] = _nested(row, "ct__")
            row["author"] = _nested(row, "u__")
            posts.append(PostSummary.model_validate(row))
        return Page.of(posts, int(total or 0), post_filter.page)

    async def update(self, post_id: UUID, request: UpdatePostRequest) -> Post:
        changes = request.changes(exclude={"tag_ids"})

        with storage_errors("update post", duplicate=DUPLICATE, foreign_key=INVALID_CONTENT_TYPE):
            async with self._db.transaction() as tx:
                if changes:
                    assignments, args = set_clause(changes)
                    updated = await tx.execute(
                        f"UPDATE content_posts SET {assignments} WHERE id = ${len(args) + 1}",
                        *args,
                        post_id,
                    )
                    found = updated > 0
                else:
                    found = await tx.fetch_value(
                        "SELECT EXISTS (SELECT 1 FROM content_posts WHERE id = $1)",
                        post_id,
                    )
                if not found:
                    raise NotFoundError(NOT_FOUND)

                if request.tag_ids is not None:
                    await tx.execute("DELETE FROM post_tags WHERE post_id = $1", post_id)
                    await self._add_tags(tx, post_id, request.tag_ids)
        return await self.get_by_id(post_id)

    async def delete(self, post_id: UUID) -> None:
        # post_tags and post_media rows cascade.
        with storage_errors("delete post"):
            deleted = await self._db.execute("DELETE FROM content_posts WHERE id = $1", post_id)
        if deleted == 0:
            raise NotFoundError(NOT_FOUND)

    async def attach_media(self, post_id: UUID, request: AttachMediaRequest) -> PostMedia:
        with storage_errors("attach media", duplicate=ALREADY_ATTACHED, foreign_key=INVALID_ATTACHMENT):
            row = await self._db.fetch_one(
                f"""
                INSERT INTO post_media (id, post_id, media_id, media_role, display_order)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING {ATTACHMENT_COLUMNS}
                """,
                uuid4(),
                post_id,
                request.media_id,
                db_value(request.media_role),
                request.display_order or 0,
            )
        if row is None:
            raise StorageError("Failed to attach media")
        return PostMedia.model_validate(row)

    async def detach_media(self, post_id: UUID, media_id: UUID) -> None:
        with storage_errors("detach media"):
            deleted = await self._db.execute(
                "DELETE FROM post_media WHERE post_id = $1 AND media_id = $2",
                post_id,
                media_id,
            )
        if deleted == 0:
            raise NotFoundError(ATTACHMENT_NOT_FOUND)

    async def increment_view_count(self, post_id: UUID) -> None:
        """Atomic +1 on view_count; runs outside any transaction."""
        with storage_errors("increment view count"):
            updated = await self._db.execute(
                "UPDATE content_posts SET view_count = view_count + 1 WHERE id = $1",
                post_id,
            )
        if updated == 0:
            raise NotFoundError(NOT_FOUND)

    async def _add_tags(self, tx: Database, post_id: UUID, tag_ids: Iterable[UUID]) -> None:
        with storage_errors("add post tags", foreign_key=INVALID_TAG):
            for tag_id in dict.fromkeys(tag_ids):
                await tx.execute(
                    """
                    INSERT INTO post_tags (post_id, tag_id)
                    VALUES ($1, $2)
                    ON CONFLICT DO NOTHING
                    """,
                    post_id,
                    tag_id,
                )
