"""
Post schemas.

A post is read in two shapes: the full aggregate (content type, author,
tags and media attachments) for single-item reads, and a summary row with
just the denormalized content type and author names for lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from content_types.schemas import ContentType, ContentTypeSummary
from core.enums import MediaRoleField, PostStatus, PostStatusField, UserRoleField
from core.pagination import PageParams
from core.schemas import PartialUpdate, reject_null, require_non_nil
from media.schemas import Media
from tags.schemas import Tag


class Author(BaseModel):
    """Public view of a user; never carries the password hash."""

    id: UUID
    email: str
    full_name: str
    role: UserRoleField
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AuthorSummary(BaseModel):
    id: UUID
    full_name: str


class PostMedia(BaseModel):
    id: UUID
    post_id: UUID
    media_id: UUID
    media_role: MediaRoleField
    display_order: int
    created_at: datetime
    media: Media | None = None


class PostBase(BaseModel):
    id: UUID
    content_type_id: UUID
    author_id: UUID
    title: str
    slug: str
    excerpt: str | None = None
    content: str | None = None
    metadata: Any = None
    status: PostStatusField
    published_at: datetime | None = None
    view_count: int
    created_at: datetime
    updated_at: datetime


class Post(PostBase):
    content_type: ContentType | None = None
    author: Author | None = None
    tags: list[Tag] = Field(default_factory=list)
    media: list[PostMedia] = Field(default_factory=list)


class PostSummary(PostBase):
    content_type: ContentTypeSummary | None = None
    author: AuthorSummary | None = None


class CreatePostRequest(BaseModel):
    content_type_id: UUID
    author_id: UUID
    title: str = Field(..., min_length=1, max_length=500)
    slug: str = Field(..., min_length=1, max_length=500)
    excerpt: str | None = None
    content: str | None = None
    metadata: Any = None
    status: PostStatusField = PostStatus.DRAFT
    published_at: datetime | None = None
    tag_ids: list[UUID] = Field(default_factory=list)

    @field_validator("content_type_id", "author_id")
    @classmethod
    def _non_nil(cls, value: UUID) -> UUID:
        return require_non_nil(value)


class UpdatePostRequest(PartialUpdate):
    content_type_id: UUID | None = None
    title: str | None = Field(default=None, min_length=1, max_length=500)
    slug: str | None = Field(default=None, min_length=1, max_length=500)
    excerpt: str | None = None
    content: str | None = None
    metadata: Any = None
    status: PostStatusField | None = None
    published_at: datetime | None = None
    # Absent: associations untouched. A list (even empty) replaces them all.
    tag_ids: list[UUID] | None = None

    @field_validator("content_type_id", "title", "slug", "status")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        return reject_null(value)

    @field_validator("content_type_id")
    @classmethod
    def _non_nil(cls, value: UUID | None) -> UUID | None:
        return require_non_nil(value)


class AttachMediaRequest(BaseModel):
    media_id: UUID
    media_role: MediaRoleField
    # null means the default position.
    display_order: int | None = None

    @field_validator("media_id")
    @classmethod
    def _non_nil(cls, value: UUID) -> UUID:
        return require_non_nil(value)


@dataclass(frozen=True)
class PostFilter:
    content_type_id: UUID | None = None
    author_id: UUID | None = None
    status: PostStatus | None = None
    search: str | None = None
    page: PageParams = field(default_factory=PageParams)
