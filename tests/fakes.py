"""
Test doubles: a recording Database and in-memory repositories.

The in-memory repositories share one `Store` so that cross-entity rules
(content type in use, media attached, post aggregates) behave like the
database constraints do.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from contacts.repository import NOT_FOUND as CONTACT_NOT_FOUND
from contacts.schemas import ContactSubmission
from content_types.repository import DUPLICATE as CONTENT_TYPE_DUPLICATE
from content_types.repository import IN_USE as CONTENT_TYPE_IN_USE
from content_types.repository import NOT_FOUND as CONTENT_TYPE_NOT_FOUND
from content_types.schemas import ContentType, ContentTypeSummary
from core.enums import ContactStatus, UserRole
from core.errors import DuplicateError, ForeignKeyViolationError, NotFoundError
from core.pagination import Page, PageParams
from media.repository import DUPLICATE as MEDIA_DUPLICATE
from media.repository import IN_USE as MEDIA_IN_USE
from media.repository import NOT_FOUND as MEDIA_NOT_FOUND
from media.schemas import Media
from posts import repository as post_sql
from posts.schemas import Author, AuthorSummary, Post, PostBase, PostMedia, PostSummary
from site_settings.repository import DUPLICATE as SETTING_DUPLICATE
from site_settings.repository import NOT_FOUND as SETTING_NOT_FOUND
from site_settings.schemas import Setting
from tags.repository import DUPLICATE as TAG_DUPLICATE
from tags.repository import NOT_FOUND as TAG_NOT_FOUND
from tags.schemas import Tag


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _paginate(items: list[Any], params: PageParams) -> Page[Any]:
    return Page.of(items[params.offset : params.offset + params.limit], len(items), params)


class FakeDatabase:
    """
    Stands in for `core.db.Database`.

    Every call is recorded as (method, normalized sql, args). Results are
    consumed in order; an exception instance in the queue is raised instead.
    """

    _defaults = {"fetch_one": None, "fetch_all": [], "fetch_value": None, "execute": 1}

    def __init__(self, *results: Any) -> None:
        self.results = list(results)
        self.calls: list[tuple[str, str, tuple]] = []
        self.transactions = 0
        self.rolled_back = False

    async def _next(self, method: str, sql: str, args: tuple) -> Any:
        self.calls.append((method, " ".join(sql.split()), args))
        if not self.results:
            return self._defaults[method]
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    async def fetch_one(self, sql: str, *args: Any) -> Any:
        return await self._next("fetch_one", sql, args)

    async def fetch_all(self, sql: str, *args: Any) -> Any:
        return await self._next("fetch_all", sql, args)

    async def fetch_value(self, sql: str, *args: Any) -> Any:
        return await self._next("fetch_value", sql, args)

    async def execute(self, sql: str, *args: Any) -> Any:
        return await self._next("execute", sql, args)

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        try:
            yield self
        except BaseException:
            self.rolled_back = True
            raise

    def sql(self, method: str | None = None) -> list[str]:
        return [sql for (m, sql, _args) in self.calls if method is None or m == method]


@dataclass
class Store:
    content_types: dict[UUID, ContentType] = field(default_factory=dict)
    posts: dict[UUID, PostBase] = field(default_factory=dict)
    post_tags: dict[UUID, list[UUID]] = field(default_factory=dict)
    attachments: dict[UUID, PostMedia] = field(default_factory=dict)
    media: dict[UUID, Media] = field(default_factory=dict)
    tags: dict[UUID, Tag] = field(default_factory=dict)
    users: dict[UUID, Author] = field(default_factory=dict)
    contacts: dict[UUID, ContactSubmission] = field(default_factory=dict)
    settings: dict[str, Setting] = field(default_factory=dict)

    def add_user(self, full_name: str = "Ada Lovelace", email: str = "ada@example.com") -> Author:
        now = _now()
        user = Author(
            id=uuid4(),
            email=email,
            full_name=full_name,
            role=UserRole.EDITOR,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        self.users[user.id] = user
        return user


class InMemoryContentTypeRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    def _check_unique(self, name: str | None, slug: str | None, exclude: UUID | None = None) -> None:
        for ct in self.store.content_types.values():
            if ct.id != exclude and (ct.name == name or ct.slug == slug):
                raise DuplicateError(CONTENT_TYPE_DUPLICATE)

    async def create(self, request):
        self._check_unique(request.name, request.slug)
        now = _now()
        ct = ContentType(id=uuid4(), created_at=now, updated_at=now, **request.model_dump())
        self.store.content_types[ct.id] = ct
        return ct

    async def get_by_id(self, content_type_id):
        try:
            return self.store.content_types[content_type_id]
        except KeyError:
            raise NotFoundError(CONTENT_TYPE_NOT_FOUND) from None

    async def get_by_slug(self, slug):
        for ct in self.store.content_types.values():
            if ct.slug == slug:
                return ct
        raise NotFoundError(CONTENT_TYPE_NOT_FOUND)

    async def list(self, ct_filter):
        items = [
            ct
            for ct in self.store.content_types.values()
            if ct_filter.is_active is None or ct.is_active == ct_filter.is_active
        ]
        items.sort(key=lambda ct: ct.display_order)
        return _paginate(items, ct_filter.page)

    async def update(self, content_type_id, request):
        current = await self.get_by_id(content_type_id)
        changes = request.changes()
        self._check_unique(changes.get("name"), changes.get("slug"), exclude=content_type_id)
        updated = current.model_copy(update={**changes, "updated_at": _now()})
        self.store.content_types[content_type_id] = updated
        return updated

    async def delete(self, content_type_id):
        await self.get_by_id(content_type_id)
        if any(p.content_type_id == content_type_id for p in self.store.posts.values()):
            raise ForeignKeyViolationError(CONTENT_TYPE_IN_USE)
        del self.store.content_types[content_type_id]


class InMemoryTagRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    def _check_unique(self, name: str | None, slug: str | None, exclude: UUID | None = None) -> None:
        for tag in self.store.tags.values():
            if tag.id != exclude and (tag.name == name or tag.slug == slug):
                raise DuplicateError(TAG_DUPLICATE)

    async def create(self, request):
        self._check_unique(request.name, request.slug)
        tag = Tag(id=uuid4(), name=request.name, slug=request.slug, created_at=_now())
        self.store.tags[tag.id] = tag
        return tag

    async def get_by_id(self, tag_id):
        try:
            return self.store.tags[tag_id]
        except KeyError:
            raise NotFoundError(TAG_NOT_FOUND) from None

    async def get_by_slug(self, slug):
        for tag in self.store.tags.values():
            if tag.slug == slug:
                return tag
        raise NotFoundError(TAG_NOT_FOUND)

    async def list(self, tag_filter):
        term = (tag_filter.search or "").lower()
        items = [t for t in self.store.tags.values() if term in t.name.lower() or term in t.slug.lower()]
        items.sort(key=lambda t: t.name)
        return _paginate(items, tag_filter.page)

    async def update(self, tag_id, request):
        current = await self.get_by_id(tag_id)
        changes = request.changes()
        self._check_unique(changes.get("name"), changes.get("slug"), exclude=tag_id)
        updated = current.model_copy(update=changes)
        self.store.tags[tag_id] = updated
        return updated

    async def delete(self, tag_id):
        await self.get_by_id(tag_id)
        del self.store.tags[tag_id]
        for tag_ids in self.store.post_tags.values():
            if tag_id in tag_ids:
                tag_ids.remove(tag_id)


class InMemoryMediaRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    async def create(self, request):
        if any(m.object_key == request.object_key for m in self.store.media.values()):
            raise DuplicateError(MEDIA_DUPLICATE)
        media = Media(id=uuid4(), created_at=_now(), **request.model_dump())
        self.store.media[media.id] = media
        return media

    async def get_by_id(self, media_id):
        try:
            return self.store.media[media_id]
        except KeyError:
            raise NotFoundError(MEDIA_NOT_FOUND) from None

    async def list(self, media_filter):
        items = [
            m
            for m in self.store.media.values()
            if media_filter.file_type is None or m.file_type == media_filter.file_type
        ]
        return _paginate(items, media_filter.page)

    async def update(self, media_id, request):
        current = await self.get_by_id(media_id)
        updated = current.model_copy(update=request.changes())
        self.store.media[media_id] = updated
        return updated

    async def delete(self, media_id):
        await self.get_by_id(media_id)
        if any(a.media_id == media_id for a in self.store.attachments.values()):
            raise ForeignKeyViolationError(MEDIA_IN_USE)
        del self.store.media[media_id]


class InMemoryPostRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    def _check_slug(self, slug: str | None, exclude: UUID | None = None) -> None:
        for post in self.store.posts.values():
            if post.id != exclude and post.slug == slug:
                raise DuplicateError(post_sql.DUPLICATE)

    def _check_tags(self, tag_ids: list[UUID]) -> list[UUID]:
        if any(tag_id not in self.store.tags for tag_id in tag_ids):
            raise ForeignKeyViolationError(post_sql.INVALID_TAG)
        return list(dict.fromkeys(tag_ids))

    async def create(self, request):
        self._check_slug(request.slug)
        if request.content_type_id not in self.store.content_types or request.author_id not in self.store.users:
            raise ForeignKeyViolationError(post_sql.INVALID_REFERENCES)
        tag_ids = self._check_tags(request.tag_ids)

        now = _now()
        post = PostBase(
            id=uuid4(),
            view_count=0,
            created_at=now,
            updated_at=now,
            **request.model_dump(exclude={"tag_ids"}),
        )
        self.store.posts[post.id] = post
        self.store.post_tags[post.id] = tag_ids
        return await self.get_by_id(post.id)

    async def get_by_id(self, post_id):
        try:
            post = self.store.posts[post_id]
        except KeyError:
            raise NotFoundError(post_sql.NOT_FOUND) from None

        tags = sorted((self.store.tags[t] for t in self.store.post_tags.get(post_id, [])), key=lambda t: t.name)
        attachments = sorted(
            (a for a in self.store.attachments.values() if a.post_id == post_id),
            key=lambda a: a.display_order,
        )
        return Post(
            **post.model_dump(),
            content_type=self.store.content_types.get(post.content_type_id),
            author=self.store.users.get(post.author_id),
            tags=tags,
            media=[a.model_copy(update={"media": self.store.media.get(a.media_id)}) for a in attachments],
        )

    async def get_by_slug(self, slug):
        for post in self.store.posts.values():
            if post.slug == slug:
                return await self.get_by_id(post.id)
        raise NotFoundError(post_sql.NOT_FOUND)

    async def list(self, post_filter):
        items = []
        for post in self.store.posts.values():
            if post_filter.status is not None and post.status != post_filter.status:
                continue
            if post_filter.content_type_id is not None and post.content_type_id != post_filter.content_type_id:
                continue
            ct = self.store.content_types.get(post.content_type_id)
            author = self.store.users.get(post.author_id)
            items.append(
                PostSummary(
                    **post.model_dump(),
                    content_type=ContentTypeSummary(id=ct.id, name=ct.name, slug=ct.slug) if ct else None,
                    author=AuthorSummary(id=author.id, full_name=author.full_name) if author else None,
                )
            )
        items.sort(key=lambda p: p.created_at, reverse=True)
        return _paginate(items, post_filter.page)

    async def update(self, post_id, request):
        current = self.store.posts.get(post_id)
        if current is None:
            raise NotFoundError(post_sql.NOT_FOUND)
        changes = request.changes(exclude={"tag_ids"})
        self._check_slug(changes.get("slug"), exclude=post_id)
        if "content_type_id" in changes and changes["content_type_id"] not in self.store.content_types:
            raise ForeignKeyViolationError(post_sql.INVALID_CONTENT_TYPE)
        tag_ids = self._check_tags(request.tag_ids) if request.tag_ids is not None else None

        self.store.posts[post_id] = current.model_copy(update={**changes, "updated_at": _now()})
        if tag_ids is not None:
            self.store.post_tags[post_id] = tag_ids
        return await self.get_by_id(post_id)

    async def delete(self, post_id):
        if self.store.posts.pop(post_id, None) is None:
            raise NotFoundError(post_sql.NOT_FOUND)
        self.store.post_tags.pop(post_id, None)
        for attachment_id, attachment in list(self.store.attachments.items()):
            if attachment.post_id == post_id:
                del self.store.attachments[attachment_id]

    async def attach_media(self, post_id, request):
        if post_id not in self.store.posts or request.media_id not in self.store.media:
            raise ForeignKeyViolationError(post_sql.INVALID_ATTACHMENT)
        if any(a.post_id == post_id and a.media_id == request.media_id for a in self.store.attachments.values()):
            raise DuplicateError(post_sql.ALREADY_ATTACHED)
        attachment = PostMedia(
            id=uuid4(),
            post_id=post_id,
            media_id=request.media_id,
            media_role=request.media_role,
            display_order=request.display_order or 0,
            created_at=_now(),
        )
        self.store.attachments[attachment.id] = attachment
        return attachment

    async def detach_media(self, post_id, media_id):
        for attachment_id, attachment in list(self.store.attachments.items()):
            if attachment.post_id == post_id and attachment.media_id == media_id:
                del self.store.attachments[attachment_id]
                return
        raise NotFoundError(post_sql.ATTACHMENT_NOT_FOUND)

    async def increment_view_count(self, post_id):
        post = self.store.posts.get(post_id)
        if post is None:
            raise NotFoundError(post_sql.NOT_FOUND)
        self.store.posts[post_id] = post.model_copy(update={"view_count": post.view_count + 1})


class InMemoryContactRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    async def create(self, request, *, ip_address=None, user_agent=None):
        contact = ContactSubmission(
            id=uuid4(),
            status=ContactStatus.NEW,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=_now(),
            **request.model_dump(),
        )
        self.store.contacts[contact.id] = contact
        return contact

    async def get_by_id(self, contact_id):
        try:
            return self.store.contacts[contact_id]
        except KeyError:
            raise NotFoundError(CONTACT_NOT_FOUND) from None

    async def list(self, contact_filter):
        items = [
            c
            for c in self.store.contacts.values()
            if contact_filter.status is None or c.status == contact_filter.status
        ]
        return _paginate(items, contact_filter.page)

    async def update(self, contact_id, request):
        current = await self.get_by_id(contact_id)
        changes = request.changes()
        if changes.get("status") == ContactStatus.READ:
            changes["read_at"] = _now()
        updated = current.model_copy(update=changes)
        self.store.contacts[contact_id] = updated
        return updated

    async def delete(self, contact_id):
        await self.get_by_id(contact_id)
        del self.store.contacts[contact_id]

    async def count_unread(self):
        return sum(1 for c in self.store.contacts.values() if c.status == ContactStatus.NEW)


class InMemorySettingRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    async def create(self, request):
        if request.key in self.store.settings:
            raise DuplicateError(SETTING_DUPLICATE)
        setting = Setting(id=uuid4(), updated_at=_now(), **request.model_dump())
        self.store.settings[setting.key] = setting
        return setting

    async def upsert(self, request):
        existing = self.store.settings.get(request.key)
        setting_id = existing.id if existing is not None else uuid4()
        setting = Setting(id=setting_id, updated_at=_now(), **request.model_dump())
        self.store.settings[setting.key] = setting
        return setting

    async def get_by_key(self, key):
        try:
            return self.store.settings[key]
        except KeyError:
            raise NotFoundError(SETTING_NOT_FOUND) from None

    async def get_multiple(self, keys):
        return {
            key: self.store.settings[key].value
            for key in keys
            if key in self.store.settings and self.store.settings[key].value is not None
        }

    async def list(self, setting_filter):
        items = sorted(self.store.settings.values(), key=lambda s: s.key)
        return _paginate(items, setting_filter.page)

    async def update(self, key, request):
        current = await self.get_by_key(key)
        updated = current.model_copy(update={**request.changes(), "updated_at": _now()})
        self.store.settings[key] = updated
        return updated

    async def delete(self, key):
        await self.get_by_key(key)
        del self.store.settings[key]
