"""
Settings persistence (raw SQL). Rows are addressed by their unique key.
"""

from __future__ import annotations

from uuid import uuid4

from core.db import Database
from core.errors import NotFoundError, StorageError, storage_errors
from core.pagination import Page
from core.query import Conditions, order_by, set_clause

from .schemas import (
    CreateSettingRequest,
    Setting,
    SettingFilter,
    UpdateSettingRequest,
    UpsertSettingRequest,
)

COLUMNS = "id, key, value, description, updated_at"

SORTABLE = {
    "key": "key",
    "updated_at": "updated_at",
}
DEFAULT_ORDER = "key ASC"

NOT_FOUND = "Setting not found"
DUPLICATE = "Setting with this key already exists"


class SettingRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def create(self, request: CreateSettingRequest) -> Setting:
        with storage_errors("create setting", duplicate=DUPLICATE):
            row = await self._db.fetch_one(
                f"""
                INSERT INTO settings (id, key, value, description)
                VALUES ($1, $2, $3, $4)
                RETURNING {COLUMNS}
                """,
                uuid4(),
                request.key,
                request.value,
                request.description,
            )
        if row is None:
            raise StorageError("Failed to create setting")
        return Setting.model_validate(row)

    async def upsert(self, request: UpsertSettingRequest) -> Setting:
        """Insert, or replace value and description of the existing key (id is kept)."""
        with storage_errors("upsert setting"):
            row = await self._db.fetch_one(
                f"""
                INSERT INTO settings (id, key, value, description)
                VALUES ($1, $2, $3, $4)
                ON CONFLICT (key) DO UPDATE
                SET value = EXCLUDED.value, description = EXCLUDED.description
                RETURNING {COLUMNS}
                """,
                uuid4(),
                request.key,
                request.value,
                request.description,
            )
        if row is None:
            raise StorageError("Failed to upsert setting")
        return Setting.model_validate(row)

    async def get_by_key(self, key: str) -> Setting:
        with storage_errors("get setting"):
            row = await self._db.fetch_one(f"SELECT {COLUMNS} FROM settings WHERE key = $1", key)
        if row is None:
            raise NotFoundError(NOT_FOUND)
        return Setting.model_validate(row)

    async def get_multiple(self, keys: list[str]) -> dict[str, str]:
        """Values for `keys`; missing keys and NULL values are left out."""
        if not keys:
            return {}
        with storage_errors("get settings"):
            rows = await self._db.fetch_all(
                "SELECT key, value FROM settings WHERE key = ANY($1::text[])",
                keys,
            )
        return {row["key"]: row["value"] for row in rows if row["value"] is not None}

    async def list(self, setting_filter: SettingFilter) -> Page[Setting]:
        conditions = Conditions().contains(("key", "description"), setting_filter.search)
        order = order_by(setting_filter.page, SORTABLE, DEFAULT_ORDER)
        args, limit, offset = conditions.paged_args(setting_filter.page)

        with storage_errors("list settings"):
            total = await self._db.fetch_value(
                f"SELECT COUNT(*) FROM settings {conditions.where}",
                *conditions.args,
            )
            rows = await self._db.fetch_all(
                f"""
                SELECT {COLUMNS}
                FROM settings
                {conditions.where}
                ORDER BY {order}
                LIMIT {limit} OFFSET {offset}
                """,
                *args,
            )
        return Page.of([Setting.model_validate(r) for r in rows], int(total or 0), setting_filter.page)

    async def update(self, key: str, request: UpdateSettingRequest) -> Setting:
        changes = request.changes()
        if not changes:
            return await self.get_by_key(key)

        assignments, args = set_clause(changes)
        with storage_errors("update setting"):
            row = await self._db.fetch_one(
                f"UPDATE settings SET {assignments} WHERE key = ${len(args) + 1} RETURNING {COLUMNS}",
                *args,
                key,
            )
        if row is None:
            raise NotFoundError(NOT_FOUND)
        return Setting.model_validate(row)

    async def delete(self, key: str) -> None:
        with storage_errors("delete setting"):
            deleted = await self._db.execute("DELETE FROM settings WHERE key = $1", key)
        if deleted == 0:
            raise NotFoundError(NOT_FOUND)
