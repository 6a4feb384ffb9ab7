"""
Async database access helpers (raw SQL) using asyncpg.

The pool is created once per process in the application lifespan (see
`api/main.py`), wrapped in a `Database` and handed to every repository at
construction time. Nothing in here keeps a module-level pool.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from .config import Settings


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url(settings: Settings) -> str:
    url = (settings.database_url or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def _init_connection(conn: asyncpg.Connection) -> None:
    # Opaque document columns go in and out as plain Python objects.
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name,
            encoder=json.dumps,
            decoder=json.loads,
            schema="pg_catalog",
        )


async def create_pool(settings: Settings) -> asyncpg.Pool:
    return await asyncpg.create_pool(
        dsn=database_url(settings),
        min_size=settings.database_min_conns,
        max_size=settings.database_max_conns,
        command_timeout=settings.database_command_timeout,
        init=_init_connection,
    )


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


def _affected_rows(status: str) -> int:
    # asyncpg returns the command tag, e.g. "UPDATE 3" or "INSERT 0 1".
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


class Database:
    """
    Thin wrapper over an asyncpg pool (or a single connection inside a
    transaction) exposing dict-returning query helpers.
    """

    def __init__(self, executor: Any, *, in_transaction: bool = False) -> None:
        self._executor = executor
        self._in_transaction = in_transaction

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        row = await self._executor.fetchrow(sql, *args)
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        rows = await self._executor.fetch(sql, *args)
        return [_record_to_dict(r) for r in rows]

    async def fetch_value(self, sql: str, *args: Any) -> Any:
        return await self._executor.fetchval(sql, *args)

    async def execute(self, sql: str, *args: Any) -> int:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL) and return the affected row count.
        """
        status = await self._executor.execute(sql, *args)
        return _affected_rows(status)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Database]:
        """
        Run a block on one connection inside a transaction.

        Commits when the block exits normally, rolls back on any exception.
        """
        if self.in_transaction:
            async with self._executor.transaction():
                yield self
            return

        async with self._executor.acquire() as conn:  # type: asyncpg.Connection
            async with conn.transaction():
                yield Database(conn, in_transaction=True)

    async def close(self) -> None:
        if not self._in_transaction:
            await self._executor.close()
