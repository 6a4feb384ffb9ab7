"""
Small builders for dynamic SQL fragments.

Only placeholders ($1, $2, ...) ever carry values. Column names come from
code, never from the request; sort columns go through a whitelist.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import IntEnum
from typing import Any
from uuid import UUID

from .pagination import PageParams


def db_value(value: Any) -> Any:
    """Convert Python-side values to what asyncpg expects for our columns."""
    if isinstance(value, IntEnum):
        return int(value)
    return value


class Conditions:
    """
    Accumulates AND-ed WHERE conditions and their positional arguments.

    Filters whose value is None (or an empty search term) are skipped, so an
    absent filter never reaches the SQL.
    """

    def __init__(self) -> None:
        self._clauses: list[str] = []
        self.args: list[Any] = []

    def _placeholder(self, value: Any) -> str:
        self.args.append(db_value(value))
        return f"${len(self.args)}"

    def equals(self, column: str, value: Any) -> Conditions:
        if value is not None:
            self._clauses.append(f"{column} = {self._placeholder(value)}")
        return self

    def contains(self, columns: Sequence[str], term: str | None) -> Conditions:
        """Case-insensitive substring match against any of `columns`."""
        term = (term or "").strip()
        if not term:
            return self
        placeholder = self._placeholder(f"%{term}%")
        matches = " OR ".join(f"{column} ILIKE {placeholder}" for column in columns)
        self._clauses.append(f"({matches})" if len(columns) > 1 else matches)
        return self

    @property
    def where(self) -> str:
        if not self._clauses:
            return ""
        return "WHERE " + " AND ".join(self._clauses)

    def paged_args(self, params: PageParams) -> tuple[list[Any], str, str]:
        """
        Return (args, limit placeholder, offset placeholder) for the data query.
        """
        n = len(self.args)
        return [*self.args, params.limit, params.offset], f"${n + 1}", f"${n + 2}"


def order_by(params: PageParams, sortable: Mapping[str, str], default: str) -> str:
    """
    Build the ORDER BY expression.

    `sortable` maps public sort keys to qualified columns. Unknown keys fall
    back to the entity's default ordering.
    """
    column = sortable.get(params.sort_by or "")
    if column is None:
        return default
    return f"{column} {params.sort_dir.upper()}"


def set_clause(changes: Mapping[str, Any], *, start: int = 1) -> tuple[str, list[Any]]:
    """
    Fold the present fields of a partial update into "col = $n, ..." plus args.
    """
    assignments: list[str] = []
    args: list[Any] = []
    for offset, (column, value) in enumerate(changes.items()):
        assignments.append(f"{column} = ${start + offset}")
        args.append(db_value(value))
    return ", ".join(assignments), args


def optional_bool(raw: str | None) -> bool | None:
    """Query-string boolean; anything unrecognized means "no filter"."""
    value = (raw or "").strip().lower()
    if value in ("true", "1", "t", "yes"):
        return True
    if value in ("false", "0", "f", "no"):
        return False
    return None


def optional_uuid(raw: str | None) -> UUID | None:
    """Query-string UUID; unparsable input means "no filter"."""
    value = (raw or "").strip()
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        return None
