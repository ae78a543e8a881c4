"""Memory Store: in-process TableStore for prototyping and tests.

Invariants:
    - Tables must exist before use (constructed with them, or via create_table)
    - Records are keyed by their `id`; save() is a put (insert or replace)
    - Every filter goes through fage.core.query.match: reads, updates and removes
      select records with exactly the same semantics
    - update()/remove() require a `where`; no matching record is a 404
    - Writes are serialized by an asyncio.Lock
    - Records are copied on the way in and on the way out: callers never hold a
      reference into the store

Design Decisions:
    - Explicit instances over a module singleton: each test or app owns its store
    - Not durable, not indexed: a full scan per query is fine at this scale
"""

import asyncio
import copy
import logging
from typing import Any

from fage.core.errors import NotFoundError
from fage.core.query import match, normalize

logger = logging.getLogger(__name__)


class UnknownTableError(KeyError):
    """Operation on a table the store was never given."""

    def __init__(self, table: str):
        super().__init__(f"No such table in DB: {table}")
        self.table = table


def _projection(record: dict, columns: list[str] | None) -> dict:
    """Detached copy of `record`, limited to `columns` when given."""
    if not columns:
        return copy.deepcopy(record)
    return copy.deepcopy({k: record.get(k) for k in columns})


class MemoryDB:
    """Dict-of-dicts record store implementing TableStore."""

    def __init__(self, tables: dict[str, dict[Any, dict]] | None = None):
        self._store: dict[str, dict[Any, dict]] = copy.deepcopy(tables or {})
        self._lock = asyncio.Lock()

    def create_table(self, table: str) -> None:
        self._store.setdefault(table, {})

    def _table(self, table: str) -> dict[Any, dict]:
        try:
            return self._store[table]
        except KeyError:
            raise UnknownTableError(table) from None

    def _select(self, table: str, where: Any) -> list[dict]:
        condition = normalize(where)
        return [rec for rec in self._table(table).values() if match(rec, condition)]

    # ─── Reads ───────────────────────────────────────────────────

    async def find_one(
        self, table: str, where: Any, columns: list[str] | None = None,
    ) -> dict | None:
        if not where:
            raise ValueError("find_one requires a `where` condition")
        results = await self.find_many(table, where, columns)
        return results[0] if results else None

    async def find_many(
        self, table: str, where: Any = None, columns: list[str] | None = None,
    ) -> list[dict]:
        return [_projection(rec, columns) for rec in self._select(table, where)]

    # ─── Writes ──────────────────────────────────────────────────

    async def save(self, table: str, data: dict) -> dict:
        async with self._lock:
            self._table(table)[data["id"]] = copy.deepcopy(data)
        logger.debug("Saved record", extra={"table": table})
        return data

    async def update(self, table: str, data: dict, where: Any) -> list[dict]:
        """Patch every record matching `where` with `data`; return the new records."""
        if not where:
            raise ValueError("update requires a `where` condition")
        async with self._lock:
            rows = self._table(table)
            targets = self._select(table, where)
            if not targets:
                raise NotFoundError("No record found")
            updated = []
            for rec in targets:
                merged = copy.deepcopy({**rec, **data})
                rows[rec["id"]] = merged
                updated.append(copy.deepcopy(merged))
        logger.debug(f"Updated {len(updated)} record(s)", extra={"table": table})
        return updated

    async def remove(self, table: str, where: Any) -> list[Any]:
        """Delete every record matching `where`; return the removed ids."""
        if not where:
            raise ValueError("remove requires a `where` condition")
        async with self._lock:
            rows = self._table(table)
            targets = self._select(table, where)
            if not targets:
                raise NotFoundError("No record found")
            removed = []
            for rec in targets:
                del rows[rec["id"]]
                removed.append(rec["id"])
        logger.debug(f"Removed {len(removed)} record(s)", extra={"table": table})
        return removed

    def dump(self) -> dict[str, dict[Any, dict]]:
        """Deep copy of the whole store (for inspection in tests)."""
        return copy.deepcopy(self._store)
