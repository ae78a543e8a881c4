"""Storage Steps: step factories that bind a TableStore operation into a chain.

Invariants:
    - create/save persist the previous output; update patches matches with it
    - The effective `where` is the AND of: the factory's `where`, ctx.state["where"]
      (set by earlier steps of the same run), and a `where` carried by the previous
      output when that output is a query mapping (read/list/remove only)
    - Factories never mutate their own options: per-run conditions live in ctx.state

Design Decisions:
    - Store injected per factory: the same blocks run against MemoryDB in tests and
      any TableStore in production
"""

from collections.abc import Mapping
from typing import Any

from fage.core.domain_types import Step
from fage.core.repository_protocols import TableStore


def combine_where(*conditions: Any) -> Any:
    """AND together the non-empty conditions (None when there are none)."""
    parts = [c for c in conditions if c]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return {"and": parts}


def _query(output: Any) -> Mapping:
    return output if isinstance(output, Mapping) and "where" in output else {}


def _where(ctx: Any, where: Any, output: Any = None) -> Any:
    return combine_where(where, ctx.state.get("where"), _query(output).get("where"))


def save(store: TableStore, table: str) -> Step:
    """Put the previous output (insert or replace by id)."""
    async def step(ctx, output=None):
        return await store.save(table, dict(output))

    return step


create = save


def update(store: TableStore, table: str, where: Any = None) -> Step:
    async def step(ctx, output=None):
        return await store.update(table, dict(output), _where(ctx, where))

    return step


def read(store: TableStore, table: str, where: Any = None, columns: list[str] | None = None) -> Step:
    async def step(ctx, output=None):
        cols = _query(output).get("columns", columns)
        return await store.find_one(table, _where(ctx, where, output), cols)

    return step


def list_records(
    store: TableStore, table: str, where: Any = None, columns: list[str] | None = None,
) -> Step:
    async def step(ctx, output=None):
        cols = _query(output).get("columns", columns)
        return await store.find_many(table, _where(ctx, where, output), cols)

    return step


def remove(store: TableStore, table: str, where: Any = None) -> Step:
    async def step(ctx, output=None):
        return await store.remove(table, _where(ctx, where, output))

    return step
