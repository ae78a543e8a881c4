"""Boundary Protocols: contracts between the step library and storage backends.

Invariants:
    - Steps NEVER import a concrete store; they receive one satisfying TableStore
    - All storage operations are async (implementations may do IO)
    - Filtering semantics are the query engine's: `where` is any shape match() accepts

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Records are plain dicts keyed by field name, with at least an `id`
"""

from typing import Any, Protocol


class TableStore(Protocol):
    """Contract for table-oriented record storage, implemented by fage.db or the host app."""
    async def find_one(
        self, table: str, where: Any, columns: list[str] | None = None,
    ) -> dict | None: ...
    async def find_many(
        self, table: str, where: Any = None, columns: list[str] | None = None,
    ) -> list[dict]: ...
    async def save(self, table: str, data: dict) -> dict: ...
    async def update(self, table: str, data: dict, where: Any) -> list[dict]: ...
    async def remove(self, table: str, where: Any) -> list[Any]: ...
