"""CRUD Generics: ready-made composed steps for table create/read/update/list/remove.

Invariants:
    - Every generic is a single step built with compose(); drop it into any block's fns
    - Scope checks use the block's own `scopes`
    - on_resource_id narrows the query to meta[resource_id] through ctx.state["where"];
      a missing resource id is a 500 GenericsError (definition bug)
    - Store is injected once, at Generics construction

Design Decisions:
    - Conditional steps expressed as `step if flag else None`: compose() drops the Nones
"""

from collections.abc import Mapping
from typing import Any

from fage.config import get_settings
from fage.core.chain import compose
from fage.core.domain_types import Step
from fage.core.errors import ServerError
from fage.core.repository_protocols import TableStore
from fage.db import steps as db
from fage.middleware import data, verify
from fage.middleware.scopes import verify_scopes


def set_where_on_resource_id(ctx: Any, output: Any = None) -> Any:
    """Step: restrict this run's queries to meta[resource_id]."""
    resource_id = ctx.meta.get(get_settings().resource_meta_key)
    if not resource_id:
        raise ServerError(
            "No resourceId field set on meta", type="GenericsError",
            debug={"path": ctx.path},
        )
    ctx.state["where"] = db.combine_where(ctx.state.get("where"), {"id": resource_id})
    return output


class Generics:
    """CRUD step builders bound to one TableStore."""

    def __init__(self, store: TableStore):
        self.store = store

    def create(
        self,
        table: str,
        merge_from_meta: Mapping[str, str] | None = None,
        require_auth: bool = True,
        owner_field: str | None = None,
    ) -> Step:
        return compose([
            verify.is_authed() if require_auth else None,
            data.format_input(),
            data.merge_from_meta(merge_from_meta) if merge_from_meta else None,
            data.set_owner_id(owner_field) if owner_field else None,
            db.create(self.store, table),
        ])

    def read(self, table: str, on_resource_id: bool = False, where: Any = None) -> Step:
        return compose([
            verify_scopes(),
            set_where_on_resource_id if on_resource_id else None,
            db.read(self.store, table, where),
            verify.verify_found,
            data.project(),
        ])

    def update(
        self,
        table: str,
        on_resource_id: bool = False,
        require_auth: bool = True,
        where: Any = None,
    ) -> Step:
        return compose([
            verify.is_authed() if require_auth else None,
            verify_scopes(),
            data.verify_keys_ok(),
            set_where_on_resource_id if on_resource_id else None,
            data.validate(partial=True),
            db.update(self.store, table, where),
        ])

    def list_records(self, table: str, on_resource_id: bool = False, where: Any = None) -> Step:
        return compose([
            verify_scopes(),
            set_where_on_resource_id if on_resource_id else None,
            db.list_records(self.store, table, where),
            data.project(),
        ])

    def remove(self, table: str, on_resource_id: bool = False, where: Any = None) -> Step:
        return compose([
            verify_scopes(),
            set_where_on_resource_id if on_resource_id else None,
            db.remove(self.store, table, where),
        ])
