"""Scope Steps: enforce and inspect caller claims inside a chain.

Invariants:
    - Claims are read from meta[Settings.claims_meta_key]; absent claims mean no scopes
    - verify_scopes defaults to the block's own `scopes` requirement
    - select_on_scopes shows scoped fields only to the record owner or a root-scope
      holder, and only when the block's requirement is met
    - Comparison rules are fage.core.scopes.check, nothing else

Design Decisions:
    - Steps, not decorators: scope checks sit in `fns` at the position the block author chooses
"""

import logging
from collections.abc import Mapping
from typing import Any, Iterable

from fage.config import get_settings
from fage.core.domain_types import Step
from fage.core.errors import ForbiddenError, ServerError
from fage.core.scopes import check
from fage.middleware import require_meta
from fage.middleware.data import project_record

logger = logging.getLogger(__name__)

_FROM_BLOCK = object()


def caller_claims(ctx: Any) -> Any:
    """The caller's claims from the meta channel ([] when absent)."""
    claims = require_meta(ctx).get(get_settings().claims_meta_key)
    return [] if claims is None else claims


def _required(ctx: Any, required: Any) -> Any:
    return ctx.scopes if required is _FROM_BLOCK else required


def verify_scopes(required: str | Iterable[str] | None = _FROM_BLOCK) -> Step:
    """Step: raise 403 unless the caller's claims meet `required` (default: block scopes)."""
    def step(ctx, output=None):
        needed = _required(ctx, required)
        logger.debug(f"Scope requirements: {needed!r}", extra={"path": ctx.path})
        if not check(needed, caller_claims(ctx)):
            raise ForbiddenError("Insufficient permissions to access this resource")
        return output

    return step


def has_scopes(required: str | Iterable[str] | None = _FROM_BLOCK) -> Step:
    """Step: emit True/False for whether the caller's claims meet `required`."""
    def step(ctx, output=None):
        return check(_required(ctx, required), caller_claims(ctx))

    return step


def select_on_scopes(user_key: str = "id") -> Step:
    """Step: project output records by claims for owners and root; public fields otherwise."""
    def step(ctx, output=None):
        if ctx.model is None:
            raise ServerError("No model on path", type="Fatal", debug={"path": ctx.path})

        settings = get_settings()
        meta = require_meta(ctx)
        claims = caller_claims(ctx)
        claim_list = [claims] if isinstance(claims, str) else list(claims)
        is_root = settings.root_scope in claim_list
        valid = check(ctx.scopes, claims)
        user_id = meta.get(settings.user_meta_key)

        def select(record):
            if not isinstance(record, Mapping):
                return record
            for_this_record = is_root or (user_id is not None and record.get(user_key) == user_id)
            use = claims if valid and for_this_record else None
            return project_record(ctx.model, record, use)

        if isinstance(output, list):
            return [select(rec) for rec in output]
        return select(output)

    return step
