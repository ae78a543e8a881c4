"""Step Library: reusable step factories for method block chains.

Invariants:
    - Every factory returns a step `(ctx, output) -> output`; misuse is caught by the
      executor's callable-output check
    - Steps invoked without a context carrying `meta` raise MissingContextError
    - Guard steps pass the previous output through unchanged on success

Design Decisions:
    - One module per concern (verify, scopes, data): each importable on its own
"""

from collections.abc import Mapping
from typing import Any

from fage.core.errors import MissingContextError


def require_meta(ctx: Any) -> Mapping:
    """Return ctx.meta or raise MissingContextError."""
    meta = getattr(ctx, "meta", None)
    if ctx is None or meta is None:
        raise MissingContextError()
    return meta
