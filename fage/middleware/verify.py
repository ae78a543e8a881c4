"""Verification Steps: guards on the meta channel and on chain output.

Invariants:
    - Guards raise a FageError on failure and return the previous output on success
    - has_meta only accepts FageError subclasses as its error (checked at factory time)
    - result_exists treats None, [] and {} as "no result"; verify_found also rejects records without an id

Design Decisions:
    - Factories, not bare steps: every guard is parameterized by the meta key it reads,
      so the same guard works with any auth scheme the host uses
"""

from collections.abc import Mapping
from typing import Any

from fage.config import get_settings
from fage.core.domain_types import Step
from fage.core.errors import (
    ConfigurationError,
    FageError,
    ForbiddenError,
    NotFoundError,
    NotLoggedInError,
    UnauthorizedError,
)
from fage.middleware import require_meta


def has_meta(field: str, error: type[FageError] = ForbiddenError) -> Step:
    """Require `meta[field]` to be present, else raise `error` (default 403)."""
    if not (isinstance(error, type) and issubclass(error, FageError)):
        raise ConfigurationError(f"No such error type: {error!r}")

    def step(ctx, output=None):
        if field not in require_meta(ctx):
            raise error()
        return output

    return step


def has_auth(field: str) -> Step:
    """Require `meta[field]` to be present and truthy, else 401."""
    def step(ctx, output=None):
        if not require_meta(ctx).get(field):
            raise UnauthorizedError()
        return output

    return step


def is_authed(field: str | None = None) -> Step:
    """Require a logged-in user id on the meta channel, else 401 NotLoggedIn."""
    key = field or get_settings().user_meta_key

    def step(ctx, output=None):
        if require_meta(ctx).get(key):
            return output
        raise NotLoggedInError("Must provide a valid Bearer token")

    return step


def result_exists() -> Step:
    """Require a non-empty result on the output channel, else 404."""
    def step(ctx, output=None):
        if output is None or (isinstance(output, list) and not output):
            raise NotFoundError()
        if isinstance(output, Mapping) and not output:
            raise NotFoundError()
        return output

    return step


def result_match_meta(result_field: str, meta_field: str) -> Step:
    """Require `output[result_field] == meta[meta_field]` (ownership), else 403."""
    def step(ctx, output=None):
        meta = require_meta(ctx)
        owned = (
            isinstance(output, Mapping)
            and result_field in output
            and output[result_field] == meta.get(meta_field)
        )
        if not owned:
            raise ForbiddenError()
        return output

    return step


def verify_found(ctx: Any, output: Any = None) -> Any:
    """Bare step: output must be a record with an id, or a non-empty list."""
    if isinstance(output, list):
        found = bool(output)
    elif isinstance(output, Mapping):
        found = bool(output.get("id"))
    else:
        found = bool(output)
    if not found:
        raise NotFoundError("No results", type="NoResults")
    return output
