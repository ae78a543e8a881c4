"""fage: method-block micro-framework core.

Invariants:
    - Importing the package has no side effects (no logging setup, no registries)
    - Everything re-exported here is explicit; no star exports

Design Decisions:
    - Flat public surface for the three engines (chain, scopes, query) and the
      error taxonomy; step libraries stay under fage.middleware / fage.db
"""

from fage.core.chain import compose, run
from fage.core.context import Context, MethodBlock
from fage.core.errors import (
    BadRequestError,
    ConfigurationError,
    ConflictError,
    FageError,
    ForbiddenError,
    MiddlewareError,
    NotFoundError,
    NotLoggedInError,
    QueryEngineError,
    RateLimitError,
    ServerError,
    UnauthorizedError,
    UnavailableError,
    ValidationError,
    create_error,
    error_status,
)
from fage.core.query import match
from fage.core.scopes import ScopeRegistry, check
from fage.core.sdk import generate

__all__ = [
    "BadRequestError",
    "ConfigurationError",
    "ConflictError",
    "Context",
    "FageError",
    "ForbiddenError",
    "MethodBlock",
    "MiddlewareError",
    "NotFoundError",
    "NotLoggedInError",
    "QueryEngineError",
    "RateLimitError",
    "ScopeRegistry",
    "ServerError",
    "UnauthorizedError",
    "UnavailableError",
    "ValidationError",
    "check",
    "compose",
    "create_error",
    "error_status",
    "generate",
    "match",
    "run",
]
