"""Scope Authorization Resolver: role → scopes registry and the permission predicate.

Invariants:
    - check() with no requirement is always True
    - A single claimed scope never satisfies a multi-scope requirement
    - A multi-scope requirement is a logical AND over the claims
    - Claims that are neither a string nor a list/tuple of strings raise ScopeTypeError
    - Role flattening happens at grant time: an included role's scopes are copied
      as they are *now*; later grants to it are not seen retroactively
    - Scope lists are de-duplicated and keep insertion order (own scopes first)

Design Decisions:
    - Tagged union Single | Many with one match statement: the whole comparison
      table is visible in one place instead of isinstance checks at call sites
    - ScopeRegistry is an explicitly constructed object, injected where needed:
      no module-level registry, so tests and tenants never share grants
    - Mutations guarded by a lock; reads return copies
"""

import logging
import threading
from dataclasses import dataclass
from typing import Iterable

from fage.core.errors import ScopeTypeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Single:
    """Exactly one scope."""
    scope: str


@dataclass(frozen=True)
class Many:
    """An ordered collection of scopes (possibly empty)."""
    scopes: tuple[str, ...]


ScopeSet = Single | Many


def as_scope_set(value: object) -> ScopeSet:
    """Tag a raw str / list / tuple as Single or Many."""
    if isinstance(value, str):
        return Single(value)
    if isinstance(value, (list, tuple)):
        return Many(tuple(value))
    raise ScopeTypeError(
        f"Invalid scope type {type(value).__name__}. Expected str or list of str."
    )


def _as_list(value: str | Iterable[str] | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _union(*groups: Iterable[str]) -> list[str]:
    """Ordered, de-duplicated concatenation."""
    return list(dict.fromkeys(s for group in groups for s in group))


def check(required: str | Iterable[str] | None, claims: str | Iterable[str]) -> bool:
    """True when `claims` satisfy every `required` scope.

    required : claims
    str      : str   → equal
    str      : list  → required in claims
    list     : str   → False (a scalar claim never meets a multi-scope need)
    list     : list  → all required in claims
    """
    if not required:
        return True

    claimed = as_scope_set(claims)
    needed = as_scope_set(required)

    match needed, claimed:
        case Single(scope), Single(claim):
            return scope == claim
        case Single(scope), Many(claim_list):
            return scope in claim_list
        case Many(), Single():
            return False
        case Many(scope_list), Many(claim_list):
            return all(s in claim_list for s in scope_list)


class ScopeRegistry:
    """Role grants and per-path scope requirements for one application."""

    def __init__(self):
        self._roles: dict[str, list[str]] = {}
        self._paths: dict[str, list[str]] = {}
        self._lock = threading.Lock()

    # ─── Roles ───────────────────────────────────────────────────

    def grant_role(
        self,
        role: str,
        scopes: str | Iterable[str],
        include: str | Iterable[str] = (),
    ) -> list[str]:
        """Register `role` with its own scopes plus the current scopes of `include`."""
        with self._lock:
            inherited = [self._roles.get(r, []) for r in _as_list(include)]
            granted = _union(_as_list(scopes), *inherited)
            self._roles[role] = granted
        logger.debug(f"Granted {len(granted)} scope(s)", extra={"role": role})
        return list(granted)

    def get_scopes_by_role(self, roles: str | Iterable[str]) -> list[str]:
        """Union of scopes for one or more roles. Unknown roles add nothing."""
        with self._lock:
            return _union(*(self._roles.get(r, []) for r in _as_list(roles)))

    # ─── Path requirements ───────────────────────────────────────

    def register(self, path: str, scopes: str | Iterable[str] | None) -> None:
        """Append `scopes` to the requirements recorded for `path`."""
        with self._lock:
            existing = self._paths.get(path, [])
            self._paths[path] = existing + _as_list(scopes)

    def get(self, path: str | None = None) -> list[str]:
        """Scopes for `path`, or the de-duplicated union across every path."""
        with self._lock:
            if path is not None:
                return list(self._paths.get(path, []))
            return _union(*self._paths.values())

    def check(self, required: str | Iterable[str] | None, claims: str | Iterable[str]) -> bool:
        return check(required, claims)
