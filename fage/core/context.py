"""Context Builder: method block definitions and the per-invocation execution context.

Invariants:
    - MethodBlock is immutable once defined (frozen dataclass, fns stored as a tuple)
    - Context core is read-only after build_context(): frozen dataclass, top-level
      mappings wrapped in MappingProxyType, lists turned into tuples
    - Context.state is the only mutable cell; a fresh dict per run(), shared by
      reference with every nested compose() context of that run
    - The run meta channel replaces the block's static meta on the Context

Design Decisions:
    - Shallow freeze (one level per field): mirrors what callers can rely on
      without deep-copying large payloads on every invocation
    - Validation of path/fns lives in the executor, not here: a block may be
      declared incomplete and still be introspected
"""

from dataclasses import dataclass, field, replace
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from fage.core.domain_types import ErrorHook, Step

def freeze(value: Any) -> Any:
    """Return a read-only view of `value` (one level deep)."""
    if isinstance(value, Mapping):
        return MappingProxyType(dict(value))
    if isinstance(value, list):
        return tuple(value)
    if isinstance(value, set):
        return frozenset(value)
    return value


@dataclass(frozen=True)
class MethodBlock:
    """A named unit of business logic: ordered steps plus metadata."""

    path: str | None
    fns: tuple[Step, ...] | None
    scopes: str | tuple[str, ...] | None = None
    model: Any = None
    meta: Mapping = field(default_factory=dict)
    ref: Any = None
    on_error: ErrorHook | None = None

    def __post_init__(self):
        # frozen: coerce through object.__setattr__
        if self.fns is not None:
            object.__setattr__(self, "fns", tuple(self.fns))
        if isinstance(self.scopes, list):
            object.__setattr__(self, "scopes", tuple(self.scopes))
        object.__setattr__(self, "meta", freeze(self.meta or {}))


@dataclass(frozen=True)
class Context:
    """Per-invocation record threaded through a chain as the first step argument."""

    path: str
    fns: tuple[Step, ...]
    input: Any
    meta: Mapping
    scopes: str | tuple[str, ...] | None = None
    model: Any = None
    ref: Any = None
    on_error: ErrorHook | None = None
    state: dict = field(default_factory=dict, compare=False, repr=False)

    def without_fns(self) -> "Context":
        """Same context (same state cell) with the step list stripped."""
        return replace(self, fns=())


def build_context(block: MethodBlock, input: Any = None, meta: Mapping | None = None) -> Context:
    """Construct the frozen-core Context for one run of `block`."""
    return Context(
        path=block.path,
        fns=block.fns,
        input=freeze(input),
        meta=freeze(meta or {}),
        scopes=block.scopes,
        model=block.model,
        ref=freeze(block.ref),
        on_error=block.on_error,
        state={},
    )
