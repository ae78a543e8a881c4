"""SDK Generator: turns a list of method blocks into a path-keyed runnable mapping.

Invariants:
    - Every block has a path and steps, and every path is unique (ConfigurationError otherwise)
    - Each block's scopes are registered on the injected ScopeRegistry at generate time
    - Calling an entry runs the block; it never mutates the block

Design Decisions:
    - Registry passed in explicitly: two generated SDKs never share grants by accident
    - BoundMethod re-exposes the block metadata a transport needs (path, scopes, model, meta)
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Awaitable, Iterator

from fage.core.chain import run
from fage.core.context import MethodBlock
from fage.core.errors import ConfigurationError
from fage.core.scopes import ScopeRegistry

logger = logging.getLogger(__name__)


class BoundMethod:
    """A method block bound to `run`: call it with (input, meta)."""

    def __init__(self, block: MethodBlock):
        self.block = block

    @property
    def path(self) -> str:
        return self.block.path

    @property
    def scopes(self):
        return self.block.scopes

    @property
    def model(self):
        return self.block.model

    @property
    def meta(self) -> Mapping:
        return self.block.meta

    def __call__(self, input: Any = None, meta: dict | None = None) -> Awaitable[Any]:
        return run(self.block, input, meta)

    def __repr__(self) -> str:
        return f"BoundMethod({self.path!r})"


class Sdk(Mapping):
    """Read-only mapping of method path → BoundMethod."""

    def __init__(self, methods: dict[str, BoundMethod]):
        self._methods = methods

    def __getitem__(self, path: str) -> BoundMethod:
        return self._methods[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)


def generate(blocks: Iterable[MethodBlock], registry: ScopeRegistry) -> Sdk:
    """Validate `blocks`, register their scopes and bind them by path."""
    if isinstance(blocks, MethodBlock):
        raise ConfigurationError("generate() expects a list of method blocks")

    methods: dict[str, BoundMethod] = {}
    for block in blocks:
        if not block.path or not block.fns:
            raise ConfigurationError("Must declare `path` and `fns`")
        if block.path in methods:
            raise ConfigurationError(f"Duplicate method path '{block.path}'")
        if block.scopes:
            registry.register(block.path, block.scopes)
        methods[block.path] = BoundMethod(block)

    logger.info(f"Generated SDK with {len(methods)} method(s)")
    return Sdk(methods)
