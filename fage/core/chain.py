"""Chain Executor: runs a method block's steps as a sequential async fold.

Invariants:
    - Steps run strictly left to right, one at a time; step i's output is step i+1's input
    - Step output must not be callable: checked before every step and on the final
      output, violation raises MiddlewareError naming the block path
    - run() raises ConfigurationError synchronously, before any coroutine exists
    - The first raised error halts the chain and reaches the run() caller unchanged
    - on_error fires exactly once per run(); nested compose() chains never fire it;
      anything it raises is logged and discarded

Design Decisions:
    - run() is a plain function returning a coroutine: setup errors surface at the
      call site, never as a failed await
    - Sync and async steps share one signature; awaitables are detected with
      inspect.isawaitable, so plain lambdas work alongside coroutines
"""

import inspect
import logging
from typing import Any, Awaitable, Iterable

from fage.core.context import Context, MethodBlock, build_context
from fage.core.domain_types import Step
from fage.core.errors import ConfigurationError, FageError, MiddlewareError

logger = logging.getLogger(__name__)


def ensure_not_callable(ctx: Context, out: Any) -> None:
    """Invariant: step output must not be callable.

    A callable here is almost always a nested step factory that was placed in
    `fns` without being invoked (e.g. `verify.has_auth` instead of
    `verify.has_auth("user_id")`).
    """
    if not callable(out):
        return
    logger.error(
        "Step chain produced a callable", extra={"path": ctx.path},
    )
    raise MiddlewareError(
        "Step chain returned a function",
        debug={
            "path": ctx.path,
            "details": (
                "Steps in `fns` must return a value, not a function. "
                "Probably a nested step factory missing an invocation."
            ),
        },
    )


async def fold_steps(fns: Iterable[Step], ctx: Context, initial: Any = None) -> Any:
    """Sequential async fold of `fns` over `ctx`, starting from `initial`."""
    out = initial
    for fn in fns:
        ensure_not_callable(ctx, out)
        out = fn(ctx, out)
        if inspect.isawaitable(out):
            out = await out
    ensure_not_callable(ctx, out)
    return out


async def _notify_error_hook(ctx: Context, error: BaseException) -> None:
    """Call the block's on_error hook; its own failures never escape."""
    if ctx.on_error is None:
        return
    try:
        res = ctx.on_error(ctx, error)
        if inspect.isawaitable(res):
            await res
    except Exception as hook_error:
        logger.warning(
            f"on_error hook failed for '{ctx.path}': {hook_error}",
            extra={"path": ctx.path},
            exc_info=True,
        )


async def _execute(ctx: Context) -> Any:
    logger.debug("Run started", extra={"path": ctx.path})
    try:
        out = await fold_steps(ctx.fns, ctx)
    except Exception as error:
        if isinstance(error, FageError) and error.status < 500:
            logger.info(
                f"Run failed: {error.message}",
                extra={"path": ctx.path, "status": error.status, "error_type": error.type},
            )
        await _notify_error_hook(ctx, error)
        raise
    logger.debug("Run finished", extra={"path": ctx.path})
    return out


def run(block: MethodBlock, input: Any = None, meta: dict | None = None) -> Awaitable[Any]:
    """Run a method block: validate, build the context, fold its steps.

    Returns a coroutine resolving to the last step's output. Raises
    ConfigurationError immediately when the block has no path or no steps.
    """
    if not block.path or not block.fns:
        raise ConfigurationError("Method block requires `path` and `fns`")
    return _execute(build_context(block, input, meta))


def compose(fns: Iterable[Step | None]) -> Step:
    """Combine `fns` into one step usable inside another block's `fns`.

    None entries are dropped, so steps can be included conditionally:
    `compose([verify.has_auth("user_id") if auth else None, ...])`.
    """
    steps = tuple(fn for fn in fns if fn is not None)

    async def composed(ctx: Context, output: Any = None) -> Any:
        return await fold_steps(steps, ctx.without_fns(), output)

    return composed
