"""Chain Executor: tests for run(), compose() and the step fold.

Tests cover:
    - Missing path / fns raise ConfigurationError synchronously
    - Output of step i is the input of step i+1 (sync and async steps)
    - compose() equals inlining; nested ctx has no fns; None steps dropped
    - Callable output at any position raises MiddlewareError
    - on_error fires exactly once and cannot replace or suppress the error
    - Context core is read-only; state is shared with nested chains, fresh per run
"""

import asyncio
import dataclasses

import pytest

from fage.core.chain import compose, fold_steps, run
from fage.core.context import MethodBlock, build_context
from fage.core.errors import ConfigurationError, ForbiddenError, MiddlewareError


def _block(*fns, **kwargs) -> MethodBlock:
    return MethodBlock(path=kwargs.pop("path", "demo.run"), fns=list(fns), **kwargs)


# ─── setup errors ────────────────────────────────────────────────

def test_run_without_path_raises_synchronously():
    with pytest.raises(ConfigurationError):
        run(MethodBlock(path=None, fns=[lambda ctx, out: 1]), {})


def test_run_without_fns_raises_synchronously():
    with pytest.raises(ConfigurationError):
        run(MethodBlock(path="x", fns=None), {})


def test_run_with_empty_fns_raises_synchronously():
    with pytest.raises(ConfigurationError):
        run(MethodBlock(path="x", fns=[]), {})


# ─── ordering ────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_resolves_with_last_step_output():
    assert await run(_block(lambda ctx, out: "magic")) == "magic"


@pytest.mark.asyncio
async def test_each_step_receives_previous_output():
    seen = []

    def f1(ctx, out):
        seen.append(out)
        return "one"

    async def f2(ctx, out):
        seen.append(out)
        await asyncio.sleep(0)
        return "two"

    def f3(ctx, out):
        seen.append(out)
        return out + "!"

    assert await run(_block(f1, f2, f3)) == "two!"
    assert seen == [None, "one", "two"]


@pytest.mark.asyncio
async def test_steps_see_input_and_meta():
    def step(ctx, out):
        return (ctx.input["name"], ctx.meta["user_id"], ctx.path)

    result = await run(_block(step), {"name": "ada"}, {"user_id": 7})
    assert result == ("ada", 7, "demo.run")


@pytest.mark.asyncio
async def test_fold_steps_uses_initial_value():
    ctx = build_context(_block(lambda c, o: o))
    assert await fold_steps([lambda c, o: o * 2], ctx, 21) == 42


# ─── compose ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_compose_behaves_like_inlining():
    a = lambda ctx, out: 1
    b = lambda ctx, out: out + 10
    c = lambda ctx, out: out * 3
    inline = await run(_block(a, b, c))
    nested = await run(_block(compose([a, b, c])))
    assert inline == nested == 33


@pytest.mark.asyncio
async def test_compose_receives_outer_output_as_initial():
    block = _block(lambda ctx, out: 5, compose([lambda ctx, out: out + 1]))
    assert await run(block) == 6


@pytest.mark.asyncio
async def test_compose_strips_fns_from_nested_context():
    captured = {}

    def peek(ctx, out):
        captured["fns"] = ctx.fns
        captured["path"] = ctx.path
        return out

    outer = _block(compose([peek]))
    await run(outer)
    assert captured["fns"] == ()
    assert captured["path"] == "demo.run"


@pytest.mark.asyncio
async def test_compose_drops_none_steps():
    require_auth = False
    guard = lambda ctx, out: (_ for _ in ()).throw(ForbiddenError())
    step = compose([guard if require_auth else None, lambda ctx, out: "ok"])
    assert await run(_block(step)) == "ok"


@pytest.mark.asyncio
async def test_nested_compose_shares_state():
    def write(ctx, out):
        ctx.state["seen"] = True
        return out

    def read(ctx, out):
        return ctx.state.get("seen")

    assert await run(_block(compose([write]), read)) is True


# ─── callable output invariant ───────────────────────────────────

@pytest.mark.asyncio
async def test_function_output_mid_chain_raises_middleware_error():
    called = []
    block = _block(
        lambda ctx, out: (lambda: None),
        lambda ctx, out: called.append(out),
    )
    with pytest.raises(MiddlewareError) as exc_info:
        await run(block)
    assert called == []
    assert exc_info.value.status == 500
    assert exc_info.value.debug["path"] == "demo.run"


@pytest.mark.asyncio
async def test_function_output_from_last_step_raises_middleware_error():
    with pytest.raises(MiddlewareError):
        await run(_block(lambda ctx, out: 1, lambda ctx, out: print))


@pytest.mark.asyncio
async def test_uninvoked_compose_inside_compose_raises():
    inner = compose([lambda ctx, out: 1])
    # a step factory returning the step instead of its result
    misuse = lambda ctx, out: inner
    with pytest.raises(MiddlewareError):
        await run(_block(compose([misuse, lambda ctx, out: out])))


# ─── errors & on_error ───────────────────────────────────────────

@pytest.mark.asyncio
async def test_error_halts_chain():
    ran = []

    def boom(ctx, out):
        raise ForbiddenError()

    with pytest.raises(ForbiddenError):
        await run(_block(boom, lambda ctx, out: ran.append(1)))
    assert ran == []


@pytest.mark.asyncio
async def test_async_rejection_propagates_unchanged():
    err = ValueError("nope")

    async def boom(ctx, out):
        raise err

    with pytest.raises(ValueError) as exc_info:
        await run(_block(boom))
    assert exc_info.value is err


@pytest.mark.asyncio
async def test_on_error_called_once_with_ctx_and_error():
    calls = []
    err = RuntimeError("boom")

    def boom(ctx, out):
        raise err

    block = _block(compose([boom]), on_error=lambda ctx, e: calls.append((ctx.path, e)))
    with pytest.raises(RuntimeError):
        await run(block)
    assert calls == [("demo.run", err)]


@pytest.mark.asyncio
async def test_on_error_failure_is_discarded():
    err = RuntimeError("original")

    def boom(ctx, out):
        raise err

    def bad_hook(ctx, e):
        raise KeyError("hook")

    with pytest.raises(RuntimeError) as exc_info:
        await run(_block(boom, on_error=bad_hook))
    assert exc_info.value is err


@pytest.mark.asyncio
async def test_async_on_error_is_awaited():
    calls = []

    async def hook(ctx, e):
        await asyncio.sleep(0)
        calls.append(e)

    with pytest.raises(ForbiddenError):
        await run(_block(lambda ctx, out: (_ for _ in ()).throw(ForbiddenError()), on_error=hook))
    assert len(calls) == 1


# ─── context immutability ────────────────────────────────────────

@pytest.mark.asyncio
async def test_context_core_is_read_only():
    def mutate_path(ctx, out):
        ctx.path = "other"

    with pytest.raises(dataclasses.FrozenInstanceError):
        await run(_block(mutate_path))


@pytest.mark.asyncio
async def test_input_and_meta_are_read_only():
    def mutate_input(ctx, out):
        ctx.input["x"] = 2

    def mutate_meta(ctx, out):
        ctx.meta["user_id"] = 2

    with pytest.raises(TypeError):
        await run(_block(mutate_input), {"x": 1})
    with pytest.raises(TypeError):
        await run(_block(mutate_meta), {}, {"user_id": 1})


@pytest.mark.asyncio
async def test_state_is_fresh_per_run():
    def count(ctx, out):
        ctx.state["n"] = ctx.state.get("n", 0) + 1
        return ctx.state["n"]

    block = _block(count)
    assert await run(block) == 1
    assert await run(block) == 1


@pytest.mark.asyncio
async def test_caller_input_dict_is_not_frozen_in_place():
    payload = {"x": 1}
    await run(_block(lambda ctx, out: out), payload)
    payload["x"] = 2
    assert payload == {"x": 2}
