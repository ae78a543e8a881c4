"""Query Match Engine: normalizes where-conditions and evaluates them against records.

Invariants:
    - normalize() is pure and total over the accepted shorthand; its output only
      contains And, Or and Leaf nodes
    - evaluate() only accepts canonical trees; it never guesses shape
    - And is true iff every child is true (empty And is true); Or iff any child is
      true (empty Or is false)
    - Unknown operators raise QueryEngineError; so do malformed conditions
    - all/any against an absent or non-collection field are a non-match, never an error
    - Ordering operators against an absent or incomparable field are a non-match
    - Equality is strict on bools: True never equals 1, False never equals 0
    - in/nin/all/any take a list or tuple value; sets and scalars are rejected

Design Decisions:
    - Two stages (normalize, then evaluate): shape guessing is tested on its own and
      the evaluator stays a plain recursive descent
    - Operator dispatch through an explicit dict: every operator visible in one place
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable

from fage.core.domain_types import BoolOp, Operator
from fage.core.errors import QueryEngineError

_MISSING = object()


# ─── Canonical tree ──────────────────────────────────────────────

@dataclass(frozen=True)
class Leaf:
    field: str
    op: Operator
    value: Any


@dataclass(frozen=True)
class And:
    children: tuple["Condition", ...]


@dataclass(frozen=True)
class Or:
    children: tuple["Condition", ...]


Condition = And | Or | Leaf


# ─── Stage 1: normalization ──────────────────────────────────────

def _operator(op: Any) -> Operator:
    try:
        return Operator(op)
    except ValueError:
        raise QueryEngineError(f"Unknown `where` operator: {op!r}") from None


def _field_leaves(name: str, spec: Any) -> list[Condition]:
    """`{op: value, ...}` → one leaf per operator; anything else → eq leaf."""
    if isinstance(spec, Mapping):
        if not spec:
            raise QueryEngineError(f"Empty operator object for field '{name}'")
        return [Leaf(name, _operator(op), value) for op, value in spec.items()]
    return [Leaf(name, Operator.EQ, spec)]


def _bool_children(op: str, children: Any) -> tuple[Condition, ...]:
    if isinstance(children, (str, bytes)) or not isinstance(children, Sequence):
        raise QueryEngineError(f"`{op}` expects a list of conditions")
    return tuple(normalize(child) for child in children)


def normalize(condition: Any) -> Condition:
    """Turn canonical or shorthand where-input into a canonical tree.

    Accepted shapes:
        {"and": [...]} / {"or": [...]}   boolean nodes, children normalized
        {"a": {"gt": 1}, "b": {...}}     implicit And of leaves
        {"a": 5}                          eq leaf
    None or {} matches everything (empty And).
    """
    if isinstance(condition, (And, Or, Leaf)):
        return condition
    if condition is None:
        return And(())
    if not isinstance(condition, Mapping):
        raise QueryEngineError(
            f"Invalid condition type {type(condition).__name__}. Expected a mapping."
        )

    parts: list[Condition] = []
    for key, value in condition.items():
        if key == BoolOp.AND:
            parts.append(And(_bool_children(key, value)))
        elif key == BoolOp.OR:
            parts.append(Or(_bool_children(key, value)))
        else:
            parts.extend(_field_leaves(key, value))

    if len(parts) == 1:
        return parts[0]
    return And(tuple(parts))


# ─── Stage 2: evaluation ─────────────────────────────────────────

def _is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _same(actual: Any, expected: Any) -> bool:
    """Strict equality: bools never equal ints (True != 1)."""
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    return actual == expected


def _contains(values: Any, expected: Any) -> bool:
    return any(_same(v, expected) for v in values)


def _ordered(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def apply(actual: Any, expected: Any) -> bool:
        if actual is _MISSING or actual is None:
            return False
        try:
            return compare(actual, expected)
        except TypeError:
            return False
    return apply


def _membership(negate: bool) -> Callable[[Any, Any], bool]:
    def apply(actual: Any, expected: Any) -> bool:
        if not _is_list(expected):
            raise QueryEngineError("`in`/`nin` expect a list value")
        value = None if actual is _MISSING else actual
        return _contains(expected, value) != negate
    return apply


def _require_list(expected: Any) -> None:
    if not _is_list(expected):
        raise QueryEngineError("`all`/`any` expect a list value")


def _contains_all(actual: Any, expected: Any) -> bool:
    _require_list(expected)
    if not _is_collection(actual):
        return False
    return all(_contains(actual, v) for v in expected)


def _contains_any(actual: Any, expected: Any) -> bool:
    _require_list(expected)
    if not _is_collection(actual):
        return False
    return any(_contains(actual, v) for v in expected)


def _equals(actual: Any, expected: Any) -> bool:
    return _same(None if actual is _MISSING else actual, expected)


_OPERATIONS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQ: _equals,
    Operator.NEQ: lambda actual, expected: not _equals(actual, expected),
    Operator.GT: _ordered(lambda a, b: a > b),
    Operator.GTE: _ordered(lambda a, b: a >= b),
    Operator.LT: _ordered(lambda a, b: a < b),
    Operator.LTE: _ordered(lambda a, b: a <= b),
    Operator.IN: _membership(negate=False),
    Operator.NIN: _membership(negate=True),
    Operator.ALL: _contains_all,
    Operator.ANY: _contains_any,
}


def evaluate(record: Mapping, condition: Condition) -> bool:
    """Recursive descent over a canonical condition tree."""
    match condition:
        case And(children):
            return all(evaluate(record, child) for child in children)
        case Or(children):
            return any(evaluate(record, child) for child in children)
        case Leaf(field, op, value):
            operation = _OPERATIONS.get(op)
            if operation is None:
                raise QueryEngineError(f"Unknown `where` operator: {op!r}")
            return operation(record.get(field, _MISSING), value)
    raise QueryEngineError(
        f"Not a canonical condition: {type(condition).__name__}"
    )


def match(record: Mapping, condition: Any) -> bool:
    """True when `record` satisfies `condition` (canonical or shorthand)."""
    return evaluate(record, normalize(condition))
