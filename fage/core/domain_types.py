"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - MethodPath and ScopeName wrap str; never pass bare strings between engines
    - Every query operator is an Operator member; no raw string matching in the evaluator
    - Step is the single callable signature every chain element satisfies

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: operators compare equal to their wire spelling ("eq" == Operator.EQ)
"""

from enum import Enum
from typing import Any, Awaitable, Callable, NewType, Union


# ─── Identity Types ──────────────────────────────────────────────

MethodPath = NewType("MethodPath", str)
ScopeName = NewType("ScopeName", str)
RoleName = NewType("RoleName", str)


# ─── Callables ───────────────────────────────────────────────────

# (ctx, previous_output) -> output | Awaitable[output]
Step = Callable[[Any, Any], Union[Any, Awaitable[Any]]]

# (ctx, error) -> None | Awaitable[None]
ErrorHook = Callable[[Any, BaseException], Union[None, Awaitable[None]]]


# ─── Enums ───────────────────────────────────────────────────────

class Operator(str, Enum):
    """Leaf comparison operators understood by the query match engine."""
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NIN = "nin"
    ALL = "all"
    ANY = "any"


class BoolOp(str, Enum):
    """Boolean combinators of a match condition tree."""
    AND = "and"
    OR = "or"
