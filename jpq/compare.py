"""
jpq/compare.py — the comparison engine.

``compare(left, op, right)`` is total: it never raises, whatever kinds
meet.  Both operands are first reduced (nodelists to their single value or
NOTHING, logical results to booleans), then the operator is dispatched
through ``_OPERATORS``:

============  ===========================================================
``==``        NOTHING == NOTHING; otherwise both sides must be present and
              of the same JSON kind; numbers by value, strings by code
              points, booleans/null by identity, arrays and objects deep
``!=``        exact negation of ``==``
``< <= > >=`` only number/number and string/string; every other pairing
              (NOTHING, booleans, null, arrays, objects, mixed) is false
============  ===========================================================
"""

from __future__ import annotations

import operator
from typing import Any, Callable, Dict, List, Tuple

from jpq.ast_nodes import CompareOp
from jpq.values import ComparableValue, JSONKind, json_kind

_ORDERED_KINDS = frozenset({JSONKind.NUMBER, JSONKind.STRING})


def json_equal(a: Any, b: Any) -> bool:
    """Deep structural equality of two JSON values.

    Uses an explicit work stack so arbitrarily deep documents do not hit
    the interpreter's recursion limit.
    """
    stack: List[Tuple[Any, Any]] = [(a, b)]
    while stack:
        x, y = stack.pop()
        kx, ky = json_kind(x), json_kind(y)
        if kx is not ky:
            return False
        if kx is JSONKind.ARRAY:
            if len(x) != len(y):
                return False
            stack.extend(zip(x, y))
        elif kx is JSONKind.OBJECT:
            if len(x) != len(y) or x.keys() != y.keys():
                return False
            stack.extend((x[k], y[k]) for k in x)
        elif kx is JSONKind.UNKNOWN:
            if x != y:
                return False
        elif kx is not JSONKind.NULL and x != y:
            return False
    return True


def _equal(left: ComparableValue, right: ComparableValue) -> bool:
    if left.is_nothing or right.is_nothing:
        return left.is_nothing and right.is_nothing
    return json_equal(left.payload, right.payload)


def _ordered(cmp: Callable[[Any, Any], bool]) -> Callable[[ComparableValue, ComparableValue], bool]:
    def _compare(left: ComparableValue, right: ComparableValue) -> bool:
        if left.is_nothing or right.is_nothing:
            return False
        kl, kr = json_kind(left.payload), json_kind(right.payload)
        if kl is not kr or kl not in _ORDERED_KINDS:
            return False
        return cmp(left.payload, right.payload)
    return _compare


_OPERATORS: Dict[CompareOp, Callable[[ComparableValue, ComparableValue], bool]] = {
    CompareOp.EQ: _equal,
    CompareOp.NE: lambda l, r: not _equal(l, r),
    CompareOp.LT: _ordered(operator.lt),
    CompareOp.LE: _ordered(operator.le),
    CompareOp.GT: _ordered(operator.gt),
    CompareOp.GE: _ordered(operator.ge),
}


def compare(left: ComparableValue, op: CompareOp, right: ComparableValue) -> bool:
    """Apply ``op`` to two comparable values; never raises."""
    return _OPERATORS[op](left.reduce(), right.reduce())


__all__ = ["compare", "json_equal"]
