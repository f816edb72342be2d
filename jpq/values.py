"""
jpq/values.py — the value model shared by filters, functions and comparisons.

:class:`JSONPathNode` / :class:`NodeList` are what :func:`jpq.evaluate`
returns.  :class:`ComparableValue` is the four-kind union the comparison
engine operates on:

==========  =====================================================
NOTHING     absence of a value (empty or multi-node nodelist, or a
            function that produced nothing)
VALUE       a single JSON value (scalar or composite)
NODES       a nodelist, reduced before comparison
LOGICAL     a logical result produced by a function
==========  =====================================================
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable, List


class _NothingType:
    """Singleton marking the absence of a value (distinct from JSON ``null``)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Nothing"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_NothingType, ())


NOTHING = _NothingType()


# ===================================================================
#  Nodes
# ===================================================================

@dataclass(frozen=True)
class JSONPathNode:
    """A matched location: the value found there and its normalized path."""
    value: Any
    path: str

    def __repr__(self) -> str:
        return f"JSONPathNode({self.path}, {self.value!r})"


class NodeList(list):
    """Ordered result of a query; duplicates are kept."""

    def values(self) -> List[Any]:
        return [node.value for node in self]

    def paths(self) -> List[str]:
        return [node.path for node in self]

    def single_value(self) -> Any:
        """The value of the only node, or :data:`NOTHING` for 0 or 2+ nodes."""
        if len(self) == 1:
            return self[0].value
        return NOTHING


# ===================================================================
#  JSON kinds
# ===================================================================

class JSONKind(enum.Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    NOTHING = "nothing"
    UNKNOWN = "unknown"


def json_kind(value: Any) -> JSONKind:
    """Classify a Python object as a JSON kind.

    ``bool`` is tested before ``int`` because ``True`` is an ``int`` in
    Python but never a number in JSON.
    """
    if value is None:
        return JSONKind.NULL
    if value is NOTHING:
        return JSONKind.NOTHING
    if isinstance(value, bool):
        return JSONKind.BOOLEAN
    if isinstance(value, (int, float)):
        return JSONKind.NUMBER
    if isinstance(value, str):
        return JSONKind.STRING
    if isinstance(value, (list, tuple)):
        return JSONKind.ARRAY
    if isinstance(value, dict):
        return JSONKind.OBJECT
    return JSONKind.UNKNOWN


def is_truthy(value: Any) -> bool:
    """Truthiness used by existence tests.

    ``true``, non-zero numbers, non-empty strings, non-empty arrays and all
    objects are truthy; ``null``, ``false``, zero, ``""`` and ``[]`` are not.
    """
    kind = json_kind(value)
    if kind is JSONKind.BOOLEAN:
        return value
    if kind is JSONKind.NUMBER:
        return value != 0
    if kind in (JSONKind.STRING, JSONKind.ARRAY):
        return len(value) > 0
    return kind is JSONKind.OBJECT


# ===================================================================
#  ComparableValue
# ===================================================================

class ValueKind(enum.Enum):
    NOTHING = "nothing"
    VALUE = "value"
    NODES = "nodes"
    LOGICAL = "logical"


@dataclass(frozen=True)
class ComparableValue:
    kind: ValueKind
    payload: Any = None

    @classmethod
    def nothing(cls) -> "ComparableValue":
        return _NOTHING_VALUE

    @classmethod
    def of_value(cls, value: Any) -> "ComparableValue":
        if value is NOTHING:
            return _NOTHING_VALUE
        return cls(ValueKind.VALUE, value)

    @classmethod
    def of_nodes(cls, nodes: Iterable[JSONPathNode]) -> "ComparableValue":
        if not isinstance(nodes, NodeList):
            nodes = NodeList(nodes)
        return cls(ValueKind.NODES, nodes)

    @classmethod
    def of_logical(cls, flag: bool) -> "ComparableValue":
        return cls(ValueKind.LOGICAL, bool(flag))

    def reduce(self) -> "ComparableValue":
        """Collapse to NOTHING or VALUE, the only kinds comparisons inspect.

        A nodelist contributes its value if it holds exactly one node and
        NOTHING otherwise; a logical result compares as a JSON boolean.
        """
        if self.kind is ValueKind.NODES:
            return ComparableValue.of_value(self.payload.single_value())
        if self.kind is ValueKind.LOGICAL:
            return ComparableValue(ValueKind.VALUE, self.payload)
        return self

    @property
    def is_nothing(self) -> bool:
        return self.kind is ValueKind.NOTHING


_NOTHING_VALUE = ComparableValue(ValueKind.NOTHING, NOTHING)


__all__ = [
    "NOTHING", "JSONPathNode", "NodeList",
    "JSONKind", "json_kind", "is_truthy",
    "ValueKind", "ComparableValue",
]
