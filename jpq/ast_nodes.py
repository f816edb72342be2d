"""
jpq/ast_nodes.py — immutable AST produced by :mod:`jpq.parser`.

Every node is a frozen dataclass and every sequence is a tuple, so a parsed
:class:`Query` can be shared freely between threads and evaluated any number
of times.

The selector and filter-expression families are *closed*: the grammar
fixes them, and the evaluators dispatch on the concrete class through
tables that list every variant.  Only functions are open for extension,
and they live in :mod:`jpq.functions`, not here.

::

    Query
     └── Segment (CHILD | DESCENDANT)
          └── Selector = NameSelector | WildcardSelector | IndexSelector
                       | SliceSelector | FilterSelector
                                           └── FilterExpression
    FilterExpression = LogicalOr | LogicalAnd | LogicalNot | Comparison
                     | ExistenceTest | FunctionExpr
    Comparable       = Literal | QueryExpr | FunctionExpr
    FunctionArg      = Literal | QueryExpr
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

from jpq.escaping import index_step, name_step


class SegmentKind(enum.Enum):
    CHILD = "child"
    DESCENDANT = "descendant"


class CompareOp(enum.Enum):
    """Comparison operators allowed in filter expressions."""
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="


# ===================================================================
#  Selectors
# ===================================================================

@dataclass(frozen=True)
class NameSelector:
    name: str

    def to_source(self) -> str:
        return name_step(self.name)[1:-1]


@dataclass(frozen=True)
class WildcardSelector:

    def to_source(self) -> str:
        return "*"


@dataclass(frozen=True)
class IndexSelector:
    index: int

    def to_source(self) -> str:
        return index_step(self.index)[1:-1]


@dataclass(frozen=True)
class SliceSelector:
    """``start:end:step``; ``None`` bounds are unbounded in that direction."""
    start: Optional[int] = None
    end: Optional[int] = None
    step: int = 1

    def to_source(self) -> str:
        start = "" if self.start is None else str(self.start)
        end = "" if self.end is None else str(self.end)
        if self.step == 1:
            return f"{start}:{end}"
        return f"{start}:{end}:{self.step}"


@dataclass(frozen=True)
class FilterSelector:
    expression: "FilterExpression"

    def to_source(self) -> str:
        return "?" + self.expression.to_source()


Selector = Union[NameSelector, WildcardSelector, IndexSelector,
                 SliceSelector, FilterSelector]


# ===================================================================
#  Segments and queries
# ===================================================================

@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    selectors: Tuple[Selector, ...]

    @property
    def is_descendant(self) -> bool:
        return self.kind is SegmentKind.DESCENDANT

    def to_source(self) -> str:
        prefix = ".." if self.is_descendant else ""
        body = ",".join(s.to_source() for s in self.selectors)
        return f"{prefix}[{body}]"


@dataclass(frozen=True)
class Query:
    """A root-anchored query: ``$`` followed by segments."""
    segments: Tuple[Segment, ...] = ()

    def to_source(self) -> str:
        """Canonical bracket-notation rendering of the query."""
        return "$" + "".join(seg.to_source() for seg in self.segments)

    def is_singular(self) -> bool:
        """True if every segment is a child segment with one name or index selector."""
        return _segments_singular(self.segments)

    def pretty(self, indent: int = 0) -> str:
        return "\n".join(_pretty_lines(self, indent))


def _segments_singular(segments: Tuple[Segment, ...]) -> bool:
    for seg in segments:
        if seg.is_descendant or len(seg.selectors) != 1:
            return False
        if not isinstance(seg.selectors[0], (NameSelector, IndexSelector)):
            return False
    return True


# ===================================================================
#  Comparables and filter expressions
# ===================================================================

@dataclass(frozen=True)
class Literal:
    """A JSON scalar literal: str, int, float, bool or None."""
    value: Any

    def to_source(self) -> str:
        if isinstance(self.value, str):
            return "'" + name_step(self.value)[2:-2] + "'"
        return json.dumps(self.value)


@dataclass(frozen=True)
class QueryExpr:
    """An embedded query; ``relative`` queries start at ``@``, others at ``$``."""
    segments: Tuple[Segment, ...]
    relative: bool

    def is_singular(self) -> bool:
        return _segments_singular(self.segments)

    def to_source(self) -> str:
        head = "@" if self.relative else "$"
        return head + "".join(seg.to_source() for seg in self.segments)


@dataclass(frozen=True)
class FunctionExpr:
    name: str
    args: Tuple["FunctionArg", ...]

    def to_source(self) -> str:
        return f"{self.name}({', '.join(a.to_source() for a in self.args)})"


@dataclass(frozen=True)
class LogicalOr:
    left: "FilterExpression"
    right: "FilterExpression"

    def to_source(self) -> str:
        return f"({self.left.to_source()} || {self.right.to_source()})"


@dataclass(frozen=True)
class LogicalAnd:
    left: "FilterExpression"
    right: "FilterExpression"

    def to_source(self) -> str:
        return f"({self.left.to_source()} && {self.right.to_source()})"


@dataclass(frozen=True)
class LogicalNot:
    operand: "FilterExpression"

    def to_source(self) -> str:
        return f"!{self.operand.to_source()}"


@dataclass(frozen=True)
class Comparison:
    left: "Comparable"
    op: CompareOp
    right: "Comparable"

    def to_source(self) -> str:
        return f"{self.left.to_source()} {self.op.value} {self.right.to_source()}"


@dataclass(frozen=True)
class ExistenceTest:
    query: QueryExpr

    def to_source(self) -> str:
        return self.query.to_source()


FilterExpression = Union[LogicalOr, LogicalAnd, LogicalNot, Comparison,
                         ExistenceTest, FunctionExpr]
Comparable = Union[Literal, QueryExpr, FunctionExpr]
FunctionArg = Union[Literal, QueryExpr]


# ===================================================================
#  Pretty printing
# ===================================================================

def _pretty_lines(node: Any, indent: int) -> List[str]:
    """Render an AST node as an indented tree, one node per line."""
    prefix = "  " * indent
    if isinstance(node, Query):
        lines = [f"{prefix}query"]
        for seg in node.segments:
            lines.extend(_pretty_lines(seg, indent + 1))
        return lines
    if isinstance(node, Segment):
        lines = [f"{prefix}segment {node.kind.value}"]
        for sel in node.selectors:
            lines.extend(_pretty_lines(sel, indent + 1))
        return lines
    if isinstance(node, NameSelector):
        return [f"{prefix}name {node.name!r}"]
    if isinstance(node, WildcardSelector):
        return [f"{prefix}wildcard"]
    if isinstance(node, IndexSelector):
        return [f"{prefix}index {node.index}"]
    if isinstance(node, SliceSelector):
        return [f"{prefix}slice start={node.start} end={node.end} step={node.step}"]
    if isinstance(node, FilterSelector):
        return [f"{prefix}filter"] + _pretty_lines(node.expression, indent + 1)
    if isinstance(node, (LogicalOr, LogicalAnd)):
        label = "or" if isinstance(node, LogicalOr) else "and"
        return ([f"{prefix}{label}"]
                + _pretty_lines(node.left, indent + 1)
                + _pretty_lines(node.right, indent + 1))
    if isinstance(node, LogicalNot):
        return [f"{prefix}not"] + _pretty_lines(node.operand, indent + 1)
    if isinstance(node, Comparison):
        return ([f"{prefix}compare {node.op.value}"]
                + _pretty_lines(node.left, indent + 1)
                + _pretty_lines(node.right, indent + 1))
    if isinstance(node, ExistenceTest):
        return [f"{prefix}exists"] + _pretty_lines(node.query, indent + 1)
    if isinstance(node, FunctionExpr):
        lines = [f"{prefix}call {node.name}"]
        for arg in node.args:
            lines.extend(_pretty_lines(arg, indent + 1))
        return lines
    if isinstance(node, QueryExpr):
        head = "relative" if node.relative else "absolute"
        lines = [f"{prefix}query {head}"]
        for seg in node.segments:
            lines.extend(_pretty_lines(seg, indent + 1))
        return lines
    if isinstance(node, Literal):
        return [f"{prefix}literal {node.to_source()}"]
    raise TypeError(f"not an AST node: {type(node).__name__}")


def pretty(node: Any, indent: int = 0) -> str:
    return "\n".join(_pretty_lines(node, indent))


__all__ = [
    "SegmentKind", "CompareOp",
    "NameSelector", "WildcardSelector", "IndexSelector", "SliceSelector",
    "FilterSelector", "Selector",
    "Segment", "Query",
    "Literal", "QueryExpr", "FunctionExpr",
    "LogicalOr", "LogicalAnd", "LogicalNot", "Comparison", "ExistenceTest",
    "FilterExpression", "Comparable", "FunctionArg",
    "pretty",
]
