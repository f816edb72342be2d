"""
jpq/analysis.py — static inspection of queries (nothing is evaluated).

``detect_features`` reports which constructs a query uses, ``analyze``
counts them, and ``classify_complexity`` folds the counts into one of three
levels:

=========  ================================================================
COMPLEX    two or more filters, two or more function calls, a filter nested
           inside another filter, or more than eight segments
MODERATE   any filter, function call or descendant segment, or more than
           four segments
SIMPLE     everything else
=========  ================================================================

Segment counts include the segments of embedded queries.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Optional, Set, Union

from jpq import ast_nodes as A
from jpq.functions import FunctionRegistry
from jpq.parser import parse


class Complexity(enum.Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


@dataclass(frozen=True)
class QueryFeatures:
    has_filters: bool = False
    has_functions: bool = False
    has_slices: bool = False
    has_descendant: bool = False
    has_wildcards: bool = False
    function_names: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class QueryStats:
    segments: int = 0
    filters: int = 0
    function_calls: int = 0
    max_nesting: int = 0
    descendant_segments: int = 0
    slices: int = 0
    wildcards: int = 0
    function_names: FrozenSet[str] = frozenset()

    def features(self) -> QueryFeatures:
        return QueryFeatures(
            has_filters=self.filters > 0,
            has_functions=self.function_calls > 0,
            has_slices=self.slices > 0,
            has_descendant=self.descendant_segments > 0,
            has_wildcards=self.wildcards > 0,
            function_names=self.function_names,
        )

    def complexity(self) -> Complexity:
        if (self.filters >= 2 or self.function_calls >= 2
                or self.max_nesting >= 2 or self.segments > 8):
            return Complexity.COMPLEX
        if (self.filters or self.function_calls or self.descendant_segments
                or self.segments > 4):
            return Complexity.MODERATE
        return Complexity.SIMPLE


@dataclass
class _Counter:
    segments: int = 0
    filters: int = 0
    function_calls: int = 0
    max_nesting: int = 0
    descendant_segments: int = 0
    slices: int = 0
    wildcards: int = 0
    function_names: Set[str] = field(default_factory=set)

    def segments_of(self, segments: Iterable[A.Segment], depth: int) -> None:
        for seg in segments:
            self.segments += 1
            if seg.is_descendant:
                self.descendant_segments += 1
            for sel in seg.selectors:
                self.selector(sel, depth)

    def selector(self, sel: A.Selector, depth: int) -> None:
        if isinstance(sel, A.WildcardSelector):
            self.wildcards += 1
        elif isinstance(sel, A.SliceSelector):
            self.slices += 1
        elif isinstance(sel, A.FilterSelector):
            self.filters += 1
            self.max_nesting = max(self.max_nesting, depth + 1)
            self.expression(sel.expression, depth + 1)

    def expression(self, node: Any, depth: int) -> None:
        if isinstance(node, (A.LogicalOr, A.LogicalAnd)):
            self.expression(node.left, depth)
            self.expression(node.right, depth)
        elif isinstance(node, A.LogicalNot):
            self.expression(node.operand, depth)
        elif isinstance(node, A.Comparison):
            self.expression(node.left, depth)
            self.expression(node.right, depth)
        elif isinstance(node, A.ExistenceTest):
            self.expression(node.query, depth)
        elif isinstance(node, A.FunctionExpr):
            self.function_calls += 1
            self.function_names.add(node.name)
            for arg in node.args:
                self.expression(arg, depth)
        elif isinstance(node, A.QueryExpr):
            self.segments_of(node.segments, depth)

    def freeze(self) -> QueryStats:
        return QueryStats(
            segments=self.segments,
            filters=self.filters,
            function_calls=self.function_calls,
            max_nesting=self.max_nesting,
            descendant_segments=self.descendant_segments,
            slices=self.slices,
            wildcards=self.wildcards,
            function_names=frozenset(self.function_names),
        )


QueryLike = Union[str, A.Query]


def analyze(query: QueryLike, registry: Optional[FunctionRegistry] = None) -> QueryStats:
    """Structural counts for a query string or an already parsed query."""
    parsed = parse(query, registry) if isinstance(query, str) else query
    counter = _Counter()
    counter.segments_of(parsed.segments, 0)
    return counter.freeze()


def detect_features(query: QueryLike,
                    registry: Optional[FunctionRegistry] = None) -> QueryFeatures:
    return analyze(query, registry).features()


def classify_complexity(query: QueryLike,
                        registry: Optional[FunctionRegistry] = None) -> Complexity:
    return analyze(query, registry).complexity()


__all__ = [
    "Complexity", "QueryFeatures", "QueryStats",
    "analyze", "detect_features", "classify_complexity",
]
