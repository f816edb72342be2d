"""
jpq/evaluator.py — evaluates a parsed :class:`~jpq.ast_nodes.Query` against a JSON tree.

Evaluation is a pipeline over segments.  The working set starts as the
single root node ``$``; each segment maps every node of the working set
through every one of its selectors (outer loop over nodes, inner loop over
selectors) and the concatenated results become the next working set.

* Child segments apply their selectors to the node itself.
* Descendant segments apply their selectors to the node and to every node
  below it, visited in pre-order depth-first order.  Traversal uses an
  explicit work stack, so document depth never touches the interpreter's
  recursion limit.

Selector semantics are dispatched through a table keyed by selector class
(``QueryEvaluator._selectors``).  Nothing here raises for "no match": missing members,
out-of-range indices and empty slices contribute no nodes.  Only function
execution inside filters can raise :class:`~jpq.errors.JSONPathEvaluationError`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Type

from jpq import ast_nodes as A
from jpq.config import DEFAULT_CONFIG, EngineConfig
from jpq.errors import ErrorKind, JSONPathEvaluationError
from jpq.escaping import ROOT_PATH, index_step, name_step
from jpq.filtering import FilterEvaluator
from jpq.functions import FunctionRegistry, default_registry
from jpq.iregexp import RegexEngine, engine_for
from jpq.values import JSONKind, JSONPathNode, NodeList, json_kind

logger = logging.getLogger(__name__)


def normalize_slice(start: Optional[int], end: Optional[int], step: int,
                    length: int) -> range:
    """The indices a ``start:end:step`` slice selects from an array of ``length``.

    Negative bounds count from the end, defaults depend on the sign of
    ``step``, bounds are clamped to the array and a zero step selects
    nothing.
    """
    if step == 0 or length == 0:
        return range(0)

    def _normalize(i: int) -> int:
        return i if i >= 0 else length + i

    if step > 0:
        lower = 0 if start is None else min(max(_normalize(start), 0), length)
        upper = length if end is None else min(max(_normalize(end), 0), length)
        return range(lower, upper, step)

    upper = length - 1 if start is None else min(max(_normalize(start), -1), length - 1)
    lower = -1 if end is None else min(max(_normalize(end), -1), length - 1)
    return range(upper, lower, step)


def _children(node: JSONPathNode) -> Iterator[JSONPathNode]:
    """Immediate children of ``node`` in document order."""
    value = node.value
    kind = json_kind(value)
    if kind is JSONKind.ARRAY:
        for i, item in enumerate(value):
            yield JSONPathNode(item, node.path + index_step(i))
    elif kind is JSONKind.OBJECT:
        for key, item in value.items():
            yield JSONPathNode(item, node.path + name_step(key))


def descendants_or_self(node: JSONPathNode) -> Iterator[JSONPathNode]:
    """``node`` followed by every node below it, in pre-order."""
    stack: List[JSONPathNode] = [node]
    while stack:
        current = stack.pop()
        yield current
        children = list(_children(current))
        children.reverse()
        stack.extend(children)


class QueryEvaluator:
    """Applies segments and selectors to nodes.

    One evaluator is built per :func:`evaluate` call and carries the
    document root, the function registry, the config and the regex engine
    down into filter evaluation.
    """

    def __init__(self, root: Any, registry: FunctionRegistry,
                 config: EngineConfig, regex_engine: RegexEngine):
        self.root = root
        self.registry = registry
        self.config = config
        self.regex_engine = regex_engine
        self.filters = FilterEvaluator(self)
        self._selectors: Dict[Type[Any], Callable[[Any, JSONPathNode], Iterator[JSONPathNode]]] = {
            A.NameSelector: self._select_name,
            A.WildcardSelector: self._select_wildcard,
            A.IndexSelector: self._select_index,
            A.SliceSelector: self._select_slice,
            A.FilterSelector: self._select_filter,
        }

    # ---- queries ----

    def run(self, segments: Tuple[A.Segment, ...], start: JSONPathNode) -> NodeList:
        nodes: List[JSONPathNode] = [start]
        for segment in segments:
            nodes = self._apply_segment(segment, nodes)
            if not nodes:
                break
        return NodeList(nodes)

    def _apply_segment(self, segment: A.Segment,
                       nodes: List[JSONPathNode]) -> List[JSONPathNode]:
        out: List[JSONPathNode] = []
        for node in nodes:
            visited = descendants_or_self(node) if segment.is_descendant else (node,)
            for target in visited:
                for selector in segment.selectors:
                    out.extend(self.select(selector, target))
        return out

    def select(self, selector: A.Selector, node: JSONPathNode) -> Iterator[JSONPathNode]:
        try:
            handler = self._selectors[type(selector)]
        except KeyError:
            raise JSONPathEvaluationError(
                ErrorKind.INTERNAL,
                f"no evaluation rule for selector {type(selector).__name__}") from None
        return handler(selector, node)

    # ---- selectors ----

    def _select_name(self, selector: A.NameSelector,
                     node: JSONPathNode) -> Iterator[JSONPathNode]:
        value = node.value
        if json_kind(value) is JSONKind.OBJECT and selector.name in value:
            yield JSONPathNode(value[selector.name], node.path + name_step(selector.name))

    def _select_wildcard(self, selector: A.WildcardSelector,
                         node: JSONPathNode) -> Iterator[JSONPathNode]:
        return _children(node)

    def _select_index(self, selector: A.IndexSelector,
                      node: JSONPathNode) -> Iterator[JSONPathNode]:
        value = node.value
        if json_kind(value) is not JSONKind.ARRAY:
            return
        i = selector.index if selector.index >= 0 else len(value) + selector.index
        if 0 <= i < len(value):
            yield JSONPathNode(value[i], node.path + index_step(i))

    def _select_slice(self, selector: A.SliceSelector,
                      node: JSONPathNode) -> Iterator[JSONPathNode]:
        value = node.value
        if json_kind(value) is not JSONKind.ARRAY:
            return
        for i in normalize_slice(selector.start, selector.end, selector.step, len(value)):
            yield JSONPathNode(value[i], node.path + index_step(i))

    def _select_filter(self, selector: A.FilterSelector,
                       node: JSONPathNode) -> Iterator[JSONPathNode]:
        for child in _children(node):
            if self.filters.evaluate(selector.expression, child):
                yield child


def evaluate(query: A.Query, root: Any,
             registry: Optional[FunctionRegistry] = None,
             config: Optional[EngineConfig] = None,
             regex_engine: Optional[RegexEngine] = None) -> NodeList:
    """Evaluate a parsed query against ``root``.

    Parameters
    ----------
    query : Query
        Result of :func:`jpq.parse`.
    root : object
        A JSON value tree as produced by :func:`json.loads`.  It is never
        modified.
    registry : FunctionRegistry, optional
        Functions available to filters; defaults to the built-ins.
    config : EngineConfig, optional
        Limits for regex patterns and subjects.
    regex_engine : RegexEngine, optional
        Backend for ``match()`` and ``search()``; defaults to an
        :class:`~jpq.iregexp.IRegexpEngine` for ``config``.

    Returns
    -------
    NodeList
        Matches in traversal order, duplicates included.

    Raises
    ------
    JSONPathEvaluationError
        If a function call inside a filter fails.
    """
    config = config or DEFAULT_CONFIG
    evaluator = QueryEvaluator(
        root,
        registry if registry is not None else default_registry(),
        config,
        regex_engine if regex_engine is not None else engine_for(config),
    )
    return evaluator.run(query.segments, JSONPathNode(root, ROOT_PATH))


__all__ = ["evaluate", "QueryEvaluator", "normalize_slice", "descendants_or_self"]
