"""
jpq/filtering.py — evaluation of filter expressions (``[?...]``).

A :class:`FilterEvaluator` decides, for one candidate node, whether a
filter expression holds.  It works together with the
:class:`~jpq.evaluator.QueryEvaluator` that owns it: embedded queries
(``@.price``, ``$.limit``) are run through that evaluator, relative ones
starting at the candidate node and absolute ones at the document root.

Semantics
---------
* ``||`` / ``&&`` short-circuit left to right; ``!`` negates.
* A comparison turns both sides into :class:`~jpq.values.ComparableValue`
  and hands them to :func:`jpq.compare.compare`.
* An existence test holds only when its query selects exactly one node
  and that node's value is truthy.
* A function used as a test must declare a Logical result (used as is)
  or a Nodes result (true when non-empty).

Function calls
--------------
Arguments are evaluated and converted to the declared parameter types:

==============  ===========  ===========================================
argument        parameter    passed to the executor
==============  ===========  ===========================================
literal         Value        the literal's value
literal         Logical      the literal if it is ``true``/``false``
literal         Nodes        error (``ARGUMENT_TYPE``)
query           Value        the single node's value, or ``NOTHING``
query           Nodes        the :class:`~jpq.values.NodeList`
query           Logical      ``True`` when the nodelist is non-empty
==============  ===========  ===========================================
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Tuple, Type, TYPE_CHECKING

from jpq import ast_nodes as A
from jpq.compare import compare
from jpq.errors import ErrorKind, JSONPathEvaluationError
from jpq.escaping import ROOT_PATH
from jpq.functions import FunctionContext, FunctionDescriptor, FunctionType
from jpq.values import (
    ComparableValue, JSONPathNode, NodeList, is_truthy,
)

if TYPE_CHECKING:
    from jpq.evaluator import QueryEvaluator

logger = logging.getLogger(__name__)


class FilterEvaluator:
    """Evaluates filter expressions on behalf of a query evaluator."""

    def __init__(self, queries: "QueryEvaluator"):
        self._queries = queries
        self._root_node = JSONPathNode(queries.root, ROOT_PATH)
        self._tests: Dict[Type[Any], Callable[[Any, JSONPathNode], bool]] = {
            A.LogicalOr: self._test_or,
            A.LogicalAnd: self._test_and,
            A.LogicalNot: self._test_not,
            A.Comparison: self._test_comparison,
            A.ExistenceTest: self._test_existence,
            A.FunctionExpr: self._test_function,
        }
        self._comparables: Dict[Type[Any], Callable[[Any, JSONPathNode], ComparableValue]] = {
            A.Literal: self._literal_value,
            A.QueryExpr: self._query_value,
            A.FunctionExpr: self._function_value,
        }

    def evaluate(self, expr: A.FilterExpression, current: JSONPathNode) -> bool:
        """Whether ``expr`` holds with ``@`` bound to ``current``."""
        try:
            test = self._tests[type(expr)]
        except KeyError:
            raise JSONPathEvaluationError(
                ErrorKind.INTERNAL,
                f"no evaluation rule for filter expression {type(expr).__name__}") from None
        return test(expr, current)

    # ---- logical structure ----

    def _test_or(self, expr: A.LogicalOr, current: JSONPathNode) -> bool:
        return self.evaluate(expr.left, current) or self.evaluate(expr.right, current)

    def _test_and(self, expr: A.LogicalAnd, current: JSONPathNode) -> bool:
        return self.evaluate(expr.left, current) and self.evaluate(expr.right, current)

    def _test_not(self, expr: A.LogicalNot, current: JSONPathNode) -> bool:
        return not self.evaluate(expr.operand, current)

    def _test_comparison(self, expr: A.Comparison, current: JSONPathNode) -> bool:
        left = self.comparable(expr.left, current)
        right = self.comparable(expr.right, current)
        return compare(left, expr.op, right)

    def _test_existence(self, expr: A.ExistenceTest, current: JSONPathNode) -> bool:
        nodes = self.run_query(expr.query, current)
        return len(nodes) == 1 and is_truthy(nodes[0].value)

    def _test_function(self, expr: A.FunctionExpr, current: JSONPathNode) -> bool:
        descriptor, result = self.call(expr, current)
        if descriptor.result_type is FunctionType.LOGICAL:
            return bool(result)
        if descriptor.result_type is FunctionType.NODES:
            return len(result) > 0
        raise JSONPathEvaluationError(
            ErrorKind.RESULT_TYPE,
            "returns a value and cannot be used as a test without a comparison",
            expr.name)

    # ---- comparables ----

    def comparable(self, expr: A.Comparable, current: JSONPathNode) -> ComparableValue:
        try:
            convert = self._comparables[type(expr)]
        except KeyError:
            raise JSONPathEvaluationError(
                ErrorKind.INTERNAL,
                f"no evaluation rule for comparable {type(expr).__name__}") from None
        return convert(expr, current)

    def _literal_value(self, expr: A.Literal, current: JSONPathNode) -> ComparableValue:
        return ComparableValue.of_value(expr.value)

    def _query_value(self, expr: A.QueryExpr, current: JSONPathNode) -> ComparableValue:
        return ComparableValue.of_nodes(self.run_query(expr, current))

    def _function_value(self, expr: A.FunctionExpr, current: JSONPathNode) -> ComparableValue:
        descriptor, result = self.call(expr, current)
        if descriptor.result_type is FunctionType.LOGICAL:
            return ComparableValue.of_logical(result)
        if descriptor.result_type is FunctionType.NODES:
            return ComparableValue.of_nodes(result)
        return ComparableValue.of_value(result)

    # ---- embedded queries ----

    def run_query(self, expr: A.QueryExpr, current: JSONPathNode) -> NodeList:
        start = current if expr.relative else self._root_node
        return self._queries.run(expr.segments, start)

    # ---- function calls ----

    def call(self, expr: A.FunctionExpr,
             current: JSONPathNode) -> Tuple[FunctionDescriptor, Any]:
        """Run a function call; returns its descriptor and raw result."""
        descriptor = self._queries.registry.get(expr.name)
        if descriptor is None:
            raise JSONPathEvaluationError(
                ErrorKind.UNKNOWN_FUNCTION, "no such function", expr.name)
        if len(expr.args) != descriptor.arity:
            raise JSONPathEvaluationError(
                ErrorKind.ARITY,
                f"expected {descriptor.arity} argument(s), got {len(expr.args)}",
                expr.name)

        args: List[Any] = [
            self._convert_argument(expr.name, position, arg, ptype, current)
            for position, (arg, ptype)
            in enumerate(zip(expr.args, descriptor.parameter_types), start=1)
        ]
        ctx = FunctionContext(
            current=current.value,
            root=self._queries.root,
            regex=self._queries.regex_engine,
            config=self._queries.config,
        )
        try:
            result = descriptor.executor(ctx, *args)
        except JSONPathEvaluationError:
            raise
        except Exception as exc:
            logger.debug("function %s() raised %r", expr.name, exc)
            raise JSONPathEvaluationError(
                ErrorKind.FUNCTION_FAILED, f"{type(exc).__name__}: {exc}",
                expr.name) from exc
        return descriptor, result

    def _convert_argument(self, name: str, position: int, arg: A.FunctionArg,
                          ptype: FunctionType, current: JSONPathNode) -> Any:
        if isinstance(arg, A.Literal):
            if ptype is FunctionType.VALUE:
                return arg.value
            if ptype is FunctionType.LOGICAL and isinstance(arg.value, bool):
                return arg.value
            raise JSONPathEvaluationError(
                ErrorKind.ARGUMENT_TYPE,
                f"argument {position}: literal {arg.to_source()} cannot be "
                f"passed as {ptype.value}", name)

        if isinstance(arg, A.QueryExpr):
            nodes = self.run_query(arg, current)
            if ptype is FunctionType.NODES:
                return nodes
            if ptype is FunctionType.LOGICAL:
                return len(nodes) > 0
            return nodes.single_value()

        raise JSONPathEvaluationError(
            ErrorKind.ARGUMENT_TYPE,
            f"argument {position}: unsupported argument {type(arg).__name__}", name)


__all__ = ["FilterEvaluator"]
