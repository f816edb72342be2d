"""jpq — a JSONPath (RFC 9535) query engine.

Compiles JSONPath query strings into an immutable AST and evaluates them
against JSON value trees (the ``dict`` / ``list`` / scalar structures that
:func:`json.loads` produces), returning ordered nodelists whose nodes carry
their normalized paths.

Submodules
----------
lexer, parser, ast_nodes
    Query text → tokens → :class:`~jpq.ast_nodes.Query`.
evaluator, filtering, compare, values
    Query evaluation, filter expressions and the comparison rules.
functions
    :class:`~jpq.functions.FunctionRegistry` and the built-in functions
    ``length``, ``count``, ``match``, ``search`` and ``value``.
iregexp
    I-Regexp validation and the injectable regex engine.
analysis
    Static feature detection and complexity classification.
engine
    The :class:`~jpq.engine.JSONPath` facade.

Usage
-----
Library::

    import json, jpq

    doc = json.loads(text)
    for node in jpq.query("$.store.book[?@.price < 10]", doc):
        print(node.path, node.value)

    q = jpq.parse("$..author")
    jpq.evaluate(q, doc).values()

Command-line::

    python -m jpq query '$..author' store.json
"""

from __future__ import annotations

__version__ = "0.1.0"

from jpq.analysis import (
    Complexity,
    QueryFeatures,
    QueryStats,
    analyze,
    classify_complexity,
    detect_features,
)
from jpq.ast_nodes import Query
from jpq.config import DEFAULT_CONFIG, EngineConfig
from jpq.engine import JSONPath, compile, query, query_values
from jpq.errors import (
    ErrorKind,
    JSONPathConfigError,
    JSONPathError,
    JSONPathEvaluationError,
    JSONPathSyntaxError,
)
from jpq.evaluator import evaluate
from jpq.functions import (
    FunctionContext,
    FunctionDescriptor,
    FunctionRegistry,
    FunctionType,
)
from jpq.iregexp import IRegexpEngine, RegexEngine
from jpq.parser import parse
from jpq.values import NOTHING, JSONPathNode, NodeList

__all__ = [
    "__version__",
    "parse", "evaluate", "query", "query_values", "compile", "JSONPath",
    "Query", "JSONPathNode", "NodeList", "NOTHING",
    "FunctionRegistry", "FunctionType", "FunctionDescriptor", "FunctionContext",
    "RegexEngine", "IRegexpEngine",
    "EngineConfig", "DEFAULT_CONFIG",
    "JSONPathError", "JSONPathSyntaxError", "JSONPathEvaluationError",
    "JSONPathConfigError", "ErrorKind",
    "analyze", "detect_features", "classify_complexity",
    "Complexity", "QueryFeatures", "QueryStats",
]
