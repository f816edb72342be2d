"""
jpq/errors.py — exception hierarchy for the JSONPath query engine.

Two families of failure exist:

* :class:`JSONPathSyntaxError` — raised only by :func:`jpq.parse`; the query
  text violates the grammar.  Carries the query and the character offset
  and renders a caret pointer under the offending position.
* :class:`JSONPathEvaluationError` — raised only by :func:`jpq.evaluate`;
  covers unknown functions, arity/argument mismatches and regex problems.
  Carries an :class:`ErrorKind` so callers can branch without parsing
  messages.

Missing members, out-of-range indices, empty slices and filters that match
nothing are *not* errors: they simply produce no nodes.
"""

from __future__ import annotations

import enum
from typing import Optional


class JSONPathError(Exception):
    """Base exception for all jpq errors."""
    pass


class JSONPathSyntaxError(JSONPathError):
    """Raised when a query string is malformed."""

    def __init__(self, message: str, query: str = "", position: int = -1):
        self.message = message
        self.query = query
        self.position = position
        if position >= 0 and query:
            pointer = " " * position + "^"
            message = f"{message} (at offset {position})\n  {query}\n  {pointer}"
        super().__init__(message)


@enum.unique
class ErrorKind(enum.Enum):
    """Classification of evaluation-time failures."""
    UNKNOWN_FUNCTION = "unknown-function"
    ARITY = "arity"
    ARGUMENT_TYPE = "argument-type"
    RESULT_TYPE = "result-type"
    INVALID_REGEX = "invalid-regex"
    REGEX_LIMIT = "regex-limit"
    FUNCTION_FAILED = "function-failed"
    INTERNAL = "internal"


class JSONPathEvaluationError(JSONPathError):
    """Raised during query evaluation."""

    def __init__(self, kind: ErrorKind, message: str,
                 function: Optional[str] = None):
        self.kind = kind
        self.message = message
        self.function = function
        prefix = f"{function}(): " if function else ""
        super().__init__(f"[{kind.value}] {prefix}{message}")


class JSONPathConfigError(JSONPathError):
    """Raised when an :class:`jpq.config.EngineConfig` is unusable."""
    pass


__all__ = [
    "JSONPathError",
    "JSONPathSyntaxError",
    "JSONPathEvaluationError",
    "JSONPathConfigError",
    "ErrorKind",
]
