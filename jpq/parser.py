"""
jpq/parser.py — recursive-descent parser for JSONPath queries.

Grammar (RFC 9535 shaped)::

    query          → '$' segment*  EOF
    segment        → '..' (bracketed | '*' | NAME)          -- descendant
                   | '.' ('*' | NAME)                         -- child
                   | bracketed                                -- child
    bracketed      → '[' selector (',' selector)* ']'
    selector       → '?' logical_or                           -- filter
                   | '*'                                      -- wildcard
                   | STRING                                   -- name
                   | INT (':' INT? (':' INT?)?)?              -- index / slice
                   | ':' INT? (':' INT?)?                     -- slice
    logical_or     → logical_and ('||' logical_and)*
    logical_and    → logical_not ('&&' logical_not)*
    logical_not    → '!' logical_not | basic
    basic          → '(' logical_or ')'
                   | comparable (cmp_op comparable)?
    comparable     → FUNCTION '(' (arg (',' arg)*)? ')'
                   | ('@' | '$') segment*
                   | STRING | NUMBER | 'true' | 'false' | 'null'
    arg            → ('@' | '$') segment* | literal

A bare comparable is only legal as a test when it is a query (existence
test) or a function whose declared result type is Logical or Nodes.

Design principles
-----------------
* **One method per rule**, named ``_parse_<rule>``.
* **Fail-fast with location** – :class:`JSONPathSyntaxError` names the
  expected construct and the token actually found, with its offset.
* **Bounded nesting** – parenthesised, negated and nested-filter depth is
  capped by ``EngineConfig.max_nesting_depth``.
* **Balanced chains** – ``a && b && c && d`` becomes
  ``(a && b) && (c && d)``, so chain length only adds logarithmic depth.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from jpq import ast_nodes as A
from jpq.config import DEFAULT_CONFIG, EngineConfig
from jpq.errors import JSONPathSyntaxError
from jpq.escaping import unescape_string
from jpq.functions import FunctionRegistry, FunctionType, default_registry
from jpq.lexer import COMPARISON_TOKENS, Tok, TokType, tokenize

logger = logging.getLogger(__name__)


_CMP_OPS = {
    TokType.OP_EQ: A.CompareOp.EQ,
    TokType.OP_NEQ: A.CompareOp.NE,
    TokType.OP_LT: A.CompareOp.LT,
    TokType.OP_LTE: A.CompareOp.LE,
    TokType.OP_GT: A.CompareOp.GT,
    TokType.OP_GTE: A.CompareOp.GE,
}

_KEYWORD_LITERALS = {"true": True, "false": False, "null": None}


def _balanced(node_type, terms: List[A.FilterExpression]) -> A.FilterExpression:
    """Join ``terms`` with ``node_type`` into a tree of logarithmic depth.

    Terms keep their left-to-right order, so evaluation and short-circuiting
    are the same as for a left-deep chain.
    """
    if len(terms) == 1:
        return terms[0]
    mid = (len(terms) + 1) // 2
    return node_type(_balanced(node_type, terms[:mid]),
                     _balanced(node_type, terms[mid:]))



class _Parser:
    """Recursive descent parser over a token list."""

    def __init__(self, tokens: List[Tok], query: str,
                 registry: FunctionRegistry, config: EngineConfig):
        self._tokens = tokens
        self._query = query
        self._registry = registry
        self._max_depth = config.max_nesting_depth
        self._depth = 0
        self._pos = 0

    # ---- token helpers ----

    def _peek(self) -> Tok:
        return self._tokens[self._pos]

    def _advance(self) -> Tok:
        tok = self._tokens[self._pos]
        if tok.type is not TokType.EOF:
            self._pos += 1
        return tok

    def _at(self, *types: TokType) -> bool:
        return self._peek().type in types

    def _error(self, expected: str, tok: Optional[Tok] = None) -> JSONPathSyntaxError:
        tok = tok or self._peek()
        return JSONPathSyntaxError(
            f"Expected {expected}, got {tok.describe()}", self._query, tok.pos)

    def _expect(self, tt: TokType, expected: str) -> Tok:
        if not self._at(tt):
            raise self._error(expected)
        return self._advance()

    def _enter(self) -> None:
        self._depth += 1
        if self._depth > self._max_depth:
            tok = self._peek()
            raise JSONPathSyntaxError(
                f"Filter expression nested deeper than {self._max_depth} levels",
                self._query, tok.pos)

    def _leave(self) -> None:
        self._depth -= 1

    # ---- query & segments ----

    def parse(self) -> A.Query:
        """query → '$' segment* EOF"""
        self._expect(TokType.ROOT, "'$' at start of query")
        segments = self._parse_segments()
        if not self._at(TokType.EOF):
            raise self._error("end of query or segment")
        return A.Query(segments)

    def _parse_segments(self) -> Tuple[A.Segment, ...]:
        segments: List[A.Segment] = []
        while self._at(TokType.DOT, TokType.DOUBLE_DOT, TokType.LBRACKET):
            segments.append(self._parse_segment())
        return tuple(segments)

    def _parse_segment(self) -> A.Segment:
        if self._at(TokType.DOUBLE_DOT):
            self._advance()
            return self._parse_descendant_segment()
        if self._at(TokType.LBRACKET):
            return A.Segment(A.SegmentKind.CHILD, self._parse_bracketed())
        self._advance()  # '.'
        return A.Segment(A.SegmentKind.CHILD, (self._parse_shorthand("'.'"),))

    def _parse_descendant_segment(self) -> A.Segment:
        """'..' (bracketed | '*' | NAME)"""
        if self._at(TokType.LBRACKET) and not self._peek().spaced:
            return A.Segment(A.SegmentKind.DESCENDANT, self._parse_bracketed())
        return A.Segment(A.SegmentKind.DESCENDANT,
                         (self._parse_shorthand("'..'"),))

    def _parse_shorthand(self, after: str) -> A.Selector:
        """Member-name shorthand or wildcard directly after a dot."""
        tok = self._peek()
        if tok.spaced:
            raise JSONPathSyntaxError(
                f"Blank space is not allowed after {after}", self._query, tok.pos)
        if tok.type is TokType.WILDCARD:
            self._advance()
            return A.WildcardSelector()
        if tok.type is TokType.NAME:
            self._advance()
            return A.NameSelector(tok.value)
        raise self._error(f"member name or '*' after {after}")

    def _parse_bracketed(self) -> Tuple[A.Selector, ...]:
        """'[' selector (',' selector)* ']'"""
        self._expect(TokType.LBRACKET, "'['")
        selectors = [self._parse_selector()]
        while self._at(TokType.COMMA):
            self._advance()
            selectors.append(self._parse_selector())
        self._expect(TokType.RBRACKET, "',' or ']' in bracketed selection")
        return tuple(selectors)

    # ---- selectors ----

    def _parse_selector(self) -> A.Selector:
        tok = self._peek()
        if tok.type is TokType.QUESTION:
            self._advance()
            return A.FilterSelector(self._parse_logical_or())
        if tok.type is TokType.WILDCARD:
            self._advance()
            return A.WildcardSelector()
        if tok.type is TokType.STRING:
            self._advance()
            return A.NameSelector(self._decode_string(tok))
        if tok.type is TokType.NUMBER:
            start = self._parse_int(self._advance())
            if self._at(TokType.COLON):
                return self._parse_slice(start)
            return A.IndexSelector(start)
        if tok.type is TokType.COLON:
            return self._parse_slice(None)
        raise self._error("selector (name, '*', index, slice or filter)")

    def _parse_slice(self, start: Optional[int]) -> A.SliceSelector:
        """':' INT? (':' INT?)?; the start bound has already been consumed."""
        self._expect(TokType.COLON, "':' in slice")
        end = None
        if self._at(TokType.NUMBER):
            end = self._parse_int(self._advance())
        step = 1
        if self._at(TokType.COLON):
            self._advance()
            if self._at(TokType.NUMBER):
                step = self._parse_int(self._advance())
        return A.SliceSelector(start, end, step)

    def _parse_int(self, tok: Tok) -> int:
        text = tok.value
        if any(c in text for c in ".eE"):
            raise JSONPathSyntaxError(
                f"Expected integer, got number {text!r}", self._query, tok.pos)
        if text == "-0":
            raise JSONPathSyntaxError(
                "Negative zero is not a valid index", self._query, tok.pos)
        return int(text)

    def _decode_string(self, tok: Tok) -> str:
        return unescape_string(tok.value, tok.quote, self._query, tok.pos + 1)

    # ---- filter expressions ----

    def _parse_logical_or(self) -> A.FilterExpression:
        """logical_or → logical_and ('||' logical_and)*"""
        self._enter()
        try:
            terms = [self._parse_logical_and()]
            while self._at(TokType.OR):
                self._advance()
                terms.append(self._parse_logical_and())
            return _balanced(A.LogicalOr, terms)
        finally:
            self._leave()

    def _parse_logical_and(self) -> A.FilterExpression:
        terms = [self._parse_logical_not()]
        while self._at(TokType.AND):
            self._advance()
            terms.append(self._parse_logical_not())
        return _balanced(A.LogicalAnd, terms)

    def _parse_logical_not(self) -> A.FilterExpression:
        if self._at(TokType.NOT):
            self._advance()
            self._enter()
            try:
                return A.LogicalNot(self._parse_logical_not())
            finally:
                self._leave()
        return self._parse_basic()

    def _parse_basic(self) -> A.FilterExpression:
        """Parenthesised expression, comparison or standalone test."""
        if self._at(TokType.LPAREN):
            self._advance()
            expr = self._parse_logical_or()
            self._expect(TokType.RPAREN, "')' to close parenthesised expression")
            return expr

        start_tok = self._peek()
        left = self._parse_comparable()

        if self._peek().type in COMPARISON_TOKENS:
            op = _CMP_OPS[self._advance().type]
            right = self._parse_comparable()
            return A.Comparison(left, op, right)

        if isinstance(left, A.FunctionExpr):
            descriptor = self._registry.get(left.name)
            if descriptor is not None and descriptor.result_type is FunctionType.VALUE:
                raise JSONPathSyntaxError(
                    f"Function '{left.name}' returns a value and must be "
                    f"used with a comparison operator",
                    self._query, start_tok.pos)
            return left

        if isinstance(left, A.QueryExpr):
            return A.ExistenceTest(left)

        raise self._error("comparison operator after literal")

    def _parse_comparable(self) -> A.Comparable:
        tok = self._peek()
        if tok.type is TokType.FUNCTION:
            return self._parse_function()
        if tok.type in (TokType.CURRENT, TokType.ROOT):
            return self._parse_query_expr()
        literal = self._parse_literal()
        if literal is None:
            raise self._error("query, function call or literal")
        return literal

    def _parse_literal(self) -> Optional[A.Literal]:
        tok = self._peek()
        if tok.type is TokType.STRING:
            self._advance()
            return A.Literal(self._decode_string(tok))
        if tok.type is TokType.NUMBER:
            self._advance()
            text = tok.value
            if any(c in text for c in ".eE"):
                return A.Literal(float(text))
            return A.Literal(int(text))
        if tok.type is TokType.NAME and tok.value in _KEYWORD_LITERALS:
            self._advance()
            return A.Literal(_KEYWORD_LITERALS[tok.value])
        return None

    def _parse_query_expr(self) -> A.QueryExpr:
        """('@' | '$') segment*"""
        relative = self._advance().type is TokType.CURRENT
        self._enter()
        try:
            segments = self._parse_segments()
        finally:
            self._leave()
        return A.QueryExpr(segments, relative)

    def _parse_function(self) -> A.FunctionExpr:
        """FUNCTION '(' (arg (',' arg)*)? ')'"""
        name_tok = self._advance()
        self._expect(TokType.LPAREN, f"'(' after function name {name_tok.value!r}")
        args: List[A.FunctionArg] = []
        if not self._at(TokType.RPAREN):
            args.append(self._parse_function_arg())
            while self._at(TokType.COMMA):
                self._advance()
                args.append(self._parse_function_arg())
        self._expect(TokType.RPAREN,
                     f"',' or ')' in arguments of {name_tok.value}()")
        return A.FunctionExpr(name_tok.value, tuple(args))

    def _parse_function_arg(self) -> A.FunctionArg:
        if self._at(TokType.CURRENT, TokType.ROOT):
            return self._parse_query_expr()
        literal = self._parse_literal()
        if literal is None:
            raise self._error("query or literal as function argument")
        return literal


def parse(query: str, registry: Optional[FunctionRegistry] = None,
          config: Optional[EngineConfig] = None) -> A.Query:
    """Parse a JSONPath query string into an immutable :class:`~jpq.ast_nodes.Query`.

    Parameters
    ----------
    query : str
        The JSONPath query string, e.g. ``"$.store.book[?@.price < 10]"``.
    registry : FunctionRegistry, optional
        Consulted for the result type of functions used as standalone
        tests.  Defaults to the built-in registry.
    config : EngineConfig, optional
        Supplies the query length and nesting limits.

    Raises
    ------
    JSONPathSyntaxError
        If the query does not conform to the grammar.
    """
    config = config or DEFAULT_CONFIG
    if config.max_query_length is not None and len(query) > config.max_query_length:
        raise JSONPathSyntaxError(
            f"Query is {len(query)} characters long; the limit is "
            f"{config.max_query_length}")
    if registry is None:
        registry = default_registry()
    tokens = tokenize(query)
    parser = _Parser(tokens, query, registry, config)
    result = parser.parse()
    logger.debug("parsed %r into %d segment(s)", query, len(result.segments))
    return result


__all__ = ["parse"]
