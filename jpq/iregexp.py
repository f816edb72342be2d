"""
jpq/iregexp.py — I-Regexp (RFC 9485) support for ``match()`` and ``search()``.

The filter functions never hand a pattern straight to the regex backend.
A pattern is first parsed with a PEG grammar describing the interoperable I-Regexp
subset (plus the ``^`` / ``$`` anchors), and the parse tree is translated
to an equivalent Python pattern:

====================  ============================================
I-Regexp              Python (``regex``)
====================  ============================================
``.``                 ``[^\\n\\r]``
``( ... )``           ``(?: ... )``
``^`` / ``$``         ``\\A`` / ``\\Z``
``\\p{Nd}``           ``\\d``  (``\\P{Nd}`` → ``\\D``)
``\\p{L}``            ``[^\\W\\d_]`` (outside character classes)
literal characters    :func:`re.escape`
====================  ============================================

Other Unicode category escapes parse but are reported as invalid, so a
pattern means the same thing here as it would under :mod:`re`.

Anything that only cares about running patterns depends on the
:class:`RegexEngine` protocol.  :class:`IRegexpEngine` is the default
implementation and bounds every call with ``EngineConfig.regex_timeout``;
callers with other needs can inject their own.

Dependencies:
    - parsimonious (PEG parser)
    - regex (pattern execution with a timeout)
"""

from __future__ import annotations

import functools
import logging
import re
from typing import Optional, Protocol

import regex
from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from jpq.config import DEFAULT_CONFIG, EngineConfig
from jpq.errors import ErrorKind, JSONPathEvaluationError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  PART 1 — GRAMMAR
# ═══════════════════════════════════════════════════════════════════

IREGEXP_GRAMMAR = Grammar(r'''
    i_regexp            = branch ("|" branch)*
    branch              = piece*
    piece               = atom quantifier?

    quantifier          = quant_symbol / range_quantifier
    quant_symbol        = ~r"[*+?]"
    range_quantifier    = "{" quant_digits ("," quant_digits?)? "}"
    quant_digits        = ~r"[0-9]+"

    atom                = normal_char / any_char / anchor / char_class_expr
                        / char_class_esc / group
    group               = "(" i_regexp ")"
    anchor              = ~r"[\^$]"
    any_char            = "."
    normal_char         = ~r"[^.\\?*+{}()|\[\]^$]"

    char_class_esc      = single_char_esc / category_esc
    single_char_esc     = ~r"\\[()*+\-.?\[\\\]^{|}$nrt]"
    category_esc        = ~r"\\[pP]\{[A-Za-z]+\}"

    # [ ^? ( leading '-' / item ) item* trailing '-'? ]
    char_class_expr     = "[" negation? class_body "]"
    negation            = "^"
    class_body          = (edge_dash class_item* edge_dash?)
                        / (class_item+ edge_dash?)
    edge_dash           = "-"
    class_item          = class_range / class_category_esc / class_char
    class_range         = class_char "-" class_char
    class_char          = single_char_esc / plain_class_char
    plain_class_char    = ~r"[^\\\[\]\-]"
    class_category_esc  = ~r"\\[pP]\{[A-Za-z]+\}"
''')


# ═══════════════════════════════════════════════════════════════════
#  PART 2 — TRANSLATION (parse tree → Python pattern)
# ═══════════════════════════════════════════════════════════════════

class _UnsupportedPattern(Exception):
    """A construct that is valid I-Regexp but has no ``re`` equivalent."""


_CATEGORY_OUTSIDE_CLASS = {
    r"\p{Nd}": r"\d",
    r"\P{Nd}": r"\D",
    r"\p{L}": r"[^\W\d_]",
    r"\P{L}": r"[\W\d_]",
}

_CATEGORY_INSIDE_CLASS = {
    r"\p{Nd}": r"\d",
    r"\P{Nd}": r"\D",
}


class _Translator(NodeVisitor):
    """Rebuilds the pattern from the parse tree in Python ``re`` syntax."""

    unwrapped_exceptions = (_UnsupportedPattern, RecursionError)

    def generic_visit(self, node, visited_children):
        if visited_children:
            return "".join(visited_children)
        return node.text

    def visit_group(self, node, visited_children):
        _, inner, _ = visited_children
        return f"(?:{inner})"

    def visit_any_char(self, node, visited_children):
        return r"[^\n\r]"

    def visit_anchor(self, node, visited_children):
        return r"\A" if node.text == "^" else r"\Z"

    def visit_normal_char(self, node, visited_children):
        return re.escape(node.text)

    def visit_plain_class_char(self, node, visited_children):
        return re.escape(node.text)

    def visit_edge_dash(self, node, visited_children):
        return r"\-"

    def visit_range_quantifier(self, node, visited_children):
        bounds = node.text[1:-1].split(",")
        if len(bounds) == 2 and bounds[1] and int(bounds[0]) > int(bounds[1]):
            raise _UnsupportedPattern(
                f"quantifier {node.text} has its minimum above its maximum")
        return node.text

    def visit_category_esc(self, node, visited_children):
        try:
            return _CATEGORY_OUTSIDE_CLASS[node.text]
        except KeyError:
            raise _UnsupportedPattern(
                f"Unicode category escape {node.text} is not supported") from None

    def visit_class_category_esc(self, node, visited_children):
        try:
            return _CATEGORY_INSIDE_CLASS[node.text]
        except KeyError:
            raise _UnsupportedPattern(
                f"Unicode category escape {node.text} is not supported "
                f"inside a character class") from None


def _invalid(pattern: str, reason: str) -> JSONPathEvaluationError:
    return JSONPathEvaluationError(
        ErrorKind.INVALID_REGEX, f"invalid I-Regexp {pattern!r}: {reason}")


def translate(pattern: str) -> str:
    """Translate an I-Regexp pattern to Python ``re`` syntax.

    Raises
    ------
    JSONPathEvaluationError
        ``INVALID_REGEX`` if the pattern is not valid I-Regexp or uses a
        construct the ``re`` backend cannot express.
    """
    try:
        tree = IREGEXP_GRAMMAR.parse(pattern)
        return _Translator().visit(tree)
    except ParseError as exc:
        raise _invalid(pattern, f"unexpected input at offset {exc.pos}") from None
    except _UnsupportedPattern as exc:
        raise _invalid(pattern, str(exc)) from None
    except RecursionError:
        raise _invalid(pattern, "groups are nested too deeply") from None


def is_valid(pattern: str) -> bool:
    """True if ``pattern`` is an I-Regexp this module can run."""
    try:
        regex.compile(translate(pattern))
    except (JSONPathEvaluationError, regex.error, OverflowError):
        return False
    return True


# ═══════════════════════════════════════════════════════════════════
#  PART 3 — ENGINES
# ═══════════════════════════════════════════════════════════════════

class RegexEngine(Protocol):
    """The two operations ``match()`` and ``search()`` need."""

    def fullmatch(self, pattern: str, subject: str) -> bool: ...

    def search(self, pattern: str, subject: str) -> bool: ...


class IRegexpEngine:
    """Default :class:`RegexEngine`: validated I-Regexp run on :mod:`regex`.

    Translated patterns are compiled with the ``regex`` package, whose
    matchers accept a ``timeout``; ``EngineConfig.regex_timeout`` is passed
    to every call, so catastrophic backtracking ends in ``REGEX_LIMIT``
    instead of hanging the caller.  Compiled patterns are kept in a bounded
    LRU cache whose size comes from ``EngineConfig.regex_cache_size``.
    Pattern and subject lengths are checked against ``max_regex_length``
    and ``max_regex_subject_length`` before anything runs.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self._cached_compile = functools.lru_cache(
            maxsize=self.config.regex_cache_size)(self._compile)

    def compile(self, pattern: str) -> "regex.Pattern":
        limit = self.config.max_regex_length
        if limit is not None and len(pattern) > limit:
            raise JSONPathEvaluationError(
                ErrorKind.REGEX_LIMIT,
                f"pattern is {len(pattern)} characters long; the limit is {limit}")
        return self._cached_compile(pattern)

    def _compile(self, pattern: str) -> "regex.Pattern":
        translated = translate(pattern)
        try:
            compiled = regex.compile(translated)
        except (regex.error, OverflowError) as exc:
            raise _invalid(pattern, str(exc)) from None
        logger.debug("compiled I-Regexp %r as %r", pattern, translated)
        return compiled

    def _check_subject(self, subject: str) -> None:
        limit = self.config.max_regex_subject_length
        if limit is not None and len(subject) > limit:
            raise JSONPathEvaluationError(
                ErrorKind.REGEX_LIMIT,
                f"subject is {len(subject)} characters long; the limit is {limit}")

    def _run(self, method: str, pattern: str, subject: str) -> bool:
        compiled = self.compile(pattern)
        self._check_subject(subject)
        timeout = self.config.regex_timeout
        try:
            found = getattr(compiled, method)(subject, timeout=timeout)
        except TimeoutError:
            logger.debug("I-Regexp %r timed out on a %d character subject",
                         pattern, len(subject))
            raise JSONPathEvaluationError(
                ErrorKind.REGEX_LIMIT,
                f"pattern {pattern!r} did not finish within {timeout}s") from None
        return found is not None

    def fullmatch(self, pattern: str, subject: str) -> bool:
        return self._run("fullmatch", pattern, subject)

    def search(self, pattern: str, subject: str) -> bool:
        return self._run("search", pattern, subject)

    def cache_info(self):
        return self._cached_compile.cache_info()

    def __repr__(self) -> str:
        return (f"IRegexpEngine(cache_size={self.config.regex_cache_size}, "
                f"timeout={self.config.regex_timeout})")


_DEFAULT_ENGINE = IRegexpEngine()


def engine_for(config: Optional[EngineConfig] = None) -> IRegexpEngine:
    """The shared engine for the default config, else a new one for ``config``."""
    if config is None or config == DEFAULT_CONFIG:
        return _DEFAULT_ENGINE
    return IRegexpEngine(config)


__all__ = [
    "IREGEXP_GRAMMAR", "translate", "is_valid",
    "RegexEngine", "IRegexpEngine", "engine_for",
]
