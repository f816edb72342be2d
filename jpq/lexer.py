"""
jpq/lexer.py — tokenizer for JSONPath query strings.

Turns query text into a flat list of :class:`Tok` values ending with an
``EOF`` token.  The tokenizer is context free: it does not know whether
``true`` is a literal or a member name, or whether ``1`` is an index or a
comparison operand; the parser decides.  The only lookahead decisions it
makes are the ones the grammar forces at the character level:

* ``..`` versus ``.``,
* ``&&`` / ``||`` / ``==`` / ``!=`` / ``<=`` / ``>=`` versus their one
  character prefixes,
* an identifier immediately followed by ``(`` is a ``FUNCTION`` token.

String literals are validated here (escapes, surrogate pairs, control
characters) via :func:`jpq.escaping.unescape_string`, but the token keeps
the raw body so the parser can decode it with the same utility.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Dict, List

from jpq.errors import JSONPathSyntaxError
from jpq.escaping import unescape_string


class TokType(enum.Enum):
    """Lexical token types for JSONPath queries."""
    ROOT = "$"
    CURRENT = "@"
    DOT = "."
    DOUBLE_DOT = ".."
    WILDCARD = "*"
    LBRACKET = "["
    RBRACKET = "]"
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","
    COLON = ":"
    QUESTION = "?"
    NOT = "!"
    AND = "&&"
    OR = "||"
    OP_EQ = "=="
    OP_NEQ = "!="
    OP_LT = "<"
    OP_LTE = "<="
    OP_GT = ">"
    OP_GTE = ">="
    NUMBER = "NUMBER"
    STRING = "STRING"
    NAME = "NAME"
    FUNCTION = "FUNCTION"
    EOF = "EOF"


COMPARISON_TOKENS = frozenset({
    TokType.OP_EQ, TokType.OP_NEQ, TokType.OP_LT,
    TokType.OP_LTE, TokType.OP_GT, TokType.OP_GTE,
})


@dataclass(frozen=True)
class Tok:
    """A lexical token.

    ``value`` is the literal source text, except for STRING tokens where
    it is the raw body between the quotes.  ``spaced`` is true when blank
    space separated this token from the previous one.
    """
    type: TokType
    value: str
    pos: int
    spaced: bool = False
    quote: str = ""

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, @{self.pos})"

    def describe(self) -> str:
        """Human readable form used in error messages."""
        if self.type is TokType.EOF:
            return "end of query"
        if self.type is TokType.STRING:
            return f"string {self.quote}{self.value}{self.quote}"
        if self.type in (TokType.NUMBER, TokType.NAME, TokType.FUNCTION):
            return f"{self.type.name.lower()} {self.value!r}"
        return f"{self.value!r}"


# Two-character operators (checked before single-char ones)
_TWO_CHAR_OPS: Dict[str, TokType] = {
    "..": TokType.DOUBLE_DOT,
    "&&": TokType.AND,
    "||": TokType.OR,
    "==": TokType.OP_EQ,
    "!=": TokType.OP_NEQ,
    "<=": TokType.OP_LTE,
    ">=": TokType.OP_GTE,
}

_ONE_CHAR_OPS: Dict[str, TokType] = {
    "$": TokType.ROOT,
    "@": TokType.CURRENT,
    ".": TokType.DOT,
    "*": TokType.WILDCARD,
    "[": TokType.LBRACKET,
    "]": TokType.RBRACKET,
    "(": TokType.LPAREN,
    ")": TokType.RPAREN,
    ",": TokType.COMMA,
    ":": TokType.COLON,
    "?": TokType.QUESTION,
    "!": TokType.NOT,
    "<": TokType.OP_LT,
    ">": TokType.OP_GT,
}

# RFC 9535 blank space
_BLANK = frozenset(" \t\n\r")

_NUMBER_RE = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")


def _is_name_first(ch: str) -> bool:
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ord(ch) >= 0x80


def _is_name_char(ch: str) -> bool:
    return _is_name_first(ch) or ("0" <= ch <= "9")


def tokenize(query: str) -> List[Tok]:
    """Tokenise a JSONPath query string.

    Parameters
    ----------
    query : str
        The raw query string.

    Returns
    -------
    list of Tok
        Token list, ending with an EOF token.

    Raises
    ------
    JSONPathSyntaxError
        On illegal characters, unterminated strings, malformed escapes or
        leading/trailing blank space.
    """
    n = len(query)
    if n and (query[0] in _BLANK or query[-1] in _BLANK):
        pos = 0 if query[0] in _BLANK else n - 1
        raise JSONPathSyntaxError(
            "Leading or trailing blank space is not allowed", query, pos)

    tokens: List[Tok] = []
    i = 0
    spaced = False

    while i < n:
        ch = query[i]

        if ch in _BLANK:
            spaced = True
            i += 1
            continue

        # String literals
        if ch in ('"', "'"):
            start = i
            i += 1
            while i < n and query[i] != ch:
                # skip the escaped character so an escaped quote does not end the literal
                i += 2 if query[i] == "\\" else 1
            if i >= n:
                raise JSONPathSyntaxError(
                    "Unterminated string literal", query, start)
            body = query[start + 1:i]
            unescape_string(body, ch, query, start + 1)
            i += 1
            tokens.append(Tok(TokType.STRING, body, start, spaced, ch))
            spaced = False
            continue

        # Numbers
        if "0" <= ch <= "9" or ch == "-":
            m = _NUMBER_RE.match(query, i)
            if m is None:
                raise JSONPathSyntaxError(
                    f"Invalid number literal starting with {ch!r}", query, i)
            tokens.append(Tok(TokType.NUMBER, m.group(0), i, spaced))
            i = m.end()
            spaced = False
            continue

        two = query[i:i + 2]
        if two in _TWO_CHAR_OPS:
            tokens.append(Tok(_TWO_CHAR_OPS[two], two, i, spaced))
            i += 2
            spaced = False
            continue

        if ch in _ONE_CHAR_OPS:
            tokens.append(Tok(_ONE_CHAR_OPS[ch], ch, i, spaced))
            i += 1
            spaced = False
            continue

        # Member names and function names
        if _is_name_first(ch):
            start = i
            while i < n and _is_name_char(query[i]):
                i += 1
            text = query[start:i]
            kind = TokType.FUNCTION if i < n and query[i] == "(" else TokType.NAME
            tokens.append(Tok(kind, text, start, spaced))
            spaced = False
            continue

        if ch == "=" or ch == "&" or ch == "|":
            raise JSONPathSyntaxError(
                f"Unexpected character {ch!r}; did you mean {ch * 2!r}?",
                query, i)
        raise JSONPathSyntaxError(f"Unexpected character {ch!r}", query, i)

    tokens.append(Tok(TokType.EOF, "", n, spaced))
    return tokens


__all__ = ["TokType", "Tok", "tokenize", "COMPARISON_TOKENS"]
