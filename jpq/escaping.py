"""
jpq/escaping.py — string escape handling shared across the engine.

``unescape_string`` decodes the body of a quoted string literal.  The
tokenizer calls it to validate literals as they are scanned; the parser
calls it again when it builds name selectors and string literals, so both
phases agree on exactly one decoding.

``escape_member_name`` / ``index_step`` / ``name_step`` build the steps of
a normalized path (``$['store']['book'][0]``).
"""

from __future__ import annotations

from typing import Dict, List

from jpq.errors import JSONPathSyntaxError

# Escapes allowed in both quote styles; the active quote is added per call.
_SIMPLE_ESCAPES: Dict[str, str] = {
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "/": "/",
    "\\": "\\",
}

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _is_high_surrogate(cp: int) -> bool:
    return 0xD800 <= cp <= 0xDBFF


def _is_low_surrogate(cp: int) -> bool:
    return 0xDC00 <= cp <= 0xDFFF


def _read_hex4(body: str, i: int, query: str, offset: int) -> int:
    """Read the four hex digits of a ``\\uXXXX`` escape starting at ``body[i]``."""
    digits = body[i:i + 4]
    if len(digits) != 4 or any(c not in _HEX_DIGITS for c in digits):
        raise JSONPathSyntaxError(
            "Invalid \\u escape: expected four hex digits",
            query, offset + i - 2)
    return int(digits, 16)


def unescape_string(body: str, quote: str, query: str = "",
                    offset: int = 0) -> str:
    """Decode the body of a string literal quoted with ``quote``.

    Parameters
    ----------
    body : str
        Text between the quotes, escapes still encoded.
    quote : str
        ``"'"`` or ``'"'``; only the active quote may be escaped.
    query, offset : str, int
        Used to report absolute error positions (``offset`` is the index
        of ``body[0]`` within ``query``).

    Raises
    ------
    JSONPathSyntaxError
        On unknown escapes, short ``\\u`` escapes, unpaired surrogates,
        unescaped control characters or an unescaped active quote.
    """
    out: List[str] = []
    i = 0
    n = len(body)
    while i < n:
        ch = body[i]
        if ch == quote:
            raise JSONPathSyntaxError(
                f"Unescaped {quote} inside string literal", query, offset + i)
        if ord(ch) < 0x20:
            raise JSONPathSyntaxError(
                f"Control character U+{ord(ch):04X} must be escaped",
                query, offset + i)
        if ch != "\\":
            out.append(ch)
            i += 1
            continue

        if i + 1 >= n:
            raise JSONPathSyntaxError(
                "Dangling backslash in string literal", query, offset + i)
        esc = body[i + 1]
        if esc in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[esc])
            i += 2
            continue
        if esc == quote:
            out.append(quote)
            i += 2
            continue
        if esc != "u":
            raise JSONPathSyntaxError(
                f"Invalid escape sequence \\{esc}", query, offset + i)

        cp = _read_hex4(body, i + 2, query, offset)
        if _is_low_surrogate(cp):
            raise JSONPathSyntaxError(
                f"Unpaired low surrogate \\u{cp:04X}", query, offset + i)
        if _is_high_surrogate(cp):
            j = i + 6
            if body[j:j + 2] != "\\u":
                raise JSONPathSyntaxError(
                    f"High surrogate \\u{cp:04X} must be followed by a low "
                    f"surrogate escape", query, offset + i)
            low = _read_hex4(body, j + 2, query, offset)
            if not _is_low_surrogate(low):
                raise JSONPathSyntaxError(
                    f"High surrogate \\u{cp:04X} followed by non-low "
                    f"surrogate \\u{low:04X}", query, offset + j)
            cp = 0x10000 + ((cp - 0xD800) << 10) + (low - 0xDC00)
            i += 12
        else:
            i += 6
        out.append(chr(cp))
    return "".join(out)


# ===================================================================
#  Normalized path steps
# ===================================================================

_PATH_ESCAPES: Dict[str, str] = {
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "'": "\\'",
    "\\": "\\\\",
}


def escape_member_name(name: str) -> str:
    """Escape a member name for use inside a single-quoted path step."""
    parts: List[str] = []
    for ch in name:
        rep = _PATH_ESCAPES.get(ch)
        if rep is not None:
            parts.append(rep)
        elif ord(ch) < 0x20:
            parts.append(f"\\u{ord(ch):04x}")
        else:
            parts.append(ch)
    return "".join(parts)


def name_step(name: str) -> str:
    return f"['{escape_member_name(name)}']"


def index_step(index: int) -> str:
    return f"[{index}]"


ROOT_PATH = "$"
