"""Key=value (logfmt) line decoder with scalar type inference.

Grammar::

    line   = *( space ) *( pair *( space ) )
    pair   = key [ "=" [ value ] ]
    key    = 1*( any char > ' ' except '=' and '"' )
    value  = ident / quoted
    ident  = 1*( any char > ' ' except '=' and '"' )
    quoted = '"' *( escaped / any char except '"' and '\\' ) '"'

A bare ``key`` or ``key=`` yields the empty string.  Every value goes through
:func:`coerce_value`, so ``foo=1 bar=2.5 baz=true qux=hello`` decodes to
``{"foo": 1, "bar": 2.5, "baz": True, "qux": "hello"}``.
"""
from __future__ import annotations

import math
import re

from ..errors import MalformedLine
from .base import DecodedFields, FieldValue

_TRUE = frozenset({"true", "True", "TRUE", "t", "T"})
_FALSE = frozenset({"false", "False", "FALSE", "f", "F"})

_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT_RE = re.compile(
    r"[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE | re.ASCII,
)
_NON_FINITE_RE = re.compile(r"[+-]?(?:inf(?:inity)?|nan)", re.IGNORECASE)
_HEX4_RE = re.compile(r"[0-9a-fA-F]{4}")

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


def coerce_value(raw: str) -> FieldValue:
    """Return the narrowest scalar ``raw`` represents: bool, int, float, else str."""
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    if _INT_RE.fullmatch(raw):
        value = int(raw)
        if _INT64_MIN <= value <= _INT64_MAX:
            return value
    if _FLOAT_RE.fullmatch(raw):
        number = float(raw)
        # 1e400 overflows to inf; only explicit inf/nan literals may be non-finite
        if math.isfinite(number) or _NON_FINITE_RE.fullmatch(raw):
            return number
    return raw


def _is_space(ch: str) -> bool:
    return ch <= " "


def _read_quoted(line: str, start: int) -> tuple[str, int]:
    """Read a quoted value whose opening quote is at ``start``.

    Returns the unescaped text and the index just past the closing quote.
    """
    out: list[str] = []
    i = start + 1
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            return "".join(out), i + 1
        if ch == "\\":
            if i + 1 >= n:
                break
            esc = line[i + 1]
            if esc == "u" and _HEX4_RE.fullmatch(line, i + 2, i + 6):
                out.append(chr(int(line[i + 2:i + 6], 16)))
                i += 6
                continue
            out.append(_ESCAPES.get(esc, esc))
            i += 2
            continue
        out.append(ch)
        i += 1
    raise MalformedLine(line, start, "unterminated quoted value")


def decode_line(line: str) -> DecodedFields:
    """Decode one key=value line into a field mapping.

    Raises :class:`MalformedLine` when the grammar cannot be satisfied.
    An empty or all-whitespace line decodes to ``{}``.
    """
    parsed: DecodedFields = {}
    i = 0
    n = len(line)
    while i < n:
        if _is_space(line[i]):
            i += 1
            continue

        # key
        start = i
        while i < n and not _is_space(line[i]) and line[i] != "=":
            if line[i] == '"':
                raise MalformedLine(line, i, "unexpected '\"' in key")
            i += 1
        if i == start:
            raise MalformedLine(line, i, "unexpected '=' without a key")
        key = line[start:i]

        if i >= n or line[i] != "=":
            parsed[key] = coerce_value("")
            continue
        i += 1  # skip '='

        if i >= n or _is_space(line[i]):
            parsed[key] = coerce_value("")
            continue

        if line[i] == '"':
            raw, i = _read_quoted(line, i)
            if i < n and not _is_space(line[i]):
                raise MalformedLine(line, i, "expected whitespace after quoted value")
        else:
            start = i
            while i < n and not _is_space(line[i]):
                if line[i] in '="':
                    raise MalformedLine(line, i, f"unexpected {line[i]!r} in value")
                i += 1
            raw = line[start:i]
        parsed[key] = coerce_value(raw)
    return parsed


def all_empty(fields: DecodedFields) -> bool:
    """Return True if every value in ``fields`` is the empty string."""
    return all(isinstance(v, str) and v == "" for v in fields.values())


class KeyValLineParser:
    """LineParser for logfmt-style key=value lines."""

    @property
    def name(self) -> str:
        return "keyval"

    def parse_line(self, line: str) -> DecodedFields:
        return decode_line(line)
