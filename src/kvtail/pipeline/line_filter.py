"""Regex include/exclude filter applied to raw lines before decoding."""
from __future__ import annotations

import re

from ..errors import InvalidFilterPattern


class LineFilter:
    """Keep lines matching ``pattern``, or the non-matching ones when ``invert``.

    The pattern is searched anywhere in the line and is case-sensitive.
    A pattern that fails to compile raises InvalidFilterPattern.
    """

    def __init__(self, pattern: str, invert: bool = False) -> None:
        try:
            self._regex = re.compile(pattern)
        except re.error as exc:
            raise InvalidFilterPattern(pattern, str(exc)) from exc
        self.invert = invert

    @property
    def pattern(self) -> str:
        return self._regex.pattern

    def matches(self, line: str) -> bool:
        return self._regex.search(line) is not None

    def accepts(self, line: str) -> bool:
        """Return True if the line should be processed."""
        # skip when both are true or both are false
        return self.matches(line) != self.invert
