"""Exception hierarchy for kvtail."""
from __future__ import annotations


class KvtailError(Exception):
    """Base class for every error raised by kvtail."""


class MalformedLine(KvtailError, ValueError):
    """A line could not be decoded as key=value pairs."""

    def __init__(self, line: str, position: int, reason: str) -> None:
        super().__init__(f"{reason} at position {position}")
        self.line = line
        self.position = position
        self.reason = reason


class InvalidFilterPattern(KvtailError, ValueError):
    """The configured filter regex does not compile."""

    def __init__(self, pattern: str, cause: str) -> None:
        super().__init__(f"invalid filter regex {pattern!r}: {cause}")
        self.pattern = pattern


class ChannelClosed(KvtailError):
    """Raised by Channel.put after close, and by Channel.get once drained."""
