"""Shared types and Protocols for the key=value parser and its collaborators."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, Union, runtime_checkable

# bool is a subclass of int: always test for bool first when branching on kind.
FieldValue = Union[bool, int, float, str]

DecodedFields = dict[str, FieldValue]


@dataclass
class Event:
    """A parsed line ready for transmission.

    Attributes:
        timestamp:  Timezone-aware event time (parsed or wall clock).
        data:       Decoded fields, minus the consumed timestamp field.
    """

    timestamp: datetime
    data: DecodedFields = field(default_factory=dict)


@runtime_checkable
class LineParser(Protocol):
    """Protocol for single-line decoders (duck-typed, no inheritance required)."""

    def parse_line(self, line: str) -> DecodedFields:
        """Decode one raw line. Raises MalformedLine when it cannot."""
        ...


@runtime_checkable
class PrefixExtractor(Protocol):
    """Recognises a structured header at the start of a line."""

    def extract(self, line: str) -> tuple[str, dict[str, str]]:
        """Return (matched prefix text, prefix-derived fields)."""
        ...


@runtime_checkable
class EventSink(Protocol):
    """Anything events can be published to (Channel, queue.Queue, ...)."""

    def put(self, item: Event) -> None: ...


class NoopLineParser:
    """LineParser double: records the incoming line, returns a preset mapping."""

    def __init__(self, outgoing: DecodedFields | None = None) -> None:
        self.incoming_line: str | None = None
        self.outgoing = outgoing if outgoing is not None else {}

    def parse_line(self, line: str) -> DecodedFields:
        self.incoming_line = line
        return dict(self.outgoing)
