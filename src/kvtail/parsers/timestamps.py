"""Timestamp discovery and parsing for decoded key=value fields.

The resolver either reads a configured field or guesses one from a fixed list
of common names, parses it through an ordered list of time formats, and
removes it from the event body.  When nothing parses it falls back to the
clock and logs a single warning for the lifetime of the resolver, so a
stream with a systematically broken time field does not flood the logs.
"""
from __future__ import annotations

import logging
import re
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

from .base import DecodedFields

logger = logging.getLogger(__name__)

UNIX_TIMESTAMP_FMT = "unix"
STRFTIME_CHAR = "%"

# Consulted in order when no explicit time field is configured
POSSIBLE_TIME_FIELD_NAMES: tuple[str, ...] = (
    "time", "Time",
    "timestamp", "Timestamp", "TimeStamp",
    "date", "Date",
    "datetime", "Datetime", "DateTime",
)

# Layout used to stringify the clock, and the first fallback format
CLOCK_STRING_FMT = "%Y-%m-%d %H:%M:%S.%f %z %Z"

# datetime only keeps microseconds; drop anything past the sixth digit
_FRACTION_RE = re.compile(r"(:\d{2}\.\d{6})\d+")
_ZONE_NAME_SUFFIX_RE = re.compile(r"\s+[A-Za-z]{3,5}$")
_UNIX_SECONDS_RE = re.compile(
    r"[+-]?(?:0[xX][0-9a-fA-F_]+|0[oO][0-7_]+|0[bB][01_]+|\d+)", re.ASCII
)
_UNIX_DATE_RE = re.compile(
    r"^(\w{3} \w{3}\s+\d{1,2} \d{2}:\d{2}:\d{2}) [A-Za-z]{3,5} (\d{4})$"
)

# Go-style reference layout tokens -> strftime directives (longest first)
_LAYOUT_TOKENS: list[tuple[str, str]] = [
    ("January", "%B"),
    ("Monday", "%A"),
    ("2006", "%Y"),
    ("Z07:00", "%z"),
    ("-07:00", "%z"),
    ("Z0700", "%z"),
    ("-0700", "%z"),
    ("MST", "%Z"),
    ("Jan", "%b"),
    ("Mon", "%a"),
    ("002", "%j"),
    ("01", "%m"),
    ("02", "%d"),
    ("_2", "%d"),
    ("03", "%I"),
    ("04", "%M"),
    ("05", "%S"),
    ("06", "%y"),
    ("15", "%H"),
    ("PM", "%p"),
    ("pm", "%p"),
    ("1", "%m"),
    ("2", "%d"),
    ("3", "%I"),
    ("4", "%M"),
    ("5", "%S"),
]
_LAYOUT_RE = re.compile(
    r"\.(?:0+|9+)(?!\d)|" + "|".join(re.escape(tok) for tok, _ in _LAYOUT_TOKENS)
)
_LAYOUT_MAP = dict(_LAYOUT_TOKENS)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def _as_utc(ts: datetime) -> datetime:
    """Attach UTC to naive datetimes; aware ones are returned untouched."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def convert_layout(layout: str) -> str:
    """Translate a Go-style reference layout (``2006-01-02 15:04:05``) to strftime."""

    def _sub(m: re.Match[str]) -> str:
        tok = m.group(0)
        if tok.startswith("."):
            return ".%f"
        return _LAYOUT_MAP[tok]

    pieces: list[str] = []
    last = 0
    for m in _LAYOUT_RE.finditer(layout):
        pieces.append(layout[last:m.start()].replace("%", "%%"))
        pieces.append(_sub(m))
        last = m.end()
    pieces.append(layout[last:].replace("%", "%%"))
    return "".join(pieces)


def _parse_space_layout(value: str) -> datetime:
    # "2006-01-02 15:04:05.999999999 -0700 MST"; the offset wins over the zone name
    stripped = _ZONE_NAME_SUFFIX_RE.sub("", value)
    if stripped == value:
        raise ValueError("missing zone name")
    try:
        return datetime.strptime(stripped, "%Y-%m-%d %H:%M:%S.%f %z")
    except ValueError:
        return datetime.strptime(stripped, "%Y-%m-%d %H:%M:%S %z")


def _parse_rfc3339(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%f%z")
    except ValueError:
        return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S%z")


def _parse_ruby_date(value: str) -> datetime:
    return datetime.strptime(value, "%a %b %d %H:%M:%S %z %Y")


def _parse_unix_date(value: str) -> datetime:
    # "Mon Jan _2 15:04:05 MST 2006"; unknown zone names read as UTC
    m = _UNIX_DATE_RE.match(value)
    if not m:
        raise ValueError("not a unix date")
    parsed = datetime.strptime(f"{m.group(1)} {m.group(2)}", "%a %b %d %H:%M:%S %Y")
    return parsed.replace(tzinfo=timezone.utc)


def _parse_unix_seconds(value: str) -> datetime:
    # base prefixes as in C: 0x hex, 0o octal, 0b binary, bare leading 0 octal
    if not _UNIX_SECONDS_RE.fullmatch(value):
        raise ValueError("not an integer")
    digits = value.lstrip("+-")
    if len(digits) > 1 and digits[0] == "0" and digits[1].isdigit():
        seconds = int(value, 8)
    else:
        seconds = int(value, 0)
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


# Tried in order after any configured format
FALLBACK_FORMATS: list[Callable[[str], datetime]] = [
    _parse_space_layout,
    _parse_rfc3339,
    _parse_ruby_date,
    _parse_unix_date,
]


def _format_strategies(fmt: str) -> list[Callable[[str], datetime]]:
    strategies: list[Callable[[str], datetime]] = []
    if fmt == UNIX_TIMESTAMP_FMT:
        strategies.append(_parse_unix_seconds)
    if fmt:
        fmt = fmt.replace(",", ".")
        if STRFTIME_CHAR in fmt:
            strategies.append(lambda s: datetime.strptime(s, fmt))
        layout = convert_layout(fmt)
        strategies.append(lambda s: datetime.strptime(s, layout))
    return strategies + FALLBACK_FORMATS


def parse_time(value: str, fmt: str = "") -> Optional[datetime]:
    """Parse ``value`` with the configured format, then the fallback formats.

    Returns None when every strategy fails.
    """
    # fractional seconds are sometimes written with a comma
    value = _FRACTION_RE.sub(r"\1", value.replace(",", "."))
    for strategy in _format_strategies(fmt):
        try:
            return _as_utc(strategy(value))
        except (ValueError, OverflowError, OSError):
            continue
    return None


class TimestampResolver:
    """Find, parse, and remove the timestamp field of a decoded line.

    Thread-safe: the only mutable state is the warn-once flag, guarded by a lock.
    """

    def __init__(
        self,
        timefield: str = "",
        fmt: str = "",
        clock: Clock | None = None,
    ) -> None:
        self.timefield = timefield
        self.fmt = fmt
        self.clock: Clock = clock or SystemClock()
        self._warn_lock = threading.Lock()
        self._warned = False

    @property
    def warned(self) -> bool:
        return self._warned

    def parse(self, value: str) -> Optional[datetime]:
        return parse_time(value, self.fmt)

    def resolve(self, fields: DecodedFields) -> datetime:
        """Return the event time for ``fields``, removing the consumed field."""
        if self.timefield:
            return self._resolve_explicit(fields)
        return self._resolve_heuristic(fields)

    def _resolve_explicit(self, fields: DecodedFields) -> datetime:
        name = self.timefield
        if name not in fields:
            self.warn_about_time(name, None, "couldn't find specified time field")
            return _as_utc(self.clock.now())

        raw = fields.pop(name)
        if isinstance(raw, str):
            time_str = raw
        elif isinstance(raw, int) and not isinstance(raw, bool):
            time_str = str(raw)
        else:
            # Kept for compatibility: the clock string is parsed instead of the value
            self.warn_about_time(name, raw, "found time field but unknown type")
            time_str = _as_utc(self.clock.now()).strftime(CLOCK_STRING_FMT)

        ts = self.parse(time_str)
        if ts is None:
            self.warn_about_time(name, raw, "found time field but failed to parse")
            return _as_utc(self.clock.now())
        return ts

    def _resolve_heuristic(self, fields: DecodedFields) -> datetime:
        for name in POSSIBLE_TIME_FIELD_NAMES:
            raw = fields.get(name)
            if not isinstance(raw, str):
                continue
            ts = self.parse(raw)
            if ts is not None:
                del fields[name]
                return ts
            self.warn_about_time(
                name, raw, "inferred timestamp field but failed to parse as valid time"
            )
        return _as_utc(self.clock.now())

    def warn_about_time(self, field_name: str, value: Any, msg: str) -> None:
        with self._warn_lock:
            if self._warned:
                return
            self._warned = True
        logger.warning(
            "%s (time_field=%r, time_value=%r)",
            msg,
            field_name,
            value,
            extra={"time_field": field_name, "time_value": value},
        )
