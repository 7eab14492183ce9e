"""Line-prefix extraction via regexes with named groups.

Many key=value logs are shipped behind a syslog header::

    <34>Oct 11 22:14:15 web01 app[4242]: level=info msg="user login" user=bob

``PrefixRegex(SYSLOG_PREFIX)`` pulls the header into its own fields so the
remainder can be decoded as plain key=value pairs.
"""
from __future__ import annotations

import re

# RFC 3164: <priority>timestamp hostname tag[pid]:
SYSLOG_PREFIX = (
    r"^(?:<(?P<priority>\d+)>)?"
    r"(?P<timestamp>\w{3}\s+\d+\s+\d{2}:\d{2}:\d{2})\s+"
    r"(?P<hostname>\S+)\s+"
    r"(?P<tag>[^:\[\s]+)(?:\[(?P<pid>\d+)\])?:\s*"
)


class PrefixRegex:
    """PrefixExtractor backed by a compiled regex.

    Every named group that takes part in the match becomes a prefix field.
    """

    def __init__(self, pattern: str | re.Pattern[str]) -> None:
        self._regex = re.compile(pattern)

    @property
    def pattern(self) -> str:
        return self._regex.pattern

    def extract(self, line: str) -> tuple[str, dict[str, str]]:
        """Return (matched text, named-group fields); ``("", {})`` if no match."""
        m = self._regex.search(line)
        if not m:
            return "", {}
        fields = {k: v for k, v in m.groupdict().items() if v is not None}
        return m.group(0), fields

    def __repr__(self) -> str:
        return f"PrefixRegex({self._regex.pattern!r})"
