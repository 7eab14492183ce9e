"""Tests for regex prefix extraction."""
from __future__ import annotations

from kvtail.parsers.base import PrefixExtractor
from kvtail.parsers.prefix import SYSLOG_PREFIX, PrefixRegex


class TestPrefixRegex:
    def test_named_groups_become_fields(self) -> None:
        p = PrefixRegex(r"^\[(?P<level>\w+)\] (?P<component>\w+): ")
        prefix, fields = p.extract("[WARN] db: slow=true ms=1200")
        assert prefix == "[WARN] db: "
        assert fields == {"level": "WARN", "component": "db"}

    def test_no_match(self) -> None:
        p = PrefixRegex(r"^\[(?P<level>\w+)\] ")
        assert p.extract("a=1 b=2") == ("", {})

    def test_unmatched_optional_group_is_dropped(self) -> None:
        p = PrefixRegex(r"^(?P<host>\w+)(?: \((?P<pid>\d+)\))?: ")
        prefix, fields = p.extract("web01: a=1")
        assert prefix == "web01: "
        assert fields == {"host": "web01"}

    def test_protocol(self) -> None:
        assert isinstance(PrefixRegex("x"), PrefixExtractor)

    def test_repr_and_pattern(self) -> None:
        p = PrefixRegex(r"^\w+ ")
        assert p.pattern == r"^\w+ "
        assert "PrefixRegex" in repr(p)


class TestSyslogPrefix:
    def test_full_header(self) -> None:
        p = PrefixRegex(SYSLOG_PREFIX)
        line = '<34>Oct 11 22:14:15 web01 app[4242]: level=info msg="user login"'
        prefix, fields = p.extract(line)
        assert line[len(prefix):] == 'level=info msg="user login"'
        assert fields == {
            "priority": "34",
            "timestamp": "Oct 11 22:14:15",
            "hostname": "web01",
            "tag": "app",
            "pid": "4242",
        }

    def test_header_without_priority_or_pid(self) -> None:
        prefix, fields = PrefixRegex(SYSLOG_PREFIX).extract(
            "Aug  1 10:00:00 webserver cron: job=backup status=ok"
        )
        assert prefix.endswith("cron: ")
        assert "priority" not in fields
        assert "pid" not in fields
        assert fields["tag"] == "cron"
