"""Tests for the kvtail CLI."""
from __future__ import annotations

import json
import threading

from click.testing import CliRunner

import kvtail.cli
from kvtail.cli import main


def _events(output: str) -> list[dict]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


class TestParseCommand:
    def test_parse_file(self, tmp_log_file, keyval_lines) -> None:
        path = tmp_log_file(keyval_lines + ["", "a= b="])
        result = CliRunner().invoke(main, ["parse", str(path)])
        assert result.exit_code == 0, result.output
        events = _events(result.output)
        assert len(events) == 4
        assert any(e["data"].get("port") == 8080 for e in events)

    def test_parse_stdin_with_timefield(self) -> None:
        result = CliRunner().invoke(
            main,
            ["parse", "-", "--timefield", "ts", "--format", "unix"],
            input="ts=1609459200 msg=hello\n",
        )
        assert result.exit_code == 0, result.output
        (event,) = _events(result.output)
        assert event["timestamp"] == "2021-01-01T00:00:00+00:00"
        assert event["data"] == {"msg": "hello"}

    def test_filter_regex(self, tmp_log_file, keyval_lines) -> None:
        path = tmp_log_file(keyval_lines)
        result = CliRunner().invoke(
            main, ["parse", str(path), "--filter-regex", "level=info", "--workers", "2"]
        )
        assert result.exit_code == 0, result.output
        events = _events(result.output)
        assert {e["data"]["level"] for e in events} == {"info"}

    def test_invalid_filter_regex(self, tmp_log_file) -> None:
        path = tmp_log_file(["a=1"])
        result = CliRunner().invoke(main, ["parse", str(path), "--filter-regex", "(oops"])
        assert result.exit_code != 0
        assert "--filter-regex" in result.output

    def test_syslog_prefix(self) -> None:
        result = CliRunner().invoke(
            main,
            ["parse", "-", "--syslog-prefix"],
            input="Aug  1 10:00:00 webserver cron[99]: job=backup ok=true\n",
        )
        assert result.exit_code == 0, result.output
        (event,) = _events(result.output)
        assert event["data"]["tag"] == "cron"
        assert event["data"]["ok"] is True

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "kvtail" in result.output

    def test_non_finite_floats_are_strings(self) -> None:
        result = CliRunner().invoke(main, ["parse", "-"], input="ratio=inf x=nan a=1\n")
        assert result.exit_code == 0, result.output
        (event,) = _events(result.output)
        assert event["data"] == {"ratio": "inf", "x": "nan", "a": 1}

    def test_output_error_stops_pipeline(self, tmp_log_file, monkeypatch) -> None:
        path = tmp_log_file([f"n={i} level=info" for i in range(5000)])

        def _broken(event) -> None:
            raise BrokenPipeError("stdout closed")

        monkeypatch.setattr(kvtail.cli, "_emit", _broken)
        outcome: dict = {}

        def _invoke() -> None:
            outcome["result"] = CliRunner().invoke(main, ["parse", str(path), "--workers", "4"])

        t = threading.Thread(target=_invoke, daemon=True)
        t.start()
        t.join(timeout=10)
        assert not t.is_alive()
        result = outcome["result"]
        assert result.exit_code != 0
        assert isinstance(result.exception, BrokenPipeError)
