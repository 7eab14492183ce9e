"""Tests for environment-driven settings."""
from __future__ import annotations

import pytest

from kvtail.config import Settings


def test_defaults(make_settings) -> None:
    s = make_settings()
    assert s.timefield == ""
    assert s.format == ""
    assert s.filter_regex == ""
    assert s.invert_filter is False
    assert s.num_parsers == 1


def test_env_prefix(make_settings, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KVTAIL_TIMEFIELD", "ts")
    monkeypatch.setenv("KVTAIL_FORMAT", "unix")
    monkeypatch.setenv("KVTAIL_INVERT_FILTER", "true")
    monkeypatch.setenv("KVTAIL_NUM_PARSERS", "4")
    s = make_settings()
    assert (s.timefield, s.format, s.invert_filter, s.num_parsers) == ("ts", "unix", True, 4)


def test_dotenv_file(make_settings, tmp_path) -> None:
    (tmp_path / ".env").write_text("KVTAIL_FILTER_REGEX=level=error\n", encoding="utf-8")
    assert make_settings().filter_regex == "level=error"


def test_explicit_values_win(make_settings, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KVTAIL_TIMEFIELD", "ts")
    assert Settings(timefield="when").timefield == "when"
