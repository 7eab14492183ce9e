"""Shared pytest fixtures for kvtail tests."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from kvtail.config import Settings

FROZEN_NOW = datetime(2030, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    """Clock that always returns the same instant."""

    def __init__(self, now: datetime = FROZEN_NOW) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def make_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Return a factory for Settings isolated from KVTAIL_* env vars and .env files."""
    monkeypatch.chdir(tmp_path)
    for var in ("TIMEFIELD", "FORMAT", "FILTER_REGEX", "INVERT_FILTER", "NUM_PARSERS"):
        monkeypatch.delenv(f"KVTAIL_{var}", raising=False)

    def _make(**overrides) -> Settings:
        return Settings(**overrides)

    return _make


@pytest.fixture()
def tmp_log_file(tmp_path: Path):
    """Return a factory that creates temporary log files."""

    def _make(lines: list[str], name: str = "test.log") -> Path:
        p = tmp_path / name
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return p

    return _make


@pytest.fixture()
def keyval_lines() -> list[str]:
    return [
        'time="2014-03-10 19:57:38.562264131 -0400 EDT" level=info msg="service started" port=8080',
        "ts=2021-01-02T15:04:05Z level=error msg=disk_full retries=3 fatal=true",
        "level=warn latency=0.25 path=/api/v1/jobs",
        'level=info msg="user login" user=bob',
    ]
