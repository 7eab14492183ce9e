"""kvtail CLI — entry point.

Commands:
    kvtail parse <file|->   Parse key=value lines and print events as JSON lines
"""
from __future__ import annotations

import json
import logging
import math
import re
from concurrent.futures import ThreadPoolExecutor
from typing import IO, Any

import click
from rich.console import Console

from .config import settings
from .errors import InvalidFilterPattern
from .parsers.base import Event
from .parsers.prefix import SYSLOG_PREFIX, PrefixRegex
from .pipeline.channel import Channel
from .pipeline.processor import KeyValParser

err_console = Console(stderr=True)

# ── Helpers ─────────────────────────────────────────────────────────────────


def _event_to_dict(event: Event) -> dict[str, Any]:
    # JSON has no inf/nan; emit them as strings
    data = {
        k: str(v) if isinstance(v, float) and not math.isfinite(v) else v
        for k, v in event.data.items()
    }
    return {"timestamp": event.timestamp.isoformat(), "data": data}


def _emit(event: Event) -> None:
    click.echo(json.dumps(_event_to_dict(event), allow_nan=False, default=str))


def _feed(stream: IO[str], lines: Channel[str]) -> None:
    try:
        for raw in stream:
            lines.put(raw.rstrip("\r\n"))
    finally:
        lines.close()


def _run(
    parser: KeyValParser,
    lines: Channel[str],
    events: Channel[Event],
    prefix: PrefixRegex | None,
) -> None:
    try:
        parser.process_lines(lines, events, prefix)
    finally:
        events.close()


# ── CLI root ─────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version="1.0.0", prog_name="kvtail")
@click.option("--verbose", "-v", is_flag=True, help="Log skipped lines at debug level.")
def main(verbose: bool) -> None:
    """kvtail: parse key=value log lines into timestamped events."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── parse ────────────────────────────────────────────────────────────────────


@main.command()
@click.argument("file", type=click.File("r", encoding="utf-8", errors="replace"))
@click.option("--timefield", default=settings.timefield, help="Field that holds the timestamp.")
@click.option(
    "--format", "fmt", default=settings.format,
    help="Timestamp format: 'unix', strftime, or a reference layout.",
)
@click.option("--filter-regex", default=settings.filter_regex, help="Only parse lines matching this regex.")
@click.option("--invert-filter", is_flag=True, default=settings.invert_filter, help="Only parse lines NOT matching.")
@click.option(
    "--workers", "-w", default=settings.num_parsers, type=click.IntRange(min=1),
    help="Parser worker threads.", show_default=True,
)
@click.option("--prefix-regex", default="", help="Regex with named groups for a line header.")
@click.option("--syslog-prefix", is_flag=True, help="Strip an RFC 3164 syslog header first.")
def parse(
    file: IO[str],
    timefield: str,
    fmt: str,
    filter_regex: str,
    invert_filter: bool,
    workers: int,
    prefix_regex: str,
    syslog_prefix: bool,
) -> None:
    """Parse key=value log lines and print one JSON event per line.

    \b
    Examples:
      kvtail parse app.log
      kvtail parse app.log --timefield ts --format unix
      tail -f app.log | kvtail parse - --filter-regex 'level=error'
      kvtail parse /var/log/messages --syslog-prefix --workers 4
    """
    conf = settings.model_copy(
        update={
            "timefield": timefield,
            "format": fmt,
            "filter_regex": filter_regex,
            "invert_filter": invert_filter,
            "num_parsers": workers,
        }
    )
    try:
        parser = KeyValParser(conf)
    except InvalidFilterPattern as exc:
        raise click.BadParameter(str(exc), param_hint="--filter-regex") from exc

    prefix: PrefixRegex | None = None
    if syslog_prefix:
        prefix = PrefixRegex(SYSLOG_PREFIX)
    elif prefix_regex:
        try:
            prefix = PrefixRegex(prefix_regex)
        except re.error as exc:
            raise click.BadParameter(str(exc), param_hint="--prefix-regex") from exc

    lines: Channel[str] = Channel(maxsize=1000)
    events: Channel[Event] = Channel(maxsize=1000)

    count = 0
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="kvtail-host") as pool:
        feeder = pool.submit(_feed, file, lines)
        runner = pool.submit(_run, parser, lines, events, prefix)
        try:
            for event in events:
                _emit(event)
                count += 1
        finally:
            # unblocks the feeder and workers if output stops early
            lines.close()
            events.close()
    feeder.result()
    runner.result()

    err_console.print(f"[dim]Parsed {count} events from {file.name}[/dim]")
