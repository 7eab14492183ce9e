"""Thread-pool driver that turns a stream of key=value lines into events.

Strategy:
    1. ``num_parsers`` worker threads share one inbound Channel.
    2. Each worker filters, strips the prefix, decodes, merges prefix fields
       and resolves the timestamp for every line it dequeues.
    3. Finished events go straight to the outbound sink; a full sink simply
       blocks the worker that is publishing.

No ordering is kept across workers.  Each worker publishes its own lines in
the order it dequeued them.

Usage::

    from kvtail.pipeline.processor import KeyValParser

    lines, events = Channel(), Channel()
    parser = KeyValParser(Settings(timefield="ts", num_parsers=4))
    # feed ``lines`` from another thread, then lines.close()
    parser.process_lines(lines, events)
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from ..config import Settings
from ..errors import MalformedLine
from ..parsers.base import Event, EventSink, LineParser, PrefixExtractor
from ..parsers.keyval import KeyValLineParser, all_empty
from ..parsers.timestamps import Clock, TimestampResolver
from .line_filter import LineFilter

logger = logging.getLogger(__name__)


class KeyValParser:
    """Parse key=value log lines concurrently.

    Args:
        conf:        Parser settings; defaults to a fresh ``Settings()``.
        line_parser: Decoder for a single line (default: KeyValLineParser).
        clock:       Time source for the fallback timestamp.

    Raises:
        InvalidFilterPattern: if ``conf.filter_regex`` does not compile.
    """

    def __init__(
        self,
        conf: Settings | None = None,
        line_parser: LineParser | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.conf = conf if conf is not None else Settings()
        self.line_filter = (
            LineFilter(self.conf.filter_regex, self.conf.invert_filter)
            if self.conf.filter_regex
            else None
        )
        self.line_parser: LineParser = line_parser or KeyValLineParser()
        self.resolver = TimestampResolver(
            timefield=self.conf.timefield, fmt=self.conf.format, clock=clock
        )

    def process_lines(
        self,
        lines: Iterable[str],
        send: EventSink,
        prefix: PrefixExtractor | None = None,
    ) -> None:
        """Drain ``lines`` with ``num_parsers`` workers, publishing to ``send``.

        Blocks until ``lines`` is exhausted (for a Channel: closed and empty)
        and every worker has finished its last line.  ``send`` is never closed.
        """
        n = self.conf.num_parsers
        with ThreadPoolExecutor(max_workers=n, thread_name_prefix="kvtail-parser") as pool:
            futures = [pool.submit(self._worker, lines, send, prefix) for _ in range(n)]
        for fut in futures:
            fut.result()
        logger.debug("lines channel is closed, ending keyval processor")

    def _worker(
        self,
        lines: Iterable[str],
        send: EventSink,
        prefix: PrefixExtractor | None,
    ) -> None:
        for line in lines:
            event = self.process_line(line, prefix)
            if event is not None:
                send.put(event)

    def process_line(
        self, line: str, prefix: PrefixExtractor | None = None
    ) -> Event | None:
        """Turn one raw line into an Event, or None if the line is skipped."""
        logger.debug("Attempting to process keyval log line: %r", line)

        if self.line_filter is not None and not self.line_filter.accepts(line):
            logger.debug(
                "skipping line due to filter %r (invert=%s): %r",
                self.line_filter.pattern,
                self.line_filter.invert,
                line,
            )
            return None

        prefix_fields: dict[str, str] = {}
        if prefix is not None:
            prefix_text, prefix_fields = prefix.extract(line)
            line = line.removeprefix(prefix_text)

        try:
            parsed = self.line_parser.parse_line(line)
        except MalformedLine as exc:
            logger.debug("skipping line; failed to parse: %r (%s)", line, exc)
            return None
        if not parsed:
            logger.debug("skipping line; no key/val pairs found: %r", line)
            return None
        if all_empty(parsed):
            logger.debug("skipping line; all values are the empty string: %r", line)
            return None

        parsed.update(prefix_fields)
        timestamp = self.resolver.resolve(parsed)
        return Event(timestamp=timestamp, data=parsed)
