"""Closable FIFO shared between producer and consumer threads.

``queue.Queue`` has no notion of end-of-stream, so consumers draining it
from several threads cannot tell "empty for now" from "finished".  Channel
adds ``close()``: once closed, ``put`` raises and ``get`` keeps returning
buffered items until the buffer is empty, then raises ChannelClosed.

Usage::

    lines: Channel[str] = Channel(maxsize=1000)
    threading.Thread(target=producer, args=(lines,)).start()
    for line in lines:   # stops once the producer closes the channel
        ...
"""
from __future__ import annotations

import threading
from collections import deque
from typing import Generic, Iterator, TypeVar

from ..errors import ChannelClosed

T = TypeVar("T")


class Channel(Generic[T]):
    """Thread-safe FIFO with an optional bound and explicit closure.

    Args:
        maxsize: Maximum buffered items; ``put`` blocks when full.
                 0 (the default) means unbounded.
    """

    def __init__(self, maxsize: int = 0) -> None:
        if maxsize < 0:
            raise ValueError("maxsize must be >= 0")
        self.maxsize = maxsize
        self._items: deque[T] = deque()
        self._closed = False
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)

    def put(self, item: T) -> None:
        """Append ``item``, blocking while the channel is full."""
        with self._not_full:
            while not self._closed and self.maxsize and len(self._items) >= self.maxsize:
                self._not_full.wait()
            if self._closed:
                raise ChannelClosed("put on closed channel")
            self._items.append(item)
            self._not_empty.notify()

    def get(self) -> T:
        """Pop the oldest item, blocking until one arrives.

        Raises ChannelClosed once the channel is closed and drained.
        """
        with self._not_empty:
            while not self._items:
                if self._closed:
                    raise ChannelClosed("channel closed and drained")
                self._not_empty.wait()
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def close(self) -> None:
        """Mark end-of-stream and wake every waiting producer and consumer."""
        with self._lock:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except ChannelClosed:
                return

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Channel({len(self)} items, {state})"
