"""
Progress reporting for transfers.

A reporter is any callable taking the cumulative number of bytes moved so
far. ProgressCounter turns per-chunk deltas from several threads into that
cumulative count, and ProgressChannel hands the counts to a consumer thread
(the CLI progress bar) through a queue that is closed exactly once when the
transfer ends.
"""

import queue
import threading
from typing import Callable, Iterator, Optional

# reporter(cumulative_bytes)
ProgressReporter = Callable[[int], None]

_CLOSED = object()


def discard_reporter(_transferred: int) -> None:
    """Reporter that ignores progress."""


class ProgressChannel:
    """
    Send-only stream of cumulative byte counts with a single close.

    The producer calls send() any number of times and close() exactly once;
    a consumer iterates the channel until it is closed. Sends never block.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, transferred: int) -> None:
        """
        Publish a cumulative byte count.

        Raises:
            RuntimeError: If the channel is already closed
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("send on closed progress channel")
            self._queue.put(transferred)

    def close(self) -> None:
        """
        Signal completion to the consumer.

        Raises:
            RuntimeError: If the channel is already closed
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("progress channel closed twice")
            self._closed = True
            self._queue.put(_CLOSED)

    def __call__(self, transferred: int) -> None:
        self.send(transferred)

    def __iter__(self) -> Iterator[int]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield item  # type: ignore[misc]


class ProgressCounter:
    """Thread-safe accumulator that forwards running totals to a reporter."""

    def __init__(self, reporter: Optional[ProgressReporter] = None) -> None:
        self._reporter = reporter
        self._lock = threading.Lock()
        self.total = 0

    def add(self, delta: int) -> None:
        """Add ``delta`` bytes and report the new cumulative total."""
        with self._lock:
            self.total += delta
            if self._reporter is not None:
                self._reporter(self.total)

    def __call__(self, delta: int) -> None:
        self.add(delta)


__all__ = ["ProgressChannel", "ProgressCounter", "ProgressReporter", "discard_reporter"]
