"""Shared fixtures for the tickdown test suite."""

from __future__ import annotations

import threading
import time

import pytest

from tickdown.core.listener import TimerListener

FAST_INTERVAL = 0.01


class RecordingListener(TimerListener):
    """Records every notification with its timestamp and thread.

    Also counts calls that are in flight at the same moment so tests can
    assert that notifications never overlap.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.events: list[tuple[str, int | None, float]] = []
        self.threads: set[threading.Thread] = set()
        self.ended = threading.Event()
        self.max_in_flight = 0
        self._delay = delay
        self._in_flight = 0
        self._lock = threading.Lock()

    @property
    def ticks(self) -> list[int]:
        return [value for kind, value, _ in self.events if kind == "tick"]

    @property
    def end_count(self) -> int:
        return sum(1 for kind, _, _ in self.events if kind == "end")

    def timer_ticked(self, seconds_remaining: int) -> None:
        self._record("tick", seconds_remaining)

    def timer_ended(self) -> None:
        self._record("end", None)
        self.ended.set()

    def _record(self, kind: str, value: int | None) -> None:
        with self._lock:
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self._delay:
                time.sleep(self._delay)
            self.events.append((kind, value, time.monotonic()))
            self.threads.add(threading.current_thread())
        finally:
            with self._lock:
                self._in_flight -= 1


@pytest.fixture()
def listener() -> RecordingListener:
    """Return a fresh recording listener."""
    return RecordingListener()
