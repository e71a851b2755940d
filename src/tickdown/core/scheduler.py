"""Scheduler -- an asyncio event loop on a background thread with one repeating deadline.

The loop is created per countdown and runs on a daemon thread so that
``start()`` returns to the caller straight away.  Exactly one deadline is
pending at a time: each firing clears it, and the callback asks for the
next one with :meth:`Scheduler.rearm`.  When a firing completes without a
rearm the loop stops and the thread exits on its own.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable

from tickdown.core.errors import AlreadyRunningError, InvalidDurationError

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 1.0

_MIN_DURATION = 1


def validate_duration(duration_seconds: int) -> None:
    """Raise if *duration_seconds* is not a positive integer."""
    if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int):
        raise TypeError(
            f"duration_seconds must be an integer, got {type(duration_seconds).__name__}"
        )
    if duration_seconds < _MIN_DURATION:
        raise InvalidDurationError(
            f"duration_seconds must be at least {_MIN_DURATION}, got {duration_seconds}"
        )


def validate_interval(interval: float) -> float:
    """Return *interval* as a float, raising ``ValueError`` unless it is positive."""
    interval = float(interval)
    if interval <= 0.0:
        raise ValueError(f"interval must be positive, got {interval}")
    return interval


class Scheduler:
    """Runs a repeating deadline on its own event-loop thread.

    ``start()`` and ``stop()`` may be called from any thread.  ``rearm()`` is
    only valid on the loop thread, i.e. from inside the fired callback.
    """

    def __init__(
        self, interval: float = DEFAULT_INTERVAL, name: str = "tickdown-scheduler"
    ) -> None:
        self._interval: float = validate_interval(interval)
        self._name = name
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._callback: Callable[[], None] | None = None
        self._running = False

    # -- public interface ----------------------------------------------------

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def start(self, duration_seconds: int, callback: Callable[[], None]) -> None:
        """Arm the first deadline and start the loop thread.

        Raises ``InvalidDurationError`` for a non-positive duration and
        ``AlreadyRunningError`` if the loop thread is still alive.
        """
        validate_duration(duration_seconds)
        with self._lock:
            if self._running:
                raise AlreadyRunningError("start() is not valid while the scheduler is running")

            loop = asyncio.new_event_loop()
            self._loop = loop
            self._callback = callback
            # The loop is not running yet, so arming from this thread is safe.
            self._handle = loop.call_later(self._interval, self._fire)
            self._thread = threading.Thread(
                target=self._run, args=(loop,), name=self._name, daemon=True
            )
            self._running = True
            self._thread.start()

        logger.debug(
            "Scheduler %s started for %d seconds at %.3fs intervals",
            self._name,
            duration_seconds,
            self._interval,
        )

    def rearm(self) -> None:
        """Schedule the next deadline one interval from now."""
        if not self.in_loop_thread():
            raise RuntimeError("rearm() must be called from the scheduler thread")
        if self._handle is not None:
            raise RuntimeError("rearm() called while a deadline is already pending")
        self._handle = self._loop.call_later(self._interval, self._fire)

    def stop(self) -> None:
        """Cancel the pending deadline and stop the loop.  Idempotent."""
        with self._lock:
            if not self._running:
                return
            self._loop.call_soon_threadsafe(self._halt)

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the loop thread to exit.  Returns ``True`` once it has."""
        thread = self._thread
        if thread is None:
            return True
        if thread is threading.current_thread():
            raise RuntimeError("join() cannot be called from the scheduler thread")
        thread.join(timeout)
        return not thread.is_alive()

    def in_loop_thread(self) -> bool:
        return self._thread is not None and self._thread is threading.current_thread()

    # -- loop thread ---------------------------------------------------------

    def _run(self, loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            with self._lock:
                self._running = False
                self._handle = None
            loop.close()
            logger.debug("Scheduler %s stopped", self._name)

    def _fire(self) -> None:
        self._handle = None
        try:
            self._callback()
        finally:
            # No rearm means no more work for this loop.
            if self._handle is None:
                self._loop.stop()

    def _halt(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._loop.stop()
