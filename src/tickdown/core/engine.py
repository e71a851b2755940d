"""Timer engine -- the countdown state machine driven by a :class:`Scheduler`."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from functools import partial
from typing import Callable

from tickdown.core.errors import (
    AlreadyRunningError,
    InvalidDurationError,
    InvalidStateError,
    TimerError,
)
from tickdown.core.listener import TimerListener
from tickdown.core.scheduler import (
    DEFAULT_INTERVAL,
    Scheduler,
    validate_duration,
    validate_interval,
)

__all__ = [
    "AlreadyRunningError",
    "InvalidDurationError",
    "InvalidStateError",
    "TimerEngine",
    "TimerError",
    "TimerState",
    "create_with_listener",
]

logger = logging.getLogger(__name__)

SchedulerFactory = Callable[[float], Scheduler]


class TimerState(Enum):
    """Possible states of the timer."""

    IDLE = "idle"
    RUNNING = "running"
    ENDED = "ended"
    CANCELLED = "cancelled"
    FAILED = "failed"


_VALID_START_STATES = frozenset(
    {TimerState.IDLE, TimerState.ENDED, TimerState.CANCELLED, TimerState.FAILED}
)


class TimerEngine:
    """Counts down whole seconds and reports each tick to a listener.

    ``start()`` returns immediately; ticks are delivered on a background
    thread owned by a fresh :class:`Scheduler` per countdown.  A countdown of
    *n* seconds produces ``timer_ticked(n - 1)`` down to ``timer_ticked(1)``
    followed by a single ``timer_ended()``.

    If the listener raises, the decrement has already been committed: the
    error is logged and kept in :attr:`error`, the timer moves to FAILED,
    and no further ticks are scheduled.  An error raised from
    ``timer_ended()`` is recorded the same way but the state stays ENDED.

    A countdown that has ended, failed or been cancelled may be started
    again from scratch; starting while RUNNING raises
    :class:`AlreadyRunningError`.
    """

    def __init__(
        self,
        listener: TimerListener,
        interval: float = DEFAULT_INTERVAL,
        scheduler_factory: SchedulerFactory = Scheduler,
    ) -> None:
        self._listener = listener
        self._interval: float = validate_interval(interval)
        self._scheduler_factory = scheduler_factory
        self._lock = threading.RLock()
        self._state: TimerState = TimerState.IDLE
        self._seconds_remaining: int = 0
        self._scheduler: Scheduler | None = None
        self._error: BaseException | None = None

    # -- public interface ----------------------------------------------------

    @property
    def listener(self) -> TimerListener:
        return self._listener

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def state(self) -> TimerState:
        with self._lock:
            return self._state

    @property
    def seconds_remaining(self) -> int:
        with self._lock:
            return self._seconds_remaining

    @property
    def error(self) -> BaseException | None:
        """The listener exception that halted the last countdown, if any."""
        with self._lock:
            return self._error

    @property
    def is_running(self) -> bool:
        return self.state is TimerState.RUNNING

    def start(self, seconds: int) -> None:
        """Start counting down from *seconds* (a positive integer).

        Valid from IDLE, ENDED, CANCELLED and FAILED.  Invalid input is
        rejected before anything is scheduled.
        """
        validate_duration(seconds)
        with self._lock:
            self._require_state("start", _VALID_START_STATES)

            scheduler = self._scheduler_factory(self._interval)
            self._seconds_remaining = seconds
            self._error = None
            self._state = TimerState.RUNNING
            self._scheduler = scheduler
            # The first deadline cannot fire before we release the lock.
            scheduler.start(seconds, self._on_deadline)

        logger.info("Countdown started: %d seconds", seconds)

    def cancel(self) -> bool:
        """Stop a running countdown.  Safe from any thread, idempotent.

        Waits for an in-flight tick to finish notifying the listener, so no
        notification is delivered once this returns.  Returns ``True`` if a
        running countdown was stopped.  Calling it from another thread while
        the listener blocks on that same thread will deadlock.
        """
        with self._lock:
            if self._state is not TimerState.RUNNING:
                return False
            self._state = TimerState.CANCELLED
            self._scheduler.stop()
            remaining = self._seconds_remaining

        logger.info("Countdown cancelled with %d seconds remaining", remaining)
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the current countdown's thread has exited.

        Returns ``True`` when it has, ``False`` on timeout.  Returns ``True``
        straight away when nothing was ever started.
        """
        with self._lock:
            scheduler = self._scheduler
        if scheduler is None:
            return True
        return scheduler.join(timeout)

    # -- scheduler callback --------------------------------------------------

    def _on_deadline(self) -> None:
        """Handle one deadline: decrement, rearm if time remains, then notify."""
        with self._lock:
            if self._state is not TimerState.RUNNING:
                return

            self._seconds_remaining -= 1
            remaining = self._seconds_remaining
            logger.debug("Tick: %d seconds remaining", remaining)

            if remaining > 0:
                self._scheduler.rearm()
                notify = partial(self._listener.timer_ticked, remaining)
            else:
                self._state = TimerState.ENDED
                logger.info("Countdown ended")
                notify = self._listener.timer_ended

            try:
                notify()
            except Exception as exc:
                self._listener_failed(exc)
            except BaseException as exc:
                # SystemExit and friends still end the loop thread.
                self._listener_failed(exc)
                raise

    # -- private helpers -----------------------------------------------------

    def _listener_failed(self, exc: BaseException) -> None:
        logger.exception(
            "Listener raised with %d seconds remaining; halting countdown",
            self._seconds_remaining,
        )
        self._error = exc
        if self._state is TimerState.RUNNING:
            self._state = TimerState.FAILED
            self._scheduler.stop()

    def _require_state(self, method: str, valid: frozenset[TimerState]) -> None:
        """Raise ``InvalidStateError`` if the current state is not in *valid*."""
        if self._state in valid:
            return
        if self._state is TimerState.RUNNING:
            raise AlreadyRunningError(f"{method}() is not valid while a countdown is running")
        raise InvalidStateError(f"{method}() is not valid from {self._state.value} state")


def create_with_listener(
    listener: TimerListener, interval: float = DEFAULT_INTERVAL
) -> TimerEngine:
    """Return an idle timer bound to *listener*."""
    return TimerEngine(listener, interval=interval)
