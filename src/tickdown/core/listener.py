"""Listener interface receiving countdown notifications."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

TickCallback = Callable[[int], None]
EndCallback = Callable[[], None]


class TimerListener(ABC):
    """Receives tick and completion notifications from a running timer.

    Both methods are called on the timer's background thread, one at a
    time.  Implementations that touch state owned by another thread (a UI,
    for example) must marshal the call themselves, and must not block for
    long or the following ticks are delayed.
    """

    @abstractmethod
    def timer_ticked(self, seconds_remaining: int) -> None:
        """Called once per tick while at least one second remains."""

    @abstractmethod
    def timer_ended(self) -> None:
        """Called once when the countdown reaches zero."""


class CallbackListener(TimerListener):
    """Adapts a pair of plain callables to the listener interface."""

    def __init__(
        self,
        on_tick: TickCallback | None = None,
        on_end: EndCallback | None = None,
    ) -> None:
        self._on_tick = on_tick
        self._on_end = on_end

    def timer_ticked(self, seconds_remaining: int) -> None:
        if self._on_tick is not None:
            self._on_tick(seconds_remaining)

    def timer_ended(self) -> None:
        if self._on_end is not None:
            self._on_end()
