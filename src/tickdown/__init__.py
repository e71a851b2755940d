"""tickdown: a non-blocking one-second countdown timer with listener callbacks."""

from tickdown.core.engine import TimerEngine, TimerState, create_with_listener
from tickdown.core.errors import (
    AlreadyRunningError,
    InvalidDurationError,
    InvalidStateError,
    TimerError,
)
from tickdown.core.listener import CallbackListener, TimerListener

__version__ = "0.1.0"

__all__ = [
    "AlreadyRunningError",
    "CallbackListener",
    "InvalidDurationError",
    "InvalidStateError",
    "TimerEngine",
    "TimerError",
    "TimerListener",
    "TimerState",
    "__version__",
    "create_with_listener",
]
