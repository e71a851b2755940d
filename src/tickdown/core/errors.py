"""Exceptions raised by the countdown core."""


class TimerError(Exception):
    """Base class for countdown errors."""


class InvalidDurationError(TimerError, ValueError):
    """Raised when a countdown is started with a non-positive duration."""


class InvalidStateError(TimerError):
    """Raised when an operation is not valid from the current state."""


class AlreadyRunningError(InvalidStateError):
    """Raised when ``start()`` is called while a countdown is running."""
