"""CLI entry point for tickdown.

Uses Click to expose the ``tickdown`` command group.  ``tickdown run``
drives a :class:`TimerEngine` and prints each tick as it arrives.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, TypeVar

import click
import colorlog

import tickdown
from tickdown.core.engine import TimerEngine, TimerError, TimerState
from tickdown.core.listener import TimerListener
from tickdown.core.scheduler import DEFAULT_INTERVAL

T = TypeVar("T")

_HANDLER_NAME = "tickdown-console"
_LOG_FORMAT = (
    "%(green)s%(asctime)s%(reset)s [%(blue)s%(name)s%(reset)s] "
    "%(log_color)s%(levelname)s%(reset)s %(message)s (%(cyan)s%(threadName)s%(reset)s)"
)


def _format_remaining(seconds: int) -> str:
    """Format *seconds* as ``N seconds remaining``."""
    unit = "second" if seconds == 1 else "seconds"
    return f"{seconds} {unit} remaining"


def _configure_logging(verbose: bool) -> None:
    """Attach a coloured stderr handler to the ``tickdown`` logger."""
    logger = logging.getLogger("tickdown")
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        colorlog.ColoredFormatter(
            _LOG_FORMAT,
            log_colors={
                "DEBUG": "cyan",
                "INFO": "white",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    )
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _run(action: Callable[[], T]) -> T:
    """Execute *action*, converting ``TimerError`` to a CLI error.

    On ``TimerError`` the message is printed to stderr and the process
    exits with code 1.
    """
    try:
        return action()
    except TimerError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


class ConsoleListener(TimerListener):
    """Prints countdown notifications to stdout."""

    def timer_ticked(self, seconds_remaining: int) -> None:
        click.echo(_format_remaining(seconds_remaining))

    def timer_ended(self) -> None:
        click.echo("Time's up!")


@click.group()
@click.version_option(version=tickdown.__version__, prog_name="tickdown")
def cli() -> None:
    """tickdown: a non-blocking countdown timer."""


@cli.command()
@click.argument("seconds", type=int)
@click.option(
    "--interval",
    type=click.FloatRange(min=0.0, min_open=True),
    default=DEFAULT_INTERVAL,
    show_default=True,
    envvar="TICKDOWN_INTERVAL",
    help="Seconds between ticks.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log scheduler activity to stderr.")
def run(seconds: int, interval: float, verbose: bool) -> None:
    """Count down from SECONDS, printing each tick."""
    _configure_logging(verbose)
    engine = TimerEngine(ConsoleListener(), interval=interval)
    _run(lambda: engine.start(seconds))

    try:
        engine.wait()
    except KeyboardInterrupt:
        engine.cancel()
        click.echo("Countdown cancelled", err=True)
        sys.exit(130)

    if engine.state is TimerState.FAILED:
        click.echo(f"Countdown failed: {engine.error}", err=True)
        sys.exit(1)
