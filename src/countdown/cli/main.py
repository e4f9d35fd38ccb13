"""CLI entry point for countdown.

Uses Click to expose the ``countdown`` command group.  ``countdown run`` is a
terminal self-timer: it drives a :class:`Countdown` off the default
``TimerPublisher`` and watches its observable fields.
"""

from __future__ import annotations

import logging
import sys
import time

import click

import countdown
from countdown.core.config import CountdownConfig
from countdown.core.countdown import Countdown, CountdownState
from countdown.core.publisher import TimerPublisher

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_POLL_SECONDS = 0.05

_positive = click.FloatRange(min=0, min_open=True)

_FIRED_STATES = frozenset({CountdownState.TRIGGERING, CountdownState.COMPLETE})


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=_LOG_FORMAT)


def _watch(timer: Countdown) -> int:
    """Echo each new remaining time until the countdown fires or gives up.

    Returns the process exit code.
    """
    shown = None
    fired = False
    while True:
        # Read before the snapshot: once the stream has ended the state is final.
        active = timer.running
        remaining, state = timer.snapshot()
        if state in _FIRED_STATES and not fired:
            click.echo("Click!")
            fired = True
        if state == CountdownState.COMPLETE:
            return 0
        if state == CountdownState.TRIGGERING and not active:
            timer.complete()
            return 0
        if state == CountdownState.UNDEFINED:
            click.echo(f"Countdown left its range at {remaining:.1f}s", err=True)
            timer.stop()
            return 1
        if state == CountdownState.STOPPED:
            click.echo("Countdown stopped", err=True)
            return 1
        if not active:
            click.echo(f"Countdown ended at {remaining:.1f}s without firing", err=True)
            return 1
        if state == CountdownState.IN_PROGRESS and remaining != shown:
            click.echo(f"{remaining:.1f}")
            shown = remaining
        time.sleep(_POLL_SECONDS)


@click.group()
@click.version_option(version=countdown.__version__, prog_name="countdown")
def cli() -> None:
    """countdown: a self-timer countdown state machine."""


@cli.command()
@click.option(
    "--from",
    "countdown_from",
    type=_positive,
    default=5.0,
    show_default=True,
    help="Seconds to count down from.",
)
@click.option(
    "--interval", type=_positive, default=0.5, show_default=True, help="Seconds between ticks."
)
@click.option("-v", "--verbose", is_flag=True, help="Log state transitions.")
def run(countdown_from: float, interval: float, verbose: bool) -> None:
    """Count down in the terminal and fire when it reaches zero."""
    _configure_logging(verbose)
    publisher = TimerPublisher(default_interval=interval)
    timer = Countdown(
        CountdownConfig(
            countdown_from=countdown_from,
            interval=interval,
            countdown_publisher=publisher.countdown_publisher,
        )
    )
    timer.start()
    try:
        exit_code = _watch(timer)
    except KeyboardInterrupt:
        timer.stop()
        click.echo("Countdown stopped", err=True)
        sys.exit(130)
    sys.exit(exit_code)


@cli.command()
def states() -> None:
    """List the countdown states in progression order."""
    for state in CountdownState:
        click.echo(state.value)
