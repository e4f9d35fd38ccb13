"""Countdown core — a state machine driven by an injected tick stream."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Optional

from countdown.core.config import CountdownConfig, CountdownPublisherArgs
from countdown.core.publisher import Cancellable

logger = logging.getLogger(__name__)


class CountdownState(Enum):
    """Lifecycle states, listed in expected progression order."""

    READY = "ready"
    IN_PROGRESS = "inProgress"
    TRIGGERING = "triggering"
    COMPLETE = "complete"
    STOPPED = "stopped"
    UNDEFINED = "undefined"


_VALID_START_STATES = frozenset(
    {CountdownState.READY, CountdownState.STOPPED, CountdownState.COMPLETE}
)
_RESETTABLE_STATES = frozenset(
    {
        CountdownState.IN_PROGRESS,
        CountdownState.TRIGGERING,
        CountdownState.STOPPED,
        CountdownState.COMPLETE,
    }
)
_FINISHED_STATES = frozenset(
    {CountdownState.COMPLETE, CountdownState.STOPPED, CountdownState.UNDEFINED}
)


class Countdown:
    """Tracks remaining time and lifecycle state for a UI countdown.

    ``start`` subscribes to a tick stream produced by the configured
    publisher; every tick updates :attr:`time` and advances :attr:`state`.
    No public method raises: calls that are invalid for the current state
    are ignored and reported through the module logger.

    Ticks may arrive on another thread, so ``time``, ``state`` and the
    subscription handle are guarded by a re-entrant lock.  Each subscription
    is tagged with a generation number and ticks from a retired generation
    are dropped.
    """

    INITIAL_TIME = 0.0

    def __init__(
        self,
        config: Optional[CountdownConfig] = None,
        initial_state: CountdownState = CountdownState.READY,
    ) -> None:
        self._config: CountdownConfig = config if config is not None else CountdownConfig()
        self._lock = threading.RLock()
        self._time: float = self.INITIAL_TIME
        self._state: CountdownState = initial_state
        self._cancellable: Optional[Cancellable] = None
        self._generation = 0
        logger.debug("Countdown initialized in state %s", initial_state.value)

    # -- observable fields ---------------------------------------------------

    @property
    def time(self) -> float:
        """Remaining seconds from the latest tick, or ``INITIAL_TIME``."""
        with self._lock:
            return self._time

    @property
    def state(self) -> CountdownState:
        """Current lifecycle state."""
        with self._lock:
            return self._state

    @property
    def config(self) -> CountdownConfig:
        """Policy defaults this countdown was built with."""
        return self._config

    @property
    def running(self) -> bool:
        """Whether a tick subscription is active and its stream has not ended."""
        with self._lock:
            return self._cancellable is not None

    def snapshot(self) -> tuple[float, CountdownState]:
        """Return ``(time, state)`` read together."""
        with self._lock:
            return self._time, self._state

    # -- public interface ----------------------------------------------------

    def reset(self) -> None:
        """Cancel any countdown and return to READY with the initial time."""
        with self._lock:
            self._cancel_subscription()
            if self._state in _RESETTABLE_STATES:
                self._update_state(CountdownState.READY)
            elif self._state == CountdownState.UNDEFINED:
                logger.warning("Resetting from an undefined state")
                self._update_state(CountdownState.READY)
            self._time = self.INITIAL_TIME

    def start(
        self,
        countdown_from: Optional[float] = None,
        interval: Optional[float] = None,
        reference_time: Optional[float] = None,
    ) -> None:
        """Begin counting down from READY, STOPPED or COMPLETE.

        Unset arguments fall back to the config; the reference time is taken
        from the config's provider at call time.
        """
        if interval is None:
            interval = self._config.interval
        if reference_time is None:
            reference_time = self._config.reference_time_provider()
        if countdown_from is None:
            countdown_from = self._config.countdown_from

        with self._lock:
            logger.debug("Countdown attempting to start from state: %s", self._state.value)
            self._cancel_subscription()
            if self._state not in _VALID_START_STATES:
                logger.info("Invalid starting state: %s", self._state.value)
                return

            logger.debug("Starting countdown from %s", countdown_from)
            args = CountdownPublisherArgs(
                countdown_from=countdown_from,
                reference_time=reference_time,
                interval=interval,
            )
            generation = self._generation

            def _on_tick(value: float) -> None:
                with self._lock:
                    if generation != self._generation:
                        return
                    self._time = value
                    self._update_state_from_tick(value, countdown_from)

            def _on_finish() -> None:
                with self._lock:
                    if generation != self._generation:
                        return
                    logger.debug("Tick stream ended in state %s", self._state.value)
                    self._generation += 1
                    self._cancellable = None

            token = self._config.countdown_publisher(args).subscribe(_on_tick, _on_finish)
            if generation != self._generation:
                # Completed or ended while subscribing.
                token.cancel()
            else:
                self._cancellable = token

    def restart(self) -> None:
        """Start again with every argument resolved from the config."""
        self.start()

    def stop(self) -> None:
        """Move to STOPPED from any state and cancel the tick subscription."""
        with self._lock:
            logger.debug("Stopping countdown")
            self._update_state(CountdownState.STOPPED)
            self._cancel_subscription()

    def complete(self) -> None:
        """Move to COMPLETE from any state and cancel the tick subscription."""
        with self._lock:
            logger.debug("Countdown complete")
            self._cancel_subscription()
            self._update_state(CountdownState.COMPLETE)

    # -- private helpers -----------------------------------------------------

    def _cancel_subscription(self) -> None:
        """Retire the current generation and cancel its subscription, if any."""
        self._generation += 1
        cancellable, self._cancellable = self._cancellable, None
        if cancellable is not None:
            cancellable.cancel()

    def _update_state(self, new_state: CountdownState) -> None:
        """Sole writer of ``_state``."""
        logger.debug("State changing: %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    def _update_state_from_tick(self, value: float, countdown_from: float) -> None:
        if value <= 0.0:
            if self._state == CountdownState.IN_PROGRESS:
                self._update_state(CountdownState.TRIGGERING)
            elif self._state == CountdownState.TRIGGERING:
                self.complete()
            elif self._state in _FINISHED_STATES:
                logger.warning("Countdown still running in state %s", self._state.value)
            else:
                logger.warning("Countdown ended without ever being inProgress")
        elif value <= countdown_from:
            self._update_state(CountdownState.IN_PROGRESS)
        else:
            # Out-of-range tick: flagged as an anomaly, not an error.
            self._update_state(CountdownState.UNDEFINED)
