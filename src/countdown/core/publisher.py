"""Tick streams — cancellable sources of remaining-time values."""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Callable, Optional, Protocol

if TYPE_CHECKING:
    from countdown.core.config import CountdownPublisherArgs

logger = logging.getLogger(__name__)

TickHandler = Callable[[float], None]
FinishHandler = Callable[[], None]

_TERMINAL_TICKS = 2


class Cancellable:
    """Handle for an active subscription.

    ``cancel()`` may be called any number of times; *on_cancel* runs once.
    """

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None) -> None:
        self._on_cancel = on_cancel
        self._lock = threading.Lock()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callback, self._on_cancel = self._on_cancel, None
        if callback is not None:
            callback()


class TickStream(Protocol):
    """A sequence of remaining-time values delivered to a handler.

    *on_finish* runs once when the stream ends by itself; it does not run
    after the subscription has been cancelled.
    """

    def subscribe(
        self, on_tick: TickHandler, on_finish: Optional[FinishHandler] = None
    ) -> Cancellable: ...


class _TimerTickStream:
    """Emits remaining time on a background thread until it reaches zero.

    The terminal value is delivered twice, one interval apart, so a
    countdown can move through TRIGGERING to COMPLETE on its own.
    """

    def __init__(
        self,
        countdown_from: float,
        reference_time: float,
        interval: float,
        clock: Callable[[], float],
    ) -> None:
        self._countdown_from = countdown_from
        self._reference_time = reference_time
        self._interval = interval
        self._clock = clock

    def subscribe(
        self, on_tick: TickHandler, on_finish: Optional[FinishHandler] = None
    ) -> Cancellable:
        stop_event = threading.Event()
        worker = threading.Thread(
            target=self._run,
            args=(on_tick, on_finish, stop_event),
            name="countdown-ticks",
            daemon=True,
        )
        token = Cancellable(stop_event.set)
        worker.start()
        return token

    def _remaining(self) -> float:
        remaining = self._countdown_from - (self._clock() - self._reference_time)
        return round(max(remaining, 0.0), 6)

    def _run(
        self,
        on_tick: TickHandler,
        on_finish: Optional[FinishHandler],
        stop_event: threading.Event,
    ) -> None:
        step = 0
        terminal = 0
        while not stop_event.is_set():
            remaining = self._remaining()
            on_tick(remaining)
            if remaining <= 0.0:
                terminal += 1
                if terminal == _TERMINAL_TICKS:
                    if on_finish is not None and not stop_event.is_set():
                        on_finish()
                    break
            # Ticks sit on a grid anchored at the reference time, so a slow
            # handler does not push every later tick back.
            step += 1
            deadline = self._reference_time + step * self._interval
            if stop_event.wait(max(deadline - self._clock(), 0.0)):
                break
        logger.debug("Tick stream finished after %d intervals", step)


class TimerPublisher:
    """Default tick-stream provider backed by one worker thread per subscription.

    Cancelling a subscription wakes its worker immediately.  A tick that is
    already being delivered when ``cancel()`` runs still reaches the handler;
    ``Countdown`` discards such stale ticks.
    """

    def __init__(
        self,
        default_interval: float = 0.5,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._default_interval = default_interval
        self._clock = clock

    def countdown_publisher(self, args: CountdownPublisherArgs) -> TickStream:
        """Return a stream counting down from ``args.countdown_from`` to zero."""
        interval = args.interval if args.interval is not None else self._default_interval
        return _TimerTickStream(args.countdown_from, args.reference_time, interval, self._clock)
