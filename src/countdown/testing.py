"""Deterministic stand-ins for the clock and tick source.

Plug these into :class:`~countdown.core.config.CountdownConfig` to drive a
``Countdown`` without real time passing::

    publisher = ManualPublisher()
    countdown = Countdown(CountdownConfig(
        reference_time_provider=FakeClock(100.0),
        countdown_from=3.0,
        countdown_publisher=publisher,
    ))
    countdown.start()
    publisher.emit(3.0)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from countdown.core.config import CountdownPublisherArgs
from countdown.core.publisher import Cancellable, FinishHandler, TickHandler


@dataclass
class FakeClock:
    """Reference-time provider returning a manually controlled value."""

    now: float = 0.0
    calls: int = 0

    def __call__(self) -> float:
        self.calls += 1
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTickStream:
    """Tick stream whose values are pushed by the test with :meth:`emit`."""

    def __init__(self) -> None:
        self._subscriptions: list[tuple[TickHandler, Optional[FinishHandler], Cancellable]] = []

    def subscribe(
        self, on_tick: TickHandler, on_finish: Optional[FinishHandler] = None
    ) -> Cancellable:
        token = Cancellable()
        self._subscriptions.append((on_tick, on_finish, token))
        return token

    def emit(self, value: float) -> None:
        for handler, _, token in list(self._subscriptions):
            if not token.cancelled:
                handler(value)

    def finish(self) -> None:
        """End the stream for every subscriber that has not cancelled."""
        for _, on_finish, token in list(self._subscriptions):
            if not token.cancelled and on_finish is not None:
                on_finish()

    @property
    def active_count(self) -> int:
        return sum(1 for _, _, token in self._subscriptions if not token.cancelled)


@dataclass
class ManualPublisher:
    """Publisher that records each request and hands out a :class:`ManualTickStream`."""

    requests: list[CountdownPublisherArgs] = field(default_factory=list)
    streams: list[ManualTickStream] = field(default_factory=list)

    def __call__(self, args: CountdownPublisherArgs) -> ManualTickStream:
        stream = ManualTickStream()
        self.requests.append(args)
        self.streams.append(stream)
        return stream

    @property
    def latest(self) -> ManualTickStream:
        return self.streams[-1]

    def emit(self, value: float) -> None:
        """Push *value* to every stream handed out so far."""
        for stream in self.streams:
            stream.emit(value)


class SequenceTickStream:
    """Delivers a fixed sequence synchronously inside ``subscribe``, then ends."""

    def __init__(self, values: Iterable[float]) -> None:
        self._values = list(values)

    def subscribe(
        self, on_tick: TickHandler, on_finish: Optional[FinishHandler] = None
    ) -> Cancellable:
        token = Cancellable()
        for value in self._values:
            if token.cancelled:
                return token
            on_tick(value)
        if on_finish is not None:
            on_finish()
        return token
