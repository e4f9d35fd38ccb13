"""Countdown policy — the values a Countdown falls back to when a caller supplies none."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from countdown.core.publisher import TickStream, TimerPublisher

ReferenceTimeProvider = Callable[[], float]

_DEFAULT_COUNTDOWN_FROM = 5.0
_DEFAULT_INTERVAL = 0.5


@dataclass(frozen=True)
class CountdownPublisherArgs:
    """Arguments for a single tick stream request.

    *reference_time* is the absolute instant the countdown starts.  An
    *interval* of ``None`` leaves the spacing to the provider's default.
    """

    countdown_from: float
    reference_time: float
    interval: Optional[float] = None


CountdownPublisher = Callable[[CountdownPublisherArgs], TickStream]


def _default_publisher() -> CountdownPublisher:
    return TimerPublisher(default_interval=_DEFAULT_INTERVAL).countdown_publisher


def _require_positive(name: str, value: float) -> None:
    """Raise if *value* is not a positive real number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number, got {type(value).__name__}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class CountdownConfig:
    """Immutable bundle of countdown defaults.

    In most cases the client provides its own values; these defaults make a
    usable wall-clock self-timer out of the box.
    """

    reference_time_provider: ReferenceTimeProvider = time.time
    countdown_from: float = _DEFAULT_COUNTDOWN_FROM
    interval: float = _DEFAULT_INTERVAL
    countdown_publisher: CountdownPublisher = field(default_factory=_default_publisher)

    def __post_init__(self) -> None:
        _require_positive("countdown_from", self.countdown_from)
        _require_positive("interval", self.interval)
