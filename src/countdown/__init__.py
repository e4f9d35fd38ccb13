"""countdown: a small countdown state machine for UI self-timers."""

from countdown.core.config import CountdownConfig, CountdownPublisherArgs
from countdown.core.countdown import Countdown, CountdownState

__version__ = "0.1.0"

__all__ = [
    "Countdown",
    "CountdownConfig",
    "CountdownPublisherArgs",
    "CountdownState",
    "__version__",
]
