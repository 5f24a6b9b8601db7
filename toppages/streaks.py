import asyncio
import logging
from typing import Callable, Protocol

from toppages import config

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


# (delay_seconds, callback) -> handle; loop.call_later fits
Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


class StreakTracker:
    """
    Per-pathname click counters that fall back to 0 after a quiet period.

    Each pathname owns at most one pending timer. A click cancels it, bumps the
    counter and arms a fresh one, so only the last click of a burst resets.
    Not thread-safe: use it from the event loop that runs the timers.
    """

    def __init__(self, decay: float = config.STREAK_DECAY_SECONDS, schedule: Scheduler | None = None):
        self.decay = decay
        self._schedule = schedule
        self._counts: dict[str, int] = {}
        self._timers: dict[str, TimerHandle] = {}

    def _call_later(self, delay, callback):
        if self._schedule is not None:
            return self._schedule(delay, callback)
        return asyncio.get_running_loop().call_later(delay, callback)

    def click(self, pathname: str) -> int:
        pending = self._timers.pop(pathname, None)
        if pending is not None:
            pending.cancel()

        self._counts[pathname] = self._counts.get(pathname, 0) + 1
        self._timers[pathname] = self._call_later(self.decay, lambda: self._reset(pathname))
        return self._counts[pathname]

    def _reset(self, pathname: str) -> None:
        self._timers.pop(pathname, None)
        self._counts[pathname] = 0
        logger.debug("Streak for %s decayed", pathname)

    def get(self, pathname: str) -> int:
        return self._counts.get(pathname, 0)

    def snapshot(self) -> dict[str, int]:
        return dict(self._counts)

    def pending(self, pathname: str) -> bool:
        return pathname in self._timers

    def close(self) -> None:
        """
        Cancel every pending decay timer. Counters keep their last value.
        """
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
