"""Deferred-callback schedulers for the history debounce timer."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """A scheduled callback that can be cancelled before it fires."""

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a zero-argument callback once after ``delay`` seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def poll(self) -> int:
        """Run callbacks whose due time has already passed."""
        ...


class AsyncioScheduler:
    """Schedule on an asyncio event loop.

    Args:
        loop: Loop to schedule on. Defaults to the loop running at call time.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)

    def poll(self) -> int:
        # The loop fires due callbacks itself.
        return 0


@dataclass(eq=False)
class ManualTimer:
    """Timer owned by a ``ManualScheduler``."""

    due: float
    callback: Callable[[], None]
    cancelled: bool = False
    owner: ManualScheduler | None = field(default=None, repr=False)

    def cancel(self) -> None:
        self.cancelled = True
        if self.owner is not None:
            self.owner._discard(self)
            self.owner = None


class ManualScheduler:
    """Scheduler without an event loop.

    Timers only fire from ``advance``, ``poll`` or ``run_all``. With no
    ``clock`` the time is virtual and moves only through ``advance`` and
    ``run_all``, which keeps tests deterministic. With a ``clock`` such as
    ``time.monotonic`` the time follows that clock and ``poll`` fires
    whatever has come due.

    Args:
        clock: Zero-argument callable returning seconds.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock
        self._now = 0.0
        self._timers: list[ManualTimer] = []

    @property
    def now(self) -> float:
        return self._clock() if self._clock is not None else self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(due=self.now + max(delay, 0.0), callback=callback, owner=self)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        """Number of timers held, none of them fired or cancelled."""
        return len(self._timers)

    def advance(self, seconds: float) -> int:
        """Move the virtual clock forward, firing due timers in due order.

        Returns:
            Number of callbacks fired.

        Raises:
            RuntimeError: If the scheduler follows an external clock.
        """
        if self._clock is not None:
            raise RuntimeError("advance() needs a virtual clock; use poll() with an external clock")
        target = self._now + seconds
        fired = self._fire_until(target)
        self._now = target
        return fired

    def poll(self) -> int:
        """Fire every timer that is due by ``now``."""
        return self._fire_until(self.now)

    def run_all(self) -> int:
        """Fire every outstanding timer regardless of due time."""
        return self._fire_until(math.inf)

    def _fire_until(self, target: float) -> int:
        fired = 0
        while True:
            due = [timer for timer in self._timers if timer.due <= target]
            if not due:
                return fired
            timer = min(due, key=lambda t: t.due)
            self._discard(timer)
            timer.owner = None
            if self._clock is None:
                self._now = max(self._now, timer.due)
            timer.callback()
            fired += 1

    def _discard(self, timer: ManualTimer) -> None:
        self._timers = [held for held in self._timers if held is not timer]


def default_scheduler() -> Scheduler:
    """Use the running event loop when there is one, else the monotonic clock."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("No running event loop; debounced history commits follow time.monotonic()")
        return ManualScheduler(clock=time.monotonic)
    return AsyncioScheduler()
