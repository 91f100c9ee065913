from __future__ import annotations

from dataclasses import dataclass, field
import heapq
import itertools
import logging
import time
from typing import Callable


LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(eq=False)
class ScheduledTask:
    due: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualClock:
    """Clock advanced explicitly by the host (headless hosts and tests)."""

    now: float = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        self.now += seconds
        return self.now


@dataclass
class CooperativeScheduler:
    """Single-threaded timer queue; due tasks run only when the host calls `run_due`."""

    clock: Clock = time.monotonic
    _queue: list[tuple[float, int, ScheduledTask]] = field(default_factory=list, init=False, repr=False)
    _seq: "itertools.count[int]" = field(default_factory=itertools.count, init=False, repr=False)

    def now(self) -> float:
        return float(self.clock())

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        task = ScheduledTask(due=self.now() + float(delay), callback=callback)
        heapq.heappush(self._queue, (task.due, next(self._seq), task))
        return task

    def pending(self) -> tuple[ScheduledTask, ...]:
        return tuple(task for _, _, task in sorted(self._queue) if not task.cancelled)

    def next_due(self) -> float | None:
        for due, _, task in sorted(self._queue):
            if not task.cancelled:
                return due
        return None

    def run_due(self) -> int:
        """Run every task due at the current clock time, in due order."""

        ran = 0
        now = self.now()
        while self._queue and self._queue[0][0] <= now:
            _, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            task.cancelled = True
            task.callback()
            ran += 1
        if ran:
            LOGGER.debug("ran %d scheduled task(s) at t=%.3f", ran, now)
        return ran
