"""Cooperative tasks run by the scheduler."""

from __future__ import annotations

import abc
import time
from collections.abc import Callable

TIMESTAMP_MAX = 0xFFFF_FFFF_FFFF_FFFF
DISABLED_TASK = TIMESTAMP_MAX


def monotonic_ms() -> int:
    """Milliseconds from a monotonic clock."""
    return time.monotonic_ns() // 1_000_000


class Task(abc.ABC):
    """A task that wants to run at a scheduled time.

    ``run_time`` tracks how long the task takes to run: it jumps up to a
    longer run at once and decays towards shorter runs by a tenth.
    """

    _reschedule_flag = 0
    _current: Task | None = None

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        self._clock = clock or monotonic_ms
        self._scheduled_time = 0
        self.run_time = 0

    @abc.abstractmethod
    def run(self, cur_time: int) -> None:
        """Do the work; call resume_at() to run again."""

    def resume_at(self, at: int) -> None:
        """Schedule the next run at time ``at``."""
        if at != self._scheduled_time:
            self._scheduled_time = at
            if Task._current is not self:
                Task._reschedule_flag += 1

    def stop(self) -> None:
        """Disable the task until it is scheduled again."""
        self.resume_at(DISABLED_TASK)

    @property
    def scheduled_time(self) -> int:
        return self._scheduled_time

    def resume(self, cur_time: int) -> None:
        """Run the task now and update its run-time estimate."""
        self._scheduled_time = DISABLED_TASK
        Task._current = self
        try:
            start = self._clock()
            self.run(cur_time)
            used = self._clock() - start
        finally:
            Task._current = None
        if used > self.run_time:
            self.run_time = used
        elif used < self.run_time:
            self.run_time -= (self.run_time - used) // 10


class MethodTask(Task):
    """Task calling ``func(cur_time)``, which returns the delay to the next run."""

    def __init__(
        self, func: Callable[[int], int], clock: Callable[[], int] | None = None
    ) -> None:
        super().__init__(clock)
        self._func = func

    def run(self, cur_time: int) -> None:
        self.resume_at(cur_time + self._func(cur_time))

    def wake_up(self) -> None:
        """Make the task due immediately."""
        self.resume_at(0)