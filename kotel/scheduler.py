"""Runs due tasks in order of their scheduled time."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

from .heap import heap_pop, heap_push
from .task import TIMESTAMP_MAX, Task, monotonic_ms


@dataclass
class _Item:
    tp: int
    task: Task


def _effective_time(item: _Item) -> int:
    # Longer tasks are started earlier by their expected run time.
    if TIMESTAMP_MAX - item.task.run_time > item.tp:
        return item.tp + item.task.run_time
    return item.tp


def _compare(a: _Item, b: _Item) -> bool:
    return _effective_time(a) < _effective_time(b)


class Scheduler:
    """Keeps a fixed set of tasks in a heap ordered by scheduled time."""

    def __init__(
        self, tasks: Iterable[Task], clock: Callable[[], int] | None = None
    ) -> None:
        self._clock = clock or monotonic_ms
        self._items = [_Item(task.scheduled_time, task) for task in tasks]
        self._seen_flag: int | None = None

    def _reschedule(self) -> None:
        for size, item in enumerate(self._items, start=1):
            item.tp = item.task.scheduled_time
            heap_push(self._items, size, _compare)
        self._seen_flag = Task._reschedule_flag

    def run(self) -> bool:
        """Run every task that is due; return True if any ran."""
        if self._seen_flag != Task._reschedule_flag:
            self._reschedule()
        items = self._items
        total = len(items)
        size = total
        ran = False
        while size > 0:
            now = self._clock()
            if now < items[0].tp:
                break
            heap_pop(items, size, _compare)
            size -= 1
            item = items[size]
            ran = True
            item.task.resume(now)
            item.tp = item.task.scheduled_time
        while size < total:
            size += 1
            heap_push(items, size, _compare)
        return ran

    def __iter__(self) -> Iterator[Task]:
        return (item.task for item in self._items)