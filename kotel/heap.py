"""Binary heap operations on the leading part of a list."""

from __future__ import annotations

from collections.abc import Callable, MutableSequence
from typing import TypeVar

T = TypeVar("T")


def heap_push(heap: MutableSequence[T], size: int, cmp: Callable[[T, T], bool]) -> None:
    """Sift ``heap[size - 1]`` up into the heap ``heap[:size - 1]``.

    ``cmp(a, b)`` is True when ``a`` belongs nearer the top than ``b``.
    """
    if size < 2:
        return
    index = size - 1
    while index > 0:
        parent = (index - 1) // 2
        if not cmp(heap[index], heap[parent]):
            break
        heap[index], heap[parent] = heap[parent], heap[index]
        index = parent


def heap_pop(heap: MutableSequence[T], size: int, cmp: Callable[[T, T], bool]) -> None:
    """Move the top of the heap ``heap[:size]`` to ``heap[size - 1]``.

    The remaining ``size - 1`` items are restored to heap order.
    """
    if size <= 1:
        return
    heap[0], heap[size - 1] = heap[size - 1], heap[0]
    last = size - 2
    index = 0
    while True:
        left = 2 * index + 1
        right = left + 1
        target = index
        if left <= last and cmp(heap[left], heap[target]):
            target = left
        if right <= last and cmp(heap[right], heap[target]):
            target = right
        if target == index:
            break
        heap[index], heap[target] = heap[target], heap[index]
        index = target