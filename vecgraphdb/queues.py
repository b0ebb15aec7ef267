"""Bounded priority queues of search candidates, kept sorted by distance.

A queue is a plain list of :class:`Candidate` in ascending order. Inserted
candidates are copied, so the queues never share candidate objects.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import replace

from .candidate import Candidate


def _same(a: Candidate, b: Candidate) -> bool:
    return not a < b and not b < a


def _merge_checked(existing: Candidate, incoming: Candidate) -> None:
    # A node seen unchecked in the incoming queue must be expanded again.
    if not incoming.is_checked and existing.is_checked:
        existing.is_checked = False


def _require_non_empty(queue1: list[Candidate], queue2: list[Candidate]) -> None:
    if not queue1 or not queue2:
        raise ValueError("both queues must hold at least one candidate")


def add_into_queue(queue: list[Candidate], capacity: int, cand: Candidate) -> int:
    """Insert ``cand`` in order, keeping at most ``capacity`` entries.

    Returns the position it took, or ``capacity`` when it was not added
    because it duplicates the entry at its place or the queue is full and
    it would come last.
    """
    if not queue:
        queue.append(replace(cand))
        return 0
    loc = bisect_left(queue, cand)
    if loc != len(queue):
        if cand.id == queue[loc].id:
            return capacity
        if len(queue) >= capacity:
            queue.pop()
        queue.insert(loc, replace(cand))
        return loc
    if len(queue) < capacity:
        queue.append(replace(cand))
        return len(queue) - 1
    return capacity


def add_into_queue_at(
    queue: list[Candidate], index: int, cand: Candidate, capacity: int
) -> None:
    """Insert ``cand`` at ``index``, dropping the last entry if the queue is full."""
    if not 0 <= index <= len(queue) or index >= capacity:
        raise IndexError(f"insert position {index} out of range")
    if len(queue) >= capacity:
        queue.pop()
    queue.insert(index, replace(cand))


def insert_one_element_at(queue: list[Candidate], index: int, cand: Candidate) -> None:
    """Insert ``cand`` at ``index`` of a fixed-size queue; the last entry falls off."""
    if not 0 <= index < len(queue):
        raise IndexError(f"insert position {index} out of range")
    queue.insert(index, replace(cand))
    queue.pop()


def merge_into_fixed(queue1: list[Candidate], queue2: list[Candidate]) -> int:
    """Merge ``queue2`` into ``queue1`` without changing the length of ``queue1``.

    Returns the lowest position of ``queue1`` that may have changed.
    """
    _require_non_empty(queue1, queue2)
    size = len(queue1)
    head = queue2[0]
    insert_index = bisect_left(queue1, head)
    if insert_index == size:
        return insert_index
    if insert_index == size - 1:
        queue1[insert_index] = replace(head)
        return insert_index

    if head.id != queue1[insert_index].id:
        insert_one_element_at(queue1, insert_index, head)
    else:
        _merge_checked(queue1[insert_index], head)
    if len(queue2) == 1:
        return insert_index

    i, j = insert_index + 1, 1
    while i < size and j < len(queue2):
        current, incoming = queue1[i], queue2[j]
        if current < incoming:
            i += 1
        elif incoming < current:
            insert_one_element_at(queue1, i, incoming)
            i += 1
            j += 1
        else:
            _merge_checked(current, incoming)
            i += 1
            j += 1
    return insert_index


def merge_into_growing(
    queue1: list[Candidate], capacity: int, queue2: list[Candidate]
) -> int:
    """Merge ``queue2`` into ``queue1``, letting ``queue1`` grow up to ``capacity``.

    Returns the lowest position of ``queue1`` that may have changed.
    """
    _require_non_empty(queue1, queue2)
    size = len(queue1)
    head = queue2[0]
    insert_index = bisect_left(queue1, head)
    if insert_index == size:
        count = capacity - size if size + len(queue2) > capacity else len(queue2)
        queue1.extend(replace(c) for c in queue2[:max(count, 0)])
        return insert_index

    if head.id != queue1[insert_index].id:
        add_into_queue_at(queue1, insert_index, head, capacity)
    else:
        _merge_checked(queue1[insert_index], head)
    if len(queue2) == 1:
        return insert_index

    i, j = insert_index + 1, 1
    while i < capacity:
        if i >= len(queue1):
            take = min(capacity - i, len(queue2) - j)
            queue1.extend(replace(c) for c in queue2[j : j + take])
            break
        if j >= len(queue2):
            break
        current, incoming = queue1[i], queue2[j]
        if current < incoming:
            i += 1
        elif incoming < current:
            add_into_queue_at(queue1, i, incoming, capacity)
            i += 1
            j += 1
        else:
            _merge_checked(current, incoming)
            i += 1
            j += 1
    return insert_index