"""Search candidates ordered by distance to the query."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Candidate:
    """A node found while searching, with its distance to the query vector.

    Candidates order by distance, then by id; the checked flag plays no
    part in the ordering.
    """

    id: int
    distance: float
    is_checked: bool = False

    @property
    def sort_key(self) -> tuple[float, int]:
        return (self.distance, self.id)

    def __lt__(self, other: Candidate) -> bool:
        if not isinstance(other, Candidate):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __gt__(self, other: Candidate) -> bool:
        if not isinstance(other, Candidate):
            return NotImplemented
        return self.sort_key > other.sort_key

    def __le__(self, other: Candidate) -> bool:
        if not isinstance(other, Candidate):
            return NotImplemented
        return self.sort_key <= other.sort_key

    def __ge__(self, other: Candidate) -> bool:
        if not isinstance(other, Candidate):
            return NotImplemented
        return self.sort_key >= other.sort_key