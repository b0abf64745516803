"""Room Stats — aggregate arithmetic for documentCount / totalSizeBytes.

Invariants:
    - Deltas are built from the exact sizes of the rows created or removed
    - A removal delta is the negation of the freed rows, never derived from cached totals
    - compare_totals reports drift without deciding how to fix it

Design Decisions:
    - RoomTotals is a frozen value: the shell applies deltas as store-native relative
      increments, so the only arithmetic here is building the delta itself
"""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class RoomTotals:
    """document_count / total_size_bytes pair (also used as a signed delta)."""
    document_count: int = 0
    total_size_bytes: int = 0

    def as_tuple(self) -> tuple[int, int]:
        return (self.document_count, self.total_size_bytes)

    def is_negative(self) -> bool:
        return self.document_count < 0 or self.total_size_bytes < 0


def creation_delta(size_bytes: int) -> RoomTotals:
    """One new node of the given size."""
    if size_bytes < 0:
        raise ValueError("size_bytes must be non-negative")
    return RoomTotals(1, size_bytes)


def removal_delta(freed_sizes: Iterable[int]) -> RoomTotals:
    """Negative delta for the rows a delete actually removed."""
    sizes = list(freed_sizes)
    return RoomTotals(-len(sizes), -sum(sizes))


def compare_totals(recorded: RoomTotals, actual: RoomTotals) -> bool:
    """True when recorded counters match the node rows."""
    return recorded == actual
