"""
Fixed-capacity measurement history for temporal gesture classification.

A HistoryWindow is a ring buffer over a preallocated numpy array: appends
write at a modulo cursor and never grow the storage, so the per-frame path
does no allocation once a hand or pair is being tracked.
"""

import logging
from typing import Iterator, NamedTuple

import numpy as np

logger = logging.getLogger(__name__)

# Column layout of the backing array
_TIMESTAMP, _DISTANCE, _HORIZONTAL, _VERTICAL = range(4)


class HistoryEntry(NamedTuple):
    """A timestamped measurement derived from one or two hands."""
    timestamp_ms: int
    hands_distance: float
    horizontal_spread: float = 0.0
    vertical_spread: float = 0.0


class HistoryWindow:
    """Timestamp-monotonic ring buffer of HistoryEntry.

    Index 0 is the oldest stored entry and -1 the newest, like a deque.
    """

    def __init__(self, capacity: int = 7):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._data = np.zeros((capacity, 4), dtype=np.float64)
        self._cursor = 0  # Next write slot
        self._size = 0

    def append(self, entry: HistoryEntry) -> bool:
        """Store an entry, evicting the oldest when full.

        Returns:
            False (and stores nothing) if the entry is older than the newest
            stored entry.
        """
        if self._size and entry.timestamp_ms < self[-1].timestamp_ms:
            logger.debug("Rejected out-of-order history entry: %d < %d",
                         entry.timestamp_ms, self[-1].timestamp_ms)
            return False

        self._data[self._cursor] = (
            entry.timestamp_ms,
            entry.hands_distance,
            entry.horizontal_spread,
            entry.vertical_spread,
        )
        self._cursor = (self._cursor + 1) % self._capacity
        self._size = min(self._size + 1, self._capacity)
        return True

    def __getitem__(self, index: int) -> HistoryEntry:
        if not -self._size <= index < self._size:
            raise IndexError(f"history index {index} out of range (size={self._size})")
        if index < 0:
            index += self._size
        oldest = (self._cursor - self._size) % self._capacity
        row = self._data[(oldest + index) % self._capacity]
        return HistoryEntry(
            int(row[_TIMESTAMP]),
            float(row[_DISTANCE]),
            float(row[_HORIZONTAL]),
            float(row[_VERTICAL]),
        )

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[HistoryEntry]:
        for i in range(self._size):
            yield self[i]

    def clear(self):
        self._cursor = 0
        self._size = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return self._size == self._capacity

    @property
    def span_ms(self) -> int:
        """Time covered by the stored entries."""
        if self._size < 2:
            return 0
        return self[-1].timestamp_ms - self[0].timestamp_ms
