"""
Sort-key allocation for drag-and-drop reordering

Keys are plain integers, lower sorts first. A key for a slot between two
neighbours is their floor midpoint; open-ended slots use the current time in
milliseconds as the missing bound.

Known limitation: repeated inserts at the same boundary exhaust integer
resolution and the midpoint collapses onto a neighbour (allocate(5, 6) == 5).
Keys are never renormalised; callers can detect this with is_collision().
"""

import time
from collections.abc import Callable


def _now_ms() -> int:
    return int(time.time() * 1000)


class SortKeyAllocator:
    """Integer midpoint allocator with a monotonic time-derived key source"""

    def __init__(self, clock: Callable[[], int] = _now_ms):
        self._clock = clock
        self._last_time_key: int | None = None

    def time_key(self) -> int:
        """Current time in ms, strictly increasing across calls"""
        key = self._clock()
        if self._last_time_key is not None and key <= self._last_time_key:
            key = self._last_time_key + 1
        self._last_time_key = key
        return key

    def allocate(self, prev_key: int | None, next_key: int | None) -> int:
        if prev_key is None and next_key is None:
            return self.time_key()

        if next_key is None:
            # Appending: "now" is the implicit upper bound
            key = (prev_key + self._clock()) // 2
            return key if key > prev_key else prev_key + 1

        if prev_key is None:
            key = next_key // 2
            return key if key < next_key else next_key - 1

        return (prev_key + next_key) // 2


def is_collision(key: int, prev_key: int | None, next_key: int | None) -> bool:
    """True when the allocated key landed on a neighbour's key"""
    return key == prev_key or key == next_key


_default_allocator = SortKeyAllocator()


def allocate(prev_key: int | None, next_key: int | None) -> int:
    """Module-level allocate() backed by a process-wide allocator"""
    return _default_allocator.allocate(prev_key, next_key)
