"""
Incremental state primitives for O(1) hot-loop operations.

Provides:
- MonotonicDeque: O(1) amortized sliding-window min/max, used by the leg
  classifier to track the highest high / lowest low of the comparison
  window without rescanning it every bar
- RingBuffer: Fixed-size circular buffer, used by the fair value gap
  detector to hold the last three bars

Performance Contract:
- MonotonicDeque.push(): O(1) amortized
- MonotonicDeque.get(): O(1)
- RingBuffer.push(): O(1)
- RingBuffer.__getitem__(): O(1)
"""

from __future__ import annotations

from collections import deque
from typing import Literal

import numpy as np


class MonotonicDeque:
    """
    O(1) amortized sliding window min or max keyed by bar index.

    The front element is always the min (or max) of the values pushed
    with an index inside the last ``window_size`` indices.

    - MIN mode: values increase from front to back
    - MAX mode: values decrease from front to back

    Ties keep the newest entry, which is harmless here because only the
    value is read back.

    Example:
        >>> window = MonotonicDeque(window_size=2, mode="max")
        >>> window.push(0, 101.0)
        >>> window.push(1, 103.0)
        >>> window.get()
        103.0
        >>> window.push(2, 102.0)  # index 0 evicted, 103 still inside
        >>> window.get()
        103.0
        >>> window.push(3, 100.0)  # index 1 evicted
        >>> window.get()
        102.0
    """

    __slots__ = ("window_size", "mode", "_deque")

    def __init__(self, window_size: int, mode: Literal["min", "max"]) -> None:
        """
        Args:
            window_size: Number of indices covered by the window (>= 1).
            mode: "min" or "max".

        Raises:
            ValueError: If window_size < 1 or mode is invalid.
        """
        if window_size < 1:
            raise ValueError(
                f"window_size must be >= 1, got {window_size}\n"
                f"\n"
                f"Fix: MonotonicDeque(window_size=4, mode='max')"
            )
        if mode not in ("min", "max"):
            raise ValueError(
                f"mode must be 'min' or 'max', got '{mode}'\n"
                f"\n"
                f"Fix: MonotonicDeque(window_size=4, mode='min')"
            )
        self.window_size = window_size
        self.mode = mode
        self._deque: deque[tuple[int, float]] = deque()

    def push(self, idx: int, value: float) -> None:
        """
        Add the value observed at bar ``idx``.

        Indices must increase across calls. Entries whose index falls out
        of ``(idx - window_size, idx]`` are evicted.
        """
        while self._deque and self._deque[0][0] <= idx - self.window_size:
            self._deque.popleft()

        if self.mode == "min":
            while self._deque and self._deque[-1][1] >= value:
                self._deque.pop()
        else:
            while self._deque and self._deque[-1][1] <= value:
                self._deque.pop()

        self._deque.append((idx, value))

    def get(self) -> float | None:
        """Current window min/max, or None if nothing has been pushed."""
        if not self._deque:
            return None
        return self._deque[0][1]

    def __len__(self) -> int:
        return len(self._deque)

    def clear(self) -> None:
        self._deque.clear()


class RingBuffer:
    """
    Fixed-size circular buffer with O(1) push and logical indexing.

    Index 0 is the oldest element, ``len - 1`` the newest. Negative
    indices count back from the newest element.

    Example:
        >>> buf = RingBuffer(size=3)
        >>> for price in (100.0, 104.0, 112.0, 115.0):
        ...     buf.push(price)
        >>> buf[0], buf[-1]
        (104.0, 115.0)
    """

    __slots__ = ("size", "_buffer", "_head", "_count")

    def __init__(self, size: int) -> None:
        """
        Args:
            size: Capacity (>= 1).

        Raises:
            ValueError: If size < 1.
        """
        if size < 1:
            raise ValueError(
                f"size must be >= 1, got {size}\n"
                f"\n"
                f"Fix: RingBuffer(size=3)"
            )
        self.size = size
        self._buffer = np.full(size, np.nan, dtype=np.float64)
        self._head = 0  # Next write position
        self._count = 0

    def push(self, value: float) -> None:
        """Append a value, overwriting the oldest one when full."""
        self._buffer[self._head] = value
        self._head = (self._head + 1) % self.size
        if self._count < self.size:
            self._count += 1

    def __getitem__(self, idx: int) -> float:
        if idx < 0:
            idx += self._count
        if idx < 0 or idx >= self._count:
            raise IndexError(
                f"Index {idx} out of range [0, {self._count})\n"
                f"\n"
                f"Buffer has {self._count} elements."
            )
        physical = (self._head - self._count + idx) % self.size
        return float(self._buffer[physical])

    def is_full(self) -> bool:
        return self._count == self.size

    def __len__(self) -> int:
        return self._count

    def to_array(self) -> np.ndarray:
        """Copy of the contents, oldest first."""
        if self._count == 0:
            return np.array([], dtype=np.float64)
        start = self._head - self._count
        order = [(start + i) % self.size for i in range(self._count)]
        return self._buffer[order].copy()
