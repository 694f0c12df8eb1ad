"""
Pivot tracker.

On each leg flip the tracker commits a confirmed pivot taken from the
lagged bar ``i - size``:

- flip to BULLISH -> pivot low at ``low[i - size]``
- flip to BEARISH -> pivot high at ``high[i - size]``

For the equal highs/lows resolution the incoming level is first compared
to the pivot's current level; a difference below the ATR-scaled tolerance
raises an equal highs / equal lows event. The comparison never changes
trend state.

Committing always shifts ``last_level <- current_level``, stores the new
level, resets ``crossed`` and records the lagged bar's index and time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..types import PivotSide, Resolution
from .leg import LegTracker


@dataclass
class PivotState:
    """
    One confirmed pivot per (resolution, side).

    Attributes:
        resolution: Owning resolution.
        side: HIGH or LOW.
        current_level: Level of the latest committed pivot, None until one
            is committed.
        last_level: Level the current one replaced.
        crossed: True once price has broken ``current_level``.
        bar_index: Index of the bar the pivot was taken from.
        bar_time: Time of that bar.
    """

    resolution: Resolution
    side: PivotSide
    current_level: Optional[float] = None
    last_level: Optional[float] = None
    crossed: bool = False
    bar_index: Optional[int] = None
    bar_time: Any = None

    @property
    def is_set(self) -> bool:
        return self.current_level is not None

    def commit(self, level: float, bar_index: int, bar_time: Any) -> None:
        """Replace the current level with a newly confirmed pivot."""
        self.last_level = self.current_level
        self.current_level = level
        self.crossed = False
        self.bar_index = bar_index
        self.bar_time = bar_time

    def mark_crossed(self) -> None:
        self.crossed = True


@dataclass(frozen=True, slots=True)
class PivotCommit:
    """A pivot committed on the current bar."""

    side: PivotSide
    level: float
    previous_level: Optional[float]
    pivot_index: int
    is_equal: bool = False


def is_equal_level(
    current_level: Optional[float],
    new_level: float,
    tolerance: float,
) -> bool:
    """
    True if ``new_level`` is within ``tolerance`` of ``current_level``.

    A pivot with no committed level never matches.
    """
    if current_level is None:
        return False
    return abs(current_level - new_level) < tolerance


class PivotTracker:
    """
    Leg classifier plus the high/low pivot pair of one resolution.

    Example:
        >>> tracker = PivotTracker(Resolution.INTERNAL, size=5)
        >>> for i in range(len(highs)):
        ...     commit = tracker.update(i, highs, lows, times)
        >>> tracker.low.current_level
    """

    def __init__(
        self,
        resolution: Resolution,
        size: int,
        high: Optional[PivotState] = None,
        low: Optional[PivotState] = None,
    ) -> None:
        self.resolution = resolution
        self.size = size
        self.leg = LegTracker(resolution, size)
        self.high = high if high is not None else PivotState(resolution, PivotSide.HIGH)
        self.low = low if low is not None else PivotState(resolution, PivotSide.LOW)

    def update(
        self,
        bar_idx: int,
        highs: Sequence[float],
        lows: Sequence[float],
        times: Sequence[Any],
        equal_tolerance: Optional[float] = None,
    ) -> Optional[PivotCommit]:
        """
        Process one bar.

        Args:
            bar_idx: Current bar index.
            highs: Raw high history through ``bar_idx``.
            lows: Raw low history through ``bar_idx``.
            times: Time history through ``bar_idx``.
            equal_tolerance: Absolute tolerance for equal highs/lows. None
                disables the comparison.

        Returns:
            The committed pivot, or None if the leg did not flip.
        """
        if not self.leg.update(bar_idx, highs, lows):
            return None

        lag = bar_idx - self.size
        if self.leg.flipped_bullish:
            pivot = self.low
            level = lows[lag]
        else:
            pivot = self.high
            level = highs[lag]

        is_equal = False
        if equal_tolerance is not None:
            is_equal = is_equal_level(pivot.current_level, level, equal_tolerance)

        previous_level = pivot.current_level
        pivot.commit(level, lag, times[lag])

        return PivotCommit(
            side=pivot.side,
            level=level,
            previous_level=previous_level,
            pivot_index=lag,
            is_equal=is_equal,
        )
