"""
Leg classifier.

Tracks a sticky bullish/bearish leg per resolution. At bar ``i`` with
lookback ``size`` the lagged bar ``i - size`` is compared against the
comparison window ``[i - size + 1, i - 1]``:

- lagged high above every high in the window -> leg turns BEARISH
  (a swing high has been confirmed behind us)
- lagged low below every low in the window -> leg turns BULLISH
  (a swing low has been confirmed behind us)
- otherwise the leg holds

The high test runs first. Before bar ``size`` the leg stays BEARISH.

With ``size == 1`` the window is empty and the lagged bar is compared to
itself, so the leg never flips.

Window extremes are maintained with MonotonicDeque, O(1) amortized per bar.
"""

from __future__ import annotations

from typing import Sequence

from ..primitives import MonotonicDeque
from ..types import LegState, Resolution


def next_leg(
    leg: LegState,
    lag_high: float,
    lag_low: float,
    window_highest: float,
    window_lowest: float,
) -> LegState:
    """
    Leg transition for one bar.

    Args:
        leg: Leg state before this bar.
        lag_high: High of the lagged bar.
        lag_low: Low of the lagged bar.
        window_highest: Highest high of the comparison window.
        window_lowest: Lowest low of the comparison window.

    Returns:
        The new leg state.
    """
    if lag_high > window_highest:
        return LegState.BEARISH
    if lag_low < window_lowest:
        return LegState.BULLISH
    return leg


class LegTracker:
    """
    Incremental leg classifier for one resolution.

    Call ``update`` once per bar with the bar index and the high/low
    history up to and including that bar. The tracker keeps its own
    sliding-window extremes, so only ``highs[i - size]`` and
    ``lows[i - size]`` are read from the history.

    Attributes:
        resolution: Which resolution this tracker belongs to.
        size: Lookback in bars.
        leg: Current leg state.
        previous_leg: Leg state before the last update.
    """

    def __init__(self, resolution: Resolution, size: int) -> None:
        if size < 1:
            raise ValueError(
                f"{resolution.value} lookback must be >= 1, got {size}\n"
                f"\n"
                f"Fix: LegTracker(Resolution.INTERNAL, size=5)"
            )
        self.resolution = resolution
        self.size = size
        self.leg = LegState.BEARISH
        self.previous_leg = LegState.BEARISH

        # size == 1 has an empty comparison window
        if size > 1:
            self._window_high: MonotonicDeque | None = MonotonicDeque(size - 1, "max")
            self._window_low: MonotonicDeque | None = MonotonicDeque(size - 1, "min")
        else:
            self._window_high = None
            self._window_low = None

    def update(
        self,
        bar_idx: int,
        highs: Sequence[float],
        lows: Sequence[float],
    ) -> bool:
        """
        Advance the classifier to ``bar_idx``.

        Returns:
            True if the leg flipped on this bar.
        """
        self.previous_leg = self.leg

        if self._window_high is not None and bar_idx >= 1:
            self._window_high.push(bar_idx - 1, highs[bar_idx - 1])
            self._window_low.push(bar_idx - 1, lows[bar_idx - 1])

        if bar_idx < self.size:
            return False

        lag = bar_idx - self.size
        lag_high = highs[lag]
        lag_low = lows[lag]

        if self._window_high is None:
            window_highest, window_lowest = lag_high, lag_low
        else:
            window_highest = self._window_high.get()
            window_lowest = self._window_low.get()

        self.leg = next_leg(self.leg, lag_high, lag_low, window_highest, window_lowest)
        return self.leg != self.previous_leg

    @property
    def flipped_bullish(self) -> bool:
        """True if the last update flipped the leg to BULLISH (pivot low)."""
        return self.previous_leg == LegState.BEARISH and self.leg == LegState.BULLISH

    @property
    def flipped_bearish(self) -> bool:
        """True if the last update flipped the leg to BEARISH (pivot high)."""
        return self.previous_leg == LegState.BULLISH and self.leg == LegState.BEARISH
