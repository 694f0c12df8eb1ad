"""
Fair value gap detector.

Looks at the three most recent bars (i-2, i-1, i):

- Bullish gap: low[i] > high[i-2], close[i-1] > high[i-2] and the middle
  bar's body delta exceeds the threshold. Zone = [high[i-2], low[i]].
- Bearish gap: high[i] < low[i-2], close[i-1] < low[i-2] and the negated
  body delta exceeds the threshold. Zone = [high[i], low[i-2]].

Body delta of a bar: (close - open) / (open * 100).

Threshold: fixed, or in auto mode twice the running mean of |body delta|
over bars 0..i-1. Gaps are recorded once and never mitigated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..base import BarData
from ..primitives import RingBuffer
from ..types import Bias


@dataclass(frozen=True, slots=True)
class FairValueGap:
    """
    Three-bar imbalance zone.

    Attributes:
        top: Upper bound.
        bottom: Lower bound.
        bias: BULLISH or BEARISH.
        time: Time of the third bar.
        bar_index: Index of the third bar.
    """

    top: float
    bottom: float
    bias: Bias
    time: Any
    bar_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "top": self.top,
            "bottom": self.bottom,
            "bias": self.bias.label,
            "time": self.time,
            "bar_index": self.bar_index,
        }


def body_delta(open_: float, close: float) -> float:
    return (close - open_) / (open_ * 100)


class FairValueGapDetector:
    """
    Incremental 3-bar gap detector.

    Holds the last three bars in ring buffers and a running sum of
    |body delta| for the auto threshold.
    """

    def __init__(self, auto_threshold: bool = True, threshold: float = 0.0) -> None:
        self.auto_threshold = auto_threshold
        self.fixed_threshold = threshold

        self._highs = RingBuffer(3)
        self._lows = RingBuffer(3)
        self._opens = RingBuffer(3)
        self._closes = RingBuffer(3)

        # Running |body delta| over bars 0..i-1
        self._delta_sum: float = 0.0
        self._delta_count: int = 0

        self.gaps: list[FairValueGap] = []

    def current_threshold(self) -> float:
        """Threshold that applies to the bar being processed."""
        if not self.auto_threshold:
            return self.fixed_threshold
        if self._delta_count == 0:
            return 0.0
        return (self._delta_sum / self._delta_count) * 2

    def update(self, bar: BarData) -> list[FairValueGap]:
        """
        Process one bar.

        Returns:
            Gaps found on this bar (empty before the third bar).
        """
        self._highs.push(bar.high)
        self._lows.push(bar.low)
        self._opens.push(bar.open)
        self._closes.push(bar.close)

        found: list[FairValueGap] = []
        if self._highs.is_full():
            threshold = self.current_threshold()
            last2_high = self._highs[0]
            last2_low = self._lows[0]
            last_close = self._closes[1]
            delta = body_delta(self._opens[1], last_close)

            if bar.low > last2_high and last_close > last2_high and delta > threshold:
                found.append(FairValueGap(
                    top=bar.low,
                    bottom=last2_high,
                    bias=Bias.BULLISH,
                    time=bar.time,
                    bar_index=bar.idx,
                ))

            if bar.high < last2_low and last_close < last2_low and -delta > threshold:
                found.append(FairValueGap(
                    top=last2_low,
                    bottom=bar.high,
                    bias=Bias.BEARISH,
                    time=bar.time,
                    bar_index=bar.idx,
                ))

        # This bar joins the running mean only after it has been checked
        self._delta_sum += abs(body_delta(bar.open, bar.close))
        self._delta_count += 1

        self.gaps.extend(found)
        return found

    @property
    def last_gap(self) -> Optional[FairValueGap]:
        return self.gaps[-1] if self.gaps else None
