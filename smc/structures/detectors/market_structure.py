"""
Structure breakout detector (BOS/CHoCH).

Break of Structure (BOS): Continuation signal
- Close crosses above the pivot high while the bias is not bearish
- Close crosses below the pivot low while the bias is not bullish

Change of Character (CHoCH): Reversal signal
- Close crosses above the pivot high while the bias is bearish
- Close crosses below the pivot low while the bias is bullish

A crossover needs the previous close on or behind the level and the
current close strictly beyond it. Each pivot level can be broken once;
``crossed`` stays set until a new level is committed.

Internal structure adds two conditions:
- The internal level must differ from the swing level on the same side,
  so internal breakouts never fire on a level the swing pivot owns.
- With confluence filtering on, the breakout bar must pass the wick/body
  test (see bullish_confluence / bearish_confluence).

Bar 0 has no previous close and never breaks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..base import BarData
from ..types import Bias, Resolution, SignalKind
from .pivot import PivotState


@dataclass
class TrendState:
    """Trend bias of one resolution, NEUTRAL until the first breakout."""

    resolution: Resolution
    bias: Bias = Bias.NEUTRAL


@dataclass(frozen=True, slots=True)
class Signal:
    """
    Immutable BOS/CHoCH event.

    Attributes:
        bar_index: Breakout bar.
        time: Breakout bar time.
        kind: BOS or CHoCH.
        direction: BULLISH (pivot high broken) or BEARISH (pivot low broken).
        level: The broken pivot level.
        resolution: SWING or INTERNAL.
        pivot_index: Bar index of the broken pivot.
    """

    bar_index: int
    time: Any
    kind: SignalKind
    direction: Bias
    level: float
    resolution: Resolution
    pivot_index: Optional[int] = None

    @property
    def is_bos(self) -> bool:
        return self.kind == SignalKind.BOS

    @property
    def is_choch(self) -> bool:
        return self.kind == SignalKind.CHOCH

    def to_dict(self) -> dict[str, Any]:
        return {
            "bar_index": self.bar_index,
            "time": self.time,
            "kind": self.kind.value,
            "direction": self.direction.label,
            "level": self.level,
            "resolution": self.resolution.value,
            "pivot_index": self.pivot_index,
        }


def bullish_confluence(bar: BarData) -> bool:
    """Upper wick longer than the lower wick."""
    return bar.high - max(bar.close, bar.open) > min(bar.close, bar.open) - bar.low


def bearish_confluence(bar: BarData) -> bool:
    """Upper wick shorter than the lower wick."""
    return bar.high - max(bar.close, bar.open) < min(bar.close, bar.open) - bar.low


def detect_breakouts(
    bar: BarData,
    prev_close: Optional[float],
    pivot_high: PivotState,
    pivot_low: PivotState,
    trend: TrendState,
    swing_high_level: Optional[float] = None,
    swing_low_level: Optional[float] = None,
    filter_confluence: bool = False,
) -> list[Signal]:
    """
    Check one bar for bullish and bearish breakouts of a pivot pair.

    Mutates ``pivot_high.crossed`` / ``pivot_low.crossed`` and
    ``trend.bias`` when a breakout fires.

    Args:
        bar: Current bar.
        prev_close: Close of the previous bar (None on bar 0).
        pivot_high: High pivot of the resolution.
        pivot_low: Low pivot of the resolution.
        trend: Trend of the resolution.
        swing_high_level: Current swing high level (internal only).
        swing_low_level: Current swing low level (internal only).
        filter_confluence: Apply the wick/body confluence test (internal only).

    Returns:
        Signals fired on this bar, bullish first.
    """
    signals: list[Signal] = []
    if prev_close is None:
        return signals

    internal = trend.resolution == Resolution.INTERNAL
    close = bar.close

    level = pivot_high.current_level
    if level is not None and not pivot_high.crossed:
        allowed = True
        if internal:
            allowed = level != swing_high_level and (
                not filter_confluence or bullish_confluence(bar)
            )
        if allowed and prev_close <= level and close > level:
            kind = SignalKind.CHOCH if trend.bias == Bias.BEARISH else SignalKind.BOS
            signals.append(Signal(
                bar_index=bar.idx,
                time=bar.time,
                kind=kind,
                direction=Bias.BULLISH,
                level=level,
                resolution=trend.resolution,
                pivot_index=pivot_high.bar_index,
            ))
            pivot_high.mark_crossed()
            trend.bias = Bias.BULLISH

    level = pivot_low.current_level
    if level is not None and not pivot_low.crossed:
        allowed = True
        if internal:
            allowed = level != swing_low_level and (
                not filter_confluence or bearish_confluence(bar)
            )
        if allowed and prev_close >= level and close < level:
            kind = SignalKind.CHOCH if trend.bias == Bias.BULLISH else SignalKind.BOS
            signals.append(Signal(
                bar_index=bar.idx,
                time=bar.time,
                kind=kind,
                direction=Bias.BEARISH,
                level=level,
                resolution=trend.resolution,
                pivot_index=pivot_low.bar_index,
            ))
            pivot_low.mark_crossed()
            trend.bias = Bias.BEARISH

    return signals
