"""
Explicit state container for the structure engine.

StructureState owns everything that carries over from one bar to the
next: the three pivot trackers (each with its leg classifier and pivot
pair), the two trends, both order block books, the fair value gap
detector, the bar history and the accumulated events.

The engine's step functions receive the state and mutate it; nothing is
kept in module globals, so two engines never share state.
"""

from __future__ import annotations

from typing import Any, Optional

from smc.config.config import StructureConfig

from .base import BarData
from .detectors.fair_value_gap import FairValueGapDetector
from .detectors.market_structure import Signal, TrendState
from .detectors.order_block import OrderBlockBook
from .detectors.pivot import PivotState, PivotTracker
from .preprocess import VolatilityProfile
from .results import EqualLevel
from .types import Resolution


class StructureState:
    """
    Per-engine state, one instance per (config, bar stream).

    Attributes:
        config: Engine configuration.
        profile: Preprocessor scalars used to parse bars.
        swing / internal / equal: PivotTracker per resolution.
        swing_trend / internal_trend: Trend bias per breakout resolution.
        swing_order_blocks / internal_order_blocks: OrderBlockBook per resolution.
        fair_value_gaps: FairValueGapDetector.
        bar_idx: Index of the last processed bar (-1 before the first).
    """

    def __init__(self, config: StructureConfig, profile: VolatilityProfile) -> None:
        self.config = config
        self.profile = profile

        self.swing = PivotTracker(Resolution.SWING, config.swing_length)
        self.internal = PivotTracker(Resolution.INTERNAL, config.internal_length)
        self.equal = PivotTracker(Resolution.EQUAL, config.equal_highs_lows_length)

        self.swing_trend = TrendState(Resolution.SWING)
        self.internal_trend = TrendState(Resolution.INTERNAL)

        self.swing_order_blocks = OrderBlockBook(Resolution.SWING)
        self.internal_order_blocks = OrderBlockBook(Resolution.INTERNAL)

        self.fair_value_gaps = FairValueGapDetector(
            auto_threshold=config.fair_value_gaps_auto_threshold,
            threshold=config.fair_value_gaps_threshold,
        )

        # Bar history (order block scans reach back to the pivot bar)
        self.opens: list[float] = []
        self.highs: list[float] = []
        self.lows: list[float] = []
        self.closes: list[float] = []
        self.times: list[Any] = []
        self.parsed_highs: list[float] = []
        self.parsed_lows: list[float] = []

        # Accumulated events
        self.signals: list[Signal] = []
        self.equal_highs: list[EqualLevel] = []
        self.equal_lows: list[EqualLevel] = []

        self.bar_idx: int = -1

        # Event flags (reset each bar)
        self.bos_this_bar: dict[Resolution, bool] = {}
        self.choch_this_bar: dict[Resolution, bool] = {}
        self.equal_highs_this_bar: bool = False
        self.equal_lows_this_bar: bool = False
        self.fvg_bullish_this_bar: bool = False
        self.fvg_bearish_this_bar: bool = False
        self.reset_bar_flags()

    @property
    def equal_tolerance(self) -> float:
        """Absolute equal highs/lows tolerance."""
        return self.config.equal_highs_lows_threshold * self.profile.atr_measure

    @property
    def prev_close(self) -> Optional[float]:
        """Close of the bar before the current one."""
        if len(self.closes) < 2:
            return None
        return self.closes[-2]

    def pivot(self, resolution: Resolution, high: bool) -> PivotState:
        tracker = self.tracker(resolution)
        return tracker.high if high else tracker.low

    def tracker(self, resolution: Resolution) -> PivotTracker:
        if resolution == Resolution.SWING:
            return self.swing
        if resolution == Resolution.INTERNAL:
            return self.internal
        return self.equal

    def trend(self, resolution: Resolution) -> TrendState:
        if resolution == Resolution.SWING:
            return self.swing_trend
        return self.internal_trend

    def order_blocks(self, resolution: Resolution) -> OrderBlockBook:
        if resolution == Resolution.SWING:
            return self.swing_order_blocks
        return self.internal_order_blocks

    def reset_bar_flags(self) -> None:
        for resolution in (Resolution.SWING, Resolution.INTERNAL):
            self.bos_this_bar[resolution] = False
            self.choch_this_bar[resolution] = False
        self.equal_highs_this_bar = False
        self.equal_lows_this_bar = False
        self.fvg_bullish_this_bar = False
        self.fvg_bearish_this_bar = False

    def append_bar(self, bar: BarData) -> None:
        """Append a bar and its parsed high/low to the history."""
        parsed_high, parsed_low = self.profile.parse(bar.high, bar.low)
        self.opens.append(bar.open)
        self.highs.append(bar.high)
        self.lows.append(bar.low)
        self.closes.append(bar.close)
        self.times.append(bar.time)
        self.parsed_highs.append(parsed_high)
        self.parsed_lows.append(parsed_low)
        self.bar_idx = bar.idx
