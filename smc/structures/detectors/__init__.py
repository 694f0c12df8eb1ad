"""
Incremental structure detectors.

Each detector updates bar-by-bar and is driven by StructureEngine in a
fixed order (see smc/structures/engine.py).

Available Detectors:
- leg: Sticky bullish/bearish leg per resolution
- pivot: Confirmed pivot highs/lows with equal highs/lows detection
- market_structure: BOS/CHoCH breakout detection and trend bias
- order_block: Order block creation and mitigation
- fair_value_gap: Three-bar imbalance detection
"""

from .fair_value_gap import FairValueGap, FairValueGapDetector, body_delta
from .leg import LegTracker, next_leg
from .market_structure import (
    Signal,
    TrendState,
    bearish_confluence,
    bullish_confluence,
    detect_breakouts,
)
from .order_block import OrderBlock, OrderBlockBook, is_mitigated, select_anchor_index
from .pivot import PivotCommit, PivotState, PivotTracker, is_equal_level

__all__ = [
    "FairValueGap",
    "FairValueGapDetector",
    "body_delta",
    "LegTracker",
    "next_leg",
    "Signal",
    "TrendState",
    "bearish_confluence",
    "bullish_confluence",
    "detect_breakouts",
    "OrderBlock",
    "OrderBlockBook",
    "is_mitigated",
    "select_anchor_index",
    "PivotCommit",
    "PivotState",
    "PivotTracker",
    "is_equal_level",
]
