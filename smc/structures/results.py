"""
Output records of the structure engine.

Provides:
- EqualLevel: Equal highs / equal lows event
- StructureResult: Snapshot of everything detected so far

StructureResult is a plain value object: building it copies the engine's
collections, so later updates never change a snapshot already handed out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import pandas as pd

from .detectors.fair_value_gap import FairValueGap
from .detectors.market_structure import Signal
from .detectors.order_block import OrderBlock
from .types import PivotSide, SignalKind


@dataclass(frozen=True, slots=True)
class EqualLevel:
    """
    Two same-side equal-resolution pivots within the ATR tolerance.

    Attributes:
        bar_index: Bar on which the second pivot was confirmed.
        time: Time of that bar.
        side: HIGH (equal highs) or LOW (equal lows).
        level: Newly committed pivot level.
        previous_level: Level it matched.
        pivot_index: Bar the new pivot was taken from.
    """

    bar_index: int
    time: Any
    side: PivotSide
    level: float
    previous_level: float
    pivot_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "bar_index": self.bar_index,
            "time": self.time,
            "side": self.side.value,
            "level": self.level,
            "previous_level": self.previous_level,
            "pivot_index": self.pivot_index,
        }


def _json_value(value: Any) -> Any:
    """Coerce numpy scalars and timestamps to JSON-friendly values."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "item"):
        return value.item()
    return str(value)


def _clean(record: dict[str, Any]) -> dict[str, Any]:
    return {key: _json_value(value) for key, value in record.items()}


@dataclass(frozen=True)
class StructureResult:
    """
    Market structure as of the last processed bar.

    Pivot levels are None until the resolution has committed a pivot.
    Trends are "bullish", "bearish" or "none".
    """

    swing_high: Optional[float] = None
    swing_low: Optional[float] = None
    internal_high: Optional[float] = None
    internal_low: Optional[float] = None
    equal_high: Optional[float] = None
    equal_low: Optional[float] = None

    swing_trend: str = "none"
    internal_trend: str = "none"

    signals: tuple[Signal, ...] = ()
    swing_order_blocks: tuple[OrderBlock, ...] = ()
    internal_order_blocks: tuple[OrderBlock, ...] = ()
    mitigated_order_blocks: tuple[OrderBlock, ...] = ()
    fair_value_gaps: tuple[FairValueGap, ...] = ()
    equal_highs: tuple[EqualLevel, ...] = ()
    equal_lows: tuple[EqualLevel, ...] = ()

    atr_measure: float = 0.0
    volatility_measure: float = 0.0
    bar_count: int = 0
    config: dict[str, Any] = field(default_factory=dict)

    @property
    def bos_signals(self) -> list[Signal]:
        return [s for s in self.signals if s.kind == SignalKind.BOS]

    @property
    def choch_signals(self) -> list[Signal]:
        return [s for s in self.signals if s.kind == SignalKind.CHOCH]

    @property
    def last_signal(self) -> Optional[Signal]:
        return self.signals[-1] if self.signals else None

    def to_dict(self) -> dict[str, Any]:
        """
        JSON-safe dict with a stable key order.

        Times are converted with isoformat() when available, numpy scalars
        with item().
        """
        return {
            "swing_high": self.swing_high,
            "swing_low": self.swing_low,
            "internal_high": self.internal_high,
            "internal_low": self.internal_low,
            "equal_high": self.equal_high,
            "equal_low": self.equal_low,
            "swing_trend": self.swing_trend,
            "internal_trend": self.internal_trend,
            "signals": [_clean(s.to_dict()) for s in self.signals],
            "swing_order_blocks": [_clean(b.to_dict()) for b in self.swing_order_blocks],
            "internal_order_blocks": [_clean(b.to_dict()) for b in self.internal_order_blocks],
            "mitigated_order_blocks": [_clean(b.to_dict()) for b in self.mitigated_order_blocks],
            "fair_value_gaps": [_clean(g.to_dict()) for g in self.fair_value_gaps],
            "equal_highs": [_clean(e.to_dict()) for e in self.equal_highs],
            "equal_lows": [_clean(e.to_dict()) for e in self.equal_lows],
            "atr_measure": self.atr_measure,
            "volatility_measure": self.volatility_measure,
            "bar_count": self.bar_count,
            "config": dict(self.config),
        }

    def signals_frame(self) -> pd.DataFrame:
        """Signals as a DataFrame, one row per signal in emission order."""
        columns = ["bar_index", "time", "kind", "direction", "level", "resolution", "pivot_index"]
        return pd.DataFrame([s.to_dict() for s in self.signals], columns=columns)

    def order_blocks_frame(self) -> pd.DataFrame:
        """Active swing and internal order blocks as a DataFrame."""
        columns = [
            "high", "low", "time", "bias", "bar_index",
            "resolution", "created_index", "mitigated_index",
        ]
        rows = [b.to_dict() for b in self.internal_order_blocks + self.swing_order_blocks]
        return pd.DataFrame(rows, columns=columns)
