"""
Incremental market-structure engine.

StructureEngine drives every detector once per bar in a fixed order:

1. Append the bar and its parsed high/low
2. Pivots: swing, internal, equal highs/lows (each only if enabled)
3. Breakouts: internal, then swing (internal sees this bar's swing levels)
4. Order block mitigation: internal, then swing
5. Fair value gaps

Batch and incremental use share this code path. An engine seeded with the
VolatilityProfile of a full history and fed that history bar by bar
produces exactly what analyze() produces for the same history.

Outputs (get_value keys):
- swing.high_level / swing.low_level: float (NaN until set)
- swing.bias: int (1 = bullish, -1 = bearish, 0 = none)
- swing.leg: int (1 = bullish leg, 0 = bearish leg)
- swing.bos_this_bar / swing.choch_this_bar: bool
- internal.*: Same keys as swing
- equal.high_level / equal.low_level: float (NaN until set)
- equal.highs_this_bar / equal.lows_this_bar: bool
- order_blocks.swing_active / order_blocks.internal_active: int
- fvg.bullish_this_bar / fvg.bearish_this_bar: bool
- fvg.count: int
- parsed_high / parsed_low: float

Example:
    engine = StructureEngine.from_history(high, low, close, config=config)
    for i in range(len(close)):
        engine.update(BarData(idx=i, open=o[i], high=high[i], low=low[i], close=close[i]))
    result = engine.snapshot()
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

from smc.config.config import StructureConfig
from smc.utils.logger import get_logger

from .base import BarData, validate_bar
from .detectors.market_structure import Signal, detect_breakouts
from .preprocess import VolatilityProfile, compute_volatility_profile
from .results import EqualLevel, StructureResult
from .state import StructureState
from .types import Bias, PivotSide, Resolution, SignalKind


_RESOLUTION_KEYS = ("high_level", "low_level", "bias", "leg", "bos_this_bar", "choch_this_bar")


def _level(value: Optional[float]) -> float:
    return float("nan") if value is None else value


class StructureEngine:
    """
    Bar-by-bar market structure detection.

    Attributes:
        config: Engine configuration.
        state: Explicit per-engine state (see StructureState).
    """

    def __init__(
        self,
        config: Optional[StructureConfig] = None,
        profile: Optional[VolatilityProfile] = None,
    ) -> None:
        """
        Args:
            config: Engine configuration (defaults if None).
            profile: Preprocessor scalars. Without one, no bar is parsed
                as high-volatility and no equal levels are reported; use
                from_history() to seed from a reference history.
        """
        self.config = config if config is not None else StructureConfig()
        if profile is None:
            profile = VolatilityProfile.unfiltered()
        self.state = StructureState(self.config, profile)
        self._logger = get_logger()

    @classmethod
    def from_history(
        cls,
        high: Sequence[float],
        low: Sequence[float],
        close: Sequence[float],
        config: Optional[StructureConfig] = None,
    ) -> "StructureEngine":
        """
        Create an engine seeded with the volatility profile of a history.

        The history is only used for the profile; no bars are fed.
        """
        config = config if config is not None else StructureConfig()
        profile = compute_volatility_profile(
            high,
            low,
            close,
            volatility_filter=config.order_block_filter,
            atr_period=config.atr_period,
        )
        return cls(config, profile)

    @property
    def profile(self) -> VolatilityProfile:
        return self.state.profile

    @property
    def bar_idx(self) -> int:
        """Index of the last processed bar (-1 before the first)."""
        return self.state.bar_idx

    # =========================================================================
    # Per-bar update
    # =========================================================================

    def update(self, bar: BarData) -> list[Signal]:
        """
        Process one bar.

        Args:
            bar: Next bar. Its idx must be exactly one past the last bar.

        Returns:
            Signals fired on this bar.

        Raises:
            ValueError: On out-of-order bars or malformed prices. State is
                left untouched.
        """
        expected = self.state.bar_idx + 1
        if bar.idx != expected:
            raise ValueError(
                f"Bar index {bar.idx} out of order: expected {expected}\n"
                f"\n"
                f"Fix: Feed bars in consecutive index order starting at 0."
            )
        validate_bar(bar)

        state = self.state
        config = self.config

        state.append_bar(bar)
        state.reset_bar_flags()

        if config.swing_enabled:
            state.swing.update(bar.idx, state.highs, state.lows, state.times)
        if config.internal_enabled:
            state.internal.update(bar.idx, state.highs, state.lows, state.times)
        if config.show_equal_highs_lows:
            self._update_equal(bar)

        fired: list[Signal] = []
        if config.internal_enabled:
            fired.extend(self._update_breakouts(bar, Resolution.INTERNAL))
        if config.swing_enabled:
            fired.extend(self._update_breakouts(bar, Resolution.SWING))

        if config.show_internal_order_blocks:
            self._mitigate(bar, Resolution.INTERNAL)
        if config.show_swing_order_blocks:
            self._mitigate(bar, Resolution.SWING)

        if config.show_fair_value_gaps:
            for gap in state.fair_value_gaps.update(bar):
                if gap.bias == Bias.BULLISH:
                    state.fvg_bullish_this_bar = True
                else:
                    state.fvg_bearish_this_bar = True
                self._logger.event(
                    "FVG", bar.idx, bias=gap.bias.label, top=gap.top, bottom=gap.bottom
                )

        return fired

    def _update_equal(self, bar: BarData) -> None:
        state = self.state
        commit = state.equal.update(
            bar.idx,
            state.highs,
            state.lows,
            state.times,
            equal_tolerance=state.equal_tolerance,
        )
        if commit is None or not commit.is_equal:
            return

        record = EqualLevel(
            bar_index=bar.idx,
            time=bar.time,
            side=commit.side,
            level=commit.level,
            previous_level=commit.previous_level,
            pivot_index=commit.pivot_index,
        )
        if commit.side == PivotSide.HIGH:
            state.equal_highs.append(record)
            state.equal_highs_this_bar = True
            self._logger.event("EQUAL_HIGHS", bar.idx, level=commit.level)
        else:
            state.equal_lows.append(record)
            state.equal_lows_this_bar = True
            self._logger.event("EQUAL_LOWS", bar.idx, level=commit.level)

    def _update_breakouts(self, bar: BarData, resolution: Resolution) -> list[Signal]:
        state = self.state
        tracker = state.tracker(resolution)
        internal = resolution == Resolution.INTERNAL

        signals = detect_breakouts(
            bar,
            state.prev_close,
            tracker.high,
            tracker.low,
            state.trend(resolution),
            swing_high_level=state.swing.high.current_level if internal else None,
            swing_low_level=state.swing.low.current_level if internal else None,
            filter_confluence=internal and self.config.internal_filter_confluence,
        )

        if internal:
            store_blocks = self.config.show_internal_order_blocks
        else:
            store_blocks = self.config.show_swing_order_blocks

        for signal in signals:
            state.signals.append(signal)
            if signal.kind == SignalKind.BOS:
                state.bos_this_bar[resolution] = True
            else:
                state.choch_this_bar[resolution] = True
            self._logger.event(
                signal.kind.value,
                bar.idx,
                resolution=resolution.value,
                direction=signal.direction.label,
                level=signal.level,
            )

            if store_blocks:
                block = state.order_blocks(resolution).create(
                    signal.pivot_index,
                    bar.idx,
                    signal.direction,
                    state.highs,
                    state.lows,
                    state.parsed_highs,
                    state.parsed_lows,
                    state.times,
                )
                if block is not None:
                    self._logger.event(
                        "ORDER_BLOCK",
                        bar.idx,
                        resolution=resolution.value,
                        bias=block.bias.label,
                        anchor=block.bar_index,
                        high=block.high,
                        low=block.low,
                    )

        return signals

    def _mitigate(self, bar: BarData, resolution: Resolution) -> None:
        removed = self.state.order_blocks(resolution).mitigate(
            bar, self.config.order_block_mitigation
        )
        for block in removed:
            self._logger.event(
                "MITIGATED",
                bar.idx,
                resolution=resolution.value,
                bias=block.bias.label,
                anchor=block.bar_index,
            )

    # =========================================================================
    # Outputs
    # =========================================================================

    def snapshot(self) -> StructureResult:
        """Immutable result as of the last processed bar."""
        state = self.state
        return StructureResult(
            swing_high=state.swing.high.current_level,
            swing_low=state.swing.low.current_level,
            internal_high=state.internal.high.current_level,
            internal_low=state.internal.low.current_level,
            equal_high=state.equal.high.current_level,
            equal_low=state.equal.low.current_level,
            swing_trend=state.swing_trend.bias.label,
            internal_trend=state.internal_trend.bias.label,
            signals=tuple(state.signals),
            swing_order_blocks=tuple(state.swing_order_blocks.active),
            internal_order_blocks=tuple(state.internal_order_blocks.active),
            mitigated_order_blocks=tuple(
                state.internal_order_blocks.mitigated + state.swing_order_blocks.mitigated
            ),
            fair_value_gaps=tuple(state.fair_value_gaps.gaps),
            equal_highs=tuple(state.equal_highs),
            equal_lows=tuple(state.equal_lows),
            atr_measure=state.profile.atr_measure,
            volatility_measure=state.profile.volatility_measure,
            bar_count=state.bar_idx + 1,
            config=self.config.to_dict(),
        )

    def get_output_keys(self) -> list[str]:
        """
        List of readable per-bar output keys.

        Returns:
            List of output key names.
        """
        keys = [f"swing.{k}" for k in _RESOLUTION_KEYS]
        keys += [f"internal.{k}" for k in _RESOLUTION_KEYS]
        keys += [
            "equal.high_level",
            "equal.low_level",
            "equal.highs_this_bar",
            "equal.lows_this_bar",
            "order_blocks.swing_active",
            "order_blocks.internal_active",
            "fvg.bullish_this_bar",
            "fvg.bearish_this_bar",
            "fvg.count",
            "parsed_high",
            "parsed_low",
        ]
        return keys

    def get_value(self, key: str) -> int | float | bool:
        """
        Get output by key. O(1).

        Raises:
            KeyError: If key is not valid.
        """
        state = self.state
        group, _, name = key.partition(".")

        if group in ("swing", "internal") and name:
            resolution = Resolution(group)
            tracker = state.tracker(resolution)
            if name == "high_level":
                return _level(tracker.high.current_level)
            elif name == "low_level":
                return _level(tracker.low.current_level)
            elif name == "bias":
                return int(state.trend(resolution).bias)
            elif name == "leg":
                return int(tracker.leg.leg)
            elif name == "bos_this_bar":
                return state.bos_this_bar[resolution]
            elif name == "choch_this_bar":
                return state.choch_this_bar[resolution]
        elif key == "equal.high_level":
            return _level(state.equal.high.current_level)
        elif key == "equal.low_level":
            return _level(state.equal.low.current_level)
        elif key == "equal.highs_this_bar":
            return state.equal_highs_this_bar
        elif key == "equal.lows_this_bar":
            return state.equal_lows_this_bar
        elif key == "order_blocks.swing_active":
            return len(state.swing_order_blocks)
        elif key == "order_blocks.internal_active":
            return len(state.internal_order_blocks)
        elif key == "fvg.bullish_this_bar":
            return state.fvg_bullish_this_bar
        elif key == "fvg.bearish_this_bar":
            return state.fvg_bearish_this_bar
        elif key == "fvg.count":
            return len(state.fair_value_gaps.gaps)
        elif key == "parsed_high":
            return state.parsed_highs[-1] if state.parsed_highs else math.nan
        elif key == "parsed_low":
            return state.parsed_lows[-1] if state.parsed_lows else math.nan

        raise KeyError(
            f"Unknown structure output '{key}'.\n"
            f"\n"
            f"Available: {', '.join(self.get_output_keys())}\n"
            f"\n"
            f"Fix: Use one of the available output keys."
        )

    def __repr__(self) -> str:
        return (
            f"StructureEngine(bars={self.state.bar_idx + 1}, "
            f"swing={self.state.swing_trend.bias.label}, "
            f"internal={self.state.internal_trend.bias.label})"
        )


def run_engine(
    bars: Sequence[BarData],
    config: Optional[StructureConfig] = None,
    profile: Optional[VolatilityProfile] = None,
) -> StructureEngine:
    """Feed a sequence of bars to a fresh engine and return it."""
    engine = StructureEngine(config, profile)
    for bar in bars:
        engine.update(bar)
    return engine
