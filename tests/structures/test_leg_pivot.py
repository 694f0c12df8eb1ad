"""
Leg Classifier and Pivot Tracker Tests.

- Leg transition function and windowed classifier
- Parity against a brute-force windowed reference
- Pivot confirmation lag
- Equal highs/lows tolerance
"""

import numpy as np
import pytest

from smc.config import StructureConfig
from smc.structures.batch_wrapper import run_engine_batch
from smc.structures.detectors.leg import LegTracker, next_leg
from smc.structures.detectors.pivot import PivotState, PivotTracker, is_equal_level
from smc.structures.engine import StructureEngine
from smc.structures.preprocess import VolatilityProfile
from smc.structures.types import LegState, PivotSide, Resolution
from tests.fixtures import generate_random_walk, generate_v_shape, make_bar


# =============================================================================
# Helper Functions
# =============================================================================

def reference_legs(highs, lows, size: int) -> list[LegState]:
    """Rescan the comparison window every bar."""
    leg = LegState.BEARISH
    legs = []
    for i in range(len(highs)):
        if i >= size:
            lag = i - size
            window_highs = list(highs[lag + 1:i]) or [highs[lag]]
            window_lows = list(lows[lag + 1:i]) or [lows[lag]]
            if highs[lag] > max(window_highs):
                leg = LegState.BEARISH
            elif lows[lag] < min(window_lows):
                leg = LegState.BULLISH
        legs.append(leg)
    return legs


# Two troughs (90 at bar 2, 90.05 at bar 8) separated by a peak at bar 5.
# With size 3 the lows are confirmed at bars 5 and 11.
DOUBLE_BOTTOM_LOWS = [95.0, 93.0, 90.0, 92.0, 94.0, 96.0, 94.0, 92.0, 90.05, 92.0, 94.0, 96.0]
DOUBLE_BOTTOM_HIGHS = [low + 2.0 for low in DOUBLE_BOTTOM_LOWS]


# =============================================================================
# Leg Classifier
# =============================================================================

class TestNextLeg:
    """Test the pure leg transition."""

    def test_high_above_window_turns_bearish(self):
        assert next_leg(LegState.BULLISH, 105.0, 99.0, 104.0, 98.0) == LegState.BEARISH

    def test_low_below_window_turns_bullish(self):
        assert next_leg(LegState.BEARISH, 103.0, 97.0, 104.0, 98.0) == LegState.BULLISH

    def test_high_checked_first(self):
        # Outside bar: both conditions true, high wins
        assert next_leg(LegState.BULLISH, 105.0, 97.0, 104.0, 98.0) == LegState.BEARISH

    def test_holds_otherwise(self):
        assert next_leg(LegState.BULLISH, 103.0, 99.0, 104.0, 98.0) == LegState.BULLISH
        assert next_leg(LegState.BEARISH, 103.0, 99.0, 104.0, 98.0) == LegState.BEARISH


class TestLegTracker:
    """Test the windowed leg classifier."""

    def test_bearish_until_size_bars(self):
        data = generate_random_walk(n_bars=30)
        tracker = LegTracker(Resolution.INTERNAL, size=5)
        for i in range(5):
            assert tracker.update(i, data.high, data.low) is False
            assert tracker.leg == LegState.BEARISH

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 10, 50])
    def test_parity_with_brute_force(self, size):
        data = generate_random_walk(n_bars=400, seed=size)
        highs, lows = data.high, data.low
        expected = reference_legs(highs, lows, size)

        tracker = LegTracker(Resolution.SWING, size=size)
        actual = []
        for i in range(len(highs)):
            tracker.update(i, highs, lows)
            actual.append(tracker.leg)

        assert actual == expected

    def test_size_one_never_flips(self):
        data = generate_random_walk(n_bars=100)
        tracker = LegTracker(Resolution.INTERNAL, size=1)
        flips = [tracker.update(i, data.high, data.low) for i in range(len(data))]
        assert not any(flips)
        assert tracker.leg == LegState.BEARISH

    def test_invalid_size(self):
        with pytest.raises(ValueError, match="lookback must be >= 1"):
            LegTracker(Resolution.SWING, size=0)


# =============================================================================
# Pivot Tracker
# =============================================================================

class TestPivotTracker:
    """Test pivot confirmation."""

    def test_low_at_bar_10_confirmed_at_bar_15(self):
        """Size 5: the V bottom at bar 10 is committed on bar 15."""
        data = generate_v_shape(bottom_idx=10, n_bars=21)
        tracker = PivotTracker(Resolution.INTERNAL, size=5)

        commits = {}
        for i in range(len(data)):
            commit = tracker.update(i, data.high, data.low, list(range(len(data))))
            if commit is not None:
                commits[i] = commit
            if i == 14:
                assert tracker.low.current_level is None

        assert list(commits) == [15]
        commit = commits[15]
        assert commit.side == PivotSide.LOW
        assert commit.level == data.low[10] == 90.0
        assert commit.pivot_index == 10
        assert tracker.low.bar_index == 10
        assert tracker.low.bar_time == 10
        assert tracker.high.current_level is None

    def test_low_confirmed_through_engine(self):
        data = generate_v_shape(bottom_idx=10, n_bars=21)
        config = StructureConfig(
            internal_length=5,
            show_structure=False,
            show_equal_highs_lows=False,
        )
        outputs = run_engine_batch(data.ohlc(), config)

        assert np.isnan(outputs["internal.low_level"][14])
        assert outputs["internal.low_level"][15] == 90.0
        assert outputs["internal.leg"][15] == int(LegState.BULLISH)

    def test_lag_invariant(self):
        """Every committed pivot comes from exactly ``size`` bars back."""
        data = generate_random_walk(n_bars=500)
        size = 7
        tracker = PivotTracker(Resolution.SWING, size=size)
        times = list(range(len(data)))

        n_commits = 0
        for i in range(len(data)):
            commit = tracker.update(i, data.high, data.low, times)
            if commit is not None:
                n_commits += 1
                assert commit.pivot_index == i - size
                pivot = tracker.low if commit.side == PivotSide.LOW else tracker.high
                assert pivot.bar_index == i - size
                expected = data.low[i - size] if commit.side == PivotSide.LOW else data.high[i - size]
                assert pivot.current_level == expected

        assert n_commits > 10

    def test_commit_shifts_last_level_and_resets_crossed(self):
        pivot = PivotState(Resolution.SWING, PivotSide.HIGH)
        pivot.commit(105.0, 3, "t3")
        pivot.mark_crossed()
        pivot.commit(108.0, 9, "t9")

        assert pivot.last_level == 105.0
        assert pivot.current_level == 108.0
        assert pivot.crossed is False
        assert pivot.bar_index == 9
        assert pivot.bar_time == "t9"


class TestEqualHighsLows:
    """Test equal highs/lows detection."""

    def test_is_equal_level(self):
        assert is_equal_level(90.0, 90.05, 0.1)
        assert not is_equal_level(90.0, 90.2, 0.1)
        assert not is_equal_level(None, 90.0, 0.1)
        # Strict comparison
        assert not is_equal_level(90.0, 90.5, 0.5)

    def test_double_bottom_within_tolerance(self):
        tracker = PivotTracker(Resolution.EQUAL, size=3)
        times = list(range(len(DOUBLE_BOTTOM_LOWS)))

        commits = []
        for i in range(len(DOUBLE_BOTTOM_LOWS)):
            commit = tracker.update(
                i, DOUBLE_BOTTOM_HIGHS, DOUBLE_BOTTOM_LOWS, times, equal_tolerance=0.1
            )
            if commit is not None:
                commits.append((i, commit))

        sides = [(i, c.side) for i, c in commits]
        assert sides == [(5, PivotSide.LOW), (8, PivotSide.HIGH), (11, PivotSide.LOW)]

        first_low, peak, second_low = (c for _, c in commits)
        assert first_low.is_equal is False  # No previous level
        assert peak.is_equal is False
        assert second_low.is_equal is True
        assert second_low.previous_level == 90.0
        assert tracker.low.last_level == 90.0
        assert tracker.low.current_level == 90.05

    def test_double_bottom_beyond_tolerance(self):
        tracker = PivotTracker(Resolution.EQUAL, size=3)
        times = list(range(len(DOUBLE_BOTTOM_LOWS)))
        flags = [
            tracker.update(i, DOUBLE_BOTTOM_HIGHS, DOUBLE_BOTTOM_LOWS, times, equal_tolerance=0.04)
            for i in range(len(DOUBLE_BOTTOM_LOWS))
        ]
        assert not any(c is not None and c.is_equal for c in flags)
        # The level still moves
        assert tracker.low.current_level == 90.05

    @pytest.mark.parametrize("atr,expected", [(1.0, 1), (0.4, 0)])
    def test_engine_scales_tolerance_by_atr(self, atr, expected):
        """0.1 x ATR: 0.1 catches a 0.05 gap, 0.04 does not."""
        config = StructureConfig(
            equal_highs_lows_length=3,
            equal_highs_lows_threshold=0.1,
            show_structure=False,
            show_internals=False,
            show_internal_order_blocks=False,
        )
        engine = StructureEngine(config, VolatilityProfile(atr_measure=atr, volatility_measure=10.0))
        for i, (high, low) in enumerate(zip(DOUBLE_BOTTOM_HIGHS, DOUBLE_BOTTOM_LOWS)):
            engine.update(make_bar(i, low + 1.0, high, low, low + 1.0))
            if expected and i == 11:
                assert engine.get_value("equal.lows_this_bar") is True

        result = engine.snapshot()
        assert len(result.equal_lows) == expected
        assert result.equal_highs == ()
        assert result.equal_low == 90.05
        if expected:
            record = result.equal_lows[0]
            assert record.bar_index == 11
            assert record.pivot_index == 8
            assert record.level == 90.05
            assert record.previous_level == 90.0
