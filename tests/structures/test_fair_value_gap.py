"""
Fair Value Gap Tests.

- Bullish / bearish three-bar patterns
- Fixed and auto thresholds
- Engine flags and accumulation
"""

import pytest

from smc.config import StructureConfig
from smc.structures.batch_wrapper import analyze, run_engine_batch
from smc.structures.detectors.fair_value_gap import FairValueGapDetector, body_delta
from smc.structures.types import Bias
from tests.fixtures import make_bar


# high0=100, low0=95 | open1=102, close1=108 | low2=112, high2=118
BULLISH_BARS = [
    make_bar(0, 97.0, 100.0, 95.0, 98.0),
    make_bar(1, 102.0, 110.0, 101.0, 108.0),
    make_bar(2, 113.0, 118.0, 112.0, 115.0),
]

# low0=100 | open1=98, close1=92 | high2=90
BEARISH_BARS = [
    make_bar(0, 103.0, 105.0, 100.0, 101.0),
    make_bar(1, 98.0, 99.0, 91.0, 92.0),
    make_bar(2, 88.0, 90.0, 85.0, 86.0),
]


def flat_bars(n_bars: int) -> list:
    return [make_bar(i, 99.0, 100.0, 95.0, 99.0) for i in range(n_bars)]


class TestFairValueGapDetector:
    """Test three-bar gap detection."""

    def test_body_delta(self):
        assert body_delta(102.0, 108.0) == pytest.approx(6.0 / 10200.0)

    def test_bullish_gap(self):
        detector = FairValueGapDetector(auto_threshold=False, threshold=0.0)
        found = [detector.update(bar) for bar in BULLISH_BARS]

        assert found[0] == [] and found[1] == []
        assert len(found[2]) == 1
        gap = found[2][0]
        assert gap.bias == Bias.BULLISH
        assert gap.bottom == 100.0
        assert gap.top == 112.0
        assert gap.bar_index == 2
        assert gap.time == 2

    def test_bearish_gap(self):
        detector = FairValueGapDetector(auto_threshold=False, threshold=0.0)
        for bar in BEARISH_BARS:
            detector.update(bar)

        assert len(detector.gaps) == 1
        gap = detector.gaps[0]
        assert gap.bias == Bias.BEARISH
        assert gap.top == 100.0
        assert gap.bottom == 90.0
        assert gap.top > gap.bottom

    def test_fixed_threshold_filters_small_bodies(self):
        # Middle bar delta is about 0.000588
        detector = FairValueGapDetector(auto_threshold=False, threshold=0.001)
        for bar in BULLISH_BARS:
            detector.update(bar)
        assert detector.gaps == []

    def test_auto_threshold_is_twice_running_mean(self):
        detector = FairValueGapDetector(auto_threshold=True)
        assert detector.current_threshold() == 0.0

        detector.update(make_bar(0, 100.0, 102.0, 99.0, 101.0))
        detector.update(make_bar(1, 101.0, 102.0, 99.0, 100.0))
        expected = 2 * (abs(body_delta(100.0, 101.0)) + abs(body_delta(101.0, 100.0))) / 2
        assert detector.current_threshold() == pytest.approx(expected)

    def test_auto_threshold_after_quiet_bars(self):
        """Ten flat bars keep the auto threshold below the impulse bar's delta."""
        bars = flat_bars(10) + [
            make_bar(10, 102.0, 110.0, 101.0, 108.0),
            make_bar(11, 113.0, 118.0, 112.0, 115.0),
        ]
        detector = FairValueGapDetector(auto_threshold=True)
        for bar in bars:
            detector.update(bar)

        assert len(detector.gaps) == 1
        assert detector.last_gap.bottom == 100.0
        assert detector.last_gap.top == 112.0
        assert detector.last_gap.bar_index == 11

    def test_auto_threshold_rejects_average_impulse(self):
        # With only one prior bar the impulse is its own mean: delta == threshold
        bars = flat_bars(1) + BULLISH_BARS[1:]
        bars = [make_bar(i, b.open, b.high, b.low, b.close) for i, b in enumerate(bars)]
        detector = FairValueGapDetector(auto_threshold=True)
        for bar in bars:
            detector.update(bar)
        assert detector.gaps == []

    def test_no_gap_without_close_beyond(self):
        bars = [
            BULLISH_BARS[0],
            make_bar(1, 102.0, 110.0, 99.0, 99.5),  # closes below high0
            BULLISH_BARS[2],
        ]
        detector = FairValueGapDetector(auto_threshold=False)
        for bar in bars:
            detector.update(bar)
        assert detector.gaps == []


class TestFairValueGapEngine:
    """Gaps through the engine."""

    def test_gaps_off_by_default(self):
        high = [b.high for b in BULLISH_BARS]
        low = [b.low for b in BULLISH_BARS]
        close = [b.close for b in BULLISH_BARS]
        open_ = [b.open for b in BULLISH_BARS]
        assert analyze(high, low, close, open_).fair_value_gaps == ()

    def test_engine_flags(self):
        config = StructureConfig(show_fair_value_gaps=True, fair_value_gaps_auto_threshold=False)
        ohlc = {
            "open": [b.open for b in BULLISH_BARS],
            "high": [b.high for b in BULLISH_BARS],
            "low": [b.low for b in BULLISH_BARS],
            "close": [b.close for b in BULLISH_BARS],
        }
        outputs = run_engine_batch(ohlc, config)

        assert list(outputs["fvg.bullish_this_bar"]) == [False, False, True]
        assert list(outputs["fvg.bearish_this_bar"]) == [False, False, False]
        assert outputs["fvg.count"][2] == 1

    def test_gaps_accumulate(self, random_walk):
        config = StructureConfig(show_fair_value_gaps=True)
        result = analyze(
            random_walk.high, random_walk.low, random_walk.close, random_walk.open,
            config=config,
        )
        assert result.fair_value_gaps
        indices = [g.bar_index for g in result.fair_value_gaps]
        assert indices == sorted(indices)
        for gap in result.fair_value_gaps:
            assert gap.top > gap.bottom
