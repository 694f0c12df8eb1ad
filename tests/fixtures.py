"""
Synthetic Fixtures - Deterministic OHLC generators for structure tests.

Provides predictable price patterns for validating:
- Leg and pivot confirmation (V shapes, zigzags)
- BOS/CHoCH sequences (trends with pullbacks, ranges)
- Engine properties (seeded random walks)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from smc.structures.base import BarData


# =============================================================================
# Core Data Structures
# =============================================================================

@dataclass
class SyntheticData:
    """Collection of OHLC bars as pandas DataFrame."""
    df: pd.DataFrame

    @property
    def open(self) -> np.ndarray:
        return self.df["open"].to_numpy()

    @property
    def high(self) -> np.ndarray:
        return self.df["high"].to_numpy()

    @property
    def low(self) -> np.ndarray:
        return self.df["low"].to_numpy()

    @property
    def close(self) -> np.ndarray:
        return self.df["close"].to_numpy()

    def ohlc(self) -> dict[str, np.ndarray]:
        return {
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
        }

    def bars(self) -> list[BarData]:
        return [
            BarData(
                idx=i,
                open=float(self.open[i]),
                high=float(self.high[i]),
                low=float(self.low[i]),
                close=float(self.close[i]),
                time=self.df.index[i],
            )
            for i in range(len(self.df))
        ]

    def __len__(self) -> int:
        return len(self.df)


def _frame(open_, high, low, close) -> SyntheticData:
    dates = pd.date_range("2024-01-01", periods=len(close), freq="15min")
    df = pd.DataFrame({
        "open": open_,
        "high": high,
        "low": low,
        "close": close,
    }, index=dates)
    return SyntheticData(df=df)


def _wrap_bodies(close: np.ndarray, start: float, wick: float, seed: int) -> SyntheticData:
    """Build open/high/low around a close path."""
    rng = np.random.RandomState(seed + 1)
    open_ = np.roll(close, 1)
    open_[0] = start
    body_high = np.maximum(open_, close)
    body_low = np.minimum(open_, close)
    high = body_high + np.abs(rng.randn(len(close))) * wick
    low = body_low - np.abs(rng.randn(len(close))) * wick
    return _frame(open_, high, low, close)


# =============================================================================
# Generators
# =============================================================================

def make_bar(
    idx: int,
    open_: float,
    high: float,
    low: float,
    close: float,
) -> BarData:
    """Create a BarData for testing."""
    return BarData(idx=idx, open=open_, high=high, low=low, close=close)


def generate_random_walk(
    start: float = 100.0,
    n_bars: int = 600,
    volatility: float = 0.8,
    seed: int = 42,
) -> SyntheticData:
    """
    Generate a seeded random walk.

    Dense in pivots, breakouts and order blocks; used for property tests.
    """
    np.random.seed(seed)
    steps = np.random.randn(n_bars) * volatility
    close = start + np.cumsum(steps)
    # Keep prices positive
    close = np.maximum(close, start * 0.2)
    return _wrap_bodies(close, start, wick=volatility * 0.5, seed=seed)


def generate_trending_up(
    start: float = 100.0,
    end: float = 140.0,
    n_bars: int = 300,
    pullbacks: int = 5,
    seed: int = 42,
) -> SyntheticData:
    """
    Generate uptrend with pullbacks.

    Higher highs and higher lows with sine-wave pullbacks.
    """
    np.random.seed(seed)
    trend = np.linspace(start, end, n_bars)
    pullback_amplitude = (end - start) * 0.15
    pullback_freq = pullbacks * 2 * np.pi / n_bars
    pullback = pullback_amplitude * np.sin(np.arange(n_bars) * pullback_freq)
    noise = np.random.randn(n_bars) * abs(end - start) * 0.005
    close = trend + pullback + noise
    return _wrap_bodies(close, start, wick=0.3, seed=seed)


def generate_ranging(
    center: float = 100.0,
    amplitude: float = 5.0,
    n_bars: int = 300,
    cycles: int = 6,
    seed: int = 42,
) -> SyntheticData:
    """
    Generate ranging/sideways market.

    Oscillates between support and resistance levels.
    """
    np.random.seed(seed)
    freq = cycles * 2 * np.pi / n_bars
    oscillation = amplitude * np.sin(np.arange(n_bars) * freq)
    noise = np.random.randn(n_bars) * amplitude * 0.05
    close = center + oscillation + noise
    return _wrap_bodies(close, center, wick=0.3, seed=seed)


def generate_v_shape(
    bottom_idx: int = 10,
    n_bars: int = 21,
    top: float = 100.0,
    spread: float = 2.0,
) -> SyntheticData:
    """
    Generate a clean V: lows fall by 1 per bar to ``bottom_idx``, then rise by 1.

    lows[bottom_idx] == top - bottom_idx; highs = lows + spread.
    """
    idx = np.arange(n_bars)
    low = np.where(idx <= bottom_idx, top - idx, top - bottom_idx + (idx - bottom_idx)).astype(float)
    high = low + spread
    close = low + spread / 2
    open_ = close.copy()
    return _frame(open_, high, low, close)
