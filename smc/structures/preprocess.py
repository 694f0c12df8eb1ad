"""
Bar series preprocessor.

Runs once over a full bar history before the per-bar loop:

- true_range: True range per bar (bar 0 has none)
- compute_atr_measure: Wilder ATR over the last 2 x period bars, with a
  degraded mean true range when fewer than period bars are available
- compute_cumulative_mean_range: Mean true range over the whole series
- compute_volatility_profile: Both scalars bundled as a VolatilityProfile
- parse_high_low: Swap high/low on bars whose range is at least twice the
  volatility measure, so single-bar spikes are never picked as
  order-block anchors

The profile's scalars are the only thing the per-bar engine needs from the
preprocessor; parsed values for any bar are derived from the bar itself
plus the profile (see VolatilityProfile.parse).
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from smc.config.constants import DEFAULTS

from .types import VolatilityFilter


@dataclass(frozen=True, slots=True)
class VolatilityProfile:
    """
    Scalar outputs of the preprocessor.

    Attributes:
        atr_measure: ATR value. Scales the equal highs/lows tolerance.
        volatility_measure: Value used to detect high-volatility bars
            (the ATR or the cumulative mean range, per the filter).
        filter: Which measure volatility_measure holds.
    """

    atr_measure: float
    volatility_measure: float
    filter: VolatilityFilter = VolatilityFilter.ATR

    @classmethod
    def unfiltered(cls) -> "VolatilityProfile":
        """
        Profile for an engine started without history.

        No bar counts as high-volatility and the equal highs/lows
        tolerance is zero, so no equal levels are reported.
        """
        return cls(atr_measure=0.0, volatility_measure=float("inf"))

    def is_high_volatility(self, high: float, low: float) -> bool:
        """True if the bar range is at least twice the volatility measure."""
        return (high - low) >= 2 * self.volatility_measure

    def parse(self, high: float, low: float) -> tuple[float, float]:
        """Return (parsed_high, parsed_low) for one bar."""
        if self.is_high_volatility(high, low):
            return low, high
        return high, low


def true_range(
    high: np.ndarray,
    low: np.ndarray,
    close: np.ndarray,
) -> np.ndarray:
    """
    True range for bars 1..n-1.

    tr[i-1] = max(high[i] - low[i], |high[i] - close[i-1]|, |low[i] - close[i-1]|)

    Returns:
        Array of length n - 1 (empty for a single bar).
    """
    if len(high) < 2:
        return np.array([], dtype=np.float64)
    prev_close = close[:-1]
    return np.maximum.reduce([
        high[1:] - low[1:],
        np.abs(high[1:] - prev_close),
        np.abs(low[1:] - prev_close),
    ])


def compute_atr_measure(
    high: np.ndarray,
    low: np.ndarray,
    close: np.ndarray,
    period: int = DEFAULTS["atr_period"],
) -> float:
    """
    ATR of the series as of its last bar.

    With at least ``period`` bars: Wilder's smoothing over the trailing
    ``2 * period`` bars, seeded with the simple mean of the first
    ``period`` true ranges of that slice:

        atr = (atr_prev * (period - 1) + tr) / period

    With fewer bars: mean true range of bars 1..min(n, period)-1, or 0.0
    for a single bar.
    """
    n_bars = len(high)
    if n_bars < period:
        limit = min(n_bars, period)
        tr = true_range(high[:limit], low[:limit], close[:limit])
        if len(tr) == 0:
            return 0.0
        return float(tr.sum() / min(n_bars - 1, period - 1))

    start = max(0, n_bars - 2 * period)
    tr = true_range(high[start:], low[start:], close[start:])
    if len(tr) < period:
        # n_bars == period leaves one TR short of a full seed window
        return float(tr.mean()) if len(tr) else 0.0

    atr = float(tr[:period].mean())
    for value in tr[period:]:
        atr = (atr * (period - 1) + float(value)) / period
    return atr


def compute_cumulative_mean_range(
    high: np.ndarray,
    low: np.ndarray,
    close: np.ndarray,
) -> float:
    """Mean true range over bars 1..n-1 (0.0 when n < 2)."""
    tr = true_range(high, low, close)
    if len(tr) == 0:
        return 0.0
    return float(tr.mean())


def compute_volatility_profile(
    high: np.ndarray,
    low: np.ndarray,
    close: np.ndarray,
    volatility_filter: VolatilityFilter = VolatilityFilter.ATR,
    atr_period: int = DEFAULTS["atr_period"],
) -> VolatilityProfile:
    """
    Compute the preprocessor scalars over a full history.

    The ATR is always computed since it drives the equal highs/lows
    tolerance; the volatility measure follows ``volatility_filter``.
    """
    high = np.asarray(high, dtype=np.float64)
    low = np.asarray(low, dtype=np.float64)
    close = np.asarray(close, dtype=np.float64)

    atr_measure = compute_atr_measure(high, low, close, atr_period)
    if volatility_filter == VolatilityFilter.ATR:
        volatility_measure = atr_measure
    else:
        volatility_measure = compute_cumulative_mean_range(high, low, close)

    return VolatilityProfile(
        atr_measure=atr_measure,
        volatility_measure=volatility_measure,
        filter=volatility_filter,
    )


def parse_high_low(
    high: np.ndarray,
    low: np.ndarray,
    volatility_measure: float,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Vectorized parsed high/low arrays.

    Returns:
        (parsed_high, parsed_low), same length as the input.
    """
    high = np.asarray(high, dtype=np.float64)
    low = np.asarray(low, dtype=np.float64)
    high_volatility = (high - low) >= 2 * volatility_measure
    parsed_high = np.where(high_volatility, low, high)
    parsed_low = np.where(high_volatility, high, low)
    return parsed_high, parsed_low
