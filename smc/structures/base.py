"""
Bar data and input validation for structure detection.

Provides:
- BarData: Immutable bar passed to structure updates
- validate_bar: Fail-loud check for a single incoming bar
- validate_ohlc_arrays: Fail-loud check for a full bar history

Malformed input is rejected at this boundary, before any detector state
is touched. All errors include actionable fix suggestions.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np


@dataclass(frozen=True, slots=True)
class BarData:
    """
    Single bar passed to structure updates.

    Attributes:
        idx: Bar index (monotonically increasing, starts at 0).
        open: Open price.
        high: High price.
        low: Low price.
        close: Close price.
        time: Bar timestamp. Any comparable value; defaults to the bar index
            when the caller has no timestamps.

    Example:
        >>> bar = BarData(idx=0, open=100.0, high=101.5, low=99.2, close=101.0)
        >>> bar.time
        0
    """

    idx: int
    open: float
    high: float
    low: float
    close: float
    time: Any = None

    def __post_init__(self) -> None:
        """Default time to the bar index."""
        if self.time is None:
            # frozen=True, bypass with object.__setattr__
            object.__setattr__(self, "time", self.idx)


def validate_bar(bar: BarData) -> None:
    """
    Validate a single bar before it reaches any detector.

    Raises:
        ValueError: If any OHLC value is non-finite or non-positive.
    """
    for name in ("open", "high", "low", "close"):
        value = getattr(bar, name)
        if not isinstance(value, numbers.Real) or not math.isfinite(value) or value <= 0:
            raise ValueError(
                f"Bar {bar.idx}: '{name}' must be a finite positive number, got {value!r}\n"
                f"\n"
                f"Fix: Drop or repair the bar before feeding it to the engine."
            )


def validate_ohlc_arrays(
    high: Sequence[float],
    low: Sequence[float],
    close: Sequence[float],
    open_: Sequence[float] | None = None,
    time: Sequence[Any] | None = None,
) -> dict[str, np.ndarray]:
    """
    Validate and normalize a full bar history.

    All-or-nothing: either every array passes and float64 copies are
    returned, or ValueError is raised and nothing is processed.

    Args:
        high: High prices.
        low: Low prices.
        close: Close prices.
        open_: Optional open prices (defaults to close).
        time: Optional timestamps (defaults to bar index).

    Returns:
        Dict with keys open, high, low, close (float64 arrays) and
        time (object array).

    Raises:
        ValueError: On empty input, mismatched lengths, or values that are
            non-finite or non-positive.
    """
    arrays: dict[str, np.ndarray] = {
        "high": np.asarray(high, dtype=np.float64),
        "low": np.asarray(low, dtype=np.float64),
        "close": np.asarray(close, dtype=np.float64),
    }
    if open_ is not None:
        arrays["open"] = np.asarray(open_, dtype=np.float64)

    n_bars = len(arrays["close"])
    if n_bars == 0:
        raise ValueError(
            "Bar history is empty.\n"
            "\n"
            "Fix: Pass at least one bar of high/low/close data."
        )

    lengths = {name: len(arr) for name, arr in arrays.items()}
    if time is not None:
        lengths["time"] = len(time)
    if len(set(lengths.values())) != 1:
        raise ValueError(
            f"OHLC arrays have mismatched lengths: {lengths}\n"
            f"\n"
            f"Fix: Align all arrays to the same bar range before analysis."
        )

    for name, arr in arrays.items():
        if arr.ndim != 1:
            raise ValueError(
                f"'{name}' must be one-dimensional, got shape {arr.shape}\n"
                f"\n"
                f"Fix: Pass a flat sequence of prices per column."
            )
        bad = ~np.isfinite(arr) | (arr <= 0)
        if bad.any():
            first = int(np.argmax(bad))
            raise ValueError(
                f"'{name}' contains {int(bad.sum())} non-finite or non-positive "
                f"value(s); first at bar {first}: {arr[first]!r}\n"
                f"\n"
                f"Fix: Clean the series (drop or forward-fill bad bars) before analysis."
            )

    if "open" not in arrays:
        arrays["open"] = arrays["close"].copy()

    if time is None:
        arrays["time"] = np.arange(n_bars, dtype=object)
    else:
        arrays["time"] = np.asarray(list(time), dtype=object)

    return arrays
