"""
Batch mode for the incremental structure engine.

Runs the preprocessor over a full history, seeds a StructureEngine with
the resulting VolatilityProfile and feeds every bar through the same
update path used for live, bar-by-bar processing.

- analyze: Arrays in, StructureResult out
- analyze_frame: pandas DataFrame in, StructureResult out
- run_engine_batch: Per-bar output arrays (one per get_value key)
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd

from smc.config.config import StructureConfig
from smc.utils.logger import get_logger

from .base import BarData, validate_ohlc_arrays
from .engine import StructureEngine
from .preprocess import compute_volatility_profile
from .results import StructureResult


def _seeded_engine(
    arrays: dict[str, np.ndarray],
    config: StructureConfig,
) -> StructureEngine:
    profile = compute_volatility_profile(
        arrays["high"],
        arrays["low"],
        arrays["close"],
        volatility_filter=config.order_block_filter,
        atr_period=config.atr_period,
    )
    return StructureEngine(config, profile)


def _iter_bars(arrays: dict[str, np.ndarray]):
    for bar_idx in range(len(arrays["close"])):
        yield BarData(
            idx=bar_idx,
            open=float(arrays["open"][bar_idx]),
            high=float(arrays["high"][bar_idx]),
            low=float(arrays["low"][bar_idx]),
            close=float(arrays["close"][bar_idx]),
            time=arrays["time"][bar_idx],
        )


def analyze(
    high: Sequence[float],
    low: Sequence[float],
    close: Sequence[float],
    open_: Optional[Sequence[float]] = None,
    time: Optional[Sequence[Any]] = None,
    config: Optional[StructureConfig] = None,
) -> StructureResult:
    """
    Detect market structure over a complete bar history.

    Args:
        high: High prices.
        low: Low prices.
        close: Close prices.
        open_: Open prices (defaults to close).
        time: Bar timestamps (defaults to bar index).
        config: Engine configuration (defaults if None).

    Returns:
        StructureResult as of the last bar.

    Raises:
        ValueError: On malformed input, before any processing.
    """
    config = config if config is not None else StructureConfig()
    arrays = validate_ohlc_arrays(high, low, close, open_, time)

    engine = _seeded_engine(arrays, config)
    for bar in _iter_bars(arrays):
        engine.update(bar)

    result = engine.snapshot()
    get_logger().debug(
        f"analyze: {result.bar_count} bars, {len(result.signals)} signals, "
        f"{len(result.internal_order_blocks) + len(result.swing_order_blocks)} active order blocks, "
        f"{len(result.fair_value_gaps)} fair value gaps"
    )
    return result


def _frame_columns(df: pd.DataFrame) -> dict[str, Any]:
    columns = {str(c).lower(): c for c in df.columns}
    missing = [name for name in ("high", "low", "close") if name not in columns]
    if missing:
        raise ValueError(
            f"DataFrame is missing column(s): {missing}. Got: {list(df.columns)}\n"
            f"\n"
            f"Fix: Provide 'high', 'low' and 'close' columns ('open' and 'time' are optional)."
        )
    return columns


def analyze_frame(
    df: pd.DataFrame,
    config: Optional[StructureConfig] = None,
) -> StructureResult:
    """
    Detect market structure over an OHLC DataFrame.

    Column names are matched case-insensitively. Times come from a
    ``time`` (or ``timestamp``) column when present, else from the index.
    """
    columns = _frame_columns(df)

    open_ = df[columns["open"]].to_numpy() if "open" in columns else None
    if "time" in columns:
        times = list(df[columns["time"]])
    elif "timestamp" in columns:
        times = list(df[columns["timestamp"]])
    else:
        times = list(df.index)

    return analyze(
        df[columns["high"]].to_numpy(),
        df[columns["low"]].to_numpy(),
        df[columns["close"]].to_numpy(),
        open_=open_,
        time=times,
        config=config,
    )


def run_engine_batch(
    ohlc: dict[str, Sequence[float]],
    config: Optional[StructureConfig] = None,
) -> dict[str, np.ndarray]:
    """
    Run the engine over OHLC data and record every output key per bar.

    Args:
        ohlc: Dict with keys high, low, close and optionally open, time.
        config: Engine configuration (defaults if None).

    Returns:
        Dict mapping output_key -> numpy array of values per bar.
    """
    config = config if config is not None else StructureConfig()
    arrays = validate_ohlc_arrays(
        ohlc["high"],
        ohlc["low"],
        ohlc["close"],
        ohlc.get("open"),
        ohlc.get("time"),
    )

    engine = _seeded_engine(arrays, config)
    n_bars = len(arrays["close"])
    output_keys = engine.get_output_keys()

    # dtype=object so arrays can hold floats, ints and bools
    outputs: dict[str, np.ndarray] = {
        key: np.full(n_bars, np.nan, dtype=object) for key in output_keys
    }

    for bar in _iter_bars(arrays):
        engine.update(bar)
        for key in output_keys:
            outputs[key][bar.idx] = engine.get_value(key)

    return outputs
