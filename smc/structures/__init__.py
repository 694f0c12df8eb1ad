"""
Market-structure detection.

Incremental detectors for Smart Money Concepts structure: pivots,
BOS/CHoCH breakouts, order blocks, fair value gaps and equal highs/lows.
Every detector updates bar-by-bar; batch analysis feeds a full history
through the same engine.

Public API:
-----------

Types (from types.py):
    LegState, Bias, SignalKind, Resolution, PivotSide,
    VolatilityFilter, MitigationSource

Primitives (from primitives.py):
    MonotonicDeque   - O(1) amortized sliding window min/max
    RingBuffer       - Fixed-size circular buffer

Bars (from base.py):
    BarData              - Immutable bar passed to the engine
    validate_bar         - Single-bar validation
    validate_ohlc_arrays - Full-history validation

Preprocessor (from preprocess.py):
    VolatilityProfile, compute_volatility_profile, compute_atr_measure,
    compute_cumulative_mean_range, parse_high_low, true_range

Engine (from engine.py / state.py / results.py):
    StructureEngine  - Bar-by-bar engine
    StructureState   - Explicit per-engine state
    StructureResult  - Snapshot of detected structure
    EqualLevel       - Equal highs / equal lows event

Batch (from batch_wrapper.py):
    analyze, analyze_frame, run_engine_batch

Example Usage:
--------------

    from smc.structures import analyze
    from smc.config import StructureConfig

    result = analyze(high, low, close, open_=open_, config=StructureConfig(swing_length=20))
    result.swing_trend          # "bullish" | "bearish" | "none"
    result.last_signal          # Signal(kind=CHoCH, direction=BULLISH, ...)
"""

from .base import BarData, validate_bar, validate_ohlc_arrays
from .batch_wrapper import analyze, analyze_frame, run_engine_batch
from .detectors import (
    FairValueGap,
    OrderBlock,
    PivotState,
    Signal,
    TrendState,
)
from .engine import StructureEngine, run_engine
from .preprocess import (
    VolatilityProfile,
    compute_atr_measure,
    compute_cumulative_mean_range,
    compute_volatility_profile,
    parse_high_low,
    true_range,
)
from .primitives import MonotonicDeque, RingBuffer
from .results import EqualLevel, StructureResult
from .state import StructureState
from .types import (
    Bias,
    LegState,
    MitigationSource,
    PivotSide,
    Resolution,
    SignalKind,
    VolatilityFilter,
)

__all__ = [
    # Types
    "Bias",
    "LegState",
    "MitigationSource",
    "PivotSide",
    "Resolution",
    "SignalKind",
    "VolatilityFilter",
    # Primitives
    "MonotonicDeque",
    "RingBuffer",
    # Bars
    "BarData",
    "validate_bar",
    "validate_ohlc_arrays",
    # Preprocessor
    "VolatilityProfile",
    "compute_atr_measure",
    "compute_cumulative_mean_range",
    "compute_volatility_profile",
    "parse_high_low",
    "true_range",
    # Records
    "EqualLevel",
    "FairValueGap",
    "OrderBlock",
    "PivotState",
    "Signal",
    "StructureResult",
    "TrendState",
    # Engine
    "StructureEngine",
    "StructureState",
    "run_engine",
    # Batch
    "analyze",
    "analyze_frame",
    "run_engine_batch",
]
