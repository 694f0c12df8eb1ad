"""
smc - Smart Money Concepts market-structure detection.

Deterministic detection of pivots, BOS/CHoCH breakouts, order blocks,
fair value gaps and equal highs/lows from OHLC bars.
"""

from smc.config import StructureConfig, load_config
from smc.structures import StructureEngine, StructureResult, analyze, analyze_frame

__version__ = "0.1.0"

__all__ = [
    "StructureConfig",
    "StructureEngine",
    "StructureResult",
    "analyze",
    "analyze_frame",
    "load_config",
]
