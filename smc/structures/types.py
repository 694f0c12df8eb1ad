"""
Shared structure type definitions.

This module is the CANONICAL location for structure-related enums.
Detectors, the engine, and result records all import from here.

VolatilityFilter and MitigationSource are configuration values; they live in
smc.config.constants and are re-exported here.
"""

from enum import Enum, IntEnum

from smc.config.constants import MitigationSource, VolatilityFilter


class LegState(IntEnum):
    """Trend-leg state tracked per resolution.

    Values match the leg encoding of the LuxAlgo SMC script
    (0 = bearish leg, 1 = bullish leg).
    """

    BEARISH = 0
    BULLISH = 1


class Bias(IntEnum):
    """Directional bias for trends, signals, and zones."""

    BEARISH = -1
    NEUTRAL = 0
    BULLISH = 1

    @property
    def label(self) -> str:
        """Lowercase token used in outputs ("bullish", "bearish", "none")."""
        if self is Bias.BULLISH:
            return "bullish"
        if self is Bias.BEARISH:
            return "bearish"
        return "none"


class SignalKind(str, Enum):
    """Structure break classification."""

    BOS = "BOS"      # Break of Structure (continuation)
    CHOCH = "CHoCH"  # Change of Character (reversal)


class Resolution(str, Enum):
    """
    Lookback resolution of a structure tracker.

    SWING and INTERNAL run breakout detection; EQUAL only feeds
    equal highs/lows detection.
    """

    SWING = "swing"
    INTERNAL = "internal"
    EQUAL = "equal"


class PivotSide(str, Enum):
    """Which extremum a pivot tracks."""

    HIGH = "high"
    LOW = "low"


__all__ = [
    "LegState",
    "Bias",
    "SignalKind",
    "Resolution",
    "PivotSide",
    "VolatilityFilter",
    "MitigationSource",
]
