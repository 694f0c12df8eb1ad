"""
Centralized constants for structure detection.

DEFAULTS holds the default value of every StructureConfig field. The values
match the LuxAlgo Smart Money Concepts defaults.

VolatilityFilter and MitigationSource are the enum-valued settings.
"""

from enum import Enum
from typing import Any


class VolatilityFilter(str, Enum):
    """Volatility measure used to parse high-volatility bars."""

    ATR = "atr"
    CUMULATIVE_RANGE = "cumulative-range"


class MitigationSource(str, Enum):
    """Price used to decide when an order block is mitigated."""

    CLOSE = "close"
    HIGH_LOW = "high-low"


DEFAULTS: dict[str, Any] = {
    # Lookbacks
    "swing_length": 50,
    "internal_length": 5,
    "equal_highs_lows_length": 3,
    "equal_highs_lows_threshold": 0.1,
    "atr_period": 200,
    # Feature toggles
    "show_internals": True,
    "show_structure": True,
    "show_equal_highs_lows": True,
    "show_internal_order_blocks": True,
    "show_swing_order_blocks": False,
    "show_fair_value_gaps": False,
    "internal_filter_confluence": False,
    # Order blocks
    "order_block_filter": "atr",
    "order_block_mitigation": "high-low",
    # Fair value gaps
    "fair_value_gaps_auto_threshold": True,
    "fair_value_gaps_threshold": 0.0,
}


# Environment variables read by LogConfig.from_env()
ENV_LOG_LEVEL = "SMC_LOG_LEVEL"
ENV_LOG_DIR = "SMC_LOG_DIR"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
