"""
Configuration for the market-structure engine.

Contains:
- StructureConfig: Lookbacks, feature toggles, and order block / fair value
  gap settings. Validated at construction so a bad value fails before any
  bar is processed.
- LogConfig: Logging level and optional log directory, loaded from the
  environment (.env supported).
- load_config: Build a StructureConfig from a YAML file.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .constants import (
    DEFAULTS,
    ENV_LOG_DIR,
    ENV_LOG_LEVEL,
    VALID_LOG_LEVELS,
    MitigationSource,
    VolatilityFilter,
)


# Spellings used by the TradingView script inputs
_FILTER_ALIASES = {
    "atr": VolatilityFilter.ATR,
    "range": VolatilityFilter.CUMULATIVE_RANGE,
    "cumulative_range": VolatilityFilter.CUMULATIVE_RANGE,
    "cumulative-range": VolatilityFilter.CUMULATIVE_RANGE,
}
_MITIGATION_ALIASES = {
    "close": MitigationSource.CLOSE,
    "high/low": MitigationSource.HIGH_LOW,
    "high_low": MitigationSource.HIGH_LOW,
    "high-low": MitigationSource.HIGH_LOW,
}


def _parse_volatility_filter(value: Any) -> VolatilityFilter:
    if isinstance(value, VolatilityFilter):
        return value
    key = str(value).strip().lower()
    if key not in _FILTER_ALIASES:
        valid = [f.value for f in VolatilityFilter]
        raise ValueError(
            f"order_block_filter must be one of {valid}, got {value!r}\n"
            f"\n"
            f"Fix: order_block_filter: atr  # or 'cumulative-range'"
        )
    return _FILTER_ALIASES[key]


def _parse_mitigation_source(value: Any) -> MitigationSource:
    if isinstance(value, MitigationSource):
        return value
    key = str(value).strip().lower()
    if key not in _MITIGATION_ALIASES:
        valid = [m.value for m in MitigationSource]
        raise ValueError(
            f"order_block_mitigation must be one of {valid}, got {value!r}\n"
            f"\n"
            f"Fix: order_block_mitigation: high-low  # or 'close'"
        )
    return _MITIGATION_ALIASES[key]


@dataclass(frozen=True)
class StructureConfig:
    """
    Market-structure engine configuration.

    Attributes:
        swing_length: Swing resolution lookback (bars).
        internal_length: Internal resolution lookback (bars).
        equal_highs_lows_length: Equal highs/lows resolution lookback (bars).
        equal_highs_lows_threshold: Tolerance as a fraction of the ATR
            measure under which two pivots count as equal.
        atr_period: ATR period used by the preprocessor.
        show_internals: Run internal structure (pivots + BOS/CHoCH).
        show_structure: Run swing structure (pivots + BOS/CHoCH).
        show_equal_highs_lows: Run equal highs/lows detection.
        show_internal_order_blocks: Create internal order blocks.
        show_swing_order_blocks: Create swing order blocks.
        show_fair_value_gaps: Run fair value gap detection.
        internal_filter_confluence: Require a wick/body confluence bar for
            internal breakouts.
        order_block_filter: Volatility measure used to parse bars.
        order_block_mitigation: Price used for order block mitigation.
        fair_value_gaps_auto_threshold: Use twice the running mean of the
            absolute body delta as the gap threshold.
        fair_value_gaps_threshold: Fixed gap threshold when auto is off.
    """

    swing_length: int = DEFAULTS["swing_length"]
    internal_length: int = DEFAULTS["internal_length"]
    equal_highs_lows_length: int = DEFAULTS["equal_highs_lows_length"]
    equal_highs_lows_threshold: float = DEFAULTS["equal_highs_lows_threshold"]
    atr_period: int = DEFAULTS["atr_period"]
    show_internals: bool = DEFAULTS["show_internals"]
    show_structure: bool = DEFAULTS["show_structure"]
    show_equal_highs_lows: bool = DEFAULTS["show_equal_highs_lows"]
    show_internal_order_blocks: bool = DEFAULTS["show_internal_order_blocks"]
    show_swing_order_blocks: bool = DEFAULTS["show_swing_order_blocks"]
    show_fair_value_gaps: bool = DEFAULTS["show_fair_value_gaps"]
    internal_filter_confluence: bool = DEFAULTS["internal_filter_confluence"]
    order_block_filter: VolatilityFilter = VolatilityFilter(DEFAULTS["order_block_filter"])
    order_block_mitigation: MitigationSource = MitigationSource(DEFAULTS["order_block_mitigation"])
    fair_value_gaps_auto_threshold: bool = DEFAULTS["fair_value_gaps_auto_threshold"]
    fair_value_gaps_threshold: float = DEFAULTS["fair_value_gaps_threshold"]

    def __post_init__(self):
        """Validate lookbacks/thresholds and normalize enum fields."""
        for name in ("swing_length", "internal_length", "equal_highs_lows_length", "atr_period"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(
                    f"{name} must be an integer >= 1, got {value!r}\n"
                    f"\n"
                    f"Fix: {name}: {DEFAULTS[name]}"
                )

        for name in ("equal_highs_lows_threshold", "fair_value_gaps_threshold"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ValueError(
                    f"{name} must be a number >= 0, got {value!r}\n"
                    f"\n"
                    f"Fix: {name}: {DEFAULTS[name]}"
                )

        # frozen=True, normalize via object.__setattr__
        object.__setattr__(
            self, "order_block_filter", _parse_volatility_filter(self.order_block_filter)
        )
        object.__setattr__(
            self, "order_block_mitigation", _parse_mitigation_source(self.order_block_mitigation)
        )

    @property
    def swing_enabled(self) -> bool:
        """Swing pivots are needed for swing structure or swing order blocks."""
        return self.show_structure or self.show_swing_order_blocks

    @property
    def internal_enabled(self) -> bool:
        """Internal pivots are needed for internal structure or internal order blocks."""
        return self.show_internals or self.show_internal_order_blocks

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "StructureConfig":
        """
        Build a config from a plain dict (e.g. parsed YAML).

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(
                f"Unknown structure config key(s): {unknown}\n"
                f"\n"
                f"Valid keys: {sorted(known)}\n"
                f"\n"
                f"Fix: Remove or rename the unknown keys."
            )
        return cls(**raw)

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form with enum values as strings."""
        data = asdict(self)
        data["order_block_filter"] = self.order_block_filter.value
        data["order_block_mitigation"] = self.order_block_mitigation.value
        return data


def load_config(path: str | Path) -> StructureConfig:
    """
    Load a StructureConfig from a YAML file.

    The file may hold the settings at the top level or under a
    ``structure:`` key:

        structure:
          swing_length: 50
          internal_length: 5
          order_block_mitigation: close

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the YAML is empty/invalid or holds bad settings.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Structure config not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if raw is None:
        return StructureConfig()
    if not isinstance(raw, dict):
        raise ValueError(f"Empty or invalid YAML in {path}: expected a mapping")

    if "structure" in raw:
        raw = raw["structure"] or {}
        if not isinstance(raw, dict):
            raise ValueError(f"'structure' in {path} must be a mapping")

    return StructureConfig.from_dict(raw)


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_dir: Optional[str] = None  # None = console only

    def __post_init__(self):
        self.level = self.level.upper()
        if self.level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Log level must be one of {list(VALID_LOG_LEVELS)}, got {self.level!r}\n"
                f"\n"
                f"Fix: {ENV_LOG_LEVEL}=INFO"
            )

    @classmethod
    def from_env(cls, env_file: str = ".env") -> "LogConfig":
        """Load logging configuration from environment (and .env if present)."""
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path, override=False)
        return cls(
            level=os.getenv(ENV_LOG_LEVEL, "INFO"),
            log_dir=os.getenv(ENV_LOG_DIR) or None,
        )
