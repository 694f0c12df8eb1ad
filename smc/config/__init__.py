"""
Configuration management.
"""

from .config import (
    StructureConfig,
    LogConfig,
    load_config,
)

from .constants import (
    DEFAULTS,
    ENV_LOG_LEVEL,
    ENV_LOG_DIR,
)

__all__ = [
    # Config classes
    "StructureConfig",
    "LogConfig",
    "load_config",
    # Constants
    "DEFAULTS",
    "ENV_LOG_LEVEL",
    "ENV_LOG_DIR",
]
