"""
Utility modules.
"""

from .logger import get_logger, setup_logger, setup_logger_from_env, StructureLogger
from .cli_display import render_structure_summary, format_level

__all__ = [
    # Logger
    "get_logger",
    "setup_logger",
    "setup_logger_from_env",
    "StructureLogger",
    # Display
    "render_structure_summary",
    "format_level",
]
