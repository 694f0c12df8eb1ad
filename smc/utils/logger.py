"""
Logging system for the structure engine.
Provides human-readable console logs with optional file output.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional


# ANSI color codes for terminal output
class Colors:
    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    BOLD = "\033[1m"


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.CYAN,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        # Copy so the file handler still sees the plain record
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{Colors.RESET}"
        record.msg = f"{color}{record.msg}{Colors.RESET}"
        return super().format(record)


class StructureLogger:
    """
    Central logger for the structure engine.

    Features:
    - Console output with colors
    - Optional daily log file when a log directory is configured
    - Structure event helper for BOS/CHoCH, order block and gap events
    """

    _instance: Optional["StructureLogger"] = None
    _initialized: bool = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, log_dir: Optional[str] = None, log_level: str = "INFO"):
        if StructureLogger._initialized:
            return

        self.log_dir = Path(log_dir) if log_dir else None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self.main_logger = self._create_logger("smc", log_level)

        StructureLogger._initialized = True

    def _create_logger(self, name: str, level: str) -> logging.Logger:
        """Create a configured logger instance."""
        logger = logging.getLogger(name)
        logger.setLevel(getattr(logging, level.upper()))
        logger.handlers.clear()
        logger.propagate = False

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(ColoredFormatter(
            "%(asctime)s | %(levelname)s | %(message)s",
            datefmt="%H:%M:%S"
        ))
        logger.addHandler(console_handler)

        # File handler (plain text, no colors)
        if self.log_dir is not None:
            log_file = self.log_dir / f"smc_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(
                "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            ))
            logger.addHandler(file_handler)

        return logger

    @property
    def level(self) -> int:
        return self.main_logger.level

    def is_debug(self) -> bool:
        return self.main_logger.isEnabledFor(logging.DEBUG)

    def info(self, msg: str, *args, **kwargs):
        """Log info message."""
        self.main_logger.info(msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        """Log debug message."""
        self.main_logger.debug(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        """Log warning message."""
        self.main_logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        """Log error message."""
        self.main_logger.error(msg, *args, **kwargs)

    def event(self, kind: str, bar_index: int, **kwargs):
        """
        Log a structure event with structured format.

        Args:
            kind: BOS, CHoCH, ORDER_BLOCK, MITIGATED, FVG, EQUAL_HIGHS, EQUAL_LOWS
            bar_index: Bar on which the event happened
            **kwargs: Additional fields (resolution, direction, level, ...)

        Only emitted at DEBUG level; per-bar events are too chatty for INFO.
        """
        if not self.is_debug():
            return
        parts = [f"[{kind}]", f"bar={bar_index}"]
        for key, value in kwargs.items():
            if isinstance(value, float):
                parts.append(f"{key}={value:.4f}")
            else:
                parts.append(f"{key}={value}")
        self.main_logger.debug(" | ".join(parts))


# Global logger instance
_logger: Optional[StructureLogger] = None


def get_logger(log_dir: Optional[str] = None, log_level: str = "INFO") -> StructureLogger:
    """Get or create the global logger instance."""
    global _logger
    if _logger is None:
        _logger = StructureLogger(log_dir, log_level)
    return _logger


def setup_logger(log_dir: Optional[str] = None, log_level: str = "INFO") -> StructureLogger:
    """Initialize the logger with custom settings."""
    global _logger
    StructureLogger._initialized = False
    StructureLogger._instance = None
    _logger = StructureLogger(log_dir, log_level)
    return _logger


def setup_logger_from_env(env_file: str = ".env") -> StructureLogger:
    """Initialize the logger from SMC_LOG_LEVEL / SMC_LOG_DIR (and .env)."""
    from smc.config.config import LogConfig

    config = LogConfig.from_env(env_file)
    return setup_logger(config.log_dir, config.level)
