"""
Pytest configuration for structure tests.
"""

import pytest

from smc.config import StructureConfig
from smc.utils.logger import setup_logger
from tests.fixtures import (
    SyntheticData,
    generate_random_walk,
    generate_ranging,
    generate_trending_up,
)


@pytest.fixture(autouse=True)
def quiet_logger():
    """Console-only logger at WARNING so tests never write log files."""
    setup_logger(log_dir=None, log_level="WARNING")
    yield


@pytest.fixture
def random_walk() -> SyntheticData:
    """600-bar seeded random walk."""
    return generate_random_walk()


@pytest.fixture
def trending_up() -> SyntheticData:
    """Uptrend with pullbacks."""
    return generate_trending_up()


@pytest.fixture
def ranging() -> SyntheticData:
    """Sideways market."""
    return generate_ranging()


@pytest.fixture
def full_config() -> StructureConfig:
    """Every feature enabled with short lookbacks."""
    return StructureConfig(
        swing_length=20,
        internal_length=5,
        equal_highs_lows_length=3,
        show_swing_order_blocks=True,
        show_fair_value_gaps=True,
        atr_period=50,
    )
