"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fincalc.config import Settings, get_settings


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "property: marks invariant checks over many inputs")


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings so environment overrides in one test don't leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Default engine settings, independent of the environment."""
    return Settings(_env_file=None)
