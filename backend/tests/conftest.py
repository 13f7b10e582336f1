"""
Pytest configuration and shared fixtures for backend tests.

WHAT: Centralized test configuration with markers
WHY: Enable test organization, filtering, and shared test utilities
HOW: Define pytest markers and singleton resets
"""

import pytest

from completion_backend.autocomplete.engine import reset_engine
from completion_backend.llm.provider_factory import reset_router


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (isolated component tests)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (multiple components)"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that wait on real timers"
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """
    Reset router and engine singletons around each test.

    WHAT: Clear process-wide instances between tests
    WHY: Prevent test pollution from settings changes
    HOW: Call reset_router()/reset_engine() before and after each test
    """
    reset_engine()
    reset_router()
    yield
    reset_engine()
    reset_router()
