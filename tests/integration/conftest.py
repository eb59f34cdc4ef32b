"""Integration test configuration.

These tests sleep on the wall clock; timing assertions allow +-50 ms.
"""

import pytest

TOLERANCE = 0.05


@pytest.fixture
def tolerance() -> float:
    return TOLERANCE
