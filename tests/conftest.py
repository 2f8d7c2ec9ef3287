"""Pytest configuration and shared fixtures for lighting core tests."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import numpy as np
import pytest


# Add project root to path so imports work
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

CHUNK = 16


def pytest_configure(config: pytest.Config) -> None:
    """Configure logging for tests."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s [%(levelname)s] %(message)s",
    )


@pytest.fixture
def air_chunk() -> np.ndarray:
    """All-empty 16³ voxel buffer."""
    return np.zeros(CHUNK ** 3, dtype=np.uint8)


@pytest.fixture
def solid_chunk() -> np.ndarray:
    """All-solid 16³ voxel buffer."""
    return np.ones(CHUNK ** 3, dtype=np.uint8)
