"""
Global pytest fixtures for the anticlustering tests.
"""

from __future__ import annotations

import os
from typing import Generator

import numpy as np
import pytest


def _get_seed() -> int:
    """Resolve the test seed from env or default."""
    env = os.getenv("TEST_RANDOM_SEED", "1337")
    try:
        return int(env)
    except ValueError:
        return 1337


@pytest.fixture(scope="function")
def rng() -> Generator[np.random.Generator, None, None]:
    """Per-test NumPy Generator seeded from the session seed."""
    yield np.random.default_rng(_get_seed())


@pytest.fixture
def features(rng) -> np.ndarray:
    """30 elements with 3 normally distributed features."""
    return rng.normal(size=(30, 3))


@pytest.fixture
def six_points() -> np.ndarray:
    """1-D values with two tight clusters of three."""
    return np.array([0.0, 1.0, 2.0, 10.0, 11.0, 12.0])
