"""
Core utility functions shared across calibration service modules.

This module provides small numeric helpers used by both the IRT
estimators and the synthetic data generation layer.
"""

import numpy as np
from numpy.random import Generator
from numpy.typing import NDArray


def get_rng(seed: int | None = None) -> Generator:
    """
    Create a numpy random Generator with optional seed.

    Args:
        seed: Random seed for reproducibility. If None, uses entropy.

    Returns:
        A numpy random Generator instance.
    """
    return np.random.default_rng(seed)


def clamp_array(
    values: NDArray[np.float64], bounds: tuple[float, float]
) -> NDArray[np.float64]:
    """Clip ``values`` into the closed interval ``bounds`` as a new array."""
    result: NDArray[np.float64] = np.clip(values, bounds[0], bounds[1])
    return result
