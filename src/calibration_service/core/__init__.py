"""
Core shared types and utilities for the calibration service.

This module provides foundational components used across submodules,
keeping the IRT numeric core decoupled from the storage-facing
orchestration layer.
"""

from calibration_service.core.data_models import (
    ResponseMatrix,
    ResponseRecord,
)
from calibration_service.core.utils import get_rng

__all__ = [
    "ResponseMatrix",
    "ResponseRecord",
    "get_rng",
]
