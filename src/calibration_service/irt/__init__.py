"""
IRT (Item Response Theory) module.

This module provides:
- The overflow-guarded 2PL probability function
- Newton-Raphson ability and item parameter estimators
- The JMLE calibrator alternating between them
- Response matrix validation and extreme-item filtering
- Sampling functions for generating synthetic responses
"""

from calibration_service.irt.ability import (
    estimate_abilities,
    estimate_theta,
)
from calibration_service.irt.config import CalibrationConfig
from calibration_service.irt.item_parameters import (
    compute_standard_errors,
    estimate_difficulty,
    estimate_discrimination,
    estimate_item_parameters,
)
from calibration_service.irt.jmle import (
    JmleCalibrator,
    JmleOutcome,
    JmleStep,
    jmle_step,
)
from calibration_service.irt.parameters import AbilitySet, ItemParameterSet
from calibration_service.irt.probability import probabilities, probability
from calibration_service.irt.sampling import (
    generate_response_records,
    sample_responses_batch,
)
from calibration_service.irt.validation import DataValidator

__all__ = [
    "AbilitySet",
    "CalibrationConfig",
    "DataValidator",
    "ItemParameterSet",
    "JmleCalibrator",
    "JmleOutcome",
    "JmleStep",
    "compute_standard_errors",
    "estimate_abilities",
    "estimate_difficulty",
    "estimate_discrimination",
    "estimate_item_parameters",
    "estimate_theta",
    "generate_response_records",
    "jmle_step",
    "probabilities",
    "probability",
    "sample_responses_batch",
]
