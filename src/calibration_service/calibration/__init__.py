"""
Calibration orchestration.

Wires the response source, competency lookup and item-statistics store
around the IRT numeric core and exposes the public operations.
"""

from calibration_service.calibration.results import (
    CalibrationResult,
    ItemCalibration,
    build_calibration_result,
)
from calibration_service.calibration.service import CalibrationService
from calibration_service.calibration.stores import (
    CompetencyLookup,
    InMemoryCompetencyLookup,
    InMemoryItemStatisticsStore,
    InMemoryResponseSource,
    ItemStatisticsRecord,
    ItemStatisticsStore,
    ResponseSource,
)

__all__ = [
    "CalibrationResult",
    "CalibrationService",
    "CompetencyLookup",
    "InMemoryCompetencyLookup",
    "InMemoryItemStatisticsStore",
    "InMemoryResponseSource",
    "ItemCalibration",
    "ItemStatisticsRecord",
    "ItemStatisticsStore",
    "ResponseSource",
    "build_calibration_result",
]
