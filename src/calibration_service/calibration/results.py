"""
Calibration result value objects and their assembly from a JMLE run.
"""

from pydantic import BaseModel, ConfigDict

from calibration_service.core.data_models import ResponseMatrix
from calibration_service.irt.jmle import JmleOutcome


class ItemCalibration(BaseModel):
    """
    Calibrated parameters for one item.

    Standard errors are NaN when the observed information is numerically
    zero; callers treat that as unknown precision.
    """

    model_config = ConfigDict(frozen=True)

    question_id: str
    discrimination: float
    difficulty: float
    standard_error_a: float
    standard_error_b: float


class CalibrationResult(BaseModel):
    """
    Result of calibrating one competency.

    Attributes:
        competency_id: Calibrated competency.
        item_count: Items retained after extreme-item filtering.
        respondent_count: Respondents in the response matrix.
        iterations: Number of JMLE iterations performed.
        converged: Whether the change threshold was reached.
        max_parameter_change: Largest a/b change of the final iteration.
        item_calibrations: Per-item results in retained-item order.
    """

    model_config = ConfigDict(frozen=True)

    competency_id: str
    item_count: int
    respondent_count: int
    iterations: int
    converged: bool
    max_parameter_change: float
    item_calibrations: tuple[ItemCalibration, ...]

    def calibration_for(self, question_id: str) -> ItemCalibration | None:
        """Look up an item's calibration by question id."""
        for calibration in self.item_calibrations:
            if calibration.question_id == question_id:
                return calibration
        return None


def build_calibration_result(
    competency_id: str,
    data: ResponseMatrix,
    outcome: JmleOutcome,
) -> CalibrationResult:
    """
    Assemble a CalibrationResult from a finished JMLE run.

    Args:
        competency_id: Calibrated competency.
        data: Response matrix the run was fitted on.
        outcome: Final JMLE state.

    Returns:
        CalibrationResult with one entry per retained item, in matrix order.
    """
    items = outcome.items
    calibrations = tuple(
        ItemCalibration(
            question_id=question_id,
            discrimination=float(items.discriminations[i]),
            difficulty=float(items.difficulties[i]),
            standard_error_a=float(outcome.se_discrimination[i]),
            standard_error_b=float(outcome.se_difficulty[i]),
        )
        for i, question_id in enumerate(data.item_ids)
    )

    return CalibrationResult(
        competency_id=competency_id,
        item_count=data.n_items,
        respondent_count=data.n_respondents,
        iterations=outcome.iterations,
        converged=outcome.converged,
        max_parameter_change=outcome.max_change,
        item_calibrations=calibrations,
    )
