"""
Calibration service: the public operations of the IRT engine.

- calibrate_with_details: validate + JMLE, no side effects
- calibrate_competency:   calibrate and persist a/b/c through the store
- estimate_ability:       θ for one respondent from persisted parameters

Storage collaborators are injected here and used nowhere else.
"""

import logging
from collections.abc import Mapping

from calibration_service.calibration.results import (
    CalibrationResult,
    build_calibration_result,
)
from calibration_service.calibration.stores import (
    CompetencyLookup,
    ItemStatisticsRecord,
    ItemStatisticsStore,
    ResponseSource,
    to_persisted_decimal,
)
from calibration_service.core.data_models import dichotomize
from calibration_service.irt.ability import estimate_theta
from calibration_service.irt.config import CalibrationConfig
from calibration_service.irt.jmle import JmleCalibrator
from calibration_service.irt.progress import ProgressCallback
from calibration_service.irt.validation import DataValidator

logger = logging.getLogger(__name__)

# Guessing is not estimated by the 2PL model
GUESSING_2PL = 0.0


class CalibrationService:
    """
    Entry point for 2PL calibration and ability estimation.

    Responses, competency existence and item statistics come from the
    injected collaborators; validation and JMLE run on the configuration
    given at construction.
    """

    def __init__(
        self,
        responses: ResponseSource,
        competencies: CompetencyLookup,
        item_statistics: ItemStatisticsStore,
        config: CalibrationConfig | None = None,
    ) -> None:
        self.config = config or CalibrationConfig()
        self._responses = responses
        self._item_statistics = item_statistics
        self._validator = DataValidator(
            competencies.exists, self.config.filtering
        )
        self._calibrator = JmleCalibrator(self.config)

    def calibrate_with_details(
        self,
        competency_id: str,
        progress_callback: ProgressCallback | None = None,
    ) -> CalibrationResult:
        """
        Calibrate a competency's items without persisting anything.

        Raises:
            CompetencyNotFoundError: If the competency does not exist.
            InsufficientDataError: If there are too few respondents or,
                after extreme-item filtering, too few items.
        """
        matrix = self._validator.validate(
            competency_id,
            self._responses.stream_responses(competency_id),
            progress_callback,
        )
        outcome = self._calibrator.fit(matrix, progress_callback)
        return build_calibration_result(competency_id, matrix, outcome)

    def calibrate_competency(
        self,
        competency_id: str,
        progress_callback: ProgressCallback | None = None,
    ) -> list[ItemStatisticsRecord]:
        """
        Calibrate a competency and persist the new parameters.

        Each retained item with an existing statistics record gets its
        discrimination, difficulty and a zero guessing parameter written
        with 4-decimal precision.

        Returns:
            Saved records, in calibration order.
        """
        result = self.calibrate_with_details(competency_id, progress_callback)

        existing = {
            record.question_id: record
            for record in self._item_statistics.find_by_competency(
                competency_id
            )
        }

        updated: list[ItemStatisticsRecord] = []
        for calibration in result.item_calibrations:
            record = existing.get(calibration.question_id)
            if record is None:
                logger.warning(
                    f"No item statistics for question "
                    f"{calibration.question_id}; skipping persistence"
                )
                continue

            record.irt_discrimination = to_persisted_decimal(
                calibration.discrimination
            )
            record.irt_difficulty = to_persisted_decimal(
                calibration.difficulty
            )
            record.irt_guessing = to_persisted_decimal(GUESSING_2PL)
            updated.append(self._item_statistics.save(record))

        logger.info(
            f"IRT calibration complete for competency {competency_id}: "
            f"{result.item_count} items calibrated, {len(updated)} persisted, "
            f"{result.iterations} iterations, converged={result.converged}"
        )

        return updated

    def estimate_ability(self, scores: Mapping[str, float] | None) -> float:
        """
        Estimate θ for one respondent from persisted item parameters.

        Args:
            scores: Normalized score per question id. Scores of 0.5 or more
                count as correct.

        Returns:
            θ within the configured bounds; 0.0 when there are no scores or
            none of the scored items has calibrated parameters.
        """
        if not scores:
            return 0.0

        responses: list[float] = []
        discriminations: list[float] = []
        difficulties: list[float] = []

        for record in self._item_statistics.find_by_question_ids(
            list(scores)
        ):
            score = scores.get(record.question_id)
            if not record.is_calibrated or score is None:
                continue
            assert record.irt_discrimination is not None
            assert record.irt_difficulty is not None
            responses.append(dichotomize(score))
            discriminations.append(float(record.irt_discrimination))
            difficulties.append(float(record.irt_difficulty))

        if not responses:
            return 0.0

        return estimate_theta(
            responses, discriminations, difficulties, self.config
        )
