"""
Response matrix construction and data validation.

Consumes the response stream for one competency exactly once and produces
a ResponseMatrix, or raises when the data cannot support a calibration:

- unknown competency                         -> CompetencyNotFoundError
- fewer distinct respondents than required   -> InsufficientDataError
- fewer items than required after excluding
  items with extreme proportions correct     -> InsufficientDataError
"""

import logging
from collections.abc import Callable, Iterable

import numpy as np

from calibration_service.core.data_models import (
    ResponseMatrix,
    ResponseRecord,
    dichotomize,
)
from calibration_service.errors import (
    CompetencyNotFoundError,
    InsufficientDataError,
)
from calibration_service.irt.config import FilterConfig
from calibration_service.irt.enums import CalibrationPhase
from calibration_service.irt.progress import ProgressCallback

logger = logging.getLogger(__name__)


def group_responses(
    records: Iterable[ResponseRecord],
) -> tuple[dict[str, dict[str, float]], list[str]]:
    """
    Group a response stream by respondent.

    Duplicate (respondent, item) pairs keep the last response.

    Returns:
        Tuple of (responses by respondent then item, item ids in
        first-seen order). Respondent order is the dict's insertion order.
    """
    by_respondent: dict[str, dict[str, float]] = {}
    item_order: dict[str, None] = {}

    for record in records:
        by_respondent.setdefault(record.respondent_id, {})[
            record.item_id
        ] = dichotomize(record.response)
        item_order.setdefault(record.item_id, None)

    return by_respondent, list(item_order)


def compute_p_values(
    by_respondent: dict[str, dict[str, float]], item_ids: list[str]
) -> dict[str, float]:
    """Proportion correct per item over the respondents who answered it."""
    sums = dict.fromkeys(item_ids, 0.0)
    counts = dict.fromkeys(item_ids, 0)
    for answers in by_respondent.values():
        for item_id, response in answers.items():
            sums[item_id] += response
            counts[item_id] += 1
    return {
        item_id: sums[item_id] / counts[item_id]
        for item_id in item_ids
        if counts[item_id] > 0
    }


class DataValidator:
    """
    Builds a validated ResponseMatrix for one competency.

    Attributes:
        config: Data requirements and extreme-item filter.
    """

    def __init__(
        self,
        competency_exists: Callable[[str], bool],
        config: FilterConfig | None = None,
    ) -> None:
        self._competency_exists = competency_exists
        self.config = config or FilterConfig()

    def is_extreme(self, p_value: float) -> bool:
        """Whether an item's proportion correct is outside the kept range."""
        return (
            p_value < self.config.min_p_value
            or p_value > self.config.max_p_value
        )

    def validate(
        self,
        competency_id: str,
        records: Iterable[ResponseRecord],
        progress_callback: ProgressCallback | None = None,
    ) -> ResponseMatrix:
        """
        Validate a competency's responses and build the response matrix.

        Args:
            competency_id: Competency being calibrated.
            records: Response stream; consumed exactly once.
            progress_callback: Optional progress reporting hook.

        Returns:
            ResponseMatrix over the retained items.

        Raises:
            CompetencyNotFoundError: If the competency does not exist.
            InsufficientDataError: If respondents or retained items are
                below the configured minimums.
        """
        if not self._competency_exists(competency_id):
            raise CompetencyNotFoundError(competency_id)

        if progress_callback is not None:
            progress_callback(
                CalibrationPhase.VALIDATING, 0, None, "reading responses"
            )

        by_respondent, item_ids = group_responses(records)

        n_respondents = len(by_respondent)
        if n_respondents < self.config.min_respondents:
            raise InsufficientDataError(
                "respondents", n_respondents, self.config.min_respondents
            )

        if progress_callback is not None:
            progress_callback(
                CalibrationPhase.FILTERING,
                0,
                len(item_ids),
                f"{n_respondents} respondents, {len(item_ids)} items",
            )

        p_values = compute_p_values(by_respondent, item_ids)
        retained: list[str] = []
        for item_id in item_ids:
            p_value = p_values[item_id]
            if self.is_extreme(p_value):
                logger.debug(
                    f"Excluding item {item_id} with extreme p-value: "
                    f"{p_value:.3f}"
                )
                continue
            retained.append(item_id)

        if len(retained) < self.config.min_items:
            raise InsufficientDataError(
                "items", len(retained), self.config.min_items
            )

        if len(retained) < len(item_ids):
            logger.info(
                f"Excluded {len(item_ids) - len(retained)} extreme items; "
                f"{len(retained)} items remain"
            )

        matrix = build_matrix(by_respondent, retained, p_values)

        logger.info(
            f"Response matrix for competency {competency_id}: "
            f"{matrix.n_items} items x {matrix.n_respondents} respondents"
        )
        return matrix


def build_matrix(
    by_respondent: dict[str, dict[str, float]],
    item_ids: list[str],
    p_values: dict[str, float],
) -> ResponseMatrix:
    """
    Lay out grouped responses as a dense matrix over ``item_ids``.

    Respondents without any response to these items are left out.
    """
    column = {item_id: i for i, item_id in enumerate(item_ids)}

    respondent_ids: list[str] = []
    rows: list[dict[str, float]] = []
    for respondent_id, answers in by_respondent.items():
        if any(item_id in column for item_id in answers):
            respondent_ids.append(respondent_id)
            rows.append(answers)

    responses = np.zeros((len(rows), len(item_ids)), dtype=np.float64)
    observed = np.zeros((len(rows), len(item_ids)), dtype=np.bool_)
    for j, answers in enumerate(rows):
        for item_id, response in answers.items():
            i = column.get(item_id)
            if i is not None:
                responses[j, i] = response
                observed[j, i] = True

    return ResponseMatrix(
        item_ids=tuple(item_ids),
        respondent_ids=tuple(respondent_ids),
        responses=responses,
        observed=observed,
        p_values=np.array(
            [p_values[item_id] for item_id in item_ids], dtype=np.float64
        ),
    )
