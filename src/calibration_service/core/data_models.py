"""
Data models for IRT calibration input.

This module defines the data structures for:
- ResponseRecord: One observed, already-scored answer
- ResponseMatrix: Validated respondent x item matrix used by the estimators
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

# Normalized scores at or above this value count as a correct response
DICHOTOMIZE_THRESHOLD = 0.5


def dichotomize(score: float) -> float:
    """Map a normalized score onto the binary 0/1 response scale."""
    return 1.0 if score >= DICHOTOMIZE_THRESHOLD else 0.0


@dataclass(frozen=True, slots=True)
class ResponseRecord:
    """
    A single scored answer.

    Attributes:
        respondent_id: Identifier of the respondent (test session).
        item_id: Identifier of the item (question).
        response: Score for the answer; 1.0 correct, 0.0 incorrect.
    """

    respondent_id: str
    item_id: str
    response: float


@dataclass(frozen=True)
class ResponseMatrix:
    """
    Binary response data for one calibration run.

    Attributes:
        item_ids: Retained item identifiers, in first-seen order.
        respondent_ids: Respondent identifiers, in first-seen order.
        responses: Array of shape (n_respondents, n_items) with 0/1 values.
            Unobserved cells hold 0 and are excluded through ``observed``.
        observed: Boolean mask, True where a response was recorded.
        p_values: Proportion correct for each retained item.
    """

    item_ids: tuple[str, ...]
    respondent_ids: tuple[str, ...]
    responses: NDArray[np.float64]
    observed: NDArray[np.bool_]
    p_values: NDArray[np.float64]

    def __post_init__(self) -> None:
        """Validate response matrix."""
        if self.responses.ndim != 2:
            raise ValueError(
                f"responses must be 2D, got shape {self.responses.shape}"
            )
        if self.observed.shape != self.responses.shape:
            raise ValueError(
                f"observed mask shape {self.observed.shape} does not match "
                f"responses shape {self.responses.shape}"
            )
        expected = (len(self.respondent_ids), len(self.item_ids))
        if self.responses.shape != expected:
            raise ValueError(
                f"responses shape {self.responses.shape} does not match "
                f"{expected[0]} respondents x {expected[1]} items"
            )
        if len(self.p_values) != len(self.item_ids):
            raise ValueError(
                f"expected {len(self.item_ids)} p-values, "
                f"got {len(self.p_values)}"
            )
        values = self.responses[self.observed]
        if len(values) > 0 and not np.isin(values, (0.0, 1.0)).all():
            raise ValueError("responses must be binary (0.0 or 1.0)")

    @property
    def n_respondents(self) -> int:
        """Number of respondents (rows)."""
        return self.responses.shape[0]

    @property
    def n_items(self) -> int:
        """Number of items (columns)."""
        return self.responses.shape[1]

    def mixed_respondents(self) -> NDArray[np.bool_]:
        """
        True for respondents with at least one correct and one incorrect
        observed response.

        All-correct and all-incorrect rows have no finite ability estimate.
        """
        correct = np.sum(np.where(self.observed, self.responses, 0.0), axis=1)
        answered = np.sum(self.observed, axis=1)
        mask: NDArray[np.bool_] = (correct > 0) & (correct < answered)
        return mask

    @classmethod
    def from_dense(
        cls,
        responses: NDArray[np.float64],
        item_ids: tuple[str, ...] | None = None,
        respondent_ids: tuple[str, ...] | None = None,
    ) -> "ResponseMatrix":
        """
        Build a fully observed matrix from a dense 0/1 array.

        Identifiers default to ``item-<i>`` and ``respondent-<j>``.
        """
        responses = np.asarray(responses, dtype=np.float64)
        n_respondents, n_items = responses.shape
        if item_ids is None:
            item_ids = tuple(f"item-{i}" for i in range(n_items))
        if respondent_ids is None:
            respondent_ids = tuple(
                f"respondent-{j}" for j in range(n_respondents)
            )
        p_values = (
            responses.mean(axis=0)
            if n_respondents > 0
            else np.zeros(n_items, dtype=np.float64)
        )
        return cls(
            item_ids=item_ids,
            respondent_ids=respondent_ids,
            responses=responses,
            observed=np.ones(responses.shape, dtype=np.bool_),
            p_values=p_values,
        )
