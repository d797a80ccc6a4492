"""
Safeguarded Newton-Raphson updates shared by the ability and item phases.

Each estimator solves many independent one-dimensional problems at once
(one per respondent or per item). A proposed step is accepted only if it
does not lower that problem's log-likelihood; otherwise it is halved, up
to MAX_STEP_HALVINGS times, and dropped if it still does.
"""

from collections.abc import Callable

import numpy as np
from numpy.typing import NDArray

from calibration_service.core.utils import clamp_array
from calibration_service.irt.config import MAX_STEP_HALVINGS

Objective = Callable[[NDArray[np.float64]], NDArray[np.float64]]


def weighted_sum(
    values: NDArray[np.float64], weights: NDArray[np.float64], axis: int
) -> NDArray[np.float64]:
    """Sum ``values`` where ``weights`` is positive, ignoring the rest."""
    return np.sum(weights * np.where(weights > 0.0, values, 0.0), axis=axis)


def ascend(
    current: NDArray[np.float64],
    step: NDArray[np.float64],
    stepping: NDArray[np.bool_],
    objective: Objective,
    bounds: tuple[float, float],
) -> NDArray[np.float64]:
    """
    Apply ``current - step`` with step halving, clamped into ``bounds``.

    Args:
        current: Current values, one per problem.
        step: Proposed Newton steps (subtracted from ``current``).
        stepping: Problems allowed to move; the rest keep ``current``.
        objective: Log-likelihood per problem as a function of the values.
        bounds: (min, max) applied to every candidate.

    Returns:
        New values, never with a lower objective than ``current``.
    """
    baseline = objective(current)
    candidate = clamp_array(current - step, bounds)
    # Halving starts from the step that actually fits inside the bounds
    step = current - candidate

    for _ in range(MAX_STEP_HALVINGS):
        worse = stepping & (objective(candidate) < baseline)
        if not worse.any():
            break
        step = np.where(worse, 0.5 * step, step)
        candidate = np.where(
            worse, clamp_array(current - step, bounds), candidate
        )
    else:
        worse = stepping & (objective(candidate) < baseline)
        candidate = np.where(worse, current, candidate)

    return np.where(stepping, candidate, current)
