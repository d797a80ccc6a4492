"""
Joint Maximum Likelihood Estimation (JMLE) for the 2PL model.

Each iteration is a pure transformation of two snapshots:

    (old items, old abilities) -> (new items, new abilities, max delta)

1. Ability phase: θ for every respondent from the current item snapshot,
   with Newton-Raphson started at the old abilities.
2. Scale identification: θ is standardized to mean 0 and SD 1 over the
   respondents with mixed response patterns, and every a and b is mapped
   so the response probabilities are unchanged. This fixes both the
   location and the scale indeterminacy of the joint likelihood.
3. Item phase: b then a for every item from the new ability snapshot.
   All-correct and all-incorrect respondents are left out; their θ sits
   at a bound and carries no information about the items.
4. max delta: largest absolute change in any a or b during the item phase.

Iteration stops when max delta falls below the convergence threshold or
the iteration budget is exhausted. Exhausting the budget is not an error.
"""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from calibration_service.core.data_models import ResponseMatrix
from calibration_service.core.utils import clamp_array
from calibration_service.irt.ability import estimate_abilities
from calibration_service.irt.config import MIN_THETA_SPREAD, CalibrationConfig
from calibration_service.irt.enums import CalibrationPhase
from calibration_service.irt.item_parameters import (
    compute_standard_errors,
    estimate_item_parameters,
)
from calibration_service.irt.parameters import AbilitySet, ItemParameterSet
from calibration_service.irt.progress import ProgressCallback

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JmleStep:
    """
    Output of one JMLE iteration.

    Attributes:
        items: Item parameters after the item phase.
        abilities: Standardized abilities used by the item phase.
        max_change: Largest absolute change in any a or b.
    """

    items: ItemParameterSet
    abilities: AbilitySet
    max_change: float


@dataclass(frozen=True)
class JmleOutcome:
    """
    Final state of a JMLE run.

    Attributes:
        items: Final item parameters.
        abilities: Final ability estimates.
        iterations: Number of iterations performed.
        converged: Whether max_change fell below the threshold.
        max_change: max_change of the final iteration.
        se_discrimination: Standard error of a per item (NaN = unknown).
        se_difficulty: Standard error of b per item (NaN = unknown).
    """

    items: ItemParameterSet
    abilities: AbilitySet
    iterations: int
    converged: bool
    max_change: float
    se_discrimination: NDArray[np.float64]
    se_difficulty: NDArray[np.float64]

    @property
    def status(self) -> CalibrationPhase:
        """Terminal state of the iteration."""
        if self.converged:
            return CalibrationPhase.CONVERGED
        return CalibrationPhase.ITERATION_LIMIT_REACHED


def rescale_abilities(
    abilities: AbilitySet,
    items: ItemParameterSet,
    config: CalibrationConfig,
    reference: NDArray[np.bool_] | None = None,
) -> tuple[AbilitySet, ItemParameterSet]:
    """
    Standardize abilities and map item parameters onto the same scale.

        θ' = (θ - m) / s,   b' = (b - m) / s,   a' = a · s

    m and s are the mean and standard deviation of θ over the ``reference``
    respondents (all respondents if None or fewer than two are marked).
    If s is below MIN_THETA_SPREAD only the shift is applied. Everything is
    clamped back into bounds afterwards.
    """
    if abilities.n_respondents == 0:
        return abilities, items

    thetas = abilities.thetas
    anchor = thetas
    if reference is not None and np.count_nonzero(reference) >= 2:
        anchor = thetas[reference]

    shift = float(np.mean(anchor))
    scale = float(np.std(anchor))
    if scale < MIN_THETA_SPREAD:
        scale = 1.0

    bounds = config.bounds
    rescaled = AbilitySet(clamp_array((thetas - shift) / scale, bounds.theta))
    mapped = ItemParameterSet(
        clamp_array(items.discriminations * scale, bounds.discrimination),
        clamp_array((items.difficulties - shift) / scale, bounds.difficulty),
    )
    return rescaled, mapped


def jmle_step(
    data: ResponseMatrix,
    items: ItemParameterSet,
    abilities: AbilitySet,
    config: CalibrationConfig,
) -> JmleStep:
    """
    Run one JMLE iteration.

    Args:
        data: Response matrix.
        items: Item parameters from the previous iteration.
        abilities: Abilities from the previous iteration; the ability
            phase starts Newton-Raphson from them.
        config: Calibration configuration.

    Returns:
        JmleStep with fresh snapshots; the inputs are not modified.
    """
    if abilities.n_respondents != data.n_respondents:
        raise ValueError(
            f"abilities cover {abilities.n_respondents} respondents, "
            f"response matrix has {data.n_respondents}"
        )

    mixed = data.mixed_respondents()
    respondents = mixed if mixed.any() else None

    new_abilities = estimate_abilities(data, items, config, start=abilities)
    new_abilities, rescaled_items = rescale_abilities(
        new_abilities, items, config, respondents
    )
    new_items = estimate_item_parameters(
        data, new_abilities, rescaled_items, config, respondents
    )
    return JmleStep(
        items=new_items,
        abilities=new_abilities,
        max_change=new_items.max_change(rescaled_items),
    )


class JmleCalibrator:
    """
    2PL calibrator alternating ability and item phases.

    The calibrator holds configuration only; all state of a run lives in
    the snapshots passed between iterations.
    """

    def __init__(self, config: CalibrationConfig | None = None):
        """
        Initialize calibrator.

        Args:
            config: Calibration configuration. If None, uses defaults.
        """
        self.config = config or CalibrationConfig()

    def fit(
        self,
        data: ResponseMatrix,
        progress_callback: ProgressCallback | None = None,
    ) -> JmleOutcome:
        """
        Calibrate item parameters for a validated response matrix.

        Args:
            data: Response matrix.
            progress_callback: Optional progress reporting hook.

        Returns:
            JmleOutcome with final snapshots and standard errors.
        """
        convergence = self.config.convergence
        max_iterations = convergence.max_iterations

        items = ItemParameterSet.create_default(data.n_items)
        abilities = AbilitySet.create_default(data.n_respondents)

        converged = False
        max_change = float("inf")
        iteration = 0

        while iteration < max_iterations and not converged:
            iteration += 1
            step = jmle_step(data, items, abilities, self.config)
            items, abilities = step.items, step.abilities
            max_change = step.max_change
            converged = max_change < convergence.convergence_threshold

            logger.debug(
                f"JMLE iteration {iteration}: max_change={max_change:.6f}"
            )
            if progress_callback is not None:
                progress_callback(
                    CalibrationPhase.ITERATING,
                    iteration,
                    max_iterations,
                    f"max_change={max_change:.6f}",
                )

        if converged:
            logger.info(
                f"JMLE converged after {iteration} iterations "
                f"(max_change={max_change:.6f})"
            )
        else:
            logger.warning(
                f"JMLE did not converge within {max_iterations} iterations "
                f"(max_change={max_change:.6f}); returning current estimates"
            )

        se_a, se_b = compute_standard_errors(data, abilities, items)

        outcome = JmleOutcome(
            items=items,
            abilities=abilities,
            iterations=iteration,
            converged=converged,
            max_change=max_change,
            se_discrimination=se_a,
            se_difficulty=se_b,
        )

        if progress_callback is not None:
            progress_callback(
                outcome.status, iteration, max_iterations, "iteration done"
            )
            progress_callback(
                CalibrationPhase.FINALIZED,
                iteration,
                max_iterations,
                f"{data.n_items} items finalized",
            )

        return outcome
