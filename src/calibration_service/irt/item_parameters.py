"""
Item parameter estimation for the 2PL model.

With abilities θ_j held fixed, each item's log-likelihood is maximized by
damped Newton-Raphson, first for difficulty (a fixed) and then for
discrimination (b fixed at its new value):

    ∂L/∂b   = a Σ_j (P_j - u_j)
    ∂²L/∂b² = -a² Σ_j P_j (1 - P_j)
    ∂L/∂a   = Σ_j (θ_j - b)(u_j - P_j)
    ∂²L/∂a² = -Σ_j (θ_j - b)² P_j (1 - P_j)

Every update is clamped into its bounds, and a damped step that would
lower the item's log-likelihood is halved until it does not. The
overflow-guarded probability keeps all sums finite.

Items are independent, so the item phase of JMLE solves every item at once.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from calibration_service.core.data_models import ResponseMatrix
from calibration_service.core.utils import clamp_array
from calibration_service.irt.config import (
    INFORMATION_EPSILON,
    CalibrationConfig,
)
from calibration_service.irt.newton import ascend, weighted_sum
from calibration_service.irt.parameters import AbilitySet, ItemParameterSet
from calibration_service.irt.probability import (
    log_likelihoods,
    probabilities,
)


def newton_difficulties(
    responses: NDArray[np.float64],
    observed: NDArray[np.bool_],
    thetas: NDArray[np.float64],
    discriminations: NDArray[np.float64],
    difficulties: NDArray[np.float64],
    config: CalibrationConfig,
) -> NDArray[np.float64]:
    """
    Damped Newton-Raphson for b, one column (item) at a time, vectorized.

    Args:
        responses: 0/1 responses, shape (n_respondents, n_items).
        observed: True where a response exists.
        thetas: Abilities, shape (n_respondents,).
        discriminations: Fixed discriminations, shape (n_items,).
        difficulties: Starting difficulties, shape (n_items,).
        config: Calibration configuration.

    Returns:
        New difficulties, shape (n_items,), within the difficulty bounds.
    """
    convergence = config.convergence
    bounds = config.bounds.difficulty

    weights = observed.astype(np.float64)
    theta = thetas[:, np.newaxis]
    a = discriminations
    b = np.array(difficulties, dtype=np.float64)
    active = np.ones(len(b), dtype=np.bool_)

    def log_likelihood(values: NDArray[np.float64]) -> NDArray[np.float64]:
        ll = log_likelihoods(
            responses, theta, a[np.newaxis, :], values[np.newaxis, :]
        )
        return weighted_sum(ll, weights, axis=0)

    for _ in range(convergence.max_newton_iterations):
        if not active.any():
            break

        p = probabilities(theta, a[np.newaxis, :], b[np.newaxis, :])
        pq = weights * p * (1.0 - p)
        gradient = a * np.sum(weights * (p - responses), axis=0)
        curvature = -(a * np.sum(pq, axis=0)) * a

        stepping = active & (np.abs(curvature) >= INFORMATION_EPSILON)
        step = np.zeros_like(b)
        np.divide(gradient, curvature, out=step, where=stepping)
        step *= convergence.damping

        updated = ascend(b, step, stepping, log_likelihood, bounds)
        active = stepping & (
            np.abs(updated - b) >= convergence.newton_tolerance
        )
        b = updated

    return clamp_array(b, bounds)


def newton_discriminations(
    responses: NDArray[np.float64],
    observed: NDArray[np.bool_],
    thetas: NDArray[np.float64],
    discriminations: NDArray[np.float64],
    difficulties: NDArray[np.float64],
    config: CalibrationConfig,
) -> NDArray[np.float64]:
    """
    Damped Newton-Raphson for a, one column (item) at a time, vectorized.

    Args:
        responses: 0/1 responses, shape (n_respondents, n_items).
        observed: True where a response exists.
        thetas: Abilities, shape (n_respondents,).
        discriminations: Starting discriminations, shape (n_items,).
        difficulties: Fixed difficulties, shape (n_items,).
        config: Calibration configuration.

    Returns:
        New discriminations, shape (n_items,), within the
        discrimination bounds.
    """
    convergence = config.convergence
    bounds = config.bounds.discrimination

    weights = observed.astype(np.float64)
    theta = thetas[:, np.newaxis]
    b = difficulties[np.newaxis, :]
    distance = theta - b
    a = np.array(discriminations, dtype=np.float64)
    active = np.ones(len(a), dtype=np.bool_)

    def log_likelihood(values: NDArray[np.float64]) -> NDArray[np.float64]:
        ll = log_likelihoods(responses, theta, values[np.newaxis, :], b)
        return weighted_sum(ll, weights, axis=0)

    for _ in range(convergence.max_newton_iterations):
        if not active.any():
            break

        p = probabilities(theta, a[np.newaxis, :], b)
        pq = weights * p * (1.0 - p)
        gradient = np.sum(weights * distance * (responses - p), axis=0)
        curvature = -np.sum(distance * pq * distance, axis=0)

        stepping = active & (np.abs(curvature) >= INFORMATION_EPSILON)
        step = np.zeros_like(a)
        np.divide(gradient, curvature, out=step, where=stepping)
        step *= convergence.damping

        updated = ascend(a, step, stepping, log_likelihood, bounds)
        active = stepping & (
            np.abs(updated - a) >= convergence.newton_tolerance
        )
        a = updated

    return clamp_array(a, bounds)


def _single_item(
    responses: ArrayLike, thetas: ArrayLike
) -> tuple[NDArray[np.float64], NDArray[np.bool_], NDArray[np.float64]]:
    u = np.asarray(responses, dtype=np.float64).ravel()
    theta = np.asarray(thetas, dtype=np.float64).ravel()
    if len(u) != len(theta):
        raise ValueError(
            f"responses and thetas must have same length, "
            f"got {len(u)} and {len(theta)}"
        )
    return (
        u[:, np.newaxis],
        np.ones((len(u), 1), dtype=np.bool_),
        theta,
    )


def estimate_difficulty(
    responses: ArrayLike,
    thetas: ArrayLike,
    discrimination: float,
    current_difficulty: float = 0.0,
    config: CalibrationConfig | None = None,
) -> float:
    """
    Estimate one item's difficulty with discrimination held fixed.

    All-correct responses push b toward the lower bound (easy item);
    all-incorrect responses push it toward the upper bound (hard item).

    Args:
        responses: Correct (1/True) or incorrect (0/False) per respondent.
        thetas: Ability per respondent, same length.
        discrimination: Fixed discrimination (a).
        current_difficulty: Starting value for b.
        config: Calibration configuration. Uses defaults if None.

    Returns:
        Difficulty within the configured bounds (default [-4, 4]).
    """
    if config is None:
        config = CalibrationConfig()
    u, observed, theta = _single_item(responses, thetas)
    result = newton_difficulties(
        u,
        observed,
        theta,
        np.array([discrimination], dtype=np.float64),
        np.array([current_difficulty], dtype=np.float64),
        config,
    )
    return float(result[0])


def estimate_discrimination(
    responses: ArrayLike,
    thetas: ArrayLike,
    difficulty: float,
    current_discrimination: float = 1.0,
    config: CalibrationConfig | None = None,
) -> float:
    """
    Estimate one item's discrimination with difficulty held fixed.

    Args:
        responses: Correct (1/True) or incorrect (0/False) per respondent.
        thetas: Ability per respondent, same length.
        difficulty: Fixed difficulty (b).
        current_discrimination: Starting value for a.
        config: Calibration configuration. Uses defaults if None.

    Returns:
        Discrimination within the configured bounds (default [0.1, 4.0]).
    """
    if config is None:
        config = CalibrationConfig()
    u, observed, theta = _single_item(responses, thetas)
    result = newton_discriminations(
        u,
        observed,
        theta,
        np.array([current_discrimination], dtype=np.float64),
        np.array([difficulty], dtype=np.float64),
        config,
    )
    return float(result[0])


def estimate_item_parameters(
    data: ResponseMatrix,
    abilities: AbilitySet,
    items: ItemParameterSet,
    config: CalibrationConfig | None = None,
    respondents: NDArray[np.bool_] | None = None,
) -> ItemParameterSet:
    """
    Item phase: update b then a for every item from an ability snapshot.

    Args:
        data: Response matrix.
        abilities: Current ability estimates.
        items: Current item parameters (starting values).
        config: Calibration configuration. Uses defaults if None.
        respondents: Optional mask of respondents whose responses enter
            the item likelihoods. All respondents are used if None.

    Returns:
        New ItemParameterSet; ``items`` and ``abilities`` are not modified.
    """
    if config is None:
        config = CalibrationConfig()

    if abilities.n_respondents != data.n_respondents:
        raise ValueError(
            f"abilities cover {abilities.n_respondents} respondents, "
            f"response matrix has {data.n_respondents}"
        )

    observed = data.observed
    if respondents is not None:
        observed = observed & respondents[:, np.newaxis]

    difficulties = newton_difficulties(
        data.responses,
        observed,
        abilities.thetas,
        items.discriminations,
        items.difficulties,
        config,
    )
    discriminations = newton_discriminations(
        data.responses,
        observed,
        abilities.thetas,
        items.discriminations,
        difficulties,
        config,
    )
    return ItemParameterSet(discriminations, difficulties)


def compute_standard_errors(
    data: ResponseMatrix,
    abilities: AbilitySet,
    items: ItemParameterSet,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Standard errors from the observed information at final parameters.

        I_a = Σ_j (θ_j - b)² P_j (1 - P_j)
        I_b = a² Σ_j P_j (1 - P_j)
        SE  = 1 / sqrt(I)

    Information at or below INFORMATION_EPSILON yields NaN, meaning the
    precision is unknown.

    Returns:
        Tuple of (se_discrimination, se_difficulty), each shape (n_items,).
    """
    weights = data.observed.astype(np.float64)
    theta = abilities.thetas[:, np.newaxis]
    a = items.discriminations
    b = items.difficulties

    p = probabilities(theta, a[np.newaxis, :], b[np.newaxis, :])
    pq = weights * p * (1.0 - p)
    distance = theta - b[np.newaxis, :]

    info_a = np.sum(distance * pq * distance, axis=0)
    info_b = (a * np.sum(pq, axis=0)) * a

    return _inverse_sqrt(info_a), _inverse_sqrt(info_b)


def _inverse_sqrt(information: NDArray[np.float64]) -> NDArray[np.float64]:
    se = np.full(len(information), np.nan, dtype=np.float64)
    usable = information > INFORMATION_EPSILON
    se[usable] = 1.0 / np.sqrt(information[usable])
    return se
