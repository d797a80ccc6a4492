"""
Maximum likelihood ability estimation for the 2PL model.

For one respondent with responses u_i on items (a_i, b_i):
    L(θ)   = Σ_i [u_i log P_i + (1 - u_i) log(1 - P_i)]
    L'(θ)  = Σ_i a_i (u_i - P_i)
    L''(θ) = -Σ_i a_i² P_i (1 - P_i)

Newton-Raphson starts at θ = 0 (or at a supplied starting vector) and
updates θ ← θ - L'/L'', clamping into the θ bounds after every step. A
step that would lower L(θ) is halved until it does not. A step is skipped
(the current θ is kept) when the information is numerically zero.

Respondents are independent, so the ability phase of JMLE solves every
respondent at once with the same iteration.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from calibration_service.core.data_models import ResponseMatrix
from calibration_service.core.utils import clamp_array
from calibration_service.irt.config import (
    INFORMATION_EPSILON,
    INITIAL_THETA,
    CalibrationConfig,
)
from calibration_service.irt.newton import ascend, weighted_sum
from calibration_service.irt.parameters import AbilitySet, ItemParameterSet
from calibration_service.irt.probability import (
    log_likelihoods,
    probabilities,
)


def newton_thetas(
    responses: NDArray[np.float64],
    observed: NDArray[np.bool_],
    discriminations: NDArray[np.float64],
    difficulties: NDArray[np.float64],
    config: CalibrationConfig,
    start: NDArray[np.float64] | None = None,
) -> NDArray[np.float64]:
    """
    Run the θ Newton-Raphson iteration for every row of a response matrix.

    Args:
        responses: 0/1 responses, shape (n_respondents, n_items).
        observed: True where a response exists, shape (n_respondents, n_items).
        discriminations: Item discriminations, shape (n_items,).
        difficulties: Item difficulties, shape (n_items,).
        config: Calibration configuration.
        start: Starting θ per respondent. Defaults to INITIAL_THETA.

    Returns:
        New θ per respondent, shape (n_respondents,). Rows without any
        observed response stay at the starting value.
    """
    convergence = config.convergence
    theta_bounds = config.bounds.theta

    weights = observed.astype(np.float64)
    a = discriminations[np.newaxis, :]
    b = difficulties[np.newaxis, :]

    if start is None:
        theta = np.full(responses.shape[0], INITIAL_THETA, dtype=np.float64)
    else:
        theta = clamp_array(np.array(start, dtype=np.float64), theta_bounds)
    active = np.ones(responses.shape[0], dtype=np.bool_)

    def log_likelihood(values: NDArray[np.float64]) -> NDArray[np.float64]:
        ll = log_likelihoods(responses, values[:, np.newaxis], a, b)
        return weighted_sum(ll, weights, axis=1)

    for _ in range(convergence.max_newton_iterations):
        if not active.any():
            break

        p = probabilities(theta[:, np.newaxis], a, b)
        pq = p * (1.0 - p)
        gradient = np.sum(weights * a * (responses - p), axis=1)
        information = -np.sum(weights * a * pq * a, axis=1)

        stepping = active & (np.abs(information) >= INFORMATION_EPSILON)
        step = np.zeros_like(theta)
        np.divide(gradient, information, out=step, where=stepping)

        updated = ascend(theta, step, stepping, log_likelihood, theta_bounds)
        active = stepping & (
            np.abs(updated - theta) >= convergence.newton_tolerance
        )
        theta = updated

    return clamp_array(theta, theta_bounds)


def estimate_theta(
    responses: ArrayLike,
    discriminations: ArrayLike,
    difficulties: ArrayLike,
    config: CalibrationConfig | None = None,
) -> float:
    """
    Estimate ability for one respondent.

    Args:
        responses: Correct (1/True) or incorrect (0/False) per item.
        discriminations: Discrimination per item, same length.
        difficulties: Difficulty per item, same length.
        config: Calibration configuration. Uses defaults if None.

    Returns:
        θ within the configured bounds (default [-4, 4]).

    Raises:
        ValueError: If the three inputs differ in length.
    """
    if config is None:
        config = CalibrationConfig()

    u = np.asarray(responses, dtype=np.float64).ravel()
    a = np.asarray(discriminations, dtype=np.float64).ravel()
    b = np.asarray(difficulties, dtype=np.float64).ravel()
    if not len(u) == len(a) == len(b):
        raise ValueError(
            f"responses, discriminations and difficulties must have same "
            f"length, got {len(u)}, {len(a)} and {len(b)}"
        )

    thetas = newton_thetas(
        u[np.newaxis, :],
        np.ones((1, len(u)), dtype=np.bool_),
        a,
        b,
        config,
    )
    return float(thetas[0])


def estimate_abilities(
    data: ResponseMatrix,
    items: ItemParameterSet,
    config: CalibrationConfig | None = None,
    start: AbilitySet | None = None,
) -> AbilitySet:
    """
    Ability phase: estimate θ for every respondent from an item snapshot.

    Args:
        data: Response matrix.
        items: Current item parameters.
        config: Calibration configuration. Uses defaults if None.
        start: Abilities to start Newton-Raphson from. If None, every
            respondent starts at θ = 0.

    Returns:
        New AbilitySet; ``items`` and ``start`` are not modified.
    """
    if config is None:
        config = CalibrationConfig()

    if items.n_items != data.n_items:
        raise ValueError(
            f"item parameters cover {items.n_items} items, "
            f"response matrix has {data.n_items}"
        )
    if start is not None and start.n_respondents != data.n_respondents:
        raise ValueError(
            f"starting abilities cover {start.n_respondents} respondents, "
            f"response matrix has {data.n_respondents}"
        )

    thetas = newton_thetas(
        data.responses,
        data.observed,
        items.discriminations,
        items.difficulties,
        config,
        start=None if start is None else start.thetas,
    )
    return AbilitySet(thetas)
