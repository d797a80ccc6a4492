"""
Two-parameter logistic (2PL) response probability.

    P(correct | θ, a, b) = 1 / (1 + exp(-a * (θ - b)))

The exponent is guarded rather than clipped: beyond ±EXPONENT_LIMIT the
probability saturates to exactly 0.0 or 1.0, so the result is finite and
never NaN for any finite θ, a, b.
"""

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import expit

# Exponent magnitude beyond which the logistic is treated as saturated
EXPONENT_LIMIT = 35.0


def probability(theta: float, a: float, b: float) -> float:
    """
    Probability of a correct response for one respondent/item pair.

    Args:
        theta: Ability.
        a: Discrimination. ``a = 0`` gives exactly 0.5; negative values
            invert the curve.
        b: Difficulty.

    Returns:
        Probability in [0, 1].
    """
    exponent = -a * (theta - b)
    if exponent > EXPONENT_LIMIT:
        return 0.0
    if exponent < -EXPONENT_LIMIT:
        return 1.0
    return 1.0 / (1.0 + math.exp(exponent))


def probabilities(
    theta: ArrayLike, a: ArrayLike, b: ArrayLike
) -> NDArray[np.float64]:
    """
    Broadcast form of :func:`probability`.

    Args:
        theta: Abilities, any shape broadcastable against ``a`` and ``b``.
        a: Discriminations.
        b: Difficulties.

    Returns:
        Probabilities with the broadcast shape of the inputs.
    """
    theta_arr = np.asarray(theta, dtype=np.float64)
    a_arr = np.asarray(a, dtype=np.float64)
    b_arr = np.asarray(b, dtype=np.float64)

    # Products of huge finite inputs may overflow to inf; inf is
    # handled by the saturation branches below.
    with np.errstate(over="ignore", invalid="ignore"):
        exponent = -a_arr * (theta_arr - b_arr)

    inside = np.clip(exponent, -EXPONENT_LIMIT, EXPONENT_LIMIT)
    probs: NDArray[np.float64] = expit(-inside)
    probs = np.where(exponent > EXPONENT_LIMIT, 0.0, probs)
    probs = np.where(exponent < -EXPONENT_LIMIT, 1.0, probs)
    return probs


def log_likelihoods(
    responses: ArrayLike, theta: ArrayLike, a: ArrayLike, b: ArrayLike
) -> NDArray[np.float64]:
    """
    Log-likelihood of each 0/1 response, broadcast like :func:`probabilities`.

        u = 1: log P       = -log(1 + exp(-a(θ - b)))
        u = 0: log (1 - P) = -log(1 + exp(a(θ - b)))

    Evaluated with ``logaddexp`` so saturated responses give large finite
    penalties instead of log(0).
    """
    u = np.asarray(responses, dtype=np.float64)
    theta_arr = np.asarray(theta, dtype=np.float64)
    a_arr = np.asarray(a, dtype=np.float64)
    b_arr = np.asarray(b, dtype=np.float64)

    with np.errstate(over="ignore", invalid="ignore"):
        logit = a_arr * (theta_arr - b_arr)
        result: NDArray[np.float64] = -np.logaddexp(
            0.0, np.where(u > 0.5, -logit, logit)
        )
    return result
