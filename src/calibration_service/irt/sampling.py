"""
Response sampling for the 2PL model.

This module provides functions to sample binary responses given abilities
and item parameters, for simulation and parameter-recovery checks.
"""

from collections.abc import Iterator, Sequence

import numpy as np
from numpy.random import Generator
from numpy.typing import NDArray

from calibration_service.core.data_models import ResponseRecord
from calibration_service.core.utils import get_rng
from calibration_service.irt.parameters import ItemParameterSet
from calibration_service.irt.probability import probabilities


def sample_responses_batch(
    abilities: NDArray[np.float64],
    items: ItemParameterSet,
    rng: Generator | None = None,
) -> NDArray[np.float64]:
    """
    Sample responses for all respondents and items.

    Args:
        abilities: Array of shape (n_respondents,) with ability values.
        items: True item parameters.
        rng: Random number generator.

    Returns:
        Array of shape (n_respondents, n_items) with 0/1 responses.
    """
    if rng is None:
        rng = get_rng()

    probs = probabilities(
        abilities[:, np.newaxis],
        items.discriminations[np.newaxis, :],
        items.difficulties[np.newaxis, :],
    )
    u = rng.random(probs.shape)
    sampled: NDArray[np.float64] = (u < probs).astype(np.float64)
    return sampled


def generate_response_records(
    items: ItemParameterSet,
    n_respondents: int,
    rng: Generator | None = None,
    item_ids: Sequence[str] | None = None,
    respondent_prefix: str = "respondent",
) -> Iterator[ResponseRecord]:
    """
    Generate a synthetic response stream from known 2PL parameters.

    Abilities are drawn from N(0, 1). Every respondent answers every item.

    Args:
        items: True item parameters.
        n_respondents: Number of simulated respondents.
        rng: Random number generator.
        item_ids: Identifiers per item. Defaults to ``item-<i>``.
        respondent_prefix: Prefix of generated respondent identifiers.

    Yields:
        One ResponseRecord per respondent/item pair, grouped by respondent.
    """
    if rng is None:
        rng = get_rng()
    if item_ids is None:
        item_ids = [f"item-{i}" for i in range(items.n_items)]
    if len(item_ids) != items.n_items:
        raise ValueError(
            f"expected {items.n_items} item ids, got {len(item_ids)}"
        )

    abilities = rng.standard_normal(n_respondents)
    responses = sample_responses_batch(abilities, items, rng)

    for j in range(n_respondents):
        respondent_id = f"{respondent_prefix}-{j}"
        for i, item_id in enumerate(item_ids):
            yield ResponseRecord(
                respondent_id=respondent_id,
                item_id=item_id,
                response=float(responses[j, i]),
            )
