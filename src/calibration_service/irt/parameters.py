"""
Parameter snapshots for 2PL JMLE.

Each JMLE phase reads one immutable snapshot and produces a new one:
    (ItemParameterSet, AbilitySet) -> (ItemParameterSet, AbilitySet)

Arrays are copied and marked read-only on construction, so a phase can
never observe a partially updated peer value.
"""

from dataclasses import dataclass
from typing import Self

import numpy as np
from numpy.typing import ArrayLike, NDArray

from calibration_service.irt.config import (
    INITIAL_DIFFICULTY,
    INITIAL_DISCRIMINATION,
    INITIAL_THETA,
)


def _frozen(values: ArrayLike) -> NDArray[np.float64]:
    arr = np.array(values, dtype=np.float64, copy=True)
    if arr.ndim != 1:
        raise ValueError(f"expected a 1D array, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, init=False)
class ItemParameterSet:
    """
    Discrimination and difficulty for every item of one calibration run.

    Attributes:
        discriminations: Slope parameters (a), shape (n_items,).
        difficulties: Location parameters (b), shape (n_items,).
    """

    discriminations: NDArray[np.float64]
    difficulties: NDArray[np.float64]

    def __init__(self, discriminations: ArrayLike, difficulties: ArrayLike):
        a = _frozen(discriminations)
        b = _frozen(difficulties)
        if a.shape != b.shape:
            raise ValueError(
                f"discriminations and difficulties must have same length, "
                f"got {len(a)} and {len(b)}"
            )
        object.__setattr__(self, "discriminations", a)
        object.__setattr__(self, "difficulties", b)

    @property
    def n_items(self) -> int:
        """Number of items."""
        return len(self.discriminations)

    @classmethod
    def create_default(cls, n_items: int) -> Self:
        """Starting values: a = 1.0 and b = 0.0 for every item."""
        return cls(
            discriminations=np.full(n_items, INITIAL_DISCRIMINATION),
            difficulties=np.full(n_items, INITIAL_DIFFICULTY),
        )

    def max_change(self, other: "ItemParameterSet") -> float:
        """Largest absolute change in any a or b between two snapshots."""
        if other.n_items != self.n_items:
            raise ValueError(
                f"cannot compare {self.n_items} items with {other.n_items}"
            )
        if self.n_items == 0:
            return 0.0
        delta_a = np.abs(self.discriminations - other.discriminations)
        delta_b = np.abs(self.difficulties - other.difficulties)
        return float(max(delta_a.max(), delta_b.max()))


@dataclass(frozen=True, init=False)
class AbilitySet:
    """
    Ability estimates for every respondent of one calibration run.

    Attributes:
        thetas: Abilities (θ), shape (n_respondents,).
    """

    thetas: NDArray[np.float64]

    def __init__(self, thetas: ArrayLike):
        object.__setattr__(self, "thetas", _frozen(thetas))

    @property
    def n_respondents(self) -> int:
        """Number of respondents."""
        return len(self.thetas)

    @classmethod
    def create_default(cls, n_respondents: int) -> Self:
        """Starting values: θ = 0.0 for every respondent."""
        return cls(np.full(n_respondents, INITIAL_THETA))
