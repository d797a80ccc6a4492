"""
Configuration dataclasses for 2PL JMLE calibration.

This module defines the configuration parameters for:
- Convergence criteria for the outer JMLE loop and inner Newton-Raphson
- Parameter bounds applied after every update
- Data requirements and extreme-item filtering
- Overall calibration settings
"""

from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as distribution_version

import toml

from calibration_service.core.paths import get_project_root_dir

DISTRIBUTION_NAME = "irt-calibration-service"

# Default parameter bounds
DEFAULT_DISCRIMINATION_BOUNDS = (0.1, 4.0)
DEFAULT_DIFFICULTY_BOUNDS = (-4.0, 4.0)
DEFAULT_THETA_BOUNDS = (-4.0, 4.0)

# Starting values for every calibration run
INITIAL_DISCRIMINATION = 1.0
INITIAL_DIFFICULTY = 0.0
INITIAL_THETA = 0.0

# Default JMLE convergence settings
DEFAULT_MAX_ITERATIONS = 100
DEFAULT_CONVERGENCE_THRESHOLD = 0.01

# Default Newton-Raphson settings for the inner loops
DEFAULT_MAX_NEWTON_ITERATIONS = 20
DEFAULT_NEWTON_TOLERANCE = 1e-4
# Step multiplier for item updates, 0 < damping <= 1
DEFAULT_NEWTON_DAMPING = 0.5
# Curvature / information below this is treated as zero
INFORMATION_EPSILON = 1e-10
# A Newton step that lowers the log-likelihood is halved at most this often
MAX_STEP_HALVINGS = 10
# Standard deviation of θ below which the JMLE scale is left untouched
MIN_THETA_SPREAD = 1e-6

# Default data requirements
# JMLE bias (incidental-parameter problem) is unacceptable below this size
DEFAULT_MIN_RESPONDENTS = 200
# Enough items to anchor the ability scale
DEFAULT_MIN_ITEMS = 3

# Default extreme-item filter: the logistic curve is not identifiable
# from finite data outside these proportions correct
DEFAULT_MIN_P_VALUE = 0.05
DEFAULT_MAX_P_VALUE = 0.95


def get_package_version() -> str:
    """
    Installed distribution version, or the one in pyproject.toml when the
    package runs from a source checkout without being installed.
    """
    try:
        return distribution_version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        pass

    root_dir = get_project_root_dir()
    with open(root_dir / "pyproject.toml") as f:
        data = toml.load(f)

    version = data.get("project", {}).get("version")

    if not version:
        raise ValueError("Version not found in pyproject.toml")

    assert isinstance(version, str)
    return version


@dataclass(frozen=True)
class ConvergenceConfig:
    """
    Configuration for JMLE and Newton-Raphson convergence.

    Attributes:
        max_iterations: Maximum number of outer JMLE iterations.
        convergence_threshold: JMLE stops when the largest absolute change
            in any discrimination or difficulty falls below this value.
        max_newton_iterations: Maximum Newton-Raphson steps per estimate.
        newton_tolerance: Newton-Raphson stops when |step| < tolerance.
        damping: Step multiplier for the item parameter updates.
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    convergence_threshold: float = DEFAULT_CONVERGENCE_THRESHOLD
    max_newton_iterations: int = DEFAULT_MAX_NEWTON_ITERATIONS
    newton_tolerance: float = DEFAULT_NEWTON_TOLERANCE
    damping: float = DEFAULT_NEWTON_DAMPING

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError(
                f"max_iterations must be >= 1, got {self.max_iterations}"
            )
        if not 0.0 < self.damping <= 1.0:
            raise ValueError(
                f"damping must be in (0, 1], got {self.damping}"
            )


@dataclass(frozen=True)
class ParameterBounds:
    """
    Bounds applied after every parameter update.

    Attributes:
        discrimination: (min, max) bounds for discrimination (a).
        difficulty: (min, max) bounds for difficulty (b).
        theta: (min, max) bounds for ability (θ).
    """

    discrimination: tuple[float, float] = DEFAULT_DISCRIMINATION_BOUNDS
    difficulty: tuple[float, float] = DEFAULT_DIFFICULTY_BOUNDS
    theta: tuple[float, float] = DEFAULT_THETA_BOUNDS


@dataclass(frozen=True)
class FilterConfig:
    """
    Data requirements checked before calibration.

    Attributes:
        min_respondents: Minimum number of distinct respondents.
        min_items: Minimum number of items left after filtering.
        min_p_value: Items with proportion correct below this are excluded.
        max_p_value: Items with proportion correct above this are excluded.
    """

    min_respondents: int = DEFAULT_MIN_RESPONDENTS
    min_items: int = DEFAULT_MIN_ITEMS
    min_p_value: float = DEFAULT_MIN_P_VALUE
    max_p_value: float = DEFAULT_MAX_P_VALUE

    def __post_init__(self) -> None:
        if not 0.0 <= self.min_p_value < self.max_p_value <= 1.0:
            raise ValueError(
                "p-value bounds must satisfy 0 <= min < max <= 1, "
                f"got ({self.min_p_value}, {self.max_p_value})"
            )


@dataclass(frozen=True)
class CalibrationConfig:
    """
    Master configuration for 2PL calibration.

    Attributes:
        convergence: Convergence criteria for JMLE and Newton-Raphson.
        bounds: Parameter bounds.
        filtering: Data requirements and extreme-item filter.
    """

    convergence: ConvergenceConfig = field(default_factory=ConvergenceConfig)
    bounds: ParameterBounds = field(default_factory=ParameterBounds)
    filtering: FilterConfig = field(default_factory=FilterConfig)