from pydantic import Field
from pydantic_settings import BaseSettings

from calibration_service.irt.config import (
    DEFAULT_CONVERGENCE_THRESHOLD,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MAX_NEWTON_ITERATIONS,
    DEFAULT_MAX_P_VALUE,
    DEFAULT_MIN_ITEMS,
    DEFAULT_MIN_P_VALUE,
    DEFAULT_MIN_RESPONDENTS,
    DEFAULT_NEWTON_DAMPING,
    DEFAULT_NEWTON_TOLERANCE,
    CalibrationConfig,
    ConvergenceConfig,
    FilterConfig,
)

IRT_ENV_PREFIX = "IRT_"


class CalibrationSettings(BaseSettings):
    model_config = {"env_prefix": IRT_ENV_PREFIX}

    min_respondents: int = Field(default=DEFAULT_MIN_RESPONDENTS, ge=1)
    min_items: int = Field(default=DEFAULT_MIN_ITEMS, ge=1)
    min_p_value: float = Field(default=DEFAULT_MIN_P_VALUE, ge=0, le=1)
    max_p_value: float = Field(default=DEFAULT_MAX_P_VALUE, ge=0, le=1)
    max_iterations: int = Field(default=DEFAULT_MAX_ITERATIONS, ge=1)
    convergence_threshold: float = Field(
        default=DEFAULT_CONVERGENCE_THRESHOLD, gt=0
    )
    max_newton_iterations: int = Field(
        default=DEFAULT_MAX_NEWTON_ITERATIONS, ge=1
    )
    newton_tolerance: float = Field(default=DEFAULT_NEWTON_TOLERANCE, gt=0)
    newton_damping: float = Field(default=DEFAULT_NEWTON_DAMPING, gt=0, le=1)

    def to_domain(self) -> CalibrationConfig:
        convergence = ConvergenceConfig(
            max_iterations=self.max_iterations,
            convergence_threshold=self.convergence_threshold,
            max_newton_iterations=self.max_newton_iterations,
            newton_tolerance=self.newton_tolerance,
            damping=self.newton_damping,
        )
        filtering = FilterConfig(
            min_respondents=self.min_respondents,
            min_items=self.min_items,
            min_p_value=self.min_p_value,
            max_p_value=self.max_p_value,
        )
        return CalibrationConfig(convergence=convergence, filtering=filtering)
