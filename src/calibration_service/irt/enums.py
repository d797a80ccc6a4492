from enum import StrEnum


class CalibrationPhase(StrEnum):
    VALIDATING = "validating"
    FILTERING = "filtering"
    ITERATING = "iterating"
    CONVERGED = "converged"
    ITERATION_LIMIT_REACHED = "iteration_limit_reached"
    FINALIZED = "finalized"
