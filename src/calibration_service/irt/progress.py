from collections.abc import Callable

from calibration_service.irt.enums import CalibrationPhase

ProgressCallback = Callable[[CalibrationPhase, int, int | None, str], None]
