from typing import Any


class CalibrationError(Exception):
    """Base exception for calibration failures."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = self.message
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            msg = f"{msg} (context: {ctx_str})"
        return msg


class CompetencyNotFoundError(CalibrationError):
    def __init__(self, competency_id: str) -> None:
        self.competency_id = competency_id
        super().__init__(f"Competency not found: {competency_id}")


class InsufficientDataError(CalibrationError):
    """Too few respondents or items for a stable calibration.

    Both the observed count and the required threshold are kept as
    attributes and embedded in the message.
    """

    def __init__(self, subject: str, observed: int, required: int) -> None:
        self.subject = subject
        self.observed = observed
        self.required = required
        super().__init__(f"Insufficient {subject}: {observed} < {required}")
