from calibration_service.errors import (
    CalibrationError,
    CompetencyNotFoundError,
    InsufficientDataError,
)


def test_calibration_error_formats_context() -> None:
    error = CalibrationError("Calibration failed", {"competency_id": "c1"})

    assert str(error) == "Calibration failed (context: competency_id=c1)"
    assert error.context == {"competency_id": "c1"}


def test_calibration_error_without_context() -> None:
    assert str(CalibrationError("Calibration failed")) == "Calibration failed"


def test_competency_not_found() -> None:
    error = CompetencyNotFoundError("c1")

    assert isinstance(error, CalibrationError)
    assert error.competency_id == "c1"
    assert str(error) == "Competency not found: c1"


def test_insufficient_data_message() -> None:
    error = InsufficientDataError("respondents", 50, 200)

    assert isinstance(error, CalibrationError)
    assert (error.subject, error.observed, error.required) == (
        "respondents",
        50,
        200,
    )
    assert str(error) == "Insufficient respondents: 50 < 200"
