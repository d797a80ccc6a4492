"""
External collaborators of the calibration service.

The numeric core never touches these; CalibrationService receives them
explicitly and only uses them at its boundary.
"""

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from pydantic import BaseModel, ConfigDict, field_validator

from calibration_service.core.data_models import ResponseRecord

# Fixed-precision representation of persisted IRT parameters
PERSISTED_DECIMAL_PLACES = 4
_QUANTUM = Decimal(1).scaleb(-PERSISTED_DECIMAL_PLACES)


def to_persisted_decimal(value: float) -> Decimal:
    """Round a parameter to 4 decimal places, half up."""
    return Decimal(repr(float(value))).quantize(
        _QUANTUM, rounding=ROUND_HALF_UP
    )


class ItemStatisticsRecord(BaseModel):
    """
    Persisted statistics for one item.

    Attributes:
        question_id: Item (question) identifier.
        competency_id: Competency the item measures.
        irt_discrimination: Calibrated discrimination (a), if any.
        irt_difficulty: Calibrated difficulty (b), if any.
        irt_guessing: Guessing (c); always zero for 2PL calibrations.
    """

    model_config = ConfigDict(validate_assignment=True)

    question_id: str
    competency_id: str
    irt_discrimination: Decimal | None = None
    irt_difficulty: Decimal | None = None
    irt_guessing: Decimal | None = None

    @field_validator(
        "irt_discrimination", "irt_difficulty", "irt_guessing"
    )
    @classmethod
    def _validate_finite(cls, value: Decimal | None) -> Decimal | None:
        if value is not None and not value.is_finite():
            raise ValueError(f"IRT parameters must be finite, got {value}")
        return value

    @property
    def is_calibrated(self) -> bool:
        """Whether both 2PL parameters are present."""
        return (
            self.irt_discrimination is not None
            and self.irt_difficulty is not None
        )


class ResponseSource(Protocol):
    def stream_responses(
        self, competency_id: str
    ) -> Iterable[ResponseRecord]: ...


class CompetencyLookup(Protocol):
    def exists(self, competency_id: str) -> bool: ...


class ItemStatisticsStore(Protocol):
    def find_by_competency(
        self, competency_id: str
    ) -> list[ItemStatisticsRecord]: ...

    def find_by_question_ids(
        self, question_ids: Sequence[str]
    ) -> list[ItemStatisticsRecord]: ...

    def save(
        self, record: ItemStatisticsRecord
    ) -> ItemStatisticsRecord: ...


class InMemoryResponseSource:
    """Response source over records held in memory, keyed by competency."""

    def __init__(
        self,
        responses: dict[str, Sequence[ResponseRecord]] | None = None,
    ) -> None:
        self._responses: dict[str, list[ResponseRecord]] = {
            competency_id: list(records)
            for competency_id, records in (responses or {}).items()
        }

    def add(
        self, competency_id: str, records: Iterable[ResponseRecord]
    ) -> None:
        self._responses.setdefault(competency_id, []).extend(records)

    def stream_responses(
        self, competency_id: str
    ) -> Iterable[ResponseRecord]:
        yield from self._responses.get(competency_id, [])


class InMemoryCompetencyLookup:
    def __init__(self, competency_ids: Iterable[str] = ()) -> None:
        self._competency_ids = set(competency_ids)

    def add(self, competency_id: str) -> None:
        self._competency_ids.add(competency_id)

    def exists(self, competency_id: str) -> bool:
        return competency_id in self._competency_ids


class InMemoryItemStatisticsStore:
    """Item statistics keyed by question id."""

    def __init__(
        self, records: Iterable[ItemStatisticsRecord] = ()
    ) -> None:
        self._records: dict[str, ItemStatisticsRecord] = {}
        for record in records:
            self.save(record)

    def find_by_competency(
        self, competency_id: str
    ) -> list[ItemStatisticsRecord]:
        return [
            record.model_copy()
            for record in self._records.values()
            if record.competency_id == competency_id
        ]

    def find_by_question_ids(
        self, question_ids: Sequence[str]
    ) -> list[ItemStatisticsRecord]:
        return [
            self._records[qid].model_copy()
            for qid in dict.fromkeys(question_ids)
            if qid in self._records
        ]

    def save(self, record: ItemStatisticsRecord) -> ItemStatisticsRecord:
        stored = record.model_copy()
        self._records[record.question_id] = stored
        return stored.model_copy()

    def get(self, question_id: str) -> ItemStatisticsRecord | None:
        record = self._records.get(question_id)
        return record.model_copy() if record is not None else None
