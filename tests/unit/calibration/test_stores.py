from decimal import Decimal

import pytest
from pydantic import ValidationError

from calibration_service.calibration.stores import (
    InMemoryCompetencyLookup,
    InMemoryItemStatisticsStore,
    InMemoryResponseSource,
    ItemStatisticsRecord,
    to_persisted_decimal,
)
from calibration_service.core.data_models import ResponseRecord


class TestToPersistedDecimal:
    def test_rounds_half_up_to_four_places(self) -> None:
        assert to_persisted_decimal(0.12345) == Decimal("0.1235")
        assert to_persisted_decimal(-0.00005) == Decimal("-0.0001")
        assert to_persisted_decimal(1.23444) == Decimal("1.2344")

    def test_keeps_four_place_scale(self) -> None:
        assert str(to_persisted_decimal(1.0)) == "1.0000"
        assert str(to_persisted_decimal(0.0)) == "0.0000"


class TestItemStatisticsRecord:
    def test_is_calibrated(self) -> None:
        record = ItemStatisticsRecord(question_id="q1", competency_id="c1")
        assert not record.is_calibrated

        record.irt_discrimination = Decimal("1.2000")
        assert not record.is_calibrated

        record.irt_difficulty = Decimal("-0.5000")
        assert record.is_calibrated

    def test_rejects_non_finite_parameters(self) -> None:
        record = ItemStatisticsRecord(question_id="q1", competency_id="c1")

        with pytest.raises(ValidationError):
            record.irt_difficulty = Decimal("NaN")

        with pytest.raises(ValidationError):
            ItemStatisticsRecord(
                question_id="q1",
                competency_id="c1",
                irt_discrimination=Decimal("Infinity"),
            )


class TestInMemoryItemStatisticsStore:
    def test_find_by_competency(self) -> None:
        store = InMemoryItemStatisticsStore(
            [
                ItemStatisticsRecord(question_id="q1", competency_id="c1"),
                ItemStatisticsRecord(question_id="q2", competency_id="c2"),
                ItemStatisticsRecord(question_id="q3", competency_id="c1"),
            ]
        )

        found = store.find_by_competency("c1")

        assert [r.question_id for r in found] == ["q1", "q3"]

    def test_find_by_question_ids_skips_unknown(self) -> None:
        store = InMemoryItemStatisticsStore(
            [ItemStatisticsRecord(question_id="q1", competency_id="c1")]
        )

        found = store.find_by_question_ids(["q1", "missing", "q1"])

        assert [r.question_id for r in found] == ["q1"]

    def test_returned_records_are_copies(self) -> None:
        store = InMemoryItemStatisticsStore(
            [ItemStatisticsRecord(question_id="q1", competency_id="c1")]
        )

        record = store.find_by_competency("c1")[0]
        record.irt_difficulty = Decimal("1.0000")

        stored = store.get("q1")
        assert stored is not None
        assert stored.irt_difficulty is None

    def test_save_replaces_record(self) -> None:
        store = InMemoryItemStatisticsStore()

        store.save(
            ItemStatisticsRecord(
                question_id="q1",
                competency_id="c1",
                irt_difficulty=Decimal("0.5000"),
            )
        )

        stored = store.get("q1")
        assert stored is not None
        assert stored.irt_difficulty == Decimal("0.5000")
        assert store.get("q2") is None


class TestInMemorySources:
    def test_response_source_streams_per_competency(self) -> None:
        source = InMemoryResponseSource(
            {"c1": [ResponseRecord("r1", "q1", 1.0)]}
        )
        source.add("c1", [ResponseRecord("r2", "q1", 0.0)])

        assert [r.respondent_id for r in source.stream_responses("c1")] == [
            "r1",
            "r2",
        ]
        assert list(source.stream_responses("c2")) == []

    def test_competency_lookup(self) -> None:
        lookup = InMemoryCompetencyLookup(["c1"])
        lookup.add("c2")

        assert lookup.exists("c1")
        assert lookup.exists("c2")
        assert not lookup.exists("c3")
