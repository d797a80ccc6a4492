import numpy as np
import pytest

from calibration_service.core.utils import get_rng
from calibration_service.irt.parameters import ItemParameterSet
from calibration_service.irt.sampling import (
    generate_response_records,
    sample_responses_batch,
)


class TestSampleResponsesBatch:
    def test_shape_and_values(self) -> None:
        items = ItemParameterSet([1.0, 1.5, 0.5], [-1.0, 0.0, 1.0])
        abilities = get_rng(0).standard_normal(100)

        responses = sample_responses_batch(abilities, items, get_rng(1))

        assert responses.shape == (100, 3)
        assert set(np.unique(responses)) <= {0.0, 1.0}

    def test_reproducible_with_same_seed(self) -> None:
        items = ItemParameterSet([1.0, 1.2], [0.0, 0.5])
        abilities = np.linspace(-2, 2, 50)

        first = sample_responses_batch(abilities, items, get_rng(7))
        second = sample_responses_batch(abilities, items, get_rng(7))

        np.testing.assert_array_equal(first, second)

    def test_saturated_items_are_deterministic(self) -> None:
        items = ItemParameterSet([1.0, 1.0], [-100.0, 100.0])
        abilities = np.linspace(-3, 3, 30)

        responses = sample_responses_batch(abilities, items, get_rng(2))

        np.testing.assert_array_equal(responses[:, 0], np.ones(30))
        np.testing.assert_array_equal(responses[:, 1], np.zeros(30))

    def test_proportion_correct_tracks_probability(self) -> None:
        items = ItemParameterSet([1.0], [0.0])
        abilities = np.zeros(20000)

        responses = sample_responses_batch(abilities, items, get_rng(3))

        assert responses.mean() == pytest.approx(0.5, abs=0.02)


class TestGenerateResponseRecords:
    def test_one_record_per_pair(self) -> None:
        items = ItemParameterSet.create_default(4)

        records = list(generate_response_records(items, 25, get_rng(0)))

        assert len(records) == 100
        assert {r.item_id for r in records} == {
            "item-0",
            "item-1",
            "item-2",
            "item-3",
        }
        assert len({r.respondent_id for r in records}) == 25
        assert records[0].respondent_id == "respondent-0"

    def test_custom_identifiers(self) -> None:
        items = ItemParameterSet.create_default(2)

        records = list(
            generate_response_records(
                items,
                3,
                get_rng(0),
                item_ids=["qa", "qb"],
                respondent_prefix="session",
            )
        )

        assert [r.item_id for r in records[:2]] == ["qa", "qb"]
        assert records[-1].respondent_id == "session-2"

    def test_item_id_count_mismatch_raises(self) -> None:
        items = ItemParameterSet.create_default(3)

        with pytest.raises(ValueError, match="expected 3 item ids"):
            list(generate_response_records(items, 5, item_ids=["q1"]))
