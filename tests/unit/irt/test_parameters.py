import numpy as np
import pytest

from calibration_service.irt.parameters import AbilitySet, ItemParameterSet


class TestItemParameterSet:
    def test_create_default(self) -> None:
        items = ItemParameterSet.create_default(5)

        assert items.n_items == 5
        np.testing.assert_array_equal(items.discriminations, np.ones(5))
        np.testing.assert_array_equal(items.difficulties, np.zeros(5))

    def test_arrays_are_read_only(self) -> None:
        items = ItemParameterSet.create_default(3)

        with pytest.raises(ValueError):
            items.difficulties[0] = 1.0

    def test_copies_input(self) -> None:
        a = np.array([1.0, 2.0])
        items = ItemParameterSet(a, [0.0, 0.5])

        a[0] = 3.0

        assert items.discriminations[0] == 1.0

    def test_length_mismatch_raises(self) -> None:
        with pytest.raises(ValueError, match="same length"):
            ItemParameterSet([1.0, 1.0], [0.0])

    def test_rejects_2d_input(self) -> None:
        with pytest.raises(ValueError, match="1D"):
            ItemParameterSet(np.ones((2, 2)), np.zeros((2, 2)))

    def test_max_change(self) -> None:
        old = ItemParameterSet([1.0, 1.0], [0.0, 0.0])
        new = ItemParameterSet([1.2, 0.9], [-0.5, 0.1])

        assert new.max_change(old) == pytest.approx(0.5)
        assert old.max_change(new) == pytest.approx(0.5)

    def test_max_change_of_empty_sets(self) -> None:
        empty = ItemParameterSet.create_default(0)
        assert empty.max_change(empty) == 0.0

    def test_max_change_size_mismatch_raises(self) -> None:
        with pytest.raises(ValueError, match="cannot compare"):
            ItemParameterSet.create_default(2).max_change(
                ItemParameterSet.create_default(3)
            )


class TestAbilitySet:
    def test_create_default(self) -> None:
        abilities = AbilitySet.create_default(4)

        assert abilities.n_respondents == 4
        np.testing.assert_array_equal(abilities.thetas, np.zeros(4))

    def test_arrays_are_read_only(self) -> None:
        abilities = AbilitySet([0.1, 0.2])

        with pytest.raises(ValueError):
            abilities.thetas[1] = 0.0
