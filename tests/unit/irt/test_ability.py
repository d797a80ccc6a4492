import numpy as np
import pytest

from calibration_service.core.data_models import ResponseMatrix
from calibration_service.irt.ability import (
    estimate_abilities,
    estimate_theta,
    newton_thetas,
)
from calibration_service.irt.config import (
    CalibrationConfig,
    ConvergenceConfig,
)
from calibration_service.irt.parameters import AbilitySet, ItemParameterSet
from calibration_service.irt.probability import probabilities


class TestEstimateTheta:
    def test_all_correct_hits_upper_bound(self) -> None:
        theta = estimate_theta([1, 1, 1], [1.0, 1.0, 1.0], [0.0, 0.0, 0.0])
        assert theta == pytest.approx(4.0)

    def test_all_incorrect_hits_lower_bound(self) -> None:
        theta = estimate_theta([0, 0, 0], [1.0, 1.0, 1.0], [0.0, 0.0, 0.0])
        assert theta == pytest.approx(-4.0)

    def test_five_of_five(self) -> None:
        a = [1.0, 1.2, 0.8, 1.5, 1.0]
        b = [-1.0, -0.5, 0.0, 0.5, 1.0]

        assert 1.0 < estimate_theta([1] * 5, a, b) <= 4.0
        assert -4.0 <= estimate_theta([0] * 5, a, b) < -1.0

    def test_mixed_pattern_is_interior(self) -> None:
        theta = estimate_theta(
            [True, True, False], [1.0, 1.0, 1.0], [-1.0, 0.0, 1.0]
        )

        assert np.isfinite(theta)
        assert abs(theta) < 2.0

    def test_all_correct_beats_all_incorrect(self) -> None:
        a = [1.0] * 5
        b = [-2.0, -1.0, 0.0, 1.0, 2.0]

        assert estimate_theta([1] * 5, a, b) > estimate_theta([0] * 5, a, b)

    def test_balanced_responses_stay_at_zero(self) -> None:
        theta = estimate_theta([1, 0], [1.0, 1.0], [0.0, 0.0])
        assert theta == pytest.approx(0.0)

    def test_solves_score_equation(self) -> None:
        u = np.array([1.0, 1.0, 0.0, 1.0, 0.0])
        a = np.array([0.8, 1.2, 1.0, 1.5, 0.9])
        b = np.array([-1.0, -0.5, 0.0, 0.5, 1.0])

        theta = estimate_theta(u, a, b)

        gradient = np.sum(a * (u - probabilities(theta, a, b)))
        assert abs(gradient) < 1e-3
        assert -4.0 < theta < 4.0

    def test_more_correct_answers_raise_theta(self) -> None:
        a = [1.0, 1.0, 1.0]
        b = [-1.0, 0.0, 1.0]

        low = estimate_theta([1, 0, 0], a, b)
        high = estimate_theta([1, 1, 0], a, b)

        assert high > low

    def test_accepts_booleans(self) -> None:
        a = [1.0, 1.0, 1.0]
        b = [-1.0, 0.0, 1.0]

        assert estimate_theta([True, True, False], a, b) == pytest.approx(
            estimate_theta([1, 1, 0], a, b)
        )

    def test_zero_information_keeps_start_value(self) -> None:
        assert estimate_theta([1, 1], [0.0, 0.0], [0.0, 0.0]) == 0.0

    def test_no_responses(self) -> None:
        assert estimate_theta([], [], []) == 0.0

    def test_length_mismatch_raises(self) -> None:
        with pytest.raises(ValueError, match="same length"):
            estimate_theta([1, 0], [1.0], [0.0, 0.0])

    def test_extreme_parameters_stay_finite(self) -> None:
        for a in (-10.0, 0.01, 100.0):
            for b in (-100.0, 0.0, 100.0):
                theta = estimate_theta([1, 0, 1], [a] * 3, [b] * 3)
                assert np.isfinite(theta)
                assert -4.0 <= theta <= 4.0


class TestEstimateAbilities:
    def test_one_theta_per_respondent(self) -> None:
        data = ResponseMatrix.from_dense(
            np.array([[1, 1, 1], [1, 0, 0], [0, 0, 0]], dtype=np.float64)
        )
        items = ItemParameterSet.create_default(3)

        abilities = estimate_abilities(data, items)

        assert abilities.n_respondents == 3
        assert abilities.thetas[0] > abilities.thetas[1]
        assert abilities.thetas[1] > abilities.thetas[2]

    def test_matches_single_respondent_estimate(self) -> None:
        dense = np.array([[1, 0, 1, 1], [0, 1, 0, 0]], dtype=np.float64)
        items = ItemParameterSet([0.8, 1.0, 1.3, 0.6], [-1.0, 0.0, 0.5, 1.0])

        abilities = estimate_abilities(ResponseMatrix.from_dense(dense), items)

        for j in range(2):
            assert abilities.thetas[j] == pytest.approx(
                estimate_theta(
                    dense[j], items.discriminations, items.difficulties
                )
            )

    def test_unobserved_cells_are_ignored(self) -> None:
        observed = np.array([[True, True, False], [True, True, False]])
        data = ResponseMatrix(
            item_ids=("q1", "q2", "q3"),
            respondent_ids=("r1", "r2"),
            responses=np.array([[1.0, 0.0, 0.0], [1.0, 0.0, 1.0]]),
            observed=observed,
            p_values=np.array([1.0, 0.0, 0.5]),
        )
        items = ItemParameterSet([1.0, 1.2, 0.9], [-0.5, 0.5, 0.0])

        abilities = estimate_abilities(data, items)

        assert abilities.thetas[0] == pytest.approx(abilities.thetas[1])

    def test_item_count_mismatch_raises(self) -> None:
        data = ResponseMatrix.from_dense(np.ones((2, 3)))

        with pytest.raises(ValueError, match="item parameters cover"):
            estimate_abilities(data, ItemParameterSet.create_default(2))

    def test_starting_abilities_length_mismatch_raises(self) -> None:
        data = ResponseMatrix.from_dense(np.ones((2, 3)))

        with pytest.raises(ValueError, match="starting abilities cover"):
            estimate_abilities(
                data,
                ItemParameterSet.create_default(3),
                start=AbilitySet.create_default(5),
            )

    def test_warm_start_reaches_the_cold_start_estimate(self) -> None:
        dense = np.array(
            [[1, 0, 1, 1], [0, 1, 0, 0], [1, 1, 0, 0]], dtype=np.float64
        )
        data = ResponseMatrix.from_dense(dense)
        items = ItemParameterSet([0.8, 1.0, 1.3, 0.6], [-1.0, 0.0, 0.5, 1.0])

        cold = estimate_abilities(data, items)
        warm = estimate_abilities(
            data, items, start=AbilitySet([2.5, -3.0, 1.0])
        )

        np.testing.assert_allclose(warm.thetas, cold.thetas, atol=1e-3)


class TestNewtonThetas:
    def test_starts_from_supplied_values(self) -> None:
        responses = np.array([[1.0, 0.0, 1.0]])
        observed = np.ones((1, 3), dtype=np.bool_)
        a = np.ones(3)
        b = np.array([-1.0, 0.0, 1.0])
        one_step = CalibrationConfig(
            convergence=ConvergenceConfig(max_newton_iterations=1)
        )

        from_zero = newton_thetas(responses, observed, a, b, one_step)
        from_two = newton_thetas(
            responses, observed, a, b, one_step, start=np.array([2.0])
        )

        assert from_zero[0] != pytest.approx(from_two[0])

    def test_out_of_bounds_start_is_clamped(self) -> None:
        responses = np.array([[0.0, 0.0]])
        observed = np.ones((1, 2), dtype=np.bool_)

        thetas = newton_thetas(
            responses,
            observed,
            np.zeros(2),
            np.zeros(2),
            CalibrationConfig(),
            start=np.array([9.0]),
        )

        assert thetas[0] == 4.0

    def test_steep_items_do_not_bounce_between_bounds(self) -> None:
        # From θ = 3.5 the raw Newton step lands far below -4; the
        # likelihood is symmetric about 0 so clamped steps alone would
        # alternate between the bounds.
        responses = np.array([[1.0, 0.0]])
        observed = np.ones((1, 2), dtype=np.bool_)

        thetas = newton_thetas(
            responses,
            observed,
            np.array([4.0, 4.0]),
            np.array([-0.5, 0.5]),
            CalibrationConfig(),
            start=np.array([3.5]),
        )

        assert thetas[0] == pytest.approx(0.0, abs=1e-3)
