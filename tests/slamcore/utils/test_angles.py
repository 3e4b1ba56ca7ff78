"""Unit tests for slamcore.utils.angles."""

import numpy as np
import pytest

from slamcore.utils import angle_diff, wrap_angle, wrap_angle_array


class TestWrapAngle:
    """Tests for wrapping to (-pi, pi]."""

    @pytest.mark.parametrize(
        "angle,expected",
        [
            (0.0, 0.0),
            (np.pi / 2, np.pi / 2),
            (2 * np.pi, 0.0),
            (3 * np.pi / 2, -np.pi / 2),
            (-3 * np.pi / 2, np.pi / 2),
            (7.0, 7.0 - 2 * np.pi),
        ],
    )
    def test_values(self, angle, expected):
        assert wrap_angle(angle) == pytest.approx(expected, abs=1e-12)

    def test_minus_pi_maps_to_plus_pi(self):
        assert wrap_angle(-np.pi) == pytest.approx(np.pi)
        assert wrap_angle(np.pi) == pytest.approx(np.pi)

    def test_array_matches_scalar(self):
        angles = np.linspace(-10.0, 10.0, 41)
        expected = np.array([wrap_angle(a) for a in angles])
        np.testing.assert_allclose(wrap_angle_array(angles), expected, atol=1e-12)

    def test_array_range(self):
        wrapped = wrap_angle_array(np.linspace(-20.0, 20.0, 1001))
        assert np.all(wrapped > -np.pi)
        assert np.all(wrapped <= np.pi)


class TestAngleDiff:
    """Tests for the shortest signed angular difference."""

    def test_crossing_pi_gives_small_positive_difference(self):
        diff = angle_diff(-3.1, 3.1)
        assert diff == pytest.approx(2 * np.pi - 6.2, abs=1e-12)
        assert diff == pytest.approx(0.0832, abs=1e-4)

    def test_crossing_pi_other_direction(self):
        assert angle_diff(3.1, -3.1) == pytest.approx(-(2 * np.pi - 6.2), abs=1e-12)

    def test_array_input(self):
        diff = angle_diff(np.array([-3.1, 0.5]), np.array([3.1, 0.25]))
        np.testing.assert_allclose(diff, [2 * np.pi - 6.2, 0.25], atol=1e-12)
