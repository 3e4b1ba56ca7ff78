"""Unit tests for slamcore.sim.landmark_world."""

import numpy as np
import pytest

from slamcore.models import MeasurementNoise, RangeBearingObservationModel
from slamcore.sim import simulate_observations, simulate_trajectory
from slamcore.slam import Control


class TestSimulateTrajectory:
    def test_shape_and_start(self):
        poses = simulate_trajectory([(1.0, 0.0)] * 5, dt=0.5, initial_pose=[1.0, 2.0, 0.0])
        assert poses.shape == (6, 3)
        np.testing.assert_allclose(poses[0], [1.0, 2.0, 0.0])
        np.testing.assert_allclose(poses[-1], [3.5, 2.0, 0.0])

    def test_full_circle_returns_home(self):
        steps = 100
        omega = 2 * np.pi / (steps * 0.1)
        poses = simulate_trajectory([Control(1.0, omega)] * steps, dt=0.1)
        np.testing.assert_allclose(poses[-1], [0.0, 0.0, 0.0], atol=1e-9)

    def test_invalid(self):
        with pytest.raises(ValueError):
            simulate_trajectory([(1.0, 0.0)], dt=0.0)
        with pytest.raises(ValueError):
            simulate_trajectory([(1.0, 0.0)], dt=0.1, initial_pose=[0.0, 0.0])


class TestSimulateObservations:
    def test_noise_free_matches_model(self):
        pose = np.array([1.0, 1.0, 0.3])
        landmarks = np.array([[4.0, 5.0], [-2.0, 0.0]])
        obs = simulate_observations(
            pose, landmarks, tags=["a", "b"], noise=MeasurementNoise(0.0, 0.0),
            rng=np.random.default_rng(0),
        )
        model = RangeBearingObservationModel()
        assert [z.tag for z in obs] == ["a", "b"]
        for z, landmark in zip(obs, landmarks):
            np.testing.assert_allclose(z.as_array(), model.h(pose, landmark), atol=1e-12)

    def test_max_range_and_default_tags(self):
        landmarks = np.array([[1.0, 0.0], [10.0, 0.0], [0.0, 2.0]])
        obs = simulate_observations(np.zeros(3), landmarks, max_range=5.0,
                                    rng=np.random.default_rng(1))
        assert [z.tag for z in obs] == [0, 2]

    def test_landmark_at_agent_is_not_observed(self):
        obs = simulate_observations(np.zeros(3), np.array([[0.0, 0.0]]),
                                    rng=np.random.default_rng(2))
        assert obs == []

    def test_reproducible(self):
        landmarks = np.array([[3.0, 4.0]])
        a = simulate_observations(np.zeros(3), landmarks, rng=np.random.default_rng(5))
        b = simulate_observations(np.zeros(3), landmarks, rng=np.random.default_rng(5))
        assert a == b

    def test_noise_statistics(self):
        rng = np.random.default_rng(11)
        noise = MeasurementNoise(sigma_range=0.2, sigma_bearing=0.05)
        ranges = [
            simulate_observations(np.zeros(3), np.array([[10.0, 0.0]]), noise=noise, rng=rng)[0].range
            for _ in range(2000)
        ]
        assert np.mean(ranges) == pytest.approx(10.0, abs=0.02)
        assert np.std(ranges) == pytest.approx(0.2, rel=0.1)

    def test_tag_count_mismatch(self):
        with pytest.raises(ValueError):
            simulate_observations(np.zeros(3), np.array([[1.0, 1.0]]), tags=["a", "b"])
