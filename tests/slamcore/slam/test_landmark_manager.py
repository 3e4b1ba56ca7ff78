"""Unit tests for slamcore.slam.landmark_manager (association and initialization)."""

import warnings

import numpy as np
import pytest

from slamcore.errors import (
    DegenerateObservationError,
    DimensionMismatchError,
    InvalidInputError,
)
from slamcore.models import MeasurementNoise
from slamcore.slam import (
    ExistingLandmark,
    JointState,
    LandmarkManager,
    NewLandmark,
    Observation,
)
from slamcore.utils import linalg


@pytest.fixture
def noise():
    return MeasurementNoise(sigma_range=0.1, sigma_bearing=0.02)


@pytest.fixture
def origin_state():
    return JointState(np.zeros(3), np.zeros((3, 3)))


class TestResolve:
    """Index/tag association policy."""

    def test_unseen_tag_is_new(self, origin_state):
        manager = LandmarkManager()
        assert manager.resolve(origin_state, Observation(5.0, 0.0, tag="a")) == NewLandmark()

    def test_untagged_is_always_new(self, origin_state, noise):
        manager = LandmarkManager()
        manager.commit_new_landmark(origin_state, Observation(5.0, 0.0), noise)
        assert manager.resolve(origin_state, Observation(5.0, 0.0)) == NewLandmark()

    def test_known_tag(self, origin_state, noise):
        manager = LandmarkManager()
        manager.commit_new_landmark(origin_state, Observation(5.0, 0.0, tag="a"), noise)
        manager.commit_new_landmark(origin_state, Observation(5.0, 1.0, tag="b"), noise)
        assert manager.resolve(origin_state, Observation(4.0, 1.0, tag="b")) == ExistingLandmark(1)

    def test_explicit_index(self, origin_state, noise):
        manager = LandmarkManager()
        manager.commit_new_landmark(origin_state, Observation(5.0, 0.0), noise)
        z = Observation(5.0, 0.0, landmark_index=0)
        assert manager.resolve(origin_state, z) == ExistingLandmark(0)

    def test_unknown_index_rejected(self, origin_state):
        manager = LandmarkManager()
        with pytest.raises(InvalidInputError):
            manager.resolve(origin_state, Observation(5.0, 0.0, landmark_index=0))

    def test_conflicting_index_and_tag(self, origin_state, noise):
        manager = LandmarkManager()
        manager.commit_new_landmark(origin_state, Observation(5.0, 0.0, tag="a"), noise)
        manager.commit_new_landmark(origin_state, Observation(5.0, 1.0, tag="b"), noise)
        with pytest.raises(InvalidInputError):
            manager.resolve(origin_state, Observation(5.0, 0.0, tag="a", landmark_index=1))

    def test_index_binds_unregistered_tag(self, origin_state, noise):
        manager = LandmarkManager()
        manager.commit_new_landmark(origin_state, Observation(5.0, 0.0), noise)
        observation = Observation(5.0, 0.0, tag="A", landmark_index=0)
        assert manager.resolve(origin_state, observation) == ExistingLandmark(0)
        assert manager.index_of("A") == 0
        assert manager.tags == ["A"]
        # A tag-only sighting now finds the same landmark
        assert manager.resolve(origin_state, Observation(5.0, 0.0, tag="A")) == ExistingLandmark(0)

    def test_index_rejects_retagging(self, origin_state, noise):
        manager = LandmarkManager()
        manager.commit_new_landmark(origin_state, Observation(5.0, 0.0, tag="a"), noise)
        with pytest.raises(InvalidInputError):
            manager.resolve(origin_state, Observation(5.0, 0.0, tag="b", landmark_index=0))
        assert manager.index_of("b") is None
        assert manager.tag_of(0) == "a"

    def test_registry_out_of_sync(self, origin_state):
        manager = LandmarkManager()
        origin_state.append_landmark(np.ones(2), np.eye(2), np.zeros((2, 3)))
        with pytest.raises(DimensionMismatchError):
            manager.resolve(origin_state, Observation(5.0, 0.0))


class TestCommitNewLandmark:
    """Inverse-observation initialization of new landmarks."""

    def test_position_and_uncertainty_from_known_pose(self, origin_state, noise):
        manager = LandmarkManager(initial_uncertainty=1000.0)
        index = manager.commit_new_landmark(
            origin_state, Observation(10.0, np.pi / 2, tag="L1"), noise
        )
        assert index == 0
        np.testing.assert_allclose(origin_state.landmark_position(0), [0.0, 10.0], atol=1e-12)
        np.testing.assert_allclose(origin_state.landmark_covariance(0), 1000.0 * np.eye(2))
        np.testing.assert_allclose(origin_state.covariance[3:, :3], 0.0)
        assert manager.tag_of(0) == "L1"
        assert manager.index_of("L1") == 0

    def test_cross_covariance_with_pose_and_landmarks(self, noise):
        P = np.diag([0.1, 0.2, 0.05])
        state = JointState(np.array([1.0, 2.0, 0.3]), P)
        manager = LandmarkManager()
        manager.commit_new_landmark(state, Observation(5.0, 0.2, tag="a"), noise)
        manager.commit_new_landmark(state, Observation(3.0, -1.0, tag="b"), noise)

        Jxr, _ = manager.observation_model.inverse_jacobians(
            state.pose, Observation(3.0, -1.0)
        )
        expected_cross = Jxr @ np.array(state.covariance[:3, :5])
        np.testing.assert_allclose(state.covariance[5:7, :5], expected_cross, atol=1e-12)
        np.testing.assert_allclose(state.covariance, state.covariance.T)
        assert linalg.is_positive_semidefinite(state.covariance)

    def test_fallback_when_pose_uncertainty_dominates(self, noise):
        state = JointState(np.zeros(3), np.eye(3))
        manager = LandmarkManager(initial_uncertainty=0.01)
        with pytest.warns(RuntimeWarning):
            manager.commit_new_landmark(state, Observation(10.0, 0.0), noise)
        assert linalg.is_positive_semidefinite(state.covariance)
        assert state.landmark_covariance(0)[1, 1] > 100.0

    def test_no_warning_when_initial_uncertainty_dominates(self, noise):
        state = JointState(np.zeros(3), 0.01 * np.eye(3))
        manager = LandmarkManager(initial_uncertainty=1000.0)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            manager.commit_new_landmark(state, Observation(10.0, 0.0), noise)
        np.testing.assert_allclose(state.landmark_covariance(0), 1000.0 * np.eye(2))

    def test_zero_range_is_degenerate(self, origin_state, noise):
        manager = LandmarkManager()
        with pytest.raises(DegenerateObservationError):
            manager.commit_new_landmark(origin_state, Observation(0.0, 0.0, tag="a"), noise)
        assert origin_state.landmark_count == 0
        assert manager.tags == []

    def test_duplicate_tag_rejected(self, origin_state, noise):
        manager = LandmarkManager()
        manager.commit_new_landmark(origin_state, Observation(5.0, 0.0, tag="a"), noise)
        with pytest.raises(InvalidInputError):
            manager.commit_new_landmark(origin_state, Observation(6.0, 0.0, tag="a"), noise)
        assert origin_state.landmark_count == 1


class TestCommitKnownLandmark:
    """Landmarks known a priori."""

    def test_known_landmark(self, origin_state):
        manager = LandmarkManager(initial_uncertainty=5.0)
        index = manager.commit_known_landmark(origin_state, [3.0, 4.0], tag="beacon")
        assert index == 0
        np.testing.assert_allclose(origin_state.landmark_position(0), [3.0, 4.0])
        np.testing.assert_allclose(origin_state.landmark_covariance(0), 5.0 * np.eye(2))
        assert manager.index_of("beacon") == 0

    def test_bad_position(self, origin_state):
        manager = LandmarkManager()
        with pytest.raises(InvalidInputError):
            manager.commit_known_landmark(origin_state, [1.0, 2.0, 3.0])

    def test_reset(self, origin_state):
        manager = LandmarkManager()
        manager.commit_known_landmark(origin_state, [3.0, 4.0], tag="beacon")
        manager.reset()
        assert manager.tags == []
        assert manager.index_of("beacon") is None

    def test_invalid_initial_uncertainty(self):
        with pytest.raises(ValueError):
            LandmarkManager(initial_uncertainty=-1.0)
