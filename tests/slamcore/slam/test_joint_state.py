"""Unit tests for slamcore.slam.joint_state (owned mean/covariance)."""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from slamcore.errors import DimensionMismatchError, InvalidInputError
from slamcore.slam import JointState, StateSnapshot


class TestConstruction(unittest.TestCase):
    """Validation of the initial pose-only state."""

    def test_pose_only(self):
        state = JointState(np.array([1.0, 2.0, 0.5]), np.eye(3))
        self.assertEqual(state.dim, 3)
        self.assertEqual(state.landmark_count, 0)
        assert_allclose(state.pose, [1.0, 2.0, 0.5])
        state.check_invariants()

    def test_heading_wrapped(self):
        state = JointState(np.array([0.0, 0.0, 3 * np.pi / 2]), np.zeros((3, 3)))
        self.assertAlmostEqual(state.pose[2], -np.pi / 2)

    def test_invalid_inputs(self):
        bad = [
            (np.zeros(2), np.zeros((3, 3))),
            (np.zeros(3), np.zeros((2, 2))),
            (np.array([0.0, np.nan, 0.0]), np.zeros((3, 3))),
            (np.zeros(3), np.array([[1.0, 0.5, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])),
            (np.zeros(3), np.diag([1.0, -1.0, 1.0])),
        ]
        for pose, cov in bad:
            with self.assertRaises(InvalidInputError):
                JointState(pose, cov)

    def test_views_are_read_only(self):
        state = JointState(np.zeros(3), np.eye(3))
        with self.assertRaises(ValueError):
            state.mean[0] = 1.0
        with self.assertRaises(ValueError):
            state.covariance[0, 0] = 5.0

    def test_inputs_are_copied(self):
        pose = np.zeros(3)
        state = JointState(pose, np.eye(3))
        pose[0] = 10.0
        self.assertEqual(state.pose[0], 0.0)


class TestAppendLandmark(unittest.TestCase):
    """Growing the state by one landmark block."""

    def setUp(self):
        self.state = JointState(np.array([1.0, 0.0, 0.0]), np.diag([0.1, 0.2, 0.3]))

    def test_dimensions_and_blocks(self):
        cross = np.array([[0.01, 0.0, 0.02], [0.0, 0.03, 0.04]])
        index = self.state.append_landmark(np.array([5.0, 6.0]), 7.0 * np.eye(2), cross)

        self.assertEqual(index, 0)
        self.assertEqual(self.state.dim, 5)
        self.assertEqual(self.state.covariance.shape, (5, 5))
        assert_allclose(self.state.landmark_position(0), [5.0, 6.0])
        assert_allclose(self.state.landmark_covariance(0), 7.0 * np.eye(2))
        assert_allclose(self.state.covariance[3:, :3], cross)
        assert_allclose(self.state.covariance[:3, 3:], cross.T)
        assert_allclose(self.state.pose_covariance, np.diag([0.1, 0.2, 0.3]))
        self.state.check_invariants()

    def test_indices_increase(self):
        for k in range(4):
            index = self.state.append_landmark(
                np.array([k, k]), np.eye(2), np.zeros((2, self.state.dim))
            )
            self.assertEqual(index, k)
        self.assertEqual(self.state.landmark_count, 4)
        self.assertEqual(self.state.dim, 11)

    def test_wrong_cross_shape_leaves_state_unchanged(self):
        with self.assertRaises(DimensionMismatchError):
            self.state.append_landmark(np.array([1.0, 1.0]), np.eye(2), np.zeros((2, 5)))
        self.assertEqual(self.state.dim, 3)
        self.assertEqual(self.state.covariance.shape, (3, 3))

    def test_landmark_index_out_of_range(self):
        with self.assertRaises(IndexError):
            self.state.landmark_position(0)


class TestReplace(unittest.TestCase):
    """Replacing mean and covariance together."""

    def test_replace_wraps_and_symmetrizes(self):
        state = JointState(np.zeros(3), np.eye(3))
        cov = np.eye(3)
        cov[0, 1] = 0.2
        state.replace(np.array([1.0, 2.0, 4.0]), cov)
        self.assertAlmostEqual(state.pose[2], 4.0 - 2 * np.pi)
        assert_allclose(state.covariance, state.covariance.T)
        self.assertAlmostEqual(state.covariance[0, 1], 0.1)

    def test_replace_rejects_mismatch(self):
        state = JointState(np.zeros(3), np.eye(3))
        with self.assertRaises(DimensionMismatchError):
            state.replace(np.zeros(5), np.eye(5))
        with self.assertRaises(DimensionMismatchError):
            state.replace(np.zeros(3), np.eye(5))
        self.assertEqual(state.dim, 3)


class TestSnapshot(unittest.TestCase):
    """Immutable snapshots."""

    def test_snapshot_is_independent(self):
        state = JointState(np.zeros(3), np.eye(3))
        state.append_landmark(np.array([2.0, 3.0]), np.eye(2), np.zeros((2, 3)))
        snapshot = state.snapshot(["door"])

        self.assertIsInstance(snapshot, StateSnapshot)
        self.assertEqual(snapshot.tags, ("door",))
        self.assertEqual(snapshot.landmark_count, 1)
        assert_allclose(snapshot.landmarks, [[2.0, 3.0]])
        assert_allclose(snapshot.landmark_covariance(0), np.eye(2))
        with self.assertRaises(ValueError):
            snapshot.mean[0] = 1.0

        state.replace(np.ones(5), 2.0 * np.eye(5))
        assert_allclose(snapshot.mean, [0.0, 0.0, 0.0, 2.0, 3.0])

    def test_copy_is_deep(self):
        state = JointState(np.zeros(3), np.eye(3))
        clone = state.copy()
        state.replace(np.ones(3), np.eye(3))
        assert_allclose(clone.mean, np.zeros(3))


if __name__ == "__main__":
    unittest.main()
