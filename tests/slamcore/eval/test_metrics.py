"""Unit tests for slamcore.eval.metrics."""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from slamcore.eval import (
    compute_landmark_errors,
    compute_nees,
    compute_nis,
    compute_pose_errors,
    compute_rmse,
    gaussian_likelihood,
    nis_consistency_bounds,
)


class TestPoseErrors(unittest.TestCase):
    def test_heading_error_wrapped(self):
        truth = np.array([[0.0, 0.0, 3.1]])
        est = np.array([[1.0, -1.0, -3.1]])
        errors = compute_pose_errors(truth, est)
        assert_allclose(errors[0, :2], [1.0, -1.0])
        self.assertAlmostEqual(errors[0, 2], 2 * np.pi - 6.2)

    def test_rmse(self):
        errors = np.array([[3.0, 4.0], [0.0, 0.0]])
        self.assertAlmostEqual(compute_rmse(errors), np.sqrt(12.5))
        self.assertAlmostEqual(compute_rmse(np.array([1.0, -1.0])), 1.0)


class TestLandmarkErrors(unittest.TestCase):
    def test_statistics(self):
        truth = np.array([[0.0, 0.0], [1.0, 1.0]])
        est = np.array([[3.0, 4.0], [1.0, 1.0]])
        stats = compute_landmark_errors(truth, est)
        self.assertAlmostEqual(stats["max"], 5.0)
        self.assertAlmostEqual(stats["mean"], 2.5)
        self.assertAlmostEqual(stats["rmse"], np.sqrt(12.5))

    def test_empty(self):
        stats = compute_landmark_errors(np.zeros((0, 2)), np.zeros((0, 2)))
        self.assertEqual(stats["rmse"], 0.0)

    def test_shape_mismatch(self):
        with self.assertRaises(ValueError):
            compute_landmark_errors(np.zeros((2, 2)), np.zeros((3, 2)))


class TestConsistencyMetrics(unittest.TestCase):
    def test_nees(self):
        truth = np.zeros((2, 3))
        est = np.array([[1.0, 0.0, 0.0], [0.0, 2.0, 0.0]])
        cov = np.stack([np.eye(3), 4.0 * np.eye(3)])
        assert_allclose(compute_nees(truth, est, cov), [1.0, 1.0])

    def test_nees_singular_is_nan(self):
        nees = compute_nees(np.zeros((1, 3)), np.zeros((1, 3)), np.zeros((1, 3, 3)))
        self.assertTrue(np.isnan(nees[0]))

    def test_nis(self):
        self.assertAlmostEqual(compute_nis(np.array([1.0, 2.0]), np.diag([1.0, 0.25])), 2.0)

    def test_gaussian_likelihood(self):
        self.assertAlmostEqual(gaussian_likelihood(np.zeros(2), np.eye(2)), 1.0 / (2 * np.pi))
        S = np.diag([0.5, 2.0])
        nu = np.array([0.3, -0.4])
        expected = np.exp(-0.5 * nu @ np.linalg.inv(S) @ nu) / np.sqrt(np.linalg.det(2 * np.pi * S))
        self.assertAlmostEqual(gaussian_likelihood(nu, S), expected)

    def test_nis_bounds(self):
        lower, upper = nis_consistency_bounds(2, 0.95)
        self.assertAlmostEqual(lower, 0.0506, places=3)
        self.assertAlmostEqual(upper, 7.3778, places=3)
        with self.assertRaises(ValueError):
            nis_consistency_bounds(2, 1.5)


if __name__ == "__main__":
    unittest.main()
