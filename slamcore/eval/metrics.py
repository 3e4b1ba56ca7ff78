"""
Evaluation Metrics for EKF-SLAM.

This module provides error metrics for trajectories and maps, and
consistency statistics (NEES, NIS) and innovation likelihoods for filter
updates. The per-update NIS and likelihood live in slamcore.utils.gaussian,
next to the update step that reports them, and are re-exported here.
"""

from typing import Dict, Optional, Union

import numpy as np
from scipy import stats

from slamcore.utils.angles import wrap_angle_array
from slamcore.utils.gaussian import compute_nis, gaussian_likelihood


def compute_pose_errors(truth: np.ndarray, estimated: np.ndarray) -> np.ndarray:
    """
    Compute pose errors [ex, ey, eθ] with the heading error wrapped.

    Args:
        truth: True poses, shape (N, 3)
        estimated: Estimated poses, shape (N, 3)

    Returns:
        errors: Pose error vectors, shape (N, 3)

    Raises:
        ValueError: If inputs have incompatible shapes
    """
    truth = np.atleast_2d(np.asarray(truth, dtype=float))
    estimated = np.atleast_2d(np.asarray(estimated, dtype=float))

    if truth.shape != estimated.shape:
        raise ValueError(
            f"Shape mismatch: truth {truth.shape} vs estimated {estimated.shape}"
        )
    if truth.shape[1] != 3:
        raise ValueError(f"Poses must have 3 columns [x, y, θ], got {truth.shape[1]}")

    errors = estimated - truth
    errors[:, 2] = wrap_angle_array(errors[:, 2])
    return errors


def compute_rmse(errors: np.ndarray, axis: Optional[int] = None) -> Union[float, np.ndarray]:
    """
    Compute Root Mean Square Error (RMSE).

    Args:
        errors: Error vectors, shape (N, d) or (N,)
        axis: Axis along which to compute RMSE
              None: scalar RMSE across all dimensions
              0: per-dimension RMSE
              1: per-sample RMSE

    Returns:
        rmse: RMSE value(s)
    """
    errors = np.asarray(errors)

    if axis is None:
        if errors.ndim == 1:
            return float(np.sqrt(np.mean(errors**2)))
        return float(np.sqrt(np.mean(np.sum(errors**2, axis=1))))
    return np.sqrt(np.mean(errors**2, axis=axis))


def compute_landmark_errors(
    true_landmarks: np.ndarray, estimated_landmarks: np.ndarray
) -> Dict[str, float]:
    """
    Position error statistics between matched landmark sets.

    Rows must already be in correspondence (row i of each array is the
    same landmark).

    Args:
        true_landmarks: True positions, shape (N, 2)
        estimated_landmarks: Estimated positions, shape (N, 2)

    Returns:
        Dictionary with 'rmse', 'mean', 'max' of the Euclidean error.
    """
    true_landmarks = np.asarray(true_landmarks, dtype=float).reshape(-1, 2)
    estimated_landmarks = np.asarray(estimated_landmarks, dtype=float).reshape(-1, 2)
    if true_landmarks.shape != estimated_landmarks.shape:
        raise ValueError(
            f"Shape mismatch: truth {true_landmarks.shape} vs estimated {estimated_landmarks.shape}"
        )
    if len(true_landmarks) == 0:
        return {"rmse": 0.0, "mean": 0.0, "max": 0.0}

    distances = np.linalg.norm(estimated_landmarks - true_landmarks, axis=1)
    return {
        "rmse": float(np.sqrt(np.mean(distances**2))),
        "mean": float(np.mean(distances)),
        "max": float(np.max(distances)),
    }


def compute_nees(
    truth: np.ndarray, estimated: np.ndarray, covariance: np.ndarray
) -> np.ndarray:
    """
    Compute Normalized Estimation Error Squared (NEES) of poses.

    NEES = e^T P^{-1} e with the heading component of e wrapped. For a
    consistent estimator NEES follows a chi-squared distribution with 3
    degrees of freedom.

    Args:
        truth: True poses, shape (N, 3)
        estimated: Estimated poses, shape (N, 3)
        covariance: Pose covariances, shape (N, 3, 3)

    Returns:
        nees: NEES values, shape (N,); NaN where P is singular
    """
    errors = compute_pose_errors(truth, estimated)
    covariance = np.asarray(covariance, dtype=float)
    N, n = errors.shape

    if covariance.shape != (N, n, n):
        raise ValueError(
            f"covariance must have shape ({N}, {n}, {n}), "
            f"got {covariance.shape}"
        )

    nees = np.zeros(N)
    for i in range(N):
        try:
            P_inv = np.linalg.inv(covariance[i])
            nees[i] = errors[i] @ P_inv @ errors[i]
        except np.linalg.LinAlgError:
            nees[i] = np.nan

    return nees


def nis_consistency_bounds(dof: int, confidence: float = 0.95) -> tuple:
    """
    Two-sided chi-square acceptance interval for a single NIS sample.

    Args:
        dof: Degrees of freedom (measurement dimension).
        confidence: Probability mass inside the interval.

    Returns:
        (lower, upper) bounds.
    """
    if not 0 < confidence < 1:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")
    alpha = 1.0 - confidence
    return (
        float(stats.chi2.ppf(alpha / 2.0, dof)),
        float(stats.chi2.ppf(1.0 - alpha / 2.0, dof)),
    )
