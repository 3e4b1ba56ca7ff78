"""
Evaluation and Visualization Module.

This module provides evaluation metrics and visualization utilities
for the EKF-SLAM estimator.

Modules:
    metrics: Error metrics (RMSE, landmark errors, NEES, NIS, likelihood)
    plots: Visualization functions for maps, trajectories and consistency
"""

from .metrics import (
    compute_landmark_errors,
    compute_nees,
    compute_nis,
    compute_pose_errors,
    compute_rmse,
    gaussian_likelihood,
    nis_consistency_bounds,
)
from .plots import (
    covariance_ellipse,
    plot_nees,
    plot_slam_map,
    save_figure,
)

__all__ = [
    # Metrics
    "compute_pose_errors",
    "compute_rmse",
    "compute_landmark_errors",
    "compute_nees",
    "compute_nis",
    "gaussian_likelihood",
    "nis_consistency_bounds",
    # Plots
    "covariance_ellipse",
    "plot_slam_map",
    "plot_nees",
    "save_figure",
]
