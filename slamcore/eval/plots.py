"""
Visualization Utilities for EKF-SLAM.

This module provides plotting functions for estimated trajectories, landmark
maps with uncertainty ellipses, and filter consistency.

All functions return matplotlib Figure objects for flexible display/saving.
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np

from slamcore.slam.types import StateSnapshot


def covariance_ellipse(
    center: np.ndarray,
    covariance: np.ndarray,
    n_sigma: float = 2.0,
    n_points: int = 64,
) -> np.ndarray:
    """
    Points on the n-sigma ellipse of a 2D Gaussian.

    Args:
        center: Ellipse center (2,)
        covariance: 2x2 covariance
        n_sigma: Number of standard deviations
        n_points: Number of boundary points

    Returns:
        Boundary points, shape (n_points, 2)
    """
    covariance = np.asarray(covariance, dtype=float)
    if covariance.shape != (2, 2):
        raise ValueError(f"covariance must be 2x2, got {covariance.shape}")
    eigvals, eigvecs = np.linalg.eigh(0.5 * (covariance + covariance.T))
    eigvals = np.clip(eigvals, 0.0, None)
    t = np.linspace(0.0, 2.0 * np.pi, n_points)
    circle = np.vstack([np.cos(t), np.sin(t)])
    points = eigvecs @ (n_sigma * np.sqrt(eigvals)[:, None] * circle)
    return points.T + np.asarray(center, dtype=float)


def plot_slam_map(
    snapshot: StateSnapshot,
    est_trajectory: Optional[np.ndarray] = None,
    true_trajectory: Optional[np.ndarray] = None,
    true_landmarks: Optional[np.ndarray] = None,
    n_sigma: float = 2.0,
    title: str = "EKF-SLAM Map",
) -> plt.Figure:
    """
    Plot trajectories, estimated landmarks and their uncertainty ellipses.

    Args:
        snapshot: Final estimator state
        est_trajectory: Estimated poses, shape (N, 3) (optional)
        true_trajectory: True poses, shape (N, 3) (optional)
        true_landmarks: True landmark positions, shape (M, 2) (optional)
        n_sigma: Ellipse size in standard deviations
        title: Plot title

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 8))

    if true_trajectory is not None:
        ax.plot(
            true_trajectory[:, 0],
            true_trajectory[:, 1],
            "k-",
            linewidth=2,
            label="Ground Truth",
            zorder=10,
        )
    if est_trajectory is not None:
        ax.plot(
            est_trajectory[:, 0],
            est_trajectory[:, 1],
            "b--",
            linewidth=1.5,
            label="EKF-SLAM",
            alpha=0.8,
        )

    if true_landmarks is not None and len(true_landmarks) > 0:
        ax.plot(
            true_landmarks[:, 0],
            true_landmarks[:, 1],
            "k*",
            markersize=12,
            label="True Landmarks",
            zorder=5,
        )

    landmarks = snapshot.landmarks
    if len(landmarks) > 0:
        ax.plot(
            landmarks[:, 0],
            landmarks[:, 1],
            "r+",
            markersize=10,
            markeredgewidth=2,
            label="Estimated Landmarks",
            zorder=6,
        )
        for i, position in enumerate(landmarks):
            ellipse = covariance_ellipse(position, snapshot.landmark_covariance(i), n_sigma)
            ax.plot(ellipse[:, 0], ellipse[:, 1], "r-", linewidth=0.8, alpha=0.6)

    pose = snapshot.pose
    ellipse = covariance_ellipse(pose[:2], snapshot.pose_covariance[:2, :2], n_sigma)
    ax.plot(ellipse[:, 0], ellipse[:, 1], "b-", linewidth=0.8, alpha=0.6)
    ax.arrow(
        pose[0], pose[1], 0.5 * np.cos(pose[2]), 0.5 * np.sin(pose[2]),
        head_width=0.15, color="blue", zorder=12,
    )

    ax.set_xlabel("X (m)", fontsize=12)
    ax.set_ylabel("Y (m)", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)
    ax.axis("equal")

    plt.tight_layout()
    return fig


def plot_nees(
    nees: np.ndarray,
    dt: float = 1.0,
    bounds: Optional[Tuple[float, float]] = None,
    title: str = "Pose NEES",
) -> plt.Figure:
    """
    Plot the pose NEES over time with optional chi-square bounds.

    Args:
        nees: NEES values, shape (N,)
        dt: Time step between samples (seconds)
        bounds: (lower, upper) acceptance interval (optional)
        title: Plot title

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 4))
    t = np.arange(len(nees)) * dt
    ax.plot(t, nees, "b-", linewidth=1.0, label="NEES")
    if bounds is not None:
        ax.axhline(bounds[0], color="r", linestyle="--", linewidth=1.0, label="Bounds")
        ax.axhline(bounds[1], color="r", linestyle="--", linewidth=1.0)
    ax.set_xlabel("Time (s)", fontsize=12)
    ax.set_ylabel("NEES", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def save_figure(
    fig: plt.Figure,
    out_dir: Union[str, Path],
    name: str,
    formats: Tuple[str, ...] = ("svg", "pdf", "png"),
) -> List[Path]:
    """
    Save figure in multiple formats.

    Args:
        fig: Matplotlib figure to save
        out_dir: Output directory
        name: Base filename (without extension)
        formats: Tuple of format extensions

    Returns:
        paths: List of saved file paths
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for fmt in formats:
        filepath = out_dir / f"{name}.{fmt}"
        fig.savefig(filepath, dpi=150, bbox_inches="tight")
        paths.append(filepath)

    return paths
