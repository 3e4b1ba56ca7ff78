"""
Online state estimators.

This module provides the public EKF-SLAM estimator and the interface it
implements.

Classes:
    StateEstimator: Abstract online estimator interface
    EKFSlam: Extended Kalman Filter SLAM
"""

from slamcore.estimators.base import StateEstimator
from slamcore.estimators.ekf_slam import EKFSlam

__all__ = [
    "StateEstimator",
    "EKFSlam",
]
