"""Core modules for online landmark SLAM.

This package contains the components of a single-hypothesis EKF-SLAM
estimator:
- utils: Linear algebra kernel and angle handling
- models: Motion (differential drive) and range-bearing observation models
- slam: Joint state, landmark management and the Kalman update engine
- estimators: The public EKF-SLAM estimator and its base interface
- sim, eval: Simulation helpers, metrics and plotting for experiments
"""

from slamcore.config import EKFSlamConfig
from slamcore.errors import (
    DegenerateObservationError,
    DimensionMismatchError,
    InvalidInputError,
    SingularMatrixError,
    SlamError,
)
from slamcore.estimators import EKFSlam, StateEstimator
from slamcore.slam.types import Control, Observation, StateSnapshot, UpdateReport

__version__ = "0.1.0"

__all__ = [
    "EKFSlam",
    "EKFSlamConfig",
    "StateEstimator",
    "Control",
    "Observation",
    "StateSnapshot",
    "UpdateReport",
    "SlamError",
    "InvalidInputError",
    "SingularMatrixError",
    "DegenerateObservationError",
    "DimensionMismatchError",
]
