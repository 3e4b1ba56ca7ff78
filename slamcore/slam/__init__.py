"""EKF-SLAM state and update machinery.

Main components:
    - JointState: owned mean/covariance over pose and landmarks
    - LandmarkManager: index/tag association and landmark initialization
    - UpdateEngine: Kalman correction for one observation
    - Control, Observation, StateSnapshot, UpdateReport: data types

Example usage:
    >>> from slamcore.slam import JointState, LandmarkManager, Observation
    >>> from slamcore.models import MeasurementNoise
    >>> import numpy as np
    >>>
    >>> state = JointState(np.zeros(3), np.zeros((3, 3)))
    >>> manager = LandmarkManager()
    >>> z = Observation(range=5.0, bearing=0.0, tag="door")
    >>> manager.resolve(state, z)
    NewLandmark()
    >>> manager.commit_new_landmark(state, z, MeasurementNoise())
    0
"""

# joint_state and types must load before the modules that depend on models
from .types import (
    LANDMARK_DIM,
    POSE_DIM,
    Association,
    Control,
    ExistingLandmark,
    NewLandmark,
    Observation,
    StateSnapshot,
    UpdateReport,
)
from .joint_state import JointState
from .landmark_manager import DEFAULT_INITIAL_UNCERTAINTY, LandmarkManager
from .update_engine import Correction, UpdateEngine, innovation

__all__ = [
    # Types
    "LANDMARK_DIM",
    "POSE_DIM",
    "Association",
    "Control",
    "ExistingLandmark",
    "NewLandmark",
    "Observation",
    "StateSnapshot",
    "UpdateReport",
    # State
    "JointState",
    # Association / initialization
    "DEFAULT_INITIAL_UNCERTAINTY",
    "LandmarkManager",
    # Correction
    "Correction",
    "UpdateEngine",
    "innovation",
]
