"""
Motion and measurement models for the EKF-SLAM estimator.

- DifferentialDriveModel: exact-integration (v, ω) motion with pose Jacobian
- RangeBearingObservationModel: range/bearing prediction, sparse Jacobian
  and inverse model for landmark initialization
- ProcessNoise / MeasurementNoise: Q and R parameterizations
"""

from .motion_models import (
    ANGULAR_VELOCITY_EPSILON,
    DifferentialDriveModel,
    ProcessNoise,
    pose_projection,
)

from .measurement_models import (
    MEASUREMENT_DIM,
    MeasurementNoise,
    RangeBearingObservationModel,
    landmark_columns,
)

__all__ = [
    # Motion model
    'ANGULAR_VELOCITY_EPSILON',
    'DifferentialDriveModel',
    'ProcessNoise',
    'pose_projection',

    # Measurement model
    'MEASUREMENT_DIM',
    'MeasurementNoise',
    'RangeBearingObservationModel',
    'landmark_columns',
]
