"""
Ground-truth simulation for landmark SLAM experiments.

Integrates a noise-free trajectory with the differential-drive model and
generates noisy range/bearing observations of a known landmark set from
each true pose.

Example:
    >>> import numpy as np
    >>> from slamcore.sim import simulate_observations, simulate_trajectory
    >>> poses = simulate_trajectory([(1.0, 0.1)] * 10, dt=0.1)
    >>> landmarks = np.array([[5.0, 0.0], [0.0, 5.0]])
    >>> rng = np.random.default_rng(0)
    >>> z = simulate_observations(poses[-1], landmarks, tags=["a", "b"], rng=rng)
    >>> [obs.tag for obs in z]
    ['a', 'b']
"""

from typing import Hashable, List, Optional, Sequence

import numpy as np

from slamcore.errors import DegenerateObservationError
from slamcore.models.measurement_models import MeasurementNoise, RangeBearingObservationModel
from slamcore.models.motion_models import DifferentialDriveModel
from slamcore.slam.types import POSE_DIM, Control, Observation
from slamcore.utils.angles import wrap_angle


def simulate_trajectory(
    controls: Sequence,
    dt: float,
    initial_pose: Optional[np.ndarray] = None,
    motion_model: Optional[DifferentialDriveModel] = None,
) -> np.ndarray:
    """
    Integrate a control sequence into ground-truth poses.

    Args:
        controls: Sequence of Control or (v, ω) pairs.
        dt: Time step (s), > 0.
        initial_pose: Starting pose [x, y, θ] (default: origin).
        motion_model: Model to integrate with (default: DifferentialDriveModel()).

    Returns:
        poses: Array of shape (len(controls) + 1, 3), starting with initial_pose.

    Raises:
        ValueError: If dt <= 0 or initial_pose has the wrong shape.
    """
    if not np.isfinite(dt) or dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    pose = np.zeros(POSE_DIM) if initial_pose is None else np.array(initial_pose, dtype=float)
    if pose.shape != (POSE_DIM,):
        raise ValueError(f"initial_pose must have shape (3,), got {pose.shape}")
    model = motion_model or DifferentialDriveModel()

    poses = np.zeros((len(controls) + 1, POSE_DIM))
    pose[2] = wrap_angle(pose[2])
    poses[0] = pose
    for k, control in enumerate(controls):
        poses[k + 1] = model.f(poses[k], Control.coerce(control), dt)
    return poses


def simulate_observations(
    true_pose: np.ndarray,
    landmarks: np.ndarray,
    tags: Optional[Sequence[Optional[Hashable]]] = None,
    noise: Optional[MeasurementNoise] = None,
    rng: Optional[np.random.Generator] = None,
    max_range: Optional[float] = None,
) -> List[Observation]:
    """
    Noisy range/bearing observations of every landmark in sensor range.

    Args:
        true_pose: Ground-truth pose [x, y, θ].
        landmarks: True landmark positions, shape (M, 2).
        tags: Association tag per landmark (default: the landmark's row index).
        noise: Measurement noise (default: MeasurementNoise()).
        rng: Random number generator for reproducibility.
            If None, uses np.random.default_rng().
        max_range: Landmarks farther than this are not observed.

    Returns:
        Observations in landmark order, skipping out-of-range landmarks and
        landmarks at zero distance.
    """
    landmarks = np.atleast_2d(np.asarray(landmarks, dtype=float))
    if landmarks.size == 0:
        return []
    if landmarks.shape[1] != 2:
        raise ValueError(f"landmarks must have shape (M, 2), got {landmarks.shape}")
    if tags is None:
        tags = list(range(len(landmarks)))
    elif len(tags) != len(landmarks):
        raise ValueError(f"Got {len(tags)} tags for {len(landmarks)} landmarks")
    noise = noise or MeasurementNoise()
    rng = rng if rng is not None else np.random.default_rng()
    model = RangeBearingObservationModel()

    observations = []
    for position, tag in zip(landmarks, tags):
        try:
            r, b = model.h(true_pose, position)
        except DegenerateObservationError:
            continue
        if max_range is not None and r > max_range:
            continue
        std = np.sqrt(np.diag(noise.covariance(r)))
        z_range = abs(r + std[0] * rng.standard_normal())
        z_bearing = wrap_angle(b + std[1] * rng.standard_normal())
        observations.append(Observation(range=z_range, bearing=z_bearing, tag=tag))
    return observations
