"""
Range-bearing observation model for EKF-SLAM.

Measurement of landmark i from pose (x, y, θ):

    Δx = lx - x,  Δy = ly - y,  q = Δx² + Δy²
    range   = √q
    bearing = atan2(Δy, Δx) - θ

The Jacobian against the joint state is non-zero only in the pose columns
and the columns of the observed landmark; it is assembled from two small
dense blocks rather than computed densely.

The inverse model maps a (range, bearing) observation taken from a pose
into a world-frame landmark position, with the Jacobians Jxr (w.r.t. the
pose) and Jz (w.r.t. the measurement) needed to initialize its covariance.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from slamcore.errors import DegenerateObservationError
from slamcore.slam.joint_state import JointState
from slamcore.slam.types import LANDMARK_DIM, POSE_DIM, Observation
from slamcore.utils import linalg
from slamcore.utils.angles import wrap_angle


MEASUREMENT_DIM = 2

# Squared range below which the observation geometry is degenerate
EPSILON_RANGE_SQ = 1e-20


@dataclass(frozen=True)
class MeasurementNoise:
    """
    Range/bearing sensor noise.

    R(range) = diag(σr² + (range_scale · range)², σb²)

    Attributes:
        sigma_range: Constant range noise std (m).
        sigma_bearing: Bearing noise std (rad).
        range_scale: Range-proportional noise std per metre (dimensionless);
            0 gives a fixed R.
    """

    sigma_range: float = 0.1
    sigma_bearing: float = 0.02
    range_scale: float = 0.0

    def __post_init__(self) -> None:
        for name in ("sigma_range", "sigma_bearing", "range_scale"):
            value = getattr(self, name)
            if not np.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be finite and non-negative, got {value}")

    def covariance(self, measured_range: float) -> np.ndarray:
        """2x2 measurement noise covariance for an observation at ``measured_range``."""
        range_var = self.sigma_range**2 + (self.range_scale * measured_range) ** 2
        return np.diag([range_var, self.sigma_bearing**2])


class RangeBearingObservationModel:
    """
    Range and bearing from the agent to one landmark.

    Example:
        >>> model = RangeBearingObservationModel()
        >>> model.h(np.array([0.0, 0.0, 0.0]), np.array([3.0, 4.0]))
        array([5.        , 0.92729522])
    """

    @staticmethod
    def _geometry(pose: np.ndarray, landmark: np.ndarray) -> Tuple[float, float, float]:
        dx = landmark[0] - pose[0]
        dy = landmark[1] - pose[1]
        q = dx**2 + dy**2
        if q < EPSILON_RANGE_SQ:
            raise DegenerateObservationError(
                f"Landmark at ({landmark[0]:.6f}, {landmark[1]:.6f}) coincides with the agent"
            )
        return dx, dy, q

    def h(self, pose: np.ndarray, landmark: np.ndarray) -> np.ndarray:
        """
        Predicted [range, bearing] of ``landmark`` seen from ``pose``.

        Raises:
            DegenerateObservationError: If the landmark is at the agent position.
        """
        dx, dy, q = self._geometry(pose, landmark)
        return np.array([np.sqrt(q), wrap_angle(np.arctan2(dy, dx) - pose[2])])

    def jacobian_blocks(self, pose: np.ndarray, landmark: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Non-zero blocks of the observation Jacobian.

        Returns:
            (H_pose, H_landmark) with shapes (2, 3) and (2, 2):

                H_pose     = [[-Δx/r, -Δy/r,  0],
                              [ Δy/q, -Δx/q, -1]]
                H_landmark = [[ Δx/r,  Δy/r],
                              [-Δy/q,  Δx/q]]
        """
        dx, dy, q = self._geometry(pose, landmark)
        r = np.sqrt(q)
        H_pose = np.array([
            [-dx / r, -dy / r, 0.0],
            [dy / q, -dx / q, -1.0],
        ])
        H_landmark = np.array([
            [dx / r, dy / r],
            [-dy / q, dx / q],
        ])
        return H_pose, H_landmark

    def predict(self, state: JointState, landmark_index: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Predicted measurement and joint-state Jacobian for one landmark.

        Args:
            state: Joint state.
            landmark_index: Index of the observed landmark.

        Returns:
            Tuple of (z_pred (2,), H (2, 3 + 2N)). Columns of every landmark
            other than ``landmark_index`` are exactly zero.

        Raises:
            IndexError: If the landmark does not exist.
            DegenerateObservationError: If q == 0.
        """
        pose = state.pose
        landmark = state.landmark_position(landmark_index)
        z_pred = self.h(pose, landmark)
        H_pose, H_landmark = self.jacobian_blocks(pose, landmark)

        H = linalg.zeros(MEASUREMENT_DIM, state.dim)
        H = linalg.insert_block(H, H_pose, 0, 0)
        H = linalg.insert_block(H, H_landmark, 0, JointState.landmark_offset(landmark_index))
        return z_pred, H

    @staticmethod
    def inverse(pose: np.ndarray, observation: Observation) -> np.ndarray:
        """
        World-frame landmark position from an observation.

            lx = x + r cos(θ + b),  ly = y + r sin(θ + b)
        """
        angle = pose[2] + observation.bearing
        return np.array([
            pose[0] + observation.range * np.cos(angle),
            pose[1] + observation.range * np.sin(angle),
        ])

    @staticmethod
    def inverse_jacobians(pose: np.ndarray, observation: Observation) -> Tuple[np.ndarray, np.ndarray]:
        """
        Jacobians of the inverse model.

        Returns:
            (Jxr, Jz) with shapes (2, 3) and (2, 2):

                Jxr = [[1, 0, -r sin(θ+b)],
                       [0, 1,  r cos(θ+b)]]
                Jz  = [[cos(θ+b), -r sin(θ+b)],
                       [sin(θ+b),  r cos(θ+b)]]
        """
        angle = pose[2] + observation.bearing
        r = observation.range
        c, s = np.cos(angle), np.sin(angle)
        Jxr = np.array([
            [1.0, 0.0, -r * s],
            [0.0, 1.0, r * c],
        ])
        Jz = np.array([
            [c, -r * s],
            [s, r * c],
        ])
        return Jxr, Jz


def landmark_columns(landmark_index: int) -> slice:
    """Column slice of ``landmark_index`` in a joint-state Jacobian."""
    start = POSE_DIM + LANDMARK_DIM * landmark_index
    return slice(start, start + LANDMARK_DIM)
