"""
Motion (process) model for EKF-SLAM.

Provides the differential-drive model with exact integration of a constant
(v, ω) command over Δt, its pose Jacobian, and the process noise model.

Only the pose block of the joint state moves; landmarks are static, so the
full-state transition Jacobian is the identity except for its 3x3 pose
block, and process noise is projected into the pose rows only.
"""

from dataclasses import dataclass

import numpy as np

from slamcore.errors import InvalidInputError
from slamcore.slam.joint_state import JointState
from slamcore.slam.types import POSE_DIM, Control
from slamcore.utils import linalg
from slamcore.utils.angles import wrap_angle


# |ω| below this uses the straight-line limit of the motion model
ANGULAR_VELOCITY_EPSILON = 1e-9


@dataclass(frozen=True)
class ProcessNoise:
    """
    Pose-space process noise.

    Q(control, Δt) = diag(σx², σy², σθ²)·Δt + motion_scale · w wᵀ
    with w = (v Δt cos θ, v Δt sin θ, ω Δt).

    The first term keeps covariance growing even for a stationary agent;
    the second scales uncertainty with the distance and rotation travelled.

    Attributes:
        sigma_x: Position noise std in x (m/√s).
        sigma_y: Position noise std in y (m/√s).
        sigma_theta: Heading noise std (rad/√s).
        motion_scale: Weight of the motion-proportional term (dimensionless).
    """

    sigma_x: float = 0.05
    sigma_y: float = 0.05
    sigma_theta: float = 0.02
    motion_scale: float = 0.0

    def __post_init__(self) -> None:
        for name in ("sigma_x", "sigma_y", "sigma_theta", "motion_scale"):
            value = getattr(self, name)
            if not np.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be finite and non-negative, got {value}")

    def covariance(self, pose: np.ndarray, control: Control, dt: float) -> np.ndarray:
        """3x3 process noise covariance for one prediction step."""
        Q = np.diag([self.sigma_x**2, self.sigma_y**2, self.sigma_theta**2]) * dt
        if self.motion_scale > 0:
            theta = pose[2]
            w = np.array([
                control.v * dt * np.cos(theta),
                control.v * dt * np.sin(theta),
                control.omega * dt,
            ])
            Q = Q + self.motion_scale * np.outer(w, w)
        return Q


def pose_projection(state_dim: int) -> np.ndarray:
    """
    Projection F (state_dim x 3) from pose space into the joint state.

    F·Q·Fᵀ places a 3x3 pose noise matrix in the pose block and leaves
    every landmark row and column zero.
    """
    if state_dim < POSE_DIM:
        raise InvalidInputError(f"State dimension must be >= 3, got {state_dim}")
    return linalg.insert_block(linalg.zeros(state_dim, POSE_DIM), linalg.identity(POSE_DIM), 0, 0)


class DifferentialDriveModel:
    """
    Differential-drive motion with exact integration.

    For ω ≠ 0:
        x' = x + (v/ω)(-sin θ + sin(θ + ωΔt))
        y' = y + (v/ω)( cos θ - cos(θ + ωΔt))
        θ' = θ + ωΔt

    For ω ≈ 0 the straight-line limit is used:
        x' = x + vΔt cos θ,  y' = y + vΔt sin θ,  θ' = θ

    Example:
        >>> model = DifferentialDriveModel()
        >>> model.f(np.zeros(3), Control(v=1.0, omega=0.0), dt=2.0)
        array([2., 0., 0.])
    """

    def __init__(self, angular_velocity_epsilon: float = ANGULAR_VELOCITY_EPSILON):
        self.angular_velocity_epsilon = angular_velocity_epsilon

    def _is_straight(self, omega: float) -> bool:
        return abs(omega) < self.angular_velocity_epsilon

    def f(self, pose: np.ndarray, control: Control, dt: float) -> np.ndarray:
        """
        Propagate a pose [x, y, θ] through one control step.

        Args:
            pose: Current pose.
            control: (v, ω) command.
            dt: Time step in seconds.

        Returns:
            Next pose, heading wrapped to (-π, π].
        """
        x, y, theta = pose
        v, omega = control.v, control.omega

        if self._is_straight(omega):
            x_new = x + v * dt * np.cos(theta)
            y_new = y + v * dt * np.sin(theta)
            theta_new = theta
        else:
            radius = v / omega
            theta_new = theta + omega * dt
            x_new = x + radius * (-np.sin(theta) + np.sin(theta_new))
            y_new = y + radius * (np.cos(theta) - np.cos(theta_new))

        return np.array([x_new, y_new, wrap_angle(theta_new)])

    def G(self, pose: np.ndarray, control: Control, dt: float) -> np.ndarray:
        """
        Jacobian ∂f/∂pose (3x3), evaluated at the pre-prediction pose.

        Only the heading column is non-trivial.
        """
        theta = pose[2]
        v, omega = control.v, control.omega
        G = np.eye(POSE_DIM)

        if self._is_straight(omega):
            G[0, 2] = -v * dt * np.sin(theta)
            G[1, 2] = v * dt * np.cos(theta)
        else:
            radius = v / omega
            G[0, 2] = radius * (-np.cos(theta) + np.cos(theta + omega * dt))
            G[1, 2] = radius * (-np.sin(theta) + np.sin(theta + omega * dt))
        return G

    def predict(
        self,
        state: JointState,
        control: Control,
        dt: float,
        process_noise: ProcessNoise,
    ) -> None:
        """
        Motion update of the joint state.

            μ_pose ← f(μ_pose, u, Δt)
            Σ      ← G Σ Gᵀ + F Q Fᵀ

        G is the identity outside the pose block, so only the pose block and
        the pose/landmark cross terms change:

            Σ_rr ← G_r Σ_rr G_rᵀ,   Σ_rm ← G_r Σ_rm

        Args:
            state: Joint state, mutated in place.
            control: (v, ω) command.
            dt: Time step, must be > 0.
            process_noise: Process noise model.

        Raises:
            InvalidInputError: If dt is not a finite positive number. The
                state is not touched in that case.
        """
        if not np.isfinite(dt) or dt <= 0:
            raise InvalidInputError(f"Time step must be positive and finite, got {dt}")

        n = state.dim
        pose = state.pose
        # Jacobian at the pre-prediction pose
        G_r = self.G(pose, control, dt)
        new_pose = self.f(pose, control, dt)

        covariance = np.array(state.covariance)
        P_rr = linalg.extract_block(covariance, 0, 0, POSE_DIM, POSE_DIM)
        covariance = linalg.insert_block(
            covariance, linalg.multiply(linalg.multiply(G_r, P_rr), linalg.transpose(G_r)), 0, 0
        )
        if n > POSE_DIM:
            P_rm = linalg.extract_block(covariance, 0, POSE_DIM, POSE_DIM, n - POSE_DIM)
            P_rm = linalg.multiply(G_r, P_rm)
            covariance = linalg.insert_block(covariance, P_rm, 0, POSE_DIM)
            covariance = linalg.insert_block(covariance, linalg.transpose(P_rm), POSE_DIM, 0)

        F = pose_projection(n)
        Q = process_noise.covariance(pose, control, dt)
        covariance = linalg.add(
            covariance, linalg.multiply(linalg.multiply(F, Q), linalg.transpose(F))
        )

        mean = np.array(state.mean)
        mean[:POSE_DIM] = new_pose
        state.replace(mean, covariance)

    def transition_jacobian(self, state: JointState, control: Control, dt: float) -> np.ndarray:
        """Full-state Jacobian (identity outside the pose block)."""
        return linalg.insert_block(linalg.identity(state.dim), self.G(state.pose, control, dt), 0, 0)
