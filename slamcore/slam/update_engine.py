"""
Kalman correction step for one landmark observation.

    ν  = z - h(μ)                 bearing component wrapped to (-π, π]
    S  = H Σ Hᵀ + R
    K  = Σ Hᵀ S⁻¹
    μ  ← μ + K ν
    Σ  ← (I - K H) Σ (I - K H)ᵀ + K R Kᵀ      (Joseph form)

The naive form Σ ← (I - K H) Σ is available for comparison; either result
is symmetrized before it is stored.

Every intermediate is computed before the state is touched. A singular S,
a degenerate geometry or a non-finite result raises before mutation, so
the caller can skip the observation with the state bit-for-bit unchanged.
"""

from dataclasses import dataclass

import numpy as np

from slamcore.errors import SingularMatrixError
from slamcore.models.measurement_models import (
    MeasurementNoise,
    RangeBearingObservationModel,
)
from slamcore.slam.joint_state import JointState
from slamcore.slam.types import Observation
from slamcore.utils import linalg
from slamcore.utils.angles import angle_diff
from slamcore.utils.gaussian import compute_nis, gaussian_likelihood


@dataclass(frozen=True)
class Correction:
    """Diagnostics of a successful correction."""

    innovation: np.ndarray
    innovation_covariance: np.ndarray
    nis: float
    likelihood: float


def innovation(z: np.ndarray, z_pred: np.ndarray) -> np.ndarray:
    """
    Range/bearing innovation with the bearing wrapped.

    Example:
        >>> innovation(np.array([1.0, -3.1]), np.array([1.0, 3.1])).round(4)
        array([0.    , 0.0832])
    """
    return np.array([z[0] - z_pred[0], angle_diff(z[1], z_pred[1])])


class UpdateEngine:
    """
    EKF measurement update against the joint state.

    Attributes:
        observation_model: Provides h(μ) and the sparse Jacobian H.
        singular_epsilon: Normalized-determinant threshold for inverting S.
        use_joseph_form: Use the Joseph covariance update (default) instead
            of (I - K H) Σ.
    """

    def __init__(
        self,
        observation_model: RangeBearingObservationModel,
        singular_epsilon: float = linalg.SINGULAR_EPSILON,
        use_joseph_form: bool = True,
    ):
        self.observation_model = observation_model
        self.singular_epsilon = singular_epsilon
        self.use_joseph_form = use_joseph_form

    def correct(
        self,
        state: JointState,
        landmark_index: int,
        observation: Observation,
        measurement_noise: MeasurementNoise,
    ) -> Correction:
        """
        Apply the Kalman update for one observation of ``landmark_index``.

        Args:
            state: Joint state, mutated in place on success only.
            landmark_index: Landmark the observation is associated with.
            observation: Measured range and bearing.
            measurement_noise: Sensor noise model.

        Returns:
            Correction diagnostics.

        Raises:
            DegenerateObservationError: Landmark coincides with the agent.
            SingularMatrixError: S is not invertible or the update produced
                non-finite values.
        """
        z_pred, H = self.observation_model.predict(state, landmark_index)
        z = observation.as_array()
        R = measurement_noise.covariance(observation.range)
        nu = innovation(z, z_pred)

        P = np.array(state.covariance)
        Ht = linalg.transpose(H)
        PHt = linalg.multiply(P, Ht)
        S = linalg.add(linalg.multiply(H, PHt), R)
        S_inv = linalg.inverse(S, self.singular_epsilon)
        K = linalg.multiply(PHt, S_inv)

        mean = linalg.add(state.mean, linalg.multiply(K, nu))

        I_KH = linalg.subtract(linalg.identity(state.dim), linalg.multiply(K, H))
        if self.use_joseph_form:
            covariance = linalg.add(
                linalg.multiply(linalg.multiply(I_KH, P), linalg.transpose(I_KH)),
                linalg.multiply(linalg.multiply(K, R), linalg.transpose(K)),
            )
        else:
            covariance = linalg.multiply(I_KH, P)

        if not (np.all(np.isfinite(mean)) and np.all(np.isfinite(covariance))):
            raise SingularMatrixError("Kalman update produced non-finite values")

        correction = Correction(
            innovation=nu,
            innovation_covariance=linalg.symmetrize(S),
            nis=compute_nis(nu, S_inv),
            likelihood=gaussian_likelihood(nu, S),
        )

        state.replace(mean, covariance)
        return correction
