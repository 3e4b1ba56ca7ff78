"""
Joint pose/landmark state for EKF-SLAM.

JointState owns the mean vector and covariance matrix and is the only
object allowed to change them. Two mutations exist:

    - replace(mean, covariance): new values of the current dimension
      (motion prediction, Kalman correction)
    - append_landmark(...): grow the state by one landmark block

Both build the new arrays completely before swapping them in, so no
caller can observe a mean and covariance of different sizes.

Layout:
    mean       = [x, y, θ, l1x, l1y, ..., lNx, lNy]     (3 + 2N,)
    covariance = [[P_rr, P_rm],
                  [P_mr, P_mm]]                          (3 + 2N, 3 + 2N)
"""

from typing import Hashable, Optional, Sequence

import numpy as np

from slamcore.errors import DimensionMismatchError, InvalidInputError
from slamcore.slam.types import LANDMARK_DIM, POSE_DIM, StateSnapshot
from slamcore.utils import linalg
from slamcore.utils.angles import wrap_angle


def _readonly(a: np.ndarray) -> np.ndarray:
    view = a.view()
    view.flags.writeable = False
    return view


class JointState:
    """
    Mean and covariance over the agent pose and all known landmarks.

    Attributes:
        mean: Read-only view of the joint mean (3 + 2N,).
        covariance: Read-only view of the joint covariance.
        landmark_count: Number of landmarks N.

    Example:
        >>> state = JointState(np.zeros(3), np.zeros((3, 3)))
        >>> state.dim, state.landmark_count
        (3, 0)
    """

    def __init__(self, pose: np.ndarray, pose_covariance: np.ndarray):
        """
        Create a pose-only state (N = 0).

        Args:
            pose: Initial pose [x, y, θ].
            pose_covariance: Initial 3x3 pose covariance (symmetric PSD).

        Raises:
            InvalidInputError: If shapes are wrong, values are non-finite or
                the covariance is not symmetric positive semi-definite.
        """
        pose = np.array(pose, dtype=float)
        pose_covariance = np.array(pose_covariance, dtype=float)

        if pose.shape != (POSE_DIM,):
            raise InvalidInputError(f"Initial pose must have shape (3,), got {pose.shape}")
        if pose_covariance.shape != (POSE_DIM, POSE_DIM):
            raise InvalidInputError(
                f"Initial covariance must have shape (3, 3), got {pose_covariance.shape}"
            )
        if not np.all(np.isfinite(pose)) or not np.all(np.isfinite(pose_covariance)):
            raise InvalidInputError("Initial pose and covariance must be finite")
        if not linalg.is_symmetric(pose_covariance):
            raise InvalidInputError("Initial covariance must be symmetric")
        if not linalg.is_positive_semidefinite(pose_covariance):
            raise InvalidInputError("Initial covariance must be positive semi-definite")

        pose[2] = wrap_angle(pose[2])
        self._mean = pose
        self._covariance = linalg.symmetrize(pose_covariance)

    @property
    def mean(self) -> np.ndarray:
        return _readonly(self._mean)

    @property
    def covariance(self) -> np.ndarray:
        return _readonly(self._covariance)

    @property
    def dim(self) -> int:
        return len(self._mean)

    @property
    def landmark_count(self) -> int:
        return (self.dim - POSE_DIM) // LANDMARK_DIM

    @property
    def pose(self) -> np.ndarray:
        return self._mean[:POSE_DIM].copy()

    @property
    def pose_covariance(self) -> np.ndarray:
        return self._covariance[:POSE_DIM, :POSE_DIM].copy()

    @staticmethod
    def landmark_offset(index: int) -> int:
        """Position of landmark ``index``'s x coordinate in the mean vector."""
        return POSE_DIM + LANDMARK_DIM * index

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.landmark_count:
            raise IndexError(f"Landmark index {index} out of range [0, {self.landmark_count})")

    def landmark_position(self, index: int) -> np.ndarray:
        """Estimated [lx, ly] of landmark ``index``."""
        self._check_index(index)
        start = self.landmark_offset(index)
        return self._mean[start:start + LANDMARK_DIM].copy()

    def landmark_covariance(self, index: int) -> np.ndarray:
        """2x2 marginal covariance of landmark ``index``."""
        self._check_index(index)
        start = self.landmark_offset(index)
        return linalg.extract_block(self._covariance, start, start, LANDMARK_DIM, LANDMARK_DIM)

    def check_invariants(self) -> None:
        """
        Verify mean/covariance dimensional consistency.

        Raises:
            DimensionMismatchError: If sizes disagree or the landmark block
                layout is broken.
        """
        n = len(self._mean)
        if self._mean.ndim != 1 or self._covariance.shape != (n, n):
            raise DimensionMismatchError(
                f"Mean shape {self._mean.shape} inconsistent with covariance "
                f"shape {self._covariance.shape}"
            )
        if n < POSE_DIM or (n - POSE_DIM) % LANDMARK_DIM != 0:
            raise DimensionMismatchError(f"State dimension {n} is not 3 + 2N")

    def replace(self, mean: np.ndarray, covariance: np.ndarray) -> None:
        """
        Swap in a new mean and covariance of the current dimension.

        The heading is wrapped to (-π, π] and the covariance symmetrized.

        Raises:
            DimensionMismatchError: If either array does not match the
                current state dimension.
        """
        mean = np.array(mean, dtype=float)
        covariance = np.array(covariance, dtype=float)
        n = self.dim
        if mean.shape != (n,):
            raise DimensionMismatchError(f"Mean must have shape ({n},), got {mean.shape}")
        if covariance.shape != (n, n):
            raise DimensionMismatchError(
                f"Covariance must have shape ({n}, {n}), got {covariance.shape}"
            )

        mean[2] = wrap_angle(mean[2])
        self._mean = mean
        self._covariance = linalg.symmetrize(covariance)

    def append_landmark(
        self,
        position: np.ndarray,
        landmark_covariance: np.ndarray,
        cross_covariance: np.ndarray,
    ) -> int:
        """
        Grow the state by one landmark.

        This is the only way to increase N. The new covariance is

            [[P,      C^T],
             [C,      Λ  ]]

        where C (2 x n) is the cross-covariance of the new landmark with
        every existing state entry and Λ (2 x 2) its own covariance.

        Args:
            position: Landmark world position [lx, ly].
            landmark_covariance: Λ, shape (2, 2).
            cross_covariance: C, shape (2, n) with n the current dimension.

        Returns:
            Index of the new landmark.

        Raises:
            DimensionMismatchError: If any block has the wrong shape.
        """
        position = np.array(position, dtype=float)
        landmark_covariance = np.array(landmark_covariance, dtype=float)
        cross_covariance = np.array(cross_covariance, dtype=float)
        n = self.dim

        if position.shape != (LANDMARK_DIM,):
            raise DimensionMismatchError(f"Landmark position must have shape (2,), got {position.shape}")
        if landmark_covariance.shape != (LANDMARK_DIM, LANDMARK_DIM):
            raise DimensionMismatchError(
                f"Landmark covariance must have shape (2, 2), got {landmark_covariance.shape}"
            )
        if cross_covariance.shape != (LANDMARK_DIM, n):
            raise DimensionMismatchError(
                f"Cross covariance must have shape (2, {n}), got {cross_covariance.shape}"
            )

        grown = linalg.zeros(n + LANDMARK_DIM, n + LANDMARK_DIM)
        grown = linalg.insert_block(grown, self._covariance, 0, 0)
        grown = linalg.insert_block(grown, cross_covariance, n, 0)
        grown = linalg.insert_block(grown, linalg.transpose(cross_covariance), 0, n)
        grown = linalg.insert_block(grown, linalg.symmetrize(landmark_covariance), n, n)

        index = self.landmark_count
        self._mean = np.concatenate([self._mean, position])
        self._covariance = grown
        return index

    def snapshot(self, tags: Optional[Sequence[Optional[Hashable]]] = None) -> StateSnapshot:
        """Immutable copy of the current mean and covariance."""
        if tags is None:
            tags = [None] * self.landmark_count
        return StateSnapshot(mean=self._mean, covariance=self._covariance, tags=tuple(tags))

    def copy(self) -> "JointState":
        clone = JointState.__new__(JointState)
        clone._mean = self._mean.copy()
        clone._covariance = self._covariance.copy()
        return clone

    def __repr__(self) -> str:
        x, y, theta = self._mean[:POSE_DIM]
        return (
            f"JointState(pose=({x:.4f}, {y:.4f}, {theta:.4f}), "
            f"landmarks={self.landmark_count})"
        )
