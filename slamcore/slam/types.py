"""Type definitions for the EKF-SLAM estimator.

Key types:
    - Control: (v, ω) motion command for the differential-drive model
    - Observation: range/bearing to a landmark plus an association hint
    - ExistingLandmark / NewLandmark: data association outcome
    - StateSnapshot: immutable copy of the joint mean and covariance
    - UpdateReport: outcome of a single observation

State layout (POSE_DIM + LANDMARK_DIM * N):
    [x, y, θ, l1x, l1y, l2x, l2y, ...]
"""

from dataclasses import dataclass
from typing import Hashable, Optional, Tuple, Union

import numpy as np

from slamcore.errors import InvalidInputError


POSE_DIM = 3
LANDMARK_DIM = 2


@dataclass(frozen=True)
class Control:
    """
    Differential-drive motion command.

    Attributes:
        v: Linear velocity (m/s), along the agent heading.
        omega: Angular velocity (rad/s), counter-clockwise positive.

    Example:
        >>> u = Control(v=1.0, omega=0.5)
        >>> u.as_array()
        array([1. , 0.5])
    """

    v: float
    omega: float

    def __post_init__(self) -> None:
        """Reject non-finite commands."""
        if not np.isfinite(self.v):
            raise InvalidInputError(f"Linear velocity must be finite, got {self.v}")
        if not np.isfinite(self.omega):
            raise InvalidInputError(f"Angular velocity must be finite, got {self.omega}")

    def as_array(self) -> np.ndarray:
        return np.array([self.v, self.omega], dtype=float)

    @classmethod
    def coerce(cls, control: Union["Control", Tuple[float, float], np.ndarray]) -> "Control":
        """Accept a Control or any length-2 sequence (v, ω)."""
        if isinstance(control, cls):
            return control
        values = np.asarray(control, dtype=float).ravel()
        if values.shape != (2,):
            raise InvalidInputError(f"Control must be (v, omega), got shape {values.shape}")
        return cls(v=float(values[0]), omega=float(values[1]))


@dataclass(frozen=True)
class Observation:
    """
    Range/bearing observation of a landmark.

    Association is index/tag driven: ``landmark_index`` names an existing
    landmark directly, otherwise ``tag`` is looked up among the tags of
    committed landmarks. An observation carrying neither is always treated
    as a new landmark.

    Attributes:
        range: Distance to the landmark (m), >= 0.
        bearing: Angle to the landmark relative to the agent heading (rad).
        tag: Optional landmark signature used for association.
        landmark_index: Optional explicit index of an existing landmark.

    Example:
        >>> z = Observation(range=10.0, bearing=np.pi / 2, tag="L1")
        >>> z.as_array()
        array([10.        ,  1.57079633])
    """

    range: float
    bearing: float
    tag: Optional[Hashable] = None
    landmark_index: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate measurement values."""
        if not np.isfinite(self.range):
            raise InvalidInputError(f"Range must be finite, got {self.range}")
        if self.range < 0:
            raise InvalidInputError(f"Range must be non-negative, got {self.range}")
        if not np.isfinite(self.bearing):
            raise InvalidInputError(f"Bearing must be finite, got {self.bearing}")
        if self.landmark_index is not None:
            if isinstance(self.landmark_index, bool) or not isinstance(
                self.landmark_index, (int, np.integer)
            ):
                raise InvalidInputError(
                    f"landmark_index must be an integer, got {self.landmark_index!r}"
                )
            if self.landmark_index < 0:
                raise InvalidInputError(
                    f"landmark_index must be non-negative, got {self.landmark_index}"
                )

    def as_array(self) -> np.ndarray:
        """Measurement vector [range, bearing]."""
        return np.array([self.range, self.bearing], dtype=float)


@dataclass(frozen=True)
class ExistingLandmark:
    """Association result: the observation refers to landmark ``index``."""

    index: int


@dataclass(frozen=True)
class NewLandmark:
    """Association result: the observation refers to an unseen landmark."""


Association = Union[ExistingLandmark, NewLandmark]


@dataclass(frozen=True)
class StateSnapshot:
    """
    Immutable copy of the estimator state for planners and controllers.

    The arrays are private copies with the writeable flag cleared, so a
    consumer can neither mutate the estimator nor be surprised by later
    estimator updates.

    Attributes:
        mean: Joint mean vector, shape (3 + 2N,).
        covariance: Joint covariance, shape (3 + 2N, 3 + 2N).
        tags: Tag of each landmark (None for untagged), length N.
    """

    mean: np.ndarray
    covariance: np.ndarray
    tags: Tuple[Optional[Hashable], ...] = ()

    def __post_init__(self) -> None:
        mean = np.array(self.mean, dtype=float)
        covariance = np.array(self.covariance, dtype=float)
        mean.flags.writeable = False
        covariance.flags.writeable = False
        object.__setattr__(self, "mean", mean)
        object.__setattr__(self, "covariance", covariance)

    @property
    def landmark_count(self) -> int:
        return (len(self.mean) - POSE_DIM) // LANDMARK_DIM

    @property
    def pose(self) -> np.ndarray:
        """Agent pose [x, y, θ]."""
        return self.mean[:POSE_DIM].copy()

    @property
    def pose_covariance(self) -> np.ndarray:
        return self.covariance[:POSE_DIM, :POSE_DIM].copy()

    @property
    def landmarks(self) -> np.ndarray:
        """Landmark positions, shape (N, 2)."""
        return self.mean[POSE_DIM:].reshape(-1, LANDMARK_DIM).copy()

    def landmark_covariance(self, index: int) -> np.ndarray:
        """2x2 marginal covariance of landmark ``index``."""
        if not 0 <= index < self.landmark_count:
            raise IndexError(f"Landmark index {index} out of range [0, {self.landmark_count})")
        start = POSE_DIM + LANDMARK_DIM * index
        return self.covariance[start:start + LANDMARK_DIM, start:start + LANDMARK_DIM].copy()


@dataclass(frozen=True)
class UpdateReport:
    """
    Outcome of processing one observation.

    Attributes:
        status: 'updated' (Kalman correction applied), 'new_landmark'
            (landmark committed) or 'skipped' (recovered error, state unchanged).
        landmark_index: Index the observation was associated with (None when
            skipped before association completed).
        innovation: Measurement residual [Δrange, Δbearing] (updates only).
        innovation_covariance: S = H P H^T + R (updates only).
        nis: Normalized innovation squared ν^T S^-1 ν (updates only).
        likelihood: Gaussian likelihood of the innovation (updates only).
        reason: Description of the recovered error (skipped only).
    """

    status: str
    landmark_index: Optional[int] = None
    innovation: Optional[np.ndarray] = None
    innovation_covariance: Optional[np.ndarray] = None
    nis: Optional[float] = None
    likelihood: Optional[float] = None
    reason: Optional[str] = None

    UPDATED = "updated"
    NEW_LANDMARK = "new_landmark"
    SKIPPED = "skipped"

    @property
    def skipped(self) -> bool:
        return self.status == self.SKIPPED
