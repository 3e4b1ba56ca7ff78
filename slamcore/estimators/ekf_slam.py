"""
Online EKF-SLAM estimator.

Joint estimation of a differential-drive agent pose and the positions of
the landmarks it observes, with a single Gaussian over

    [x, y, θ, l1x, l1y, ..., lNx, lNy]

Each estimation cycle is one predict() (motion update) followed by any
number of observe() calls. An observation either corrects the state
(known landmark) or grows it by one landmark block (first sighting).

Recoverable numerical failures (singular innovation covariance, degenerate
geometry) skip the offending observation: the state stays unchanged, a
RuntimeWarning is emitted and the returned UpdateReport has status
'skipped'.
"""

from typing import Hashable, Iterable, List, Optional, Sequence, Tuple, Union
import warnings

import numpy as np

from slamcore.config import EKFSlamConfig
from slamcore.errors import DegenerateObservationError, InvalidInputError, SingularMatrixError
from slamcore.estimators.base import StateEstimator
from slamcore.models.measurement_models import RangeBearingObservationModel
from slamcore.models.motion_models import DifferentialDriveModel
from slamcore.slam.joint_state import JointState
from slamcore.slam.landmark_manager import LandmarkManager
from slamcore.slam.types import (
    POSE_DIM,
    Control,
    ExistingLandmark,
    Observation,
    StateSnapshot,
    UpdateReport,
)
from slamcore.slam.update_engine import UpdateEngine


ControlLike = Union[Control, Tuple[float, float], np.ndarray]


class EKFSlam(StateEstimator):
    """
    Extended Kalman Filter SLAM for a single agent.

    Attributes:
        config: Noise models and numerical constants.
        motion_model: Differential-drive motion model.
        observation_model: Range/bearing observation model.
        landmarks: Association policy and landmark registry.
        update_engine: Kalman correction step.

    Example:
        >>> slam = EKFSlam()
        >>> slam.initialize(np.zeros(3), np.zeros((3, 3)))
        >>> slam.predict(Control(v=1.0, omega=0.5), dt=0.1)
        >>> report = slam.observe(Observation(range=10.0, bearing=np.pi / 2, tag="L1"))
        >>> report.status, slam.landmark_count
        ('new_landmark', 1)
    """

    def __init__(self, config: Optional[EKFSlamConfig] = None):
        self.config = config or EKFSlamConfig()
        self.motion_model = DifferentialDriveModel(self.config.angular_velocity_epsilon)
        self.observation_model = RangeBearingObservationModel()
        self.landmarks = LandmarkManager(
            self.observation_model, self.config.initial_landmark_uncertainty
        )
        self.update_engine = UpdateEngine(
            self.observation_model,
            singular_epsilon=self.config.singular_epsilon,
            use_joseph_form=self.config.use_joseph_form,
        )
        self._state: Optional[JointState] = None

    @property
    def is_initialized(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> JointState:
        """The owned joint state (read-only arrays)."""
        self._require_initialized()
        return self._state

    def initialize(
        self,
        initial_pose: np.ndarray,
        initial_covariance: Optional[np.ndarray] = None,
        known_landmarks: Optional[Sequence[Sequence[float]]] = None,
        tags: Optional[Sequence[Optional[Hashable]]] = None,
    ) -> None:
        """
        Reset to a pose-only state, optionally seeded with known landmarks.

        Args:
            initial_pose: Pose [x, y, θ].
            initial_covariance: 3x3 pose covariance (default: zeros, i.e.
                the pose defines the map frame).
            known_landmarks: Landmark positions known a priori, shape (M, 2).
                They are committed with the configured initial uncertainty.
            tags: Tags for ``known_landmarks`` (same length), optional.

        Raises:
            InvalidInputError: On malformed pose, covariance or landmarks.
        """
        if initial_covariance is None:
            initial_covariance = np.zeros((POSE_DIM, POSE_DIM))
        state = JointState(initial_pose, initial_covariance)
        manager = LandmarkManager(self.observation_model, self.config.initial_landmark_uncertainty)

        if known_landmarks is not None:
            positions = list(known_landmarks)
            if tags is None:
                tags = [None] * len(positions)
            elif len(tags) != len(positions):
                raise InvalidInputError(
                    f"Got {len(tags)} tags for {len(positions)} known landmarks"
                )
            for position, tag in zip(positions, tags):
                manager.commit_known_landmark(state, position, tag)
        elif tags is not None:
            raise InvalidInputError("tags given without known_landmarks")

        self._state = state
        self.landmarks = manager

    def predict(self, control: ControlLike, dt: float) -> None:
        """
        Propagate the pose through the motion model.

        Args:
            control: Control or (v, ω).
            dt: Time step in seconds, > 0.

        Raises:
            InvalidInputError: On non-finite control or dt <= 0; the state
                is not modified.
            RuntimeError: If not initialized.
        """
        self._require_initialized()
        control = Control.coerce(control)
        self.motion_model.predict(self._state, control, dt, self.config.process_noise)

    def observe(self, observation: Observation) -> UpdateReport:
        """
        Associate an observation and correct or grow the state.

        Returns:
            UpdateReport describing the outcome.

        Raises:
            InvalidInputError: If the observation names a landmark index that
                does not exist, or a tag that conflicts with its index. A
                tag not yet registered is bound to the indexed landmark.
            RuntimeError: If not initialized.
        """
        self._require_initialized()
        if not isinstance(observation, Observation):
            raise InvalidInputError(
                f"observe() expects an Observation, got {type(observation).__name__}"
            )

        association = self.landmarks.resolve(self._state, observation)
        noise = self.config.measurement_noise
        index = association.index if isinstance(association, ExistingLandmark) else None

        try:
            if index is None:
                index = self.landmarks.commit_new_landmark(self._state, observation, noise)
                return UpdateReport(status=UpdateReport.NEW_LANDMARK, landmark_index=index)

            correction = self.update_engine.correct(self._state, index, observation, noise)
        except (SingularMatrixError, DegenerateObservationError) as e:
            reason = f"{type(e).__name__}: {e}"
            warnings.warn(f"Observation skipped ({reason})", RuntimeWarning)
            return UpdateReport(status=UpdateReport.SKIPPED, landmark_index=index, reason=reason)

        return UpdateReport(
            status=UpdateReport.UPDATED,
            landmark_index=index,
            innovation=correction.innovation,
            innovation_covariance=correction.innovation_covariance,
            nis=correction.nis,
            likelihood=correction.likelihood,
        )

    def observe_batch(self, observations: Iterable[Observation]) -> List[UpdateReport]:
        """Process observations sequentially, in the given order."""
        return [self.observe(z) for z in observations]

    def step(
        self,
        control: ControlLike,
        dt: float,
        observations: Iterable[Observation] = (),
    ) -> List[UpdateReport]:
        """One estimation cycle: predict(), then observe() each observation."""
        self.predict(control, dt)
        return self.observe_batch(observations)

    def get_state_estimate(self) -> StateSnapshot:
        self._require_initialized()
        return self._state.snapshot(self.landmarks.tags)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def landmark_count(self) -> int:
        self._require_initialized()
        return self._state.landmark_count

    @property
    def pose(self) -> np.ndarray:
        self._require_initialized()
        return self._state.pose

    @property
    def pose_covariance(self) -> np.ndarray:
        self._require_initialized()
        return self._state.pose_covariance

    def landmark_position(self, index: int) -> np.ndarray:
        self._require_initialized()
        return self._state.landmark_position(index)

    def landmark_covariance(self, index: int) -> np.ndarray:
        """2x2 marginal covariance of landmark ``index``."""
        self._require_initialized()
        return self._state.landmark_covariance(index)

    def tag_of(self, index: int) -> Optional[Hashable]:
        return self.landmarks.tag_of(index)

    def index_of(self, tag: Hashable) -> Optional[int]:
        return self.landmarks.index_of(tag)

    def __repr__(self) -> str:
        if not self.is_initialized:
            return "EKFSlam(uninitialized)"
        return f"EKFSlam(pose={self._state.pose.round(3)}, landmarks={self._state.landmark_count})"
