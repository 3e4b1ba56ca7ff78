"""
Landmark association and initialization for EKF-SLAM.

Association is index/tag driven, not geometric: an observation names the
landmark it belongs to, either by explicit index or by a tag (signature)
recorded when the landmark was first committed. No nearest-neighbour
search or Mahalanobis gating is performed: an untagged sighting of an
already mapped landmark produces a second landmark.

New landmark initialization (inverse observation model):

    l     = g(pose, z)                        world-frame position
    C     = Jxr Σ_r·                          cross-covariance with every
                                              existing state entry (2 x n)
    Λ     = λ I                               λ = initial uncertainty

Since C uses the full pose rows Σ_r· = [Σ_rr, Σ_rm], the correlations with
previously mapped landmarks are filled in together with the pose block.
"""

from typing import Dict, Hashable, List, Optional, Sequence
import warnings

import numpy as np

from slamcore.errors import (
    DegenerateObservationError,
    DimensionMismatchError,
    InvalidInputError,
)
from slamcore.models.measurement_models import MeasurementNoise, RangeBearingObservationModel
from slamcore.slam.joint_state import JointState
from slamcore.slam.types import (
    LANDMARK_DIM,
    POSE_DIM,
    Association,
    ExistingLandmark,
    NewLandmark,
    Observation,
)
from slamcore.utils import linalg


# Initial landmark variance, "unknown until observed again"
DEFAULT_INITIAL_UNCERTAINTY = 1000.0


class LandmarkManager:
    """
    Decides which landmark an observation refers to and grows the state.

    The manager keeps the tag of every committed landmark in the same order
    as the landmark blocks of the JointState it serves.

    Attributes:
        observation_model: Model providing the inverse observation and its
            Jacobians.
        initial_uncertainty: Diagonal variance λ of a new landmark.
    """

    def __init__(
        self,
        observation_model: Optional[RangeBearingObservationModel] = None,
        initial_uncertainty: float = DEFAULT_INITIAL_UNCERTAINTY,
    ):
        if not np.isfinite(initial_uncertainty) or initial_uncertainty < 0:
            raise ValueError(
                f"initial_uncertainty must be finite and non-negative, got {initial_uncertainty}"
            )
        self.observation_model = observation_model or RangeBearingObservationModel()
        self.initial_uncertainty = float(initial_uncertainty)
        self._tags: List[Optional[Hashable]] = []
        self._index_by_tag: Dict[Hashable, int] = {}

    @property
    def tags(self) -> List[Optional[Hashable]]:
        return list(self._tags)

    def index_of(self, tag: Hashable) -> Optional[int]:
        """Index of the landmark committed with ``tag``, or None."""
        return self._index_by_tag.get(tag)

    def tag_of(self, index: int) -> Optional[Hashable]:
        if not 0 <= index < len(self._tags):
            raise IndexError(f"Landmark index {index} out of range [0, {len(self._tags)})")
        return self._tags[index]

    def reset(self) -> None:
        self._tags = []
        self._index_by_tag = {}

    def _check_in_sync(self, state: JointState) -> None:
        if len(self._tags) != state.landmark_count:
            raise DimensionMismatchError(
                f"Landmark registry holds {len(self._tags)} entries but the state "
                f"has {state.landmark_count} landmarks"
            )

    def resolve(self, state: JointState, observation: Observation) -> Association:
        """
        Associate an observation with an existing landmark or a new one.

        Policy, in order:
            1. Explicit ``landmark_index`` -> that landmark (must exist).
               A tag not yet registered is bound to that landmark, so later
               tag-only observations find it.
            2. Known ``tag`` -> the landmark committed with that tag.
            3. Otherwise -> NewLandmark.

        Raises:
            InvalidInputError: If the explicit index does not exist, the
                index and tag point at different landmarks, or the landmark
                already carries a different tag.
            DimensionMismatchError: If the registry and state disagree.
        """
        self._check_in_sync(state)
        tagged_index = (
            self._index_by_tag.get(observation.tag) if observation.tag is not None else None
        )

        if observation.landmark_index is not None:
            index = int(observation.landmark_index)
            if index >= state.landmark_count:
                raise InvalidInputError(
                    f"Landmark index {index} does not exist "
                    f"(state has {state.landmark_count} landmarks)"
                )
            if tagged_index is not None and tagged_index != index:
                raise InvalidInputError(
                    f"Observation tag {observation.tag!r} belongs to landmark {tagged_index}, "
                    f"not to the given index {index}"
                )
            if observation.tag is not None and tagged_index is None:
                self._bind_tag(index, observation.tag)
            return ExistingLandmark(index)

        if tagged_index is not None:
            return ExistingLandmark(tagged_index)

        return NewLandmark()

    def commit_new_landmark(
        self,
        state: JointState,
        observation: Observation,
        measurement_noise: MeasurementNoise,
    ) -> int:
        """
        Append the landmark seen by ``observation`` to the state.

        Args:
            state: Joint state, grown in place by one landmark block.
            observation: First sighting of the landmark.
            measurement_noise: Sensor noise, used when the configured
                initial uncertainty does not dominate the pose-induced one.

        Returns:
            Index of the new landmark.

        Raises:
            DegenerateObservationError: If the range is zero (landmark at
                the agent position).
            InvalidInputError: If the tag is already in use.
        """
        self._check_in_sync(state)
        if observation.range == 0.0:
            raise DegenerateObservationError("Zero-range observation cannot initialize a landmark")
        if observation.tag is not None and observation.tag in self._index_by_tag:
            raise InvalidInputError(f"Tag {observation.tag!r} is already mapped")

        pose = state.pose
        position = self.observation_model.inverse(pose, observation)
        Jxr, Jz = self.observation_model.inverse_jacobians(pose, observation)

        covariance = np.array(state.covariance)
        pose_rows = linalg.extract_block(covariance, 0, 0, POSE_DIM, state.dim)
        cross = linalg.multiply(Jxr, pose_rows)

        pose_induced = linalg.multiply(
            linalg.multiply(Jxr, linalg.extract_block(covariance, 0, 0, POSE_DIM, POSE_DIM)),
            linalg.transpose(Jxr),
        )
        landmark_cov = self.initial_uncertainty * linalg.identity(LANDMARK_DIM)

        # Schur complement Λ - Jxr Σ_rr Jxrᵀ must stay PSD for the grown matrix to be PSD
        if not linalg.is_positive_semidefinite(linalg.subtract(landmark_cov, pose_induced)):
            R = measurement_noise.covariance(observation.range)
            sensor_induced = linalg.multiply(linalg.multiply(Jz, R), linalg.transpose(Jz))
            landmark_cov = linalg.add(linalg.add(pose_induced, sensor_induced), landmark_cov)
            warnings.warn(
                "Pose uncertainty exceeds the initial landmark uncertainty "
                f"({self.initial_uncertainty}); initializing from the linearized covariance.",
                RuntimeWarning,
            )

        index = state.append_landmark(position, landmark_cov, cross)
        self._register(index, observation.tag)
        return index

    def commit_known_landmark(
        self,
        state: JointState,
        position: Sequence[float],
        tag: Optional[Hashable] = None,
    ) -> int:
        """
        Append a landmark whose world position is known a priori.

        The landmark gets the configured initial uncertainty and no
        correlation with the pose.
        """
        self._check_in_sync(state)
        if tag is not None and tag in self._index_by_tag:
            raise InvalidInputError(f"Tag {tag!r} is already mapped")
        position = np.asarray(position, dtype=float)
        if position.shape != (LANDMARK_DIM,) or not np.all(np.isfinite(position)):
            raise InvalidInputError(f"Known landmark must be a finite (x, y), got {position}")

        index = state.append_landmark(
            position,
            self.initial_uncertainty * linalg.identity(LANDMARK_DIM),
            linalg.zeros(LANDMARK_DIM, state.dim),
        )
        self._register(index, tag)
        return index

    def _register(self, index: int, tag: Optional[Hashable]) -> None:
        self._tags.append(tag)
        if tag is not None:
            self._index_by_tag[tag] = index

    def _bind_tag(self, index: int, tag: Hashable) -> None:
        current = self._tags[index]
        if current is not None:
            raise InvalidInputError(
                f"Landmark {index} is already tagged {current!r}, cannot retag it {tag!r}"
            )
        self._tags[index] = tag
        self._index_by_tag[tag] = index
