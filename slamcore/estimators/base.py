"""
Base class for online state estimators.

This module defines the interface shared by online estimators that grow
their state as the environment is explored.
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from slamcore.slam.types import Control, Observation, StateSnapshot, UpdateReport


class StateEstimator(ABC):
    """Abstract base class for online SLAM estimators."""

    @abstractmethod
    def initialize(
        self,
        initial_pose: np.ndarray,
        initial_covariance: Optional[np.ndarray] = None,
    ) -> None:
        """
        Reset the estimator to a pose-only state.

        Args:
            initial_pose: Initial pose [x, y, θ].
            initial_covariance: Initial 3x3 pose covariance.
        """

    @abstractmethod
    def predict(self, control: Control, dt: float) -> None:
        """
        Perform prediction step (time update).

        Args:
            control: Motion command.
            dt: Time step in seconds.
        """

    @abstractmethod
    def observe(self, observation: Observation) -> UpdateReport:
        """
        Incorporate one observation (correction or map growth).

        Args:
            observation: Landmark observation.
        """

    @abstractmethod
    def get_state_estimate(self) -> StateSnapshot:
        """
        Get an immutable copy of the current estimate.

        Raises:
            RuntimeError: If the estimator has not been initialized.
        """

    @property
    @abstractmethod
    def is_initialized(self) -> bool:
        """True once initialize() has been called."""

    def _require_initialized(self) -> None:
        if not self.is_initialized:
            raise RuntimeError("Estimator not initialized. Call initialize() first.")
