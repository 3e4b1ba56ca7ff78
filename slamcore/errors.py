"""
Error types raised by the SLAM estimator.

Recoverable errors (SingularMatrixError, DegenerateObservationError) are
caught by the estimator for the single observation that produced them;
the observation is skipped and the state is left untouched.
DimensionMismatchError is never caught inside the package: it means the
mean vector and covariance matrix disagree, which is a programming defect.
"""

import numpy as np


class SlamError(Exception):
    """Base class for all estimator errors."""


class InvalidInputError(SlamError, ValueError):
    """Malformed control, observation or initialization input (e.g. dt <= 0)."""


class SingularMatrixError(SlamError, np.linalg.LinAlgError):
    """A matrix that must be inverted is singular or numerically unusable."""


class DegenerateObservationError(SlamError, ValueError):
    """Observation geometry is degenerate (landmark coincides with the agent)."""


class DimensionMismatchError(SlamError):
    """Matrix/vector dimensions are inconsistent with each other."""
