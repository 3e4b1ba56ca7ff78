"""
Utility functions for the SLAM estimator.

Provides the dense linear algebra kernel (explicit dimensions, fallible
inversion), angle wrapping helpers and per-update Gaussian statistics.
"""

from .angles import wrap_angle, wrap_angle_array, angle_diff
from .gaussian import compute_nis, gaussian_likelihood
from . import linalg

__all__ = [
    'wrap_angle',
    'wrap_angle_array',
    'angle_diff',
    'compute_nis',
    'gaussian_likelihood',
    'linalg',
]
