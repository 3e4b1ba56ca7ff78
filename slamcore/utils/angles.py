"""
Angle wrapping utilities.

All headings and bearings in the estimator live in the half-open interval
(-π, π]. Wrapping is applied to the predicted bearing, to the bearing
innovation and to the agent heading after every mutation.
"""

from typing import Union

import numpy as np


def wrap_angle(angle: float) -> float:
    """
    Wrap angle to (-π, π].

    Without wrapping, a bearing innovation near ±π is off by a full turn:
    measured = -3.1 rad, predicted = 3.1 rad gives -6.2 rad instead of
    the true difference of about +0.083 rad.

    Args:
        angle: Angle in radians (any value)

    Returns:
        Wrapped angle in (-π, π]

    Example:
        >>> round(wrap_angle(3.5 * np.pi), 6)
        -1.570796
        >>> wrap_angle(-np.pi)
        3.141592653589793
    """
    wrapped = float(np.arctan2(np.sin(angle), np.cos(angle)))
    if wrapped <= -np.pi:
        wrapped += 2.0 * np.pi
    return wrapped


def wrap_angle_array(angles: np.ndarray) -> np.ndarray:
    """Vectorized wrap_angle()."""
    wrapped = np.arctan2(np.sin(angles), np.cos(angles))
    return np.where(wrapped <= -np.pi, wrapped + 2.0 * np.pi, wrapped)


def angle_diff(angle1: Union[float, np.ndarray],
               angle2: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Shortest signed difference angle1 - angle2, wrapped to (-π, π].

    This is the bearing innovation: angle_diff(measured, predicted).

    Example:
        >>> round(angle_diff(-3.1, 3.1), 4)
        0.0832
    """
    if isinstance(angle1, np.ndarray) or isinstance(angle2, np.ndarray):
        return wrap_angle_array(np.asarray(angle1) - np.asarray(angle2))
    return wrap_angle(angle1 - angle2)
