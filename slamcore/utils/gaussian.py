"""
Gaussian innovation statistics for a single filter update.

These are computed by the update step itself and reported with every
correction; the evaluation layer re-exports them alongside the trajectory
metrics.
"""

import numpy as np
from scipy import stats


def compute_nis(innovation: np.ndarray, S_inv: np.ndarray) -> float:
    """
    Normalized Innovation Squared ν^T S^{-1} ν for one update.

    Takes the already computed inverse so the caller decides how
    singularity is handled.
    """
    innovation = np.asarray(innovation, dtype=float)
    return float(innovation @ np.asarray(S_inv, dtype=float) @ innovation)


def gaussian_likelihood(innovation: np.ndarray, S: np.ndarray) -> float:
    """
    Likelihood of an innovation under N(0, S).

        p(ν) = exp(-½ ν^T S^{-1} ν) / √det(2π S)

    This is the importance weight a multi-hypothesis filter would assign
    to a particle after this observation.

    Example:
        >>> round(gaussian_likelihood(np.zeros(2), np.eye(2)), 6)
        0.159155
    """
    innovation = np.asarray(innovation, dtype=float)
    S = np.asarray(S, dtype=float)
    return float(
        stats.multivariate_normal(mean=np.zeros(len(innovation)), cov=S, allow_singular=True)
        .pdf(innovation)
    )
