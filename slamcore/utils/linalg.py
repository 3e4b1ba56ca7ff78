"""
Dense linear algebra kernel for the EKF-SLAM estimator.

All functions operate on numpy arrays of explicit shape and never broadcast
or resize implicitly: a shape disagreement raises DimensionMismatchError.
Every function is pure and returns a new array.

Inversion is fallible by contract. A matrix whose normalized determinant
|det A| / ∏ ||row_i|| is below ``epsilon`` (or that contains non-finite
values) raises SingularMatrixError instead of returning a meaningless
inverse, so that a caller can skip the offending update rather than
propagate NaNs. The ratio lies in [0, 1] (Hadamard) and does not change
when rows are rescaled.
"""

import numpy as np

from slamcore.errors import DimensionMismatchError, SingularMatrixError


# Default normalized-determinant threshold below which a matrix is singular
SINGULAR_EPSILON = 1e-12

# Tolerance for symmetry / PSD checks on covariance matrices
SYMMETRY_TOLERANCE = 1e-9


def as_matrix(a: np.ndarray, name: str = "matrix") -> np.ndarray:
    """
    Convert input to a 2D float array.

    Args:
        a: Array-like input.
        name: Name used in error messages.

    Returns:
        2D float64 array (copy).

    Raises:
        DimensionMismatchError: If the input is not two-dimensional.
    """
    m = np.array(a, dtype=float)
    if m.ndim != 2:
        raise DimensionMismatchError(f"{name} must be 2D, got shape {m.shape}")
    return m


def as_vector(v: np.ndarray, name: str = "vector") -> np.ndarray:
    """Convert input to a 1D float array (copy)."""
    out = np.array(v, dtype=float)
    if out.ndim != 1:
        raise DimensionMismatchError(f"{name} must be 1D, got shape {out.shape}")
    return out


def zeros(rows: int, cols: int) -> np.ndarray:
    """Return a rows x cols zero matrix."""
    if rows < 0 or cols < 0:
        raise DimensionMismatchError(f"Invalid dimensions ({rows}, {cols})")
    return np.zeros((rows, cols))


def identity(n: int) -> np.ndarray:
    """Return the n x n identity matrix."""
    if n < 0:
        raise DimensionMismatchError(f"Invalid dimension {n}")
    return np.eye(n)


def transpose(a: np.ndarray) -> np.ndarray:
    """Return the transpose of a 2D matrix."""
    return as_matrix(a).T.copy()


def multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Matrix product a @ b with explicit dimension checking.

    ``b`` may be a matrix (n x p) or a vector (n,). Inner dimensions must
    agree exactly.

    Args:
        a: Left matrix (m x n).
        b: Right matrix (n x p) or vector (n,).

    Returns:
        Product of shape (m, p) or (m,).

    Raises:
        DimensionMismatchError: If inner dimensions differ.

    Example:
        >>> multiply(np.eye(2), np.array([1.0, 2.0]))
        array([1., 2.])
    """
    a = as_matrix(a, "left operand")
    b = np.asarray(b, dtype=float)
    if b.ndim not in (1, 2):
        raise DimensionMismatchError(f"right operand must be 1D or 2D, got shape {b.shape}")
    if a.shape[1] != b.shape[0]:
        raise DimensionMismatchError(
            f"Cannot multiply {a.shape} by {b.shape}: inner dimensions differ"
        )
    return a @ b


def add(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Element-wise sum of two arrays of identical shape."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if a.shape != b.shape:
        raise DimensionMismatchError(f"Cannot add {a.shape} and {b.shape}")
    return a + b


def subtract(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Element-wise difference of two arrays of identical shape."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if a.shape != b.shape:
        raise DimensionMismatchError(f"Cannot subtract {b.shape} from {a.shape}")
    return a - b


def _require_square(a: np.ndarray, operation: str) -> np.ndarray:
    a = as_matrix(a)
    if a.shape[0] != a.shape[1]:
        raise DimensionMismatchError(f"{operation} requires a square matrix, got {a.shape}")
    return a


def determinant(a: np.ndarray) -> float:
    """Determinant of a square matrix."""
    a = _require_square(a, "determinant")
    return float(np.linalg.det(a))


def normalized_determinant(a: np.ndarray) -> float:
    """
    |det A| divided by the product of the row norms of A.

    Lies in [0, 1]: 1 for orthogonal rows, 0 for a singular matrix or one
    with a zero row. Rescaling any row leaves it unchanged. Computed in log
    space so that small-scale matrices do not underflow.

    Example:
        >>> round(normalized_determinant(np.diag([1e-6, 2.5e-7])), 6)
        1.0
    """
    a = _require_square(a, "normalized_determinant")
    if a.size == 0:
        return 1.0
    row_norms = np.linalg.norm(a, axis=1)
    if not np.all(row_norms > 0):
        return 0.0
    sign, logdet = np.linalg.slogdet(a)
    if sign == 0 or not np.isfinite(logdet):
        return 0.0
    return float(min(1.0, np.exp(logdet - np.sum(np.log(row_norms)))))


def inverse(a: np.ndarray, epsilon: float = SINGULAR_EPSILON) -> np.ndarray:
    """
    Inverse of a square matrix, failing explicitly on singularity.

    Args:
        a: Square matrix (n x n).
        epsilon: Normalized determinant |det A| / ∏ ||row_i|| below which
            the matrix is singular.

    Returns:
        Inverse matrix (n x n).

    Raises:
        DimensionMismatchError: If the matrix is not square.
        SingularMatrixError: If the matrix is singular, near-singular or
            contains non-finite entries.

    Example:
        >>> inverse(np.diag([2.0, 4.0]))
        array([[0.5 , 0.  ],
               [0.  , 0.25]])
    """
    a = _require_square(a, "inverse")
    if not np.all(np.isfinite(a)):
        raise SingularMatrixError("Matrix contains non-finite entries")

    ratio = normalized_determinant(a)
    if ratio < epsilon:
        raise SingularMatrixError(
            f"Matrix is singular (normalized |det| = {ratio:.3e} < {epsilon:.1e})"
        )

    try:
        inv = np.linalg.inv(a)
    except np.linalg.LinAlgError as e:
        raise SingularMatrixError(f"Matrix inversion failed: {e}") from e

    if not np.all(np.isfinite(inv)):
        raise SingularMatrixError("Matrix inverse contains non-finite entries")
    return inv


def extract_block(a: np.ndarray, row: int, col: int, rows: int, cols: int) -> np.ndarray:
    """
    Copy the (rows x cols) block whose top-left corner is (row, col).

    Raises:
        DimensionMismatchError: If the block does not fit inside ``a``.
    """
    a = as_matrix(a)
    if row < 0 or col < 0 or row + rows > a.shape[0] or col + cols > a.shape[1]:
        raise DimensionMismatchError(
            f"Block ({row}:{row + rows}, {col}:{col + cols}) outside matrix of shape {a.shape}"
        )
    return a[row:row + rows, col:col + cols].copy()


def insert_block(a: np.ndarray, block: np.ndarray, row: int, col: int) -> np.ndarray:
    """
    Return a copy of ``a`` with ``block`` written at (row, col).

    Raises:
        DimensionMismatchError: If the block does not fit inside ``a``.
    """
    a = as_matrix(a)
    block = as_matrix(block, "block")
    rows, cols = block.shape
    if row < 0 or col < 0 or row + rows > a.shape[0] or col + cols > a.shape[1]:
        raise DimensionMismatchError(
            f"Block of shape {block.shape} at ({row}, {col}) does not fit in {a.shape}"
        )
    out = a.copy()
    out[row:row + rows, col:col + cols] = block
    return out


def symmetrize(a: np.ndarray) -> np.ndarray:
    """Return (A + A^T) / 2."""
    a = _require_square(a, "symmetrize")
    return 0.5 * (a + a.T)


def is_symmetric(a: np.ndarray, atol: float = SYMMETRY_TOLERANCE) -> bool:
    """Check A == A^T within an absolute tolerance."""
    a = _require_square(a, "is_symmetric")
    return bool(np.allclose(a, a.T, rtol=0.0, atol=atol))


def is_positive_semidefinite(a: np.ndarray, tol: float = SYMMETRY_TOLERANCE) -> bool:
    """
    Check that a symmetric matrix has no eigenvalue below ``-tol``.

    The tolerance is relative to the largest absolute eigenvalue (at least 1).
    """
    a = _require_square(a, "is_positive_semidefinite")
    if a.size == 0:
        return True
    eigvals = np.linalg.eigvalsh(symmetrize(a))
    scale = max(1.0, float(np.max(np.abs(eigvals))))
    return bool(np.min(eigvals) >= -tol * scale)

