"""
gridgeom Dense Matrix Helper

Small fixed-size matrix operations used by transforms: creation, inversion,
multiplication and derivative evaluation. Affine matrices have size
(target+1) x (source+1) with the translation terms in the last column.
"""

from typing import Sequence
import numpy as np

from ..core.exceptions import NoninvertibleTransformError, IllegalRequestError


def identity(size: int) -> np.ndarray:
    """Square identity matrix of the given size."""
    return np.eye(size, dtype=float)


def as_matrix(values) -> np.ndarray:
    """Copy values into a 2-D float matrix."""
    matrix = np.array(values, dtype=float)
    if matrix.ndim != 2:
        raise IllegalRequestError("matrix", f"Expected a 2-D matrix, got {matrix.ndim}D")
    return matrix


def inverse(matrix) -> np.ndarray:
    """
    Invert a square matrix.

    Affine matrices (last row equal to [0 … 0 1]) stay affine: the last
    row of the result is forced back to exact zeros and one.

    Raises:
        NoninvertibleTransformError: If the matrix is not square or is singular
    """
    matrix = as_matrix(matrix)
    rows, cols = matrix.shape
    if rows != cols:
        raise NoninvertibleTransformError(f"Matrix of size {rows}x{cols} is not square")
    if np.linalg.matrix_rank(matrix) < rows:
        raise NoninvertibleTransformError("Matrix is singular")
    try:
        result = np.linalg.inv(matrix)
    except np.linalg.LinAlgError as e:
        raise NoninvertibleTransformError(str(e)) from e
    if is_affine(matrix):
        result[-1, :] = 0.0
        result[-1, -1] = 1.0
    return result


def multiply(matrix, vector: Sequence[float]) -> np.ndarray:
    """
    Multiply a matrix by a column vector.

    Terms where the matrix coefficient is zero contribute zero even if the
    vector element is NaN or infinite.
    """
    matrix = as_matrix(matrix)
    vector = np.asarray(vector, dtype=float)
    if vector.shape != (matrix.shape[1],):
        raise IllegalRequestError(
            "vector", f"Expected length {matrix.shape[1]}, got shape {vector.shape}"
        )
    with np.errstate(invalid="ignore"):
        terms = matrix * vector
    terms[matrix == 0] = 0.0
    return terms.sum(axis=1)


def derivative(transform, point: Sequence[float]) -> np.ndarray:
    """
    Evaluate the Jacobian of a transform at the given point.

    Returns:
        np.ndarray: Matrix of size target_dimensions x source_dimensions
    """
    return transform.derivative(np.asarray(point, dtype=float))


def is_affine(matrix) -> bool:
    """Check if the last row is [0 … 0 1]."""
    matrix = np.asarray(matrix)
    last = np.zeros(matrix.shape[1])
    last[-1] = 1.0
    return bool(np.array_equal(matrix[-1], last))


def is_identity(matrix) -> bool:
    """Check if the matrix is a square identity matrix."""
    matrix = np.asarray(matrix)
    return matrix.shape[0] == matrix.shape[1] and bool(np.array_equal(matrix, np.eye(matrix.shape[0])))
