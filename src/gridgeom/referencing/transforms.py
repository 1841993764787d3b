"""
gridgeom Math Transforms

This module defines the transforms mapping grid indices to coordinates:
affine (linear) transforms, concatenations, pass-through transforms acting
on a subset of dimensions and transforms backed by Python callables.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence
import numpy as np

from ..core.config import DERIVATIVE_STEP
from ..core.exceptions import (
    IllegalRequestError, NoninvertibleTransformError, ensure_dimension_matches
)
from . import matrices

# ============================================================================
# Base Class
# ============================================================================

class MathTransform(ABC):
    """
    Function from a source coordinate space to a target coordinate space.

    Subclasses implement ``_transform`` on arrays of shape
    (num_points, source_dimensions).
    """

    @property
    @abstractmethod
    def source_dimensions(self) -> int:
        ...

    @property
    @abstractmethod
    def target_dimensions(self) -> int:
        ...

    @abstractmethod
    def _transform(self, points: np.ndarray) -> np.ndarray:
        ...

    @abstractmethod
    def inverse(self) -> "MathTransform":
        ...

    @abstractmethod
    def derivative(self, point: np.ndarray) -> np.ndarray:
        """Jacobian matrix (target x source) at the given source point."""

    def is_identity(self) -> bool:
        return False

    def transform(self, points) -> np.ndarray:
        """
        Transform one point (1-D array) or many points (2-D array, one per row).
        """
        array = np.asarray(points, dtype=float)
        single = array.ndim == 1
        if single:
            array = array[np.newaxis, :]
        if array.ndim != 2:
            raise IllegalRequestError("points", f"Expected 1-D or 2-D array, got {array.ndim}D")
        ensure_dimension_matches("points", self.source_dimensions, array.shape[1])
        result = self._transform(array)
        return result[0] if single else result

    def _check_point(self, point) -> np.ndarray:
        point = np.asarray(point, dtype=float)
        ensure_dimension_matches("point", self.source_dimensions, point.shape[0])
        return point

# ============================================================================
# Linear Transform
# ============================================================================

class LinearTransform(MathTransform):
    """
    Affine transform backed by a (target+1) x (source+1) matrix.

    A zero coefficient ignores its input, so NaN or infinite coordinates do not
    propagate to outputs that do not depend on them.
    """

    def __init__(self, matrix):
        matrix = matrices.as_matrix(matrix)
        if matrix.shape[0] < 2 or matrix.shape[1] < 2:
            raise IllegalRequestError("matrix", f"Matrix of size {matrix.shape} is too small")
        if not matrices.is_affine(matrix):
            raise IllegalRequestError("matrix", "Last row must be [0 … 0 1]")
        matrix.setflags(write=False)
        self._matrix = matrix
        self._inverse: Optional[LinearTransform] = None

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix

    @property
    def source_dimensions(self) -> int:
        return self._matrix.shape[1] - 1

    @property
    def target_dimensions(self) -> int:
        return self._matrix.shape[0] - 1

    def _transform(self, points: np.ndarray) -> np.ndarray:
        coefficients = self._matrix[:-1, :-1]
        with np.errstate(invalid="ignore"):
            terms = coefficients[np.newaxis, :, :] * points[:, np.newaxis, :]
        terms[:, coefficients == 0] = 0.0
        return terms.sum(axis=2) + self._matrix[:-1, -1]

    def inverse(self) -> "LinearTransform":
        if self._inverse is None:
            self._inverse = LinearTransform(matrices.inverse(self._matrix))
            self._inverse._inverse = self
        return self._inverse

    def derivative(self, point) -> np.ndarray:
        self._check_point(point)
        return np.array(self._matrix[:-1, :-1])

    def is_identity(self) -> bool:
        return matrices.is_identity(self._matrix)

    def __eq__(self, other):
        if not isinstance(other, LinearTransform):
            return NotImplemented
        return bool(np.array_equal(self._matrix, other._matrix))

    def __hash__(self):
        return hash(self._matrix.tobytes())

    def __repr__(self):
        rows = "; ".join(" ".join(f"{v:g}" for v in row) for row in self._matrix)
        return f"LinearTransform([{rows}])"

# ============================================================================
# Concatenated Transform
# ============================================================================

class ConcatenatedTransform(MathTransform):
    """Applies ``first`` then ``second``."""

    def __init__(self, first: MathTransform, second: MathTransform):
        ensure_dimension_matches("second", first.target_dimensions, second.source_dimensions)
        self.first = first
        self.second = second

    @property
    def source_dimensions(self) -> int:
        return self.first.source_dimensions

    @property
    def target_dimensions(self) -> int:
        return self.second.target_dimensions

    def _transform(self, points: np.ndarray) -> np.ndarray:
        return self.second._transform(self.first._transform(points))

    def inverse(self) -> MathTransform:
        return concatenate(self.second.inverse(), self.first.inverse())

    def derivative(self, point) -> np.ndarray:
        point = self._check_point(point)
        inner = self.first.derivative(point)
        outer = self.second.derivative(self.first.transform(point))
        return outer @ inner

    def __eq__(self, other):
        if not isinstance(other, ConcatenatedTransform):
            return NotImplemented
        return self.first == other.first and self.second == other.second

    def __hash__(self):
        return hash((self.first, self.second))

    def __repr__(self):
        return f"ConcatenatedTransform({self.first!r}, {self.second!r})"

# ============================================================================
# Pass-Through Transform
# ============================================================================

class PassThroughTransform(MathTransform):
    """
    Applies a sub-transform on a contiguous range of dimensions and passes
    the leading and trailing coordinates through unchanged.
    """

    def __init__(self, first_affected: int, sub_transform: MathTransform, num_trailing: int):
        if first_affected < 0 or num_trailing < 0:
            raise IllegalRequestError(
                "first_affected", "Leading and trailing counts must be non-negative",
                (first_affected, num_trailing)
            )
        self.first_affected = int(first_affected)
        self.sub_transform = sub_transform
        self.num_trailing = int(num_trailing)

    @property
    def source_dimensions(self) -> int:
        return self.first_affected + self.sub_transform.source_dimensions + self.num_trailing

    @property
    def target_dimensions(self) -> int:
        return self.first_affected + self.sub_transform.target_dimensions + self.num_trailing

    def _transform(self, points: np.ndarray) -> np.ndarray:
        stop = self.first_affected + self.sub_transform.source_dimensions
        leading = points[:, :self.first_affected]
        affected = self.sub_transform._transform(points[:, self.first_affected:stop])
        trailing = points[:, stop:]
        return np.concatenate([leading, affected, trailing], axis=1)

    def inverse(self) -> "PassThroughTransform":
        return PassThroughTransform(self.first_affected, self.sub_transform.inverse(), self.num_trailing)

    def derivative(self, point) -> np.ndarray:
        point = self._check_point(point)
        sub_src = self.sub_transform.source_dimensions
        sub_tgt = self.sub_transform.target_dimensions
        lead = self.first_affected
        result = np.zeros((self.target_dimensions, self.source_dimensions))
        result[:lead, :lead] = np.eye(lead)
        result[lead:lead + sub_tgt, lead:lead + sub_src] = \
            self.sub_transform.derivative(point[lead:lead + sub_src])
        result[lead + sub_tgt:, lead + sub_src:] = np.eye(self.num_trailing)
        return result

    def is_identity(self) -> bool:
        return self.sub_transform.is_identity()

    def __eq__(self, other):
        if not isinstance(other, PassThroughTransform):
            return NotImplemented
        return (self.first_affected == other.first_affected and
                self.num_trailing == other.num_trailing and
                self.sub_transform == other.sub_transform)

    def __hash__(self):
        return hash((self.first_affected, self.sub_transform, self.num_trailing))

    def __repr__(self):
        return (f"PassThroughTransform({self.first_affected}, "
                f"{self.sub_transform!r}, {self.num_trailing})")

# ============================================================================
# Function Transform
# ============================================================================

PointFunction = Callable[[np.ndarray], Sequence[float]]


class FunctionTransform(MathTransform):
    """
    Non-linear transform backed by Python callables.

    Each callable receives one point as a 1-D array and returns the
    transformed coordinates. Without an explicit ``derivative`` callable,
    the Jacobian is estimated by central finite differences.
    """

    def __init__(
        self,
        forward: PointFunction,
        source_dimensions: int,
        target_dimensions: int,
        inverse: Optional[PointFunction] = None,
        derivative: Optional[Callable[[np.ndarray], np.ndarray]] = None,
        name: str = "function",
    ):
        self._forward = forward
        self._inverse_function = inverse
        self._derivative = derivative
        self._source_dimensions = int(source_dimensions)
        self._target_dimensions = int(target_dimensions)
        self.name = name

    @property
    def source_dimensions(self) -> int:
        return self._source_dimensions

    @property
    def target_dimensions(self) -> int:
        return self._target_dimensions

    def _transform(self, points: np.ndarray) -> np.ndarray:
        result = np.empty((points.shape[0], self._target_dimensions))
        for row, point in enumerate(points):
            values = np.asarray(self._forward(point), dtype=float)
            ensure_dimension_matches(self.name, self._target_dimensions, values.shape[0])
            result[row] = values
        return result

    def inverse(self) -> "FunctionTransform":
        if self._inverse_function is None:
            raise NoninvertibleTransformError(f"No inverse function given for '{self.name}'")
        return FunctionTransform(
            self._inverse_function,
            self._target_dimensions,
            self._source_dimensions,
            inverse=self._forward,
            name=f"inverse {self.name}",
        )

    def derivative(self, point) -> np.ndarray:
        point = self._check_point(point)
        if self._derivative is not None:
            return np.asarray(self._derivative(point), dtype=float)
        result = np.empty((self._target_dimensions, self._source_dimensions))
        for j in range(self._source_dimensions):
            h = DERIVATIVE_STEP * max(1.0, abs(point[j]))
            after = point.copy()
            before = point.copy()
            after[j] += h
            before[j] -= h
            result[:, j] = (self.transform(after) - self.transform(before)) / (2 * h)
        return result

    def __repr__(self):
        return (f"FunctionTransform({self.name!r}, "
                f"{self._source_dimensions} -> {self._target_dimensions})")

# ============================================================================
# Factory Functions
# ============================================================================

def linear(matrix) -> LinearTransform:
    """Create an affine transform from a (target+1) x (source+1) matrix."""
    return LinearTransform(matrix)


def identity_transform(dimension: int) -> LinearTransform:
    return LinearTransform(matrices.identity(dimension + 1))


def scale_translation(scales: Sequence[float], translations: Sequence[float]) -> LinearTransform:
    """
    Create a diagonal affine transform ``x' = scale * x + translation``.
    """
    ensure_dimension_matches("translations", len(scales), len(translations))
    n = len(scales)
    matrix = matrices.identity(n + 1)
    for i in range(n):
        matrix[i, i] = scales[i]
        matrix[i, n] = translations[i]
    return LinearTransform(matrix)


def translation(offsets: Sequence[float]) -> LinearTransform:
    return scale_translation([1.0] * len(offsets), offsets)


def concatenate(*transforms: MathTransform) -> MathTransform:
    """
    Concatenate transforms, applied in the given order.

    Identity steps are dropped and adjacent linear steps are merged into
    a single matrix.

    Raises:
        IllegalRequestError: If no transform is given
        MismatchedDimensionError: If adjacent dimensions do not match
    """
    if not transforms:
        raise IllegalRequestError("transforms", "At least one transform is required")
    result = transforms[0]
    for step in transforms[1:]:
        ensure_dimension_matches("transforms", result.target_dimensions, step.source_dimensions)
        if step.is_identity():
            continue
        if result.is_identity():
            result = step
        elif isinstance(result, LinearTransform) and isinstance(step, LinearTransform):
            result = LinearTransform(step.matrix @ result.matrix)
        else:
            result = ConcatenatedTransform(result, step)
    return result
