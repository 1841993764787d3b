"""
gridgeom Custom Exception Classes

This module defines all custom exception classes for better error handling
and more informative error messages.
"""

from typing import Any, Optional, Sequence, List

# ============================================================================
# Base Exception
# ============================================================================

class GridGeometryError(Exception):
    """Base exception class for all gridgeom related errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        full_message = f"{message}\nDetails: {details}" if details else message
        super().__init__(full_message)

# ============================================================================
# Incomplete Geometry
# ============================================================================

class IncompleteGridGeometryError(GridGeometryError):
    """The base grid geometry lacks a component required by the request."""

    def __init__(self, component: str):
        super().__init__(f"Grid geometry has no {component}")
        self.component = component

# ============================================================================
# Illegal Requests
# ============================================================================

class IllegalRequestError(GridGeometryError):
    """Invalid argument or call sequence, detected before any numeric work."""

    def __init__(self, parameter: str, reason: str, value: Any = None):
        message = f"Invalid parameter '{parameter}'"
        if value is not None:
            message = f"{message}: {value}"
        super().__init__(message, reason)
        self.parameter = parameter
        self.value = value

class DerivationStateError(IllegalRequestError):
    """A derivation operation was invoked twice or out of order."""

    def __init__(self, operation: str, already_invoked: str):
        super().__init__(
            operation,
            f"Cannot invoke '{operation}' because '{already_invoked}' has already been invoked"
        )
        self.operation = operation
        self.already_invoked = already_invoked

class MismatchedDimensionError(IllegalRequestError):
    """Dimension of an argument does not match the expected dimension."""

    def __init__(self, argument: str, expected: int, actual: int):
        super().__init__(
            argument,
            f"Expected {expected} dimension(s) but got {actual}"
        )
        self.expected = expected
        self.actual = actual

# ============================================================================
# Numeric Failures
# ============================================================================

class TransformFailureError(GridGeometryError):
    """A coordinate operation or transform could not be applied to an argument."""

    def __init__(self, argument: str, reason: str):
        super().__init__(f"Cannot map '{argument}' to grid coordinates", reason)
        self.argument = argument

class OutOfDomainError(GridGeometryError):
    """A position, once mapped to grid indices, falls outside the grid extent."""

    def __init__(self, argument: str, reason: str):
        super().__init__(f"'{argument}' is outside the grid extent", reason)
        self.argument = argument

class DisjointExtentError(OutOfDomainError):
    """An area, once mapped to grid indices, does not intersect the grid extent."""

    def __init__(self, dimension: int, lower: float, upper: float):
        super().__init__(
            "envelope",
            f"Dimension {dimension} maps to an empty index range [{lower} … {upper}]"
        )
        self.dimension = dimension

class CoordinateError(GridGeometryError):
    """Dataset coordinate related errors."""

    def __init__(self, coord_name: str, issue: str):
        super().__init__(f"Coordinate error in '{coord_name}': {issue}")
        self.coord_name = coord_name

# ============================================================================
# Referencing Errors
# ============================================================================

class ReferencingError(GridGeometryError):
    """
    Base class for low-level transform errors.

    The grid layer wraps those errors into TransformFailureError or
    OutOfDomainError, naming the offending argument.
    """

class NoninvertibleTransformError(ReferencingError):
    """Transform or matrix can not be inverted."""

    def __init__(self, reason: str):
        super().__init__("Transform is not invertible", reason)

class SeparationError(ReferencingError):
    """Transform can not be separated into the requested dimensions."""

    def __init__(self, reason: str):
        super().__init__("Cannot map to grid dimensions", reason)

class OperationNotFoundError(ReferencingError):
    """No unique coordinate operation between two reference systems."""

    def __init__(self, source: str, target: str, reason: Optional[str] = None):
        super().__init__(f"No coordinate operation from {source} to {target}", reason)
        self.source = source
        self.target = target

# ============================================================================
# Utility Functions
# ============================================================================

def ensure_dimension_matches(argument: str, expected: int, actual: int) -> None:
    """
    Verify that an argument has the expected number of dimensions.

    Raises:
        MismatchedDimensionError: If the dimensions differ
    """
    if expected != actual:
        raise MismatchedDimensionError(argument, expected, actual)

def verify_dimensions(dimensions: Sequence[int], limit: int) -> List[int]:
    """
    Validate a list of dimension indices used for dimensionality reduction.

    Args:
        dimensions: Dimension indices to keep
        limit: Number of dimensions available

    Returns:
        List[int]: Validated copy of the dimensions

    Raises:
        IllegalRequestError: If the list is empty, not strictly increasing,
            contains duplicates or is out of range
    """
    dims = [int(d) for d in dimensions]
    if not dims:
        raise IllegalRequestError("dimensions", "At least one dimension must be selected")
    previous = -1
    for d in dims:
        if d < 0 or d >= limit:
            raise IllegalRequestError(
                "dimensions", f"Index {d} is outside valid range: [0, {limit - 1}]", dims
            )
        if d <= previous:
            raise IllegalRequestError(
                "dimensions", "Dimensions must be in strictly increasing order without duplicates", dims
            )
        previous = d
    return dims
