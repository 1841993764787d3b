"""
gridgeom Grid Extent

This module defines the immutable N-dimensional integer index box of a grid,
together with its construction from continuous envelopes, slicing at a
point and dimensionality reduction.
"""

from __future__ import annotations
import math
from typing import Optional, Sequence, Tuple, Union

from ..core.config import get_default_rounding
from ..core.core_types import (
    DimensionMap, Envelope, DirectPosition, GridRoundingMode
)
from ..core.exceptions import (
    IllegalRequestError, OutOfDomainError, DisjointExtentError,
    ensure_dimension_matches, verify_dimensions
)

# ============================================================================
# Rounding Utilities
# ============================================================================

def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves rounded toward positive infinity."""
    return math.floor(value + 0.5)


def _round_range(lower: float, upper: float, rounding: GridRoundingMode) -> Tuple[int, int]:
    """
    Convert the continuous range [lower, upper) to an inclusive integer range.
    """
    if rounding is GridRoundingMode.ENCLOSING:
        low = math.floor(lower)
        high = math.ceil(upper)
        if low != high:
            high -= 1
        return low, high

    if rounding is GridRoundingMode.CONTAINED:
        return math.ceil(lower), math.floor(upper) - 1

    low = round_half_up(lower)
    high = round_half_up(upper)
    if low != high:
        high -= 1
    # Rounding both bounds may create one cell more or less than the span.
    # If so, adjust the value which is farthest from an integer, provided
    # that the span itself is closer to an integer.
    span = upper - lower
    expected = round_half_up(span)
    error = (high - low + 1) - expected
    if expected >= 1 and error in (1, -1):
        dlow = abs(lower - round(lower))
        dhigh = abs(upper - round(upper))
        dspan = abs(span - expected)
        if dspan < dlow or dspan < dhigh:
            if dlow > dhigh:
                low += error
            else:
                high -= error
    return low, high

# ============================================================================
# Grid Extent
# ============================================================================

class GridExtent:
    """
    Range of valid grid indices in each dimension.

    Bounds are inclusive: dimension ``i`` covers ``get_size(i)`` cells from
    ``get_low(i)`` to ``get_high(i)``. Instances are immutable; every
    operation returns a new extent, or ``self`` when nothing changes.

    Attributes:
        axis_names: Optional name of each dimension, e.g. ("lon", "lat")
    """

    __slots__ = ("_low", "_high", "axis_names", "_point_of_interest")

    def __init__(
        self,
        low: Sequence[int],
        high: Sequence[int],
        axis_names: Optional[Sequence[str]] = None,
        point_of_interest: Optional[Sequence[float]] = None,
    ):
        low = tuple(int(v) for v in low)
        high = tuple(int(v) for v in high)
        if not low:
            raise IllegalRequestError("low", "A grid extent needs at least one dimension")
        ensure_dimension_matches("high", len(low), len(high))
        for i, (lo, hi) in enumerate(zip(low, high)):
            if lo > hi:
                raise IllegalRequestError("high", f"low[{i}] must be <= high[{i}]", (lo, hi))
        if axis_names is not None:
            axis_names = tuple(str(n) for n in axis_names)
            ensure_dimension_matches("axis_names", len(low), len(axis_names))
        if point_of_interest is not None:
            point_of_interest = tuple(float(v) for v in point_of_interest)
            ensure_dimension_matches("point_of_interest", len(low), len(point_of_interest))
        self._low = low
        self._high = high
        self.axis_names = axis_names
        self._point_of_interest = point_of_interest

    @classmethod
    def from_shape(cls, shape: Sequence[int], axis_names: Optional[Sequence[str]] = None) -> "GridExtent":
        """Create the extent [0 … n-1] in each dimension."""
        return cls([0] * len(shape), [int(n) - 1 for n in shape], axis_names)

    @classmethod
    def from_envelope(
        cls,
        envelope: Envelope,
        rounding: Optional[Union[GridRoundingMode, str]] = None,
        point_of_interest: Optional[Sequence[float]] = None,
        enclosing: Optional["GridExtent"] = None,
        dimension_map: DimensionMap = None,
        margin: Optional[Sequence[int]] = None,
        axis_names: Optional[Sequence[str]] = None,
    ) -> "GridExtent":
        """
        Create an extent from a continuous envelope in grid index space.

        Each [lower, upper) range of the envelope is converted to integer
        indices with the given rounding mode.

        Args:
            envelope: Envelope in grid index (cell corner) coordinates
            rounding: Rounding mode, default from configuration
            point_of_interest: Representative point of the new extent
            enclosing: If given, the result is clipped to this extent and
                dimensions not constrained by the envelope keep its bounds
            dimension_map: Extent dimension written by each envelope
                dimension; requires ``enclosing``
            margin: Number of cells to add on both sides of each envelope
                dimension, before clipping
            axis_names: Dimension names, used when ``enclosing`` is None

        Returns:
            GridExtent: New extent

        Raises:
            IllegalRequestError: If an envelope bound is NaN or infinite and
                no enclosing extent provides a replacement
            DisjointExtentError: If a dimension maps to an empty range
        """
        rounding = GridRoundingMode.parse(rounding) if rounding is not None else get_default_rounding()
        dimension = envelope.dimension
        if dimension_map is not None:
            ensure_dimension_matches("dimension_map", dimension, len(dimension_map))
            if enclosing is None:
                raise IllegalRequestError("enclosing", "Required when a dimension map is given")
            targets = [int(i) for i in dimension_map]
        else:
            if enclosing is not None:
                ensure_dimension_matches("envelope", enclosing.dimension, dimension)
            targets = list(range(dimension))
        if margin is not None:
            ensure_dimension_matches("margin", dimension, len(margin))

        if enclosing is not None:
            low, high = list(enclosing.low), list(enclosing.high)
            axis_names = enclosing.axis_names
        else:
            low, high = [0] * dimension, [0] * dimension

        for k, i in enumerate(targets):
            lower, upper = envelope.lower[k], envelope.upper[k]
            if math.isnan(lower) or math.isnan(upper):
                if enclosing is None:
                    raise IllegalRequestError("envelope", f"Dimension {k} is unconstrained", (lower, upper))
                continue
            if not (math.isfinite(lower) and math.isfinite(upper)):
                if enclosing is None:
                    raise IllegalRequestError("envelope", f"Dimension {k} is unbounded", (lower, upper))
                lower = max(lower, enclosing.get_low(i))
                upper = min(upper, enclosing.get_high(i) + 1.0)
            lo, hi = _round_range(lower, upper, rounding)
            if margin is not None:
                lo -= int(margin[k])
                hi += int(margin[k])
            if enclosing is not None:
                lo = max(lo, enclosing.get_low(i))
                hi = min(hi, enclosing.get_high(i))
            if lo > hi:
                raise DisjointExtentError(i, lo, hi)
            low[i], high[i] = lo, hi

        return cls(low, high, axis_names, point_of_interest)

    # ------------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------------

    @property
    def dimension(self) -> int:
        return len(self._low)

    @property
    def low(self) -> Tuple[int, ...]:
        return self._low

    @property
    def high(self) -> Tuple[int, ...]:
        return self._high

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(hi - lo + 1 for lo, hi in zip(self._low, self._high))

    def get_low(self, i: int) -> int:
        return self._low[i]

    def get_high(self, i: int) -> int:
        return self._high[i]

    def get_size(self, i: int) -> int:
        return self._high[i] - self._low[i] + 1

    def get_axis_name(self, i: int) -> str:
        return self.axis_names[i] if self.axis_names is not None else f"dim{i}"

    def is_empty_slice(self, i: int) -> bool:
        """Check if dimension ``i`` is collapsed to a single index."""
        return self._low[i] == self._high[i]

    def to_envelope(self) -> Envelope:
        """Cell envelope [low, high+1) in grid index space."""
        return Envelope(self._low, tuple(hi + 1.0 for hi in self._high))

    def get_point_of_interest(self, dimension_map: DimensionMap = None) -> Tuple[float, ...]:
        """
        Representative point of this extent, used for evaluating derivatives.

        Default is the center of the extent in cell corner coordinates.
        If ``dimension_map`` is given, only those dimensions are returned.
        """
        if self._point_of_interest is not None:
            point = self._point_of_interest
        else:
            point = tuple((lo + hi + 1.0) * 0.5 for lo, hi in zip(self._low, self._high))
        if dimension_map is None:
            return point
        return tuple(point[i] for i in dimension_map)

    def get_subspace_dimensions(self, count: int) -> list:
        """
        Indices of the ``count`` dimensions having the largest size, in increasing order.
        """
        if count < 1 or count > self.dimension:
            raise IllegalRequestError("count", f"Must be in range [1, {self.dimension}]", count)
        by_size = sorted(range(self.dimension), key=lambda i: -self.get_size(i))
        return sorted(by_size[:count])

    # ------------------------------------------------------------------------
    # Derived Extents
    # ------------------------------------------------------------------------

    def slice(self, point: Union[DirectPosition, Sequence[float]],
              dimension_map: DimensionMap = None) -> "GridExtent":
        """
        Collapse the dimensions given by ``point`` to a single index.

        Coordinates of ``point`` are grid indices; NaN coordinates leave
        their dimension unchanged.

        Args:
            point: Position in grid index space
            dimension_map: Extent dimension of each point coordinate

        Raises:
            OutOfDomainError: If a rounded index is outside the current bounds
        """
        coordinates = point.coordinates if isinstance(point, DirectPosition) else tuple(point)
        if dimension_map is not None:
            ensure_dimension_matches("dimension_map", len(coordinates), len(dimension_map))
        else:
            ensure_dimension_matches("slice_point", self.dimension, len(coordinates))

        low, high = list(self._low), list(self._high)
        for k, value in enumerate(coordinates):
            value = float(value)
            if math.isnan(value):
                continue
            i = int(dimension_map[k]) if dimension_map is not None else k
            if not math.isfinite(value):
                raise OutOfDomainError(
                    "slice_point", f"Coordinate {value} in {self.get_axis_name(i)} is not finite"
                )
            index = round_half_up(value)
            if index < low[i] or index > high[i]:
                raise OutOfDomainError(
                    "slice_point",
                    f"Index {index} in {self.get_axis_name(i)} is outside [{low[i]} … {high[i]}]"
                )
            low[i] = high[i] = index

        if tuple(low) == self._low and tuple(high) == self._high:
            return self
        return GridExtent(low, high, self.axis_names)

    def reduce(self, dimensions: Sequence[int]) -> "GridExtent":
        """
        Keep only the given dimensions, in strictly increasing order.

        Raises:
            IllegalRequestError: If dimensions are empty, out of range or not
                strictly increasing
        """
        dims = verify_dimensions(dimensions, self.dimension)
        if len(dims) == self.dimension:
            return self
        names = tuple(self.axis_names[i] for i in dims) if self.axis_names is not None else None
        poi = (tuple(self._point_of_interest[i] for i in dims)
               if self._point_of_interest is not None else None)
        return GridExtent([self._low[i] for i in dims], [self._high[i] for i in dims], names, poi)

    def subsample(self, factors: Sequence[int]) -> "GridExtent":
        """
        Group cells by the given integer factors.

        The low index is divided by the factor and the number of cells is
        rounded up, so that every original cell belongs to a subsampled one.
        """
        ensure_dimension_matches("factors", self.dimension, len(factors))
        low, high = [], []
        for i, factor in enumerate(factors):
            factor = int(factor)
            if factor < 1:
                raise IllegalRequestError("factors", f"Factor {factor} must be >= 1", list(factors))
            start = self._low[i] // factor
            size = -(-self.get_size(i) // factor)
            low.append(start)
            high.append(start + size - 1)
        return GridExtent(low, high, self.axis_names)

    # ------------------------------------------------------------------------
    # Object Protocol
    # ------------------------------------------------------------------------

    def __eq__(self, other):
        if not isinstance(other, GridExtent):
            return NotImplemented
        return (self._low == other._low and self._high == other._high and
                self.axis_names == other.axis_names)

    def __hash__(self):
        return hash((self._low, self._high, self.axis_names))

    def __repr__(self):
        parts = [
            f"{self.get_axis_name(i)}: [{lo} … {hi}] ({hi - lo + 1} cells)"
            for i, (lo, hi) in enumerate(zip(self._low, self._high))
        ]
        return f"GridExtent({', '.join(parts)})"
