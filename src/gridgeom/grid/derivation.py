"""
gridgeom Grid Derivation

This module creates grid geometries derived from a base grid geometry with
a different extent, resolution or number of dimensions.

A ``GridDerivation`` is a single-use request obtained by ``GridGeometry.derive()``.
Its methods are invoked in this order:

1. ``rounding(mode)``, optional, must be first if invoked.
2. At most one of ``subgrid(area_of_interest, *resolution)`` or ``slice(point)``.
3. ``reduce(*dimensions)``, optional.

The result is then obtained by ``build()``, or by ``extent()`` if only the
grid extent is needed.
"""

import logging
import math
from collections.abc import Sequence as SequenceABC
from typing import List, Optional, Sequence, Union

import numpy as np

from ..core.config import NO_SUBSAMPLING, get_default_rounding
from ..core.core_types import (
    CoordinateReferenceSystem, DerivationState, DirectPosition, Envelope, GridRoundingMode
)
from ..core.exceptions import (
    IllegalRequestError, DerivationStateError, MismatchedDimensionError,
    TransformFailureError, OutOfDomainError, DisjointExtentError, ReferencingError,
    ensure_dimension_matches, verify_dimensions
)
from ..referencing import matrices
from ..referencing.transforms import MathTransform, concatenate, scale_translation
from ..referencing.separator import separate
from ..referencing.operations import find_operation, transform_envelope
from .extent import GridExtent
from .geometry import GridGeometry

logger = logging.getLogger(__name__)


def _exponent(value: float) -> int:
    """Unbiased binary exponent, such that 2**e <= value < 2**(e+1) for positive finite values."""
    if value == 0 or not math.isfinite(value):
        return 0
    return math.frexp(abs(value))[1] - 1


def _flatten(values: tuple) -> List:
    """Accept both f(a, b, c) and f([a, b, c]) call styles."""
    if len(values) != 1:
        return list(values)
    first = values[0]
    if first is None:
        return []
    if isinstance(first, (SequenceABC, np.ndarray)) and not isinstance(first, str):
        return list(first)
    return [first]


class GridDerivation:
    """
    Builder of a grid geometry derived from a base grid geometry.

    Instances accumulate the state of one request and must not be shared
    between threads or reused for another request. The base grid geometry
    is never modified.

    Examples:
        >>> derived = (grid.derive()
        ...                .rounding(GridRoundingMode.ENCLOSING)
        ...                .subgrid(Envelope((10, -20), (50, 20)), 2, 2)
        ...                .build())
    """

    def __init__(self, base: GridGeometry):
        if base is None:
            raise IllegalRequestError("base", "A base grid geometry is required")
        self.base = base
        self._rounding: GridRoundingMode = get_default_rounding()
        self._state = DerivationState.INITIAL
        self._reduced = False
        # Results of slice or subgrid
        self._sub_extent: Optional[GridExtent] = None
        self._to_subsampled: Optional[MathTransform] = None
        self._kept_dimensions: Optional[List[int]] = None
        # Result of reduce
        self._selected_dimensions: Optional[List[int]] = None

    # ------------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------------

    @property
    def state(self) -> DerivationState:
        return self._state

    @property
    def is_reduced(self) -> bool:
        return self._reduced

    @property
    def rounding_mode(self) -> GridRoundingMode:
        return self._rounding

    @property
    def subsampling(self) -> Optional[MathTransform]:
        """Conversion from subsampled grid indices to base grid indices, or None."""
        return self._to_subsampled

    @property
    def kept_dimensions(self) -> Optional[List[int]]:
        """Grid dimensions used by the request, or None for all of them."""
        return list(self._kept_dimensions) if self._kept_dimensions is not None else None

    @property
    def selected_dimensions(self) -> Optional[List[int]]:
        return list(self._selected_dimensions) if self._selected_dimensions is not None else None

    # ------------------------------------------------------------------------
    # Request Configuration
    # ------------------------------------------------------------------------

    def rounding(self, mode: Union[GridRoundingMode, str]) -> "GridDerivation":
        """
        Set how continuous index bounds are rounded to integers by ``subgrid``.

        Raises:
            DerivationStateError: If ``slice`` or ``subgrid`` was already invoked
        """
        mode = GridRoundingMode.parse(mode)
        self._ensure_subgrid_not_set("rounding")
        self._rounding = mode
        return self

    def slice(self, slice_point: Union[DirectPosition, Sequence[float]]) -> "GridDerivation":
        """
        Request a grid geometry for a slice at the given point.

        The point can be in any reference system having an operation from the
        base CRS. NaN coordinates leave their grid dimension unchanged. This
        method does not reduce the number of dimensions; see ``reduce``.

        Raises:
            DerivationStateError: If ``slice`` or ``subgrid`` was already invoked
            IncompleteGridGeometryError: If the base has no extent or transform
            MismatchedDimensionError: If the point has the wrong dimension
            TransformFailureError: If the point can not be mapped to grid indices
            OutOfDomainError: If the point is outside the grid extent
        """
        if slice_point is None:
            raise IllegalRequestError("slice_point", "A position is required")
        if not isinstance(slice_point, DirectPosition):
            slice_point = DirectPosition(tuple(slice_point))
        self._ensure_subgrid_not_set("slice")
        corner_to_crs = self.base.require_grid_to_crs()
        base_extent = self.base.require_extent()
        self._state = DerivationState.SLICED
        try:
            corner_to_crs = self._concatenate_operation(corner_to_crs, slice_point.crs)
            ensure_dimension_matches("slice_point", corner_to_crs.target_dimensions, slice_point.dimension)
            corner_to_crs = self._drop_unused_dimensions(corner_to_crs)
            indices = corner_to_crs.inverse().transform(slice_point.coordinates)
        except ReferencingError as e:
            raise TransformFailureError("slice_point", str(e)) from e

        self._sub_extent = base_extent.slice(indices, self._kept_dimensions)
        logger.debug("Slice at %s gives %s", slice_point.coordinates, self._sub_extent)
        return self

    def subgrid(self, area_of_interest: Optional[Envelope] = None, *resolution: float) -> "GridDerivation":
        """
        Request a grid geometry over a sub-region of the base grid, optionally with subsampling.

        The envelope can be in any reference system having an operation from
        the base CRS, and may have fewer dimensions than the grid. The target
        resolution is in the units and order of the envelope axes (or of the
        base CRS if no envelope is given). Missing trailing resolution values
        mean no subsampling in those dimensions.

        Args:
            area_of_interest: Desired region, or None for the whole grid
            resolution: Desired cell size per axis, as separate arguments or
                as a single sequence

        Raises:
            DerivationStateError: If ``slice`` or ``subgrid`` was already invoked
            IllegalRequestError: If a resolution value is not a number
            IncompleteGridGeometryError: If the base has no extent or transform
            MismatchedDimensionError: If the envelope or resolution has too
                many dimensions
            TransformFailureError: If the envelope can not be mapped to grid indices
            OutOfDomainError: If the envelope does not intersect the grid
        """
        values = _flatten(resolution)
        try:
            resolution = [float(r) for r in values]
        except (TypeError, ValueError) as e:
            raise IllegalRequestError("resolution", f"Expected numbers: {e}", values) from e
        self._ensure_subgrid_not_set("subgrid")
        corner_to_crs = self.base.require_grid_to_crs()
        base_extent = self.base.require_extent()
        self._state = DerivationState.SUBGRIDDED
        if area_of_interest is None and not resolution:
            return self
        try:
            if area_of_interest is not None:
                corner_to_crs = self._concatenate_operation(corner_to_crs, area_of_interest.crs)
            dimension = corner_to_crs.target_dimensions
            if area_of_interest is not None:
                ensure_dimension_matches("area_of_interest", dimension, area_of_interest.dimension)
            if len(resolution) > dimension:
                raise MismatchedDimensionError("resolution", dimension, len(resolution))
            corner_to_crs = self._drop_unused_dimensions(corner_to_crs)
            # Keep the base extent instance if the area of interest changes nothing.
            self._sub_extent = base_extent
            if area_of_interest is not None:
                indices = transform_envelope(corner_to_crs.inverse(), area_of_interest)
                sub_extent = GridExtent.from_envelope(
                    indices, self._rounding,
                    enclosing=base_extent, dimension_map=self._kept_dimensions
                )
                if sub_extent != base_extent:
                    self._sub_extent = sub_extent
                logger.debug("Area of interest maps to %s", self._sub_extent)
            if resolution:
                self._apply_resolution(corner_to_crs, resolution)
        except DisjointExtentError as e:
            raise OutOfDomainError("area_of_interest", e.details) from e
        except ReferencingError as e:
            raise TransformFailureError("area_of_interest", str(e)) from e
        return self

    def reduce(self, *dimensions: int) -> "GridDerivation":
        """
        Request a grid geometry with only the given grid dimensions.

        Dimensions must be in strictly increasing order without duplicates;
        this method can not change dimension order.

        Raises:
            DerivationStateError: If ``reduce`` was already invoked
            IllegalRequestError: If the dimensions are invalid
        """
        if self._reduced:
            raise DerivationStateError("reduce", "reduce")
        dims = verify_dimensions(_flatten(dimensions), self.base.dimension)
        self._selected_dimensions = dims
        self._reduced = True
        return self

    # ------------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------------

    def extent(self) -> GridExtent:
        """
        Extent of the derived grid geometry. Cheaper than ``build()`` when only
        the extent is needed.
        """
        extent = self._sub_extent if self._sub_extent is not None else self.base.require_extent()
        if self._selected_dimensions is not None:
            extent = extent.reduce(self._selected_dimensions)
        return extent

    def build(self) -> GridGeometry:
        """
        Build the derived grid geometry.

        Returns:
            GridGeometry: The derived grid geometry, or the base grid geometry
                itself if no change applies

        Raises:
            TransformFailureError: If the derived transform can not be built
        """
        grid = self.base
        extent = self._sub_extent if self._sub_extent is not None else self.base.extent
        cause = None
        try:
            if self._to_subsampled is not None or extent is not self.base.extent:
                cause = "subgrid"
                grid = GridGeometry.from_subgrid(grid, extent, self._to_subsampled)
            if self._selected_dimensions is not None:
                cause = "dimensions"
                grid = GridGeometry.from_dimensions(grid, self._selected_dimensions)
        except ReferencingError as e:
            raise TransformFailureError(cause, str(e)) from e
        return grid

    # ------------------------------------------------------------------------
    # Private Steps
    # ------------------------------------------------------------------------

    def _ensure_subgrid_not_set(self, operation: str) -> None:
        if self._state is not DerivationState.INITIAL:
            raise DerivationStateError(operation, self._state.value)

    def _concatenate_operation(self, corner_to_crs: MathTransform,
                               target: Optional[CoordinateReferenceSystem]) -> MathTransform:
        """
        Append the conversion from the base CRS to the request CRS, if they differ.

        Only transforms are concatenated; the request itself is never
        transformed to the base CRS, which would add errors.
        """
        source = self.base.crs
        if source is None or target is None or source == target:
            return corner_to_crs
        operation = find_operation(source, target)
        logger.debug("Concatenating operation from %s to %s", source.name, target.name)
        return concatenate(corner_to_crs, operation)

    def _drop_unused_dimensions(self, corner_to_crs: MathTransform) -> MathTransform:
        """
        Drop the grid dimensions not needed for the request dimensions, in an
        effort to make the transform invertible.
        """
        corner_to_crs, kept = separate(corner_to_crs, corner_to_crs.target_dimensions)
        if kept is not None:
            self._kept_dimensions = kept
        return corner_to_crs

    def _apply_resolution(self, corner_to_crs: MathTransform, resolution: List[float]) -> None:
        """
        Convert the target resolution to subsampling factors and rescale the extent.

        The resolution is handled as a small vector located at the point of
        interest and converted to grid cells by the inverse derivative. Each
        factor is rounded to a multiple of 2**-a with 2**a > span, so that
        the error accumulated over the span is less than half a cell:

            |s - round(s)| * 2**-a <= 0.5 * 2**-a < 0.5 / span
        """
        dimension = corner_to_crs.target_dimensions
        resolution = resolution + [NO_SUBSAMPLING] * (dimension - len(resolution))
        extent = self._sub_extent
        point = extent.get_point_of_interest(self._kept_dimensions)
        jacobian = matrices.derivative(corner_to_crs, point)
        steps = matrices.multiply(matrices.inverse(jacobian), resolution)

        lower = [float(v) for v in extent.low]
        upper = [hi + 1.0 for hi in extent.high]
        factors = {}
        for k, step in enumerate(steps):
            s = abs(float(step))
            if s > 1:
                i = self._kept_dimensions[k] if self._kept_dimensions is not None else k
                accuracy = max(0, _exponent(extent.get_size(i))) + 1
                s = math.ldexp(round(math.ldexp(s, accuracy)), -accuracy)
                lower[i] /= s
                upper[i] /= s
                factors[i] = s
        if not factors:
            return

        subsampled = GridExtent.from_envelope(
            Envelope(lower, upper), self._rounding, axis_names=extent.axis_names
        )
        scales = [1.0] * extent.dimension
        offsets = [0.0] * extent.dimension
        for i, s in factors.items():
            scales[i] = s
            offsets[i] = extent.get_low(i) - subsampled.get_low(i) * s
        self._sub_extent = subsampled
        self._to_subsampled = scale_translation(scales, offsets)
        logger.debug("Subsampling factors %s give %s", factors, subsampled)
