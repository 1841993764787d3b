"""
gridgeom Grid Geometry

This module defines the immutable aggregate of a grid extent, a coordinate
reference system and a transform from grid indices to that system.
"""

from __future__ import annotations
from typing import Optional, Sequence, Tuple, TYPE_CHECKING
import numpy as np

from ..core.core_types import CoordinateReferenceSystem, Envelope, PixelInCell
from ..core.exceptions import (
    IncompleteGridGeometryError, ensure_dimension_matches, verify_dimensions
)
from ..referencing.transforms import MathTransform, concatenate, translation
from ..referencing.separator import TransformSeparator
from ..referencing.operations import transform_envelope
from .extent import GridExtent

if TYPE_CHECKING:
    from .derivation import GridDerivation


class GridGeometry:
    """
    Valid extent of grid indices together with their mapping to "real world" coordinates.

    The transform is stored in its cell corner form: integer index ``i`` maps
    to the corner of cell ``i`` and ``i + 0.5`` to its center. A transform
    mapping indices to cell centers can be given with
    ``anchor=PixelInCell.CELL_CENTER``.

    Grid geometries are immutable. Restricted copies are created by
    ``derive()``, ``from_subgrid`` or ``from_dimensions``.

    Examples:
        >>> extent = GridExtent.from_shape((360, 180), axis_names=("lon", "lat"))
        >>> grid_to_crs = linear([[1, 0, -180], [0, -1, 90], [0, 0, 1]])
        >>> grid = GridGeometry(extent, grid_to_crs, WGS84)
        >>> grid.envelope
        Envelope(lower=(-180.0, -90.0), upper=(180.0, 90.0), ...)
    """

    __slots__ = ("_extent", "_crs", "_corner_to_crs", "_envelope")

    def __init__(
        self,
        extent: Optional[GridExtent] = None,
        grid_to_crs: Optional[MathTransform] = None,
        crs: Optional[CoordinateReferenceSystem] = None,
        anchor: PixelInCell = PixelInCell.CELL_CORNER,
    ):
        corner_to_crs = grid_to_crs
        if grid_to_crs is not None and anchor is PixelInCell.CELL_CENTER:
            corner_to_crs = concatenate(
                translation([-0.5] * grid_to_crs.source_dimensions), grid_to_crs
            )
        if extent is not None and corner_to_crs is not None:
            ensure_dimension_matches("grid_to_crs", extent.dimension, corner_to_crs.source_dimensions)
        if crs is not None and corner_to_crs is not None:
            ensure_dimension_matches("crs", corner_to_crs.target_dimensions, crs.dimension)
        self._extent = extent
        self._crs = crs
        self._corner_to_crs = corner_to_crs
        self._envelope: Optional[Envelope] = None

    # ------------------------------------------------------------------------
    # Restricted Copy Constructors
    # ------------------------------------------------------------------------

    @classmethod
    def from_subgrid(cls, base: "GridGeometry", extent: Optional[GridExtent],
                     to_subsampled: Optional[MathTransform] = None) -> "GridGeometry":
        """
        Copy ``base`` with a new extent and an optional subsampling.

        Args:
            base: Grid geometry to copy
            extent: New extent, in subsampled grid indices if ``to_subsampled``
                is given
            to_subsampled: Conversion from subsampled grid indices to the
                grid indices of ``base``
        """
        corner_to_crs = base._corner_to_crs
        if to_subsampled is not None:
            corner_to_crs = concatenate(to_subsampled, base.require_grid_to_crs())
        return cls(extent if extent is not None else base._extent, corner_to_crs, base._crs)

    @classmethod
    def from_dimensions(cls, base: "GridGeometry", dimensions: Sequence[int]) -> "GridGeometry":
        """
        Copy ``base`` keeping only the given grid dimensions.

        The transform keeps the CRS dimensions computed only from the selected
        grid dimensions, and the reference system is reduced accordingly.

        Raises:
            IllegalRequestError: If the dimensions are invalid
            SeparationError: If a kept CRS dimension depends on a removed grid dimension
        """
        dims = verify_dimensions(dimensions, base.dimension)
        extent = base._extent.reduce(dims) if base._extent is not None else None
        corner_to_crs = None
        crs = None
        if base._corner_to_crs is not None:
            sep = TransformSeparator(base._corner_to_crs)
            sep.add_source_dimensions(*dims)
            corner_to_crs = sep.separate()
            if base._crs is not None:
                crs = base._crs.reduce(sep.get_target_dimensions())
        elif base._crs is not None and base._crs.dimension == base.dimension:
            crs = base._crs.reduce(dims)
        return cls(extent, corner_to_crs, crs)

    # ------------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------------

    @property
    def extent(self) -> Optional[GridExtent]:
        return self._extent

    @property
    def crs(self) -> Optional[CoordinateReferenceSystem]:
        return self._crs

    @property
    def dimension(self) -> int:
        """Number of grid dimensions."""
        if self._extent is not None:
            return self._extent.dimension
        if self._corner_to_crs is not None:
            return self._corner_to_crs.source_dimensions
        raise IncompleteGridGeometryError("extent or grid to CRS transform")

    def require_extent(self) -> GridExtent:
        if self._extent is None:
            raise IncompleteGridGeometryError("extent")
        return self._extent

    def require_grid_to_crs(self) -> MathTransform:
        """Cell corner transform, failing if absent."""
        if self._corner_to_crs is None:
            raise IncompleteGridGeometryError("grid to CRS transform")
        return self._corner_to_crs

    def get_grid_to_crs(self, anchor: PixelInCell = PixelInCell.CELL_CORNER) -> Optional[MathTransform]:
        """Transform from grid indices to the given part of grid cells, or None."""
        if self._corner_to_crs is None or anchor is PixelInCell.CELL_CORNER:
            return self._corner_to_crs
        return concatenate(
            translation([0.5] * self._corner_to_crs.source_dimensions), self._corner_to_crs
        )

    @property
    def envelope(self) -> Optional[Envelope]:
        """Bounding box of all grid cells in CRS coordinates, computed on first access."""
        if self._envelope is None and self._extent is not None and self._corner_to_crs is not None:
            self._envelope = transform_envelope(
                self._corner_to_crs, self._extent.to_envelope(), self._crs
            )
        return self._envelope

    def resolution(self) -> Tuple[float, ...]:
        """
        Cell size along each CRS axis, estimated at the extent point of interest.
        """
        extent = self.require_extent()
        jacobian = self.require_grid_to_crs().derivative(np.asarray(extent.get_point_of_interest()))
        return tuple(float(v) for v in np.sqrt((jacobian ** 2).sum(axis=1)))

    def is_defined(self, extent: bool = False, grid_to_crs: bool = False, crs: bool = False) -> bool:
        """Check if all the requested components are present."""
        return ((not extent or self._extent is not None) and
                (not grid_to_crs or self._corner_to_crs is not None) and
                (not crs or self._crs is not None))

    def derive(self) -> "GridDerivation":
        """Start a request for a grid geometry derived from this one."""
        from .derivation import GridDerivation
        return GridDerivation(self)

    # ------------------------------------------------------------------------
    # Object Protocol
    # ------------------------------------------------------------------------

    def __eq__(self, other):
        if not isinstance(other, GridGeometry):
            return NotImplemented
        return (self._extent == other._extent and self._crs == other._crs and
                self._corner_to_crs == other._corner_to_crs)

    def __hash__(self):
        return hash((self._extent, self._crs, self._corner_to_crs))

    def __repr__(self):
        crs = self._crs.name if self._crs is not None else None
        return (f"GridGeometry(extent={self._extent!r}, crs={crs!r}, "
                f"grid_to_crs={self._corner_to_crs!r})")
