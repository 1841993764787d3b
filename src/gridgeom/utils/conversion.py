"""
gridgeom Conversion Utilities

This module provides functions for converting between CRS coordinates and
grid indices of a grid geometry (coordinates ↔ indices, envelopes ↔ extents).
"""

from typing import Optional, Union

import numpy as np

from ..core.core_types import ArrayLike, Envelope, GridRoundingMode, PixelInCell
from ..core.exceptions import TransformFailureError, ReferencingError
from ..referencing.operations import transform_envelope
from ..grid.extent import GridExtent
from ..grid.geometry import GridGeometry


# ============================================================================
# Point Conversion
# ============================================================================

def convert_coordinates_to_indices(
    geometry: GridGeometry,
    coordinates: ArrayLike,
    anchor: PixelInCell = PixelInCell.CELL_CORNER
) -> np.ndarray:
    """
    Convert CRS coordinates to continuous grid indices.

    Args:
        geometry: Grid geometry with a grid to CRS transform
        coordinates: One point, or an (n, dimension) array of points
        anchor: Part of the cell that integer indices refer to

    Returns:
        np.ndarray: Grid indices, with the same shape as ``coordinates``

    Raises:
        TransformFailureError: If the transform is not invertible

    Examples:
        >>> convert_coordinates_to_indices(grid, [10.0, 20.0])
        array([190., 70.])
        >>> np.floor(convert_coordinates_to_indices(grid, points)).astype(int)
    """
    try:
        geometry.require_grid_to_crs()
        return geometry.get_grid_to_crs(anchor).inverse().transform(coordinates)
    except ReferencingError as e:
        raise TransformFailureError("coordinates", str(e)) from e


def convert_indices_to_coordinates(
    geometry: GridGeometry,
    indices: ArrayLike,
    anchor: PixelInCell = PixelInCell.CELL_CENTER
) -> np.ndarray:
    """
    Convert grid indices to CRS coordinates.

    Args:
        geometry: Grid geometry with a grid to CRS transform
        indices: One point, or an (n, dimension) array of points
        anchor: Part of the cell to return coordinates of, default its center

    Returns:
        np.ndarray: CRS coordinates
    """
    geometry.require_grid_to_crs()
    return geometry.get_grid_to_crs(anchor).transform(indices)


# ============================================================================
# Region Conversion
# ============================================================================

def convert_envelope_to_extent(
    geometry: GridGeometry,
    envelope: Envelope,
    rounding: Optional[Union[GridRoundingMode, str]] = None
) -> GridExtent:
    """
    Convert a CRS envelope to the grid extent it covers, clipped to the geometry extent.

    Unlike ``derive().subgrid(...)``, the envelope must be in the CRS of the
    geometry and have its full dimension.

    Raises:
        TransformFailureError: If the transform is not invertible
        DisjointExtentError: If the envelope does not intersect the grid
    """
    try:
        crs_to_grid = geometry.require_grid_to_crs().inverse()
    except ReferencingError as e:
        raise TransformFailureError("envelope", str(e)) from e
    indices = transform_envelope(crs_to_grid, envelope)
    return GridExtent.from_envelope(indices, rounding, enclosing=geometry.require_extent())


def convert_extent_to_envelope(geometry: GridGeometry, extent: GridExtent) -> Envelope:
    """Convert a grid extent to the CRS envelope of its cells."""
    return transform_envelope(geometry.require_grid_to_crs(), extent.to_envelope(), geometry.crs)
