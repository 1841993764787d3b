"""
gridgeom Information Utilities

This module provides functions for summarizing grid extents and grid
geometries as plain dictionaries.
"""

from typing import Dict

from ..grid.extent import GridExtent
from ..grid.geometry import GridGeometry


# ============================================================================
# Extent Information
# ============================================================================

def get_extent_info(extent: GridExtent) -> Dict:
    """
    Get information about a grid extent.

    Args:
        extent: Grid extent

    Returns:
        Dict: Dimension, axis names, bounds, shape and number of cells

    Examples:
        >>> info = get_extent_info(GridExtent.from_shape((360, 180)))
        >>> print(f"Grid: {info['shape']} ({info['cells']} cells)")
    """
    cells = 1
    for size in extent.shape:
        cells *= size
    return {
        'dimension': extent.dimension,
        'axis_names': [extent.get_axis_name(i) for i in range(extent.dimension)],
        'low': list(extent.low),
        'high': list(extent.high),
        'shape': list(extent.shape),
        'cells': cells,
        'sliced_dimensions': [i for i in range(extent.dimension) if extent.is_empty_slice(i)],
    }


# ============================================================================
# Geometry Information
# ============================================================================

def get_geometry_info(geometry: GridGeometry) -> Dict:
    """
    Get information about a grid geometry.

    Components missing from the geometry are reported as None.

    Args:
        geometry: Grid geometry

    Returns:
        Dict: Dimension, shape, bounds, envelope, resolution and CRS name

    Examples:
        >>> info = get_geometry_info(grid)
        >>> print(f"Resolution: {info['resolution']}")
        >>> print(f"Envelope: {info['envelope_lower']} to {info['envelope_upper']}")
    """
    info = {
        'dimension': geometry.dimension,
        'shape': None,
        'low': None,
        'high': None,
        'envelope_lower': None,
        'envelope_upper': None,
        'resolution': None,
        'crs': geometry.crs.name if geometry.crs is not None else None,
        'has_transform': geometry.is_defined(grid_to_crs=True),
    }

    extent = geometry.extent
    if extent is not None:
        info['shape'] = list(extent.shape)
        info['low'] = list(extent.low)
        info['high'] = list(extent.high)

    envelope = geometry.envelope
    if envelope is not None:
        info['envelope_lower'] = list(envelope.lower)
        info['envelope_upper'] = list(envelope.upper)

    if geometry.is_defined(extent=True, grid_to_crs=True):
        info['resolution'] = list(geometry.resolution())

    return info
