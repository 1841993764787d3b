"""
gridgeom Grid

This package provides grid extents, grid geometries, their derivation and
the xarray dataset operations built on them.
"""

from .extent import GridExtent, round_half_up
from .geometry import GridGeometry
from .derivation import GridDerivation
from .operations import (
    geometry_from_dataset,
    compute_indexers,
    apply_grid_geometry,
)

__all__ = [
    "GridExtent",
    "round_half_up",
    "GridGeometry",
    "GridDerivation",
    # Dataset operations
    "geometry_from_dataset",
    "compute_indexers",
    "apply_grid_geometry",
]
