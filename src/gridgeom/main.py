"""
gridgeom Main Interface

This module provides convenience functions for the most common grid
geometry derivations and for subsetting xarray datasets by coordinates.
Utility functions live in the utils package.
"""

import logging
from typing import Mapping, Optional, Sequence, Tuple, Union
import xarray as xr

from .core.core_types import (
    CoordinateRange, CoordinateReferenceSystem, DirectPosition, Envelope, GridRoundingMode
)
from .core.exceptions import CoordinateError
from .grid.geometry import GridGeometry
from .grid.operations import geometry_from_dataset, apply_grid_geometry

# Get logger for this module
logger = logging.getLogger('gridgeom.main')

# Import utility functions for convenience
from .utils import (
    get_extent_info,
    get_geometry_info,
    convert_coordinates_to_indices,
    convert_indices_to_coordinates,
    convert_envelope_to_extent,
    convert_extent_to_envelope,
)

AreaOfInterest = Union[Envelope, Mapping[str, CoordinateRange]]
Resolution = Union[Sequence[float], Mapping[str, float]]


# ============================================================================
# Derivation Shortcuts
# ============================================================================

def derive_subgrid(
    base: GridGeometry,
    area_of_interest: Optional[Envelope] = None,
    resolution: Optional[Sequence[float]] = None,
    *,
    rounding: Optional[Union[GridRoundingMode, str]] = None,
    dimensions: Optional[Sequence[int]] = None,
) -> GridGeometry:
    """
    Derive a grid geometry over an area of interest, optionally subsampled.

    Args:
        base: Grid geometry to derive from
        area_of_interest: Desired region, in any CRS known to the operation registry
        resolution: Desired cell size per envelope axis
        rounding: Rounding mode, default from configuration
        dimensions: Grid dimensions to keep after the subgrid

    Returns:
        GridGeometry: Derived grid geometry

    Examples:
        >>> aoi = Envelope.from_ranges((10, 50), (-20, 20))
        >>> grid = derive_subgrid(world, aoi, resolution=(2, 2))
        >>> grid.extent
        GridExtent(lon: [95 … 114] (20 cells), lat: [35 … 54] (20 cells))
    """
    derivation = base.derive()
    if rounding is not None:
        derivation.rounding(rounding)
    derivation.subgrid(area_of_interest, [] if resolution is None else list(resolution))
    if dimensions is not None:
        derivation.reduce(dimensions)
    result = derivation.build()
    logger.info("Derived subgrid %s from %s", result.extent, base.extent)
    return result


def derive_slice(
    base: GridGeometry,
    point: Union[DirectPosition, Sequence[float]],
    *,
    dimensions: Optional[Sequence[int]] = None,
) -> GridGeometry:
    """
    Derive the grid geometry of a slice through ``point``.

    Args:
        base: Grid geometry to derive from
        point: Slice position; NaN coordinates leave their dimension unchanged
        dimensions: Grid dimensions to keep after slicing, typically the
            dimensions that were not sliced

    Examples:
        >>> layer = derive_slice(cube, [float("nan"), float("nan"), 500.0], dimensions=[0, 1])
    """
    derivation = base.derive().slice(point)
    if dimensions is not None:
        derivation.reduce(dimensions)
    result = derivation.build()
    logger.info("Derived slice %s from %s", result.extent, base.extent)
    return result


def reduce_dimensions(base: GridGeometry, dimensions: Sequence[int]) -> GridGeometry:
    """Keep only the given grid dimensions of ``base``."""
    result = base.derive().reduce(dimensions).build()
    logger.info("Reduced grid geometry to dimensions %s", list(dimensions))
    return result


# ============================================================================
# Dataset Subsetting
# ============================================================================

def _envelope_from_mapping(ranges: Mapping[str, CoordinateRange], dims: Sequence[str],
                           crs: Optional[CoordinateReferenceSystem]) -> Envelope:
    """Build an envelope over ``dims``; dimensions without a range are unconstrained."""
    unknown = [name for name in ranges if name not in dims]
    if unknown:
        raise CoordinateError(", ".join(unknown), f"Not among the grid dimensions {list(dims)}")
    nan = float("nan")
    lower, upper = [], []
    for dim in dims:
        low, high = ranges.get(dim, (nan, nan))
        lower.append(min(low, high))
        upper.append(max(low, high))
    return Envelope(lower, upper, crs)


def _resolution_from_mapping(values: Mapping[str, float], dims: Sequence[str]) -> Tuple[float, ...]:
    unknown = [name for name in values if name not in dims]
    if unknown:
        raise CoordinateError(", ".join(unknown), f"Not among the grid dimensions {list(dims)}")
    return tuple(float(values.get(dim, 0.0)) for dim in dims)


def subset_dataset(
    data: xr.Dataset | xr.DataArray,
    area_of_interest: Optional[AreaOfInterest] = None,
    resolution: Optional[Resolution] = None,
    crs: Optional[CoordinateReferenceSystem] = None,
    *,
    dims: Optional[Sequence[str]] = None,
    rounding: Optional[Union[GridRoundingMode, str]] = None,
) -> xr.Dataset | xr.DataArray:
    """
    Select the cells of a dataset covering an area of interest.

    The grid geometry is built from the regular 1-D coordinates of ``data``
    (see ``geometry_from_dataset``), derived with ``subgrid`` and applied
    with ``isel``. A resolution coarser than the data spacing picks one cell
    out of every few, and coordinates are set to the subsampled cell centers.

    Args:
        data: Input dataset or data array
        area_of_interest: Envelope, or mapping of dimension name to (min, max)
        resolution: Cell sizes per dimension, as a sequence or a mapping of
            dimension name to size
        crs: Reference system of the dataset coordinates, if known
        dims: Dimensions forming the grid, default all dimensions
        rounding: Rounding mode, default from configuration

    Returns:
        xr.Dataset | xr.DataArray: Selected data

    Examples:
        >>> subset = subset_dataset(ds, {"lon": (120, 122), "lat": (23, 25)})
        >>> coarse = subset_dataset(ds, resolution={"lon": 0.5, "lat": 0.5})
    """
    base = geometry_from_dataset(data, dims, crs)
    grid_dims = list(base.extent.axis_names)
    if area_of_interest is not None and not isinstance(area_of_interest, Envelope):
        area_of_interest = _envelope_from_mapping(area_of_interest, grid_dims, crs)
    if isinstance(resolution, Mapping):
        resolution = _resolution_from_mapping(resolution, grid_dims)

    derived = derive_subgrid(base, area_of_interest, resolution, rounding=rounding)
    if derived is base:
        logger.debug("Area of interest covers the whole dataset")
        return data
    result = apply_grid_geometry(data, base, derived)
    logger.info("Subset dataset to %s", dict(zip(grid_dims, derived.extent.shape)))
    return result
