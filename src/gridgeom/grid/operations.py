"""
gridgeom Dataset Operations

This module connects grid geometries to xarray objects: building a grid
geometry from regularly spaced coordinates, and applying a derived grid
geometry to a dataset as positional selections.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
import xarray as xr

from ..core.config import REGULAR_SPACING_RTOL
from ..core.core_types import CoordinateReferenceSystem, PixelInCell
from ..core.exceptions import (
    CoordinateError, IllegalRequestError, OutOfDomainError, TransformFailureError,
    NoninvertibleTransformError, ensure_dimension_matches
)
from ..referencing.transforms import LinearTransform, concatenate, scale_translation
from .extent import GridExtent
from .geometry import GridGeometry

logger = logging.getLogger(__name__)

Indexer = slice | np.ndarray

# ============================================================================
# Geometry Construction
# ============================================================================

def _regular_axis(data: xr.Dataset | xr.DataArray, dim: str) -> tuple:
    """
    Return (first, step) of a regularly spaced 1-D coordinate.

    Raises:
        CoordinateError: If the coordinate is missing, not numeric, too short
            or irregular
    """
    if dim not in data.coords:
        raise CoordinateError(dim, "No coordinate variable for this dimension")
    coord = data.coords[dim]
    if coord.ndim != 1:
        raise CoordinateError(dim, f"Expected 1D, got {coord.ndim}D")
    values = np.asarray(coord.values)
    if not np.issubdtype(values.dtype, np.number):
        raise CoordinateError(dim, f"Expected numeric values, got {values.dtype}")
    values = values.astype(float)
    if values.size < 2:
        raise CoordinateError(dim, "At least 2 values are needed to infer the spacing")

    diffs = np.diff(values)
    step = float(diffs.mean())
    if step == 0 or not np.allclose(diffs, step, rtol=REGULAR_SPACING_RTOL, atol=0):
        raise CoordinateError(dim, "Coordinate values are not regularly spaced")
    return float(values[0]), step


def geometry_from_dataset(
    data: xr.Dataset | xr.DataArray,
    dims: Optional[Sequence[str]] = None,
    crs: Optional[CoordinateReferenceSystem] = None
) -> GridGeometry:
    """
    Build a grid geometry from the 1-D coordinates of a dataset.

    Coordinate values are taken as cell centers. Each grid dimension maps
    to one CRS axis by a scale and an offset.

    Args:
        data: Dataset or data array with regular 1-D coordinates
        dims: Dimensions to include, default all dimensions of ``data``
        crs: Reference system of the coordinates, if known

    Returns:
        GridGeometry: Geometry whose axis names are the dimension names

    Raises:
        CoordinateError: If a coordinate is missing or irregular
        MismatchedDimensionError: If ``crs`` does not have one axis per dimension

    Examples:
        >>> grid = geometry_from_dataset(ds, dims=["lon", "lat"])
        >>> grid.extent
        GridExtent(lon: [0 … 359] (360 cells), lat: [0 … 179] (180 cells))
    """
    dims = list(dims) if dims is not None else [str(d) for d in data.sizes]
    if not dims:
        raise IllegalRequestError("dims", "At least one dimension is required")
    for dim in dims:
        if dim not in data.sizes:
            raise CoordinateError(dim, "Dimension not found in data")

    origins, steps = [], []
    for dim in dims:
        first, step = _regular_axis(data, dim)
        origins.append(first)
        steps.append(step)

    if crs is not None:
        ensure_dimension_matches("crs", len(dims), crs.dimension)
    extent = GridExtent.from_shape([data.sizes[d] for d in dims], axis_names=dims)
    grid_to_crs = scale_translation(steps, origins)
    logger.debug("Grid geometry from dims %s: origins %s, steps %s", dims, origins, steps)
    return GridGeometry(extent, grid_to_crs, crs, anchor=PixelInCell.CELL_CENTER)

# ============================================================================
# Index Computation
# ============================================================================

def _diagonal_terms(transform) -> Optional[tuple]:
    """Return (scales, offsets) of a transform made of one scale and offset per dimension, or None."""
    if not isinstance(transform, LinearTransform) or transform.source_dimensions != transform.target_dimensions:
        return None
    matrix = transform.matrix
    n = transform.source_dimensions
    linear_part = matrix[:n, :n]
    if np.count_nonzero(linear_part - np.diag(np.diag(linear_part))):
        return None
    return np.diag(linear_part).copy(), matrix[:n, n].copy()


def _as_indexer(indices: np.ndarray) -> Indexer:
    """Use a slice when the indices are evenly spaced and increasing."""
    if indices.size == 1:
        return slice(int(indices[0]), int(indices[0]) + 1)
    steps = np.diff(indices)
    if steps[0] > 0 and np.all(steps == steps[0]):
        return slice(int(indices[0]), int(indices[-1]) + 1, int(steps[0]))
    return indices


def compute_indexers(base: GridGeometry, derived: GridGeometry) -> Dict[str, Indexer]:
    """
    Compute the positional indexers selecting the cells of ``derived`` in ``base``.

    For each derived cell, the base cell containing its center is selected.

    Args:
        base: Geometry of the data to select from
        derived: Geometry derived from ``base``, with the same number of dimensions

    Returns:
        Dict[str, Indexer]: Positional indexer per base dimension name

    Raises:
        MismatchedDimensionError: If the two geometries have different dimensions
        IllegalRequestError: If the conversion is not a scale and translation
        TransformFailureError: If the base transform is not invertible
        OutOfDomainError: If a derived cell lies outside the base extent
    """
    ensure_dimension_matches("derived", base.dimension, derived.dimension)
    base_extent = base.require_extent()
    derived_extent = derived.require_extent()
    try:
        conversion = concatenate(derived.require_grid_to_crs(), base.require_grid_to_crs().inverse())
    except NoninvertibleTransformError as e:
        raise TransformFailureError("base", str(e)) from e
    terms = _diagonal_terms(conversion)
    if terms is None:
        raise IllegalRequestError("derived", "Rotated or sheared conversions to base grid indices are not supported")
    scales, offsets = terms

    indexers = {}
    for i in range(base_extent.dimension):
        centers = np.arange(derived_extent.get_low(i), derived_extent.get_high(i) + 1) + 0.5
        indices = np.floor(centers * scales[i] + offsets[i]).astype(int)
        positions = indices - base_extent.get_low(i)
        if positions.min() < 0 or positions.max() >= base_extent.get_size(i):
            raise OutOfDomainError(
                "derived",
                f"Cells in {base_extent.get_axis_name(i)} fall outside "
                f"[{base_extent.get_low(i)} … {base_extent.get_high(i)}]"
            )
        indexers[base_extent.get_axis_name(i)] = _as_indexer(positions)
    return indexers

# ============================================================================
# Dataset Operations
# ============================================================================

def _cell_centers(derived: GridGeometry) -> Optional[List[np.ndarray]]:
    """Coordinate values of the derived cell centers, or None if not per-axis."""
    terms = _diagonal_terms(derived.get_grid_to_crs(PixelInCell.CELL_CENTER))
    if terms is None:
        return None
    scales, offsets = terms
    extent = derived.require_extent()
    return [
        np.arange(extent.get_low(i), extent.get_high(i) + 1) * scales[i] + offsets[i]
        for i in range(extent.dimension)
    ]


def apply_grid_geometry(
    data: xr.Dataset | xr.DataArray,
    base: GridGeometry,
    derived: GridGeometry,
    drop_sliced: bool = False
) -> xr.Dataset | xr.DataArray:
    """
    Select the cells of a derived grid geometry in data described by ``base``.

    Coordinates of the selected dimensions are regenerated from the derived
    geometry, so that subsampled cells get the coordinates of their centers.
    Coordinate attributes are preserved.

    Args:
        data: Input dataset or data array
        base: Geometry of ``data``, e.g. from ``geometry_from_dataset``
        derived: Geometry derived from ``base``
        drop_sliced: Drop dimensions collapsed to a single cell

    Returns:
        xr.Dataset | xr.DataArray: Selected data
    """
    indexers = compute_indexers(base, derived)
    indexers_names = list(indexers)
    indexers = {dim: idx for dim, idx in indexers.items() if dim in data.sizes}
    if indexers:
        data = data.isel(indexers)

    centers = _cell_centers(derived)
    if centers is not None:
        new_coords = {}
        for i, dim in enumerate(indexers_names):
            if dim in indexers and dim in data.coords:
                coord = xr.DataArray(centers[i], dims=[dim])
                coord.attrs.update(data.coords[dim].attrs)
                new_coords[dim] = coord
        if new_coords:
            data = data.assign_coords(new_coords)

    if drop_sliced:
        extent = derived.require_extent()
        sliced = [dim for i, dim in enumerate(indexers_names)
                  if extent.is_empty_slice(i) and dim in indexers]
        if sliced:
            data = data.squeeze(sliced)

    logger.debug("Applied grid geometry with indexers %s", indexers)
    return data
