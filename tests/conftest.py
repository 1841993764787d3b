"""Shared fixtures for grid geometry tests."""

import numpy as np
import pytest
import xarray as xr

from gridgeom import (
    CoordinateReferenceSystem, GridExtent, GridGeometry, linear, scale_translation,
    get_default_registry
)


@pytest.fixture
def wgs84():
    """Geographic CRS with longitude first."""
    return CoordinateReferenceSystem("EPSG:4326", ("lon", "lat"))


@pytest.fixture
def world_extent():
    """Global 1 degree grid extent, 360 x 180 cells."""
    return GridExtent.from_shape((360, 180), axis_names=("lon", "lat"))


@pytest.fixture
def world_grid(world_extent, wgs84):
    """Global 1 degree grid with row 0 at the north pole."""
    grid_to_crs = linear([[1, 0, -180], [0, -1, 90], [0, 0, 1]])
    return GridGeometry(world_extent, grid_to_crs, wgs84)


@pytest.fixture
def cube_crs():
    return CoordinateReferenceSystem("cube", ("x", "y", "time"))


@pytest.fixture
def plane_crs():
    return CoordinateReferenceSystem("plane", ("x", "y"))


@pytest.fixture
def cube_grid(cube_crs):
    """3-D grid of 10 x 20 cells of 0.5 units, with 5 hourly time steps."""
    extent = GridExtent.from_shape((10, 20, 5), axis_names=("x", "y", "time"))
    grid_to_crs = scale_translation([0.5, 0.5, 3600.0], [100.0, 20.0, 0.0])
    return GridGeometry(extent, grid_to_crs, cube_crs)


@pytest.fixture
def world_dataset():
    """Dataset on the global 1 degree grid, coordinates at cell centers."""
    lon = np.arange(-179.5, 180.0, 1.0)
    lat = np.arange(89.5, -90.0, -1.0)
    values = np.arange(lat.size * lon.size, dtype=float).reshape(lat.size, lon.size)
    ds = xr.Dataset(
        {"t": (("lat", "lon"), values)},
        coords={"lat": lat, "lon": ("lon", lon, {"units": "degrees_east"})},
    )
    return ds


@pytest.fixture(autouse=True)
def clean_registry():
    """Leave the default operation registry empty after each test."""
    yield
    get_default_registry().clear()
