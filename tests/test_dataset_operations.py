"""Tests for applying grid geometries to xarray datasets."""

import numpy as np
import pytest
import xarray as xr

from gridgeom import (
    CoordinateError, Envelope, GridExtent, GridGeometry, IllegalRequestError,
    MismatchedDimensionError, OutOfDomainError, apply_grid_geometry, compute_indexers,
    geometry_from_dataset, linear, subset_dataset
)


class TestGeometryFromDataset:
    """Test grid geometries built from dataset coordinates."""

    def test_world_dataset(self, world_dataset, world_grid):
        """Test that cell center coordinates give the expected corner transform."""
        grid = geometry_from_dataset(world_dataset, dims=["lon", "lat"])

        assert grid.extent == world_grid.extent
        assert grid.get_grid_to_crs() == world_grid.get_grid_to_crs()
        assert grid.envelope.lower == (-180.0, -90.0)
        assert grid.envelope.upper == (180.0, 90.0)

    def test_default_dims(self, world_dataset):
        grid = geometry_from_dataset(world_dataset)

        assert grid.extent.axis_names == ("lat", "lon")

    def test_with_crs(self, world_dataset, wgs84):
        grid = geometry_from_dataset(world_dataset, dims=["lon", "lat"], crs=wgs84)

        assert grid.crs == wgs84

    def test_crs_dimension_mismatch(self, world_dataset, cube_crs):
        with pytest.raises(MismatchedDimensionError):
            geometry_from_dataset(world_dataset, dims=["lon", "lat"], crs=cube_crs)

    def test_irregular_coordinate(self):
        da = xr.DataArray(np.zeros(4), dims=["x"], coords={"x": [0.0, 1.0, 3.0, 4.0]})

        with pytest.raises(CoordinateError):
            geometry_from_dataset(da)

    def test_missing_coordinate(self):
        da = xr.DataArray(np.zeros((2, 3)), dims=["y", "x"], coords={"x": [0.0, 1.0, 2.0]})

        with pytest.raises(CoordinateError):
            geometry_from_dataset(da)

    def test_single_value_coordinate(self):
        da = xr.DataArray(np.zeros(1), dims=["x"], coords={"x": [5.0]})

        with pytest.raises(CoordinateError):
            geometry_from_dataset(da)

    def test_unknown_dimension(self, world_dataset):
        with pytest.raises(CoordinateError):
            geometry_from_dataset(world_dataset, dims=["lon", "depth"])


class TestComputeIndexers:
    """Test positional indexers for derived geometries."""

    def test_subgrid_indexers(self, world_grid):
        derived = world_grid.derive().subgrid(Envelope((10, -20), (50, 20))).build()
        indexers = compute_indexers(world_grid, derived)

        assert indexers == {"lon": slice(190, 230, 1), "lat": slice(70, 110, 1)}

    def test_subsampled_indexers(self, world_grid):
        """Test that each subsampled cell picks the base cell containing its center."""
        derived = world_grid.derive().subgrid(Envelope((10, -20), (50, 20)), 2, 2).build()
        indexers = compute_indexers(world_grid, derived)

        assert indexers == {"lon": slice(191, 230, 2), "lat": slice(71, 110, 2)}

    def test_rotated_conversion(self, world_grid):
        rotated = GridGeometry(GridExtent.from_shape((2, 2)), linear([[0, 1, 0], [1, 0, 0], [0, 0, 1]]))

        with pytest.raises(IllegalRequestError):
            compute_indexers(world_grid, rotated)

    def test_dimension_mismatch(self, world_grid, cube_grid):
        with pytest.raises(MismatchedDimensionError):
            compute_indexers(world_grid, cube_grid)

    def test_outside_base_extent(self, world_grid):
        outside = GridGeometry(GridExtent((400, 0), (401, 1)), world_grid.get_grid_to_crs())

        with pytest.raises(OutOfDomainError):
            compute_indexers(world_grid, outside)


class TestApplyGridGeometry:
    """Test dataset selection by derived geometries."""

    def test_subgrid(self, world_dataset):
        base = geometry_from_dataset(world_dataset, dims=["lon", "lat"])
        derived = base.derive().subgrid(Envelope((10, -20), (50, 20))).build()
        subset = apply_grid_geometry(world_dataset, base, derived)

        assert subset.sizes["lon"] == 40
        assert subset.sizes["lat"] == 40
        assert float(subset["lon"][0]) == 10.5
        assert float(subset["lat"][0]) == 19.5
        assert subset["lon"].attrs["units"] == "degrees_east"
        np.testing.assert_array_equal(
            subset["t"].values, world_dataset["t"].values[70:110, 190:230]
        )

    def test_subsampled_coordinates(self, world_dataset):
        """Test that coordinates are the centers of the subsampled cells."""
        base = geometry_from_dataset(world_dataset, dims=["lon", "lat"])
        derived = base.derive().subgrid(Envelope((10, -20), (50, 20)), 2, 2).build()
        subset = apply_grid_geometry(world_dataset, base, derived)

        assert subset.sizes["lon"] == 20
        assert float(subset["lon"][0]) == 11.0
        assert float(subset["lon"][-1]) == 49.0
        assert float(subset["lat"][0]) == 19.0
        assert float(subset["lat"][-1]) == -19.0

    def test_drop_sliced(self, world_dataset):
        base = geometry_from_dataset(world_dataset, dims=["lon", "lat"])
        derived = base.derive().slice([10.2, 20.7]).build()
        kept = apply_grid_geometry(world_dataset, base, derived)
        dropped = apply_grid_geometry(world_dataset, base, derived, drop_sliced=True)

        assert kept["t"].shape == (1, 1)
        assert dropped["t"].shape == ()
        assert float(dropped["t"]) == world_dataset["t"].values[69, 190]

    def test_data_array(self, world_dataset):
        """Test that data arrays are handled like datasets."""
        da = world_dataset["t"]
        base = geometry_from_dataset(da, dims=["lon", "lat"])
        derived = base.derive().subgrid(Envelope((0, 0), (10, 10))).build()

        assert apply_grid_geometry(da, base, derived).shape == (10, 10)


class TestSubsetDataset:
    """Test the dataset subsetting shortcut."""

    def test_mapping_area(self, world_dataset):
        subset = subset_dataset(world_dataset, {"lon": (10, 50), "lat": (-20, 20)})

        assert dict(subset.sizes) == {"lat": 40, "lon": 40}

    def test_partial_mapping(self, world_dataset):
        """Test that dimensions without a range are kept whole."""
        subset = subset_dataset(world_dataset, {"lon": (10, 50)})

        assert subset.sizes["lon"] == 40
        assert subset.sizes["lat"] == 180

    def test_resolution_mapping(self, world_dataset):
        subset = subset_dataset(world_dataset, resolution={"lon": 2.0})

        assert subset.sizes["lon"] == 180
        assert subset.sizes["lat"] == 180

    def test_numpy_resolution(self, world_dataset):
        subset = subset_dataset(world_dataset, resolution=np.array([2.0, 2.0]))

        assert dict(subset.sizes) == {"lat": 90, "lon": 180}

    def test_envelope_area(self, world_dataset):
        subset = subset_dataset(world_dataset, Envelope((10, -20), (50, 20)), dims=["lon", "lat"])

        assert subset.sizes["lon"] == 40

    def test_whole_dataset(self, world_dataset):
        assert subset_dataset(world_dataset) is world_dataset

    def test_unknown_dimension(self, world_dataset):
        with pytest.raises(CoordinateError):
            subset_dataset(world_dataset, {"depth": (0, 10)})
