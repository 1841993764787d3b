"""Tests for grid extents."""

import math

import pytest

from gridgeom import (
    DisjointExtentError, Envelope, GridExtent, GridRoundingMode, IllegalRequestError,
    MismatchedDimensionError, OutOfDomainError
)
from gridgeom.grid import round_half_up


class TestGridExtentBasics:
    """Test extent construction and accessors."""

    def test_from_shape(self):
        extent = GridExtent.from_shape((360, 180), axis_names=("lon", "lat"))

        assert extent.low == (0, 0)
        assert extent.high == (359, 179)
        assert extent.shape == (360, 180)
        assert extent.get_size(1) == 180
        assert extent.get_axis_name(0) == "lon"

    def test_default_axis_names(self):
        assert GridExtent((0, 0), (1, 1)).get_axis_name(1) == "dim1"

    def test_low_greater_than_high(self):
        with pytest.raises(IllegalRequestError):
            GridExtent((0, 5), (3, 4))

    def test_mismatched_bounds(self):
        with pytest.raises(MismatchedDimensionError):
            GridExtent((0, 0), (3,))

    def test_to_envelope(self):
        """Test that the cell envelope is [low, high + 1)."""
        envelope = GridExtent((2, 5), (4, 9)).to_envelope()

        assert envelope.lower == (2.0, 5.0)
        assert envelope.upper == (5.0, 10.0)

    def test_default_point_of_interest(self):
        """Test that the point of interest is the extent center."""
        extent = GridExtent((190, 70), (229, 109))

        assert extent.get_point_of_interest() == (210.0, 90.0)
        assert extent.get_point_of_interest([1]) == (90.0,)

    def test_explicit_point_of_interest(self):
        extent = GridExtent((0, 0), (9, 9), point_of_interest=(1, 2))

        assert extent.get_point_of_interest() == (1.0, 2.0)

    def test_subspace_dimensions(self):
        """Test selecting the largest dimensions."""
        extent = GridExtent.from_shape((5, 100, 50))

        assert extent.get_subspace_dimensions(2) == [1, 2]
        assert extent.get_subspace_dimensions(1) == [1]
        with pytest.raises(IllegalRequestError):
            extent.get_subspace_dimensions(4)

    def test_equality_ignores_point_of_interest(self):
        assert GridExtent((0,), (9,), point_of_interest=(3,)) == GridExtent((0,), (9,))
        assert GridExtent((0,), (9,), axis_names=("x",)) != GridExtent((0,), (9,))

    def test_repr(self):
        text = repr(GridExtent.from_shape((3,), axis_names=("x",)))

        assert "x: [0 … 2] (3 cells)" in text


class TestFromEnvelope:
    """Test conversion of continuous envelopes to extents."""

    def test_round_half_up(self):
        assert round_half_up(12.4) == 12
        assert round_half_up(12.5) == 13
        assert round_half_up(-7.6) == -8
        assert round_half_up(-7.5) == -7

    @pytest.mark.parametrize("rounding, expected", [
        (GridRoundingMode.NEAREST, (2, 6)),
        (GridRoundingMode.ENCLOSING, (2, 7)),
        (GridRoundingMode.CONTAINED, (3, 6)),
    ])
    def test_rounding_modes(self, rounding, expected):
        """Test the three rounding modes on [2.25, 7.5)."""
        extent = GridExtent.from_envelope(Envelope((2.25,), (7.5,)), rounding)

        assert (extent.get_low(0), extent.get_high(0)) == expected

    def test_nearest_on_integral_span(self):
        extent = GridExtent.from_envelope(Envelope((2.25,), (7.25,)), "nearest")

        assert extent.shape == (5,)
        assert extent.low == (2,)

    def test_exact_bounds(self):
        extent = GridExtent.from_envelope(Envelope((190, 70), (230, 110)), GridRoundingMode.NEAREST)

        assert extent.low == (190, 70)
        assert extent.high == (229, 109)

    def test_clip_to_enclosing(self):
        enclosing = GridExtent.from_shape((100,))
        extent = GridExtent.from_envelope(Envelope((-10,), (50,)), enclosing=enclosing)

        assert extent.low == (0,)
        assert extent.high == (49,)

    def test_nan_keeps_enclosing_bounds(self):
        enclosing = GridExtent.from_shape((100, 20))
        extent = GridExtent.from_envelope(Envelope((10, math.nan), (20, math.nan)), enclosing=enclosing)

        assert extent.low == (10, 0)
        assert extent.high == (19, 19)

    def test_nan_without_enclosing(self):
        with pytest.raises(IllegalRequestError):
            GridExtent.from_envelope(Envelope((math.nan,), (math.nan,)))

    def test_infinite_bounds_are_clamped(self):
        enclosing = GridExtent.from_shape((100,))
        extent = GridExtent.from_envelope(Envelope((-math.inf,), (30,)), enclosing=enclosing)

        assert extent.low == (0,)
        assert extent.high == (29,)

    def test_margin(self):
        enclosing = GridExtent.from_shape((100,))
        extent = GridExtent.from_envelope(
            Envelope((10,), (20,)), enclosing=enclosing, margin=[2]
        )

        assert extent.low == (8,)
        assert extent.high == (21,)

    def test_dimension_map(self):
        """Test writing envelope dimensions into selected extent dimensions."""
        enclosing = GridExtent.from_shape((10, 20, 5), axis_names=("x", "y", "time"))
        extent = GridExtent.from_envelope(
            Envelope((2,), (4,)), enclosing=enclosing, dimension_map=[2]
        )

        assert extent.low == (0, 0, 2)
        assert extent.high == (9, 19, 3)
        assert extent.axis_names == ("x", "y", "time")

    def test_dimension_map_requires_enclosing(self):
        with pytest.raises(IllegalRequestError):
            GridExtent.from_envelope(Envelope((2,), (4,)), dimension_map=[0])

    def test_disjoint(self):
        enclosing = GridExtent.from_shape((100,))

        with pytest.raises(DisjointExtentError):
            GridExtent.from_envelope(Envelope((200,), (300,)), enclosing=enclosing)

    def test_unknown_rounding_name(self):
        with pytest.raises(IllegalRequestError):
            GridExtent.from_envelope(Envelope((0,), (1,)), "upward")


class TestDerivedExtents:
    """Test slicing, reduction and subsampling of extents."""

    def test_slice_rounding(self):
        """Test that slice coordinates are rounded half up."""
        extent = GridExtent((-20,), (20,))

        assert extent.slice([12.4]).low == (12,)
        assert extent.slice([-7.6]).low == (-8,)
        assert extent.slice([-7.6]).high == (-8,)

    def test_slice_out_of_bounds(self):
        """Test that a rounded index outside the bounds is rejected."""
        extent = GridExtent.from_shape((180,))

        with pytest.raises(OutOfDomainError):
            extent.slice([-7.6])

    def test_slice_nan_keeps_dimension(self):
        extent = GridExtent.from_shape((10, 10))
        sliced = extent.slice([math.nan, 3.2])

        assert sliced.low == (0, 3)
        assert sliced.high == (9, 3)
        assert sliced.is_empty_slice(1)
        assert not sliced.is_empty_slice(0)

    def test_slice_without_change(self):
        extent = GridExtent.from_shape((10, 10))

        assert extent.slice([math.nan, math.nan]) is extent

    def test_slice_with_dimension_map(self):
        extent = GridExtent.from_shape((10, 20, 5))
        sliced = extent.slice([4.0], dimension_map=[2])

        assert sliced.low == (0, 0, 4)
        assert sliced.high == (9, 19, 4)

    def test_reduce(self):
        """Test that reduce keeps the selected dimensions in order."""
        extent = GridExtent((1, 2, 3), (4, 5, 6), axis_names=("x", "y", "z"))
        reduced = extent.reduce([0, 2])

        assert reduced.low == (1, 3)
        assert reduced.high == (4, 6)
        assert reduced.axis_names == ("x", "z")

    def test_reduce_all_dimensions(self):
        extent = GridExtent.from_shape((3, 3))

        assert extent.reduce([0, 1]) is extent

    @pytest.mark.parametrize("dimensions", [[], [1, 0], [0, 0], [0, 3]])
    def test_reduce_invalid(self, dimensions):
        with pytest.raises(IllegalRequestError):
            GridExtent.from_shape((3, 3, 3)).reduce(dimensions)

    def test_subsample(self):
        """Test that every cell belongs to a subsampled cell."""
        extent = GridExtent.from_shape((10, 10)).subsample([2, 3])

        assert extent.low == (0, 0)
        assert extent.high == (4, 3)

    def test_subsample_invalid_factor(self):
        with pytest.raises(IllegalRequestError):
            GridExtent.from_shape((10,)).subsample([0])
