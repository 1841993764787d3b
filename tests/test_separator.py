"""Tests for transform separation."""

import numpy as np
import pytest

from gridgeom import (
    FunctionTransform, PassThroughTransform, SeparationError, TransformSeparator,
    concatenate, linear, scale_translation
)
from gridgeom.referencing import separate


@pytest.fixture
def diagonal_3d():
    return scale_translation([2, 3, 4], [10, 20, 30])


class TestTargetSeparation:
    """Test separation driven by target dimensions."""

    def test_trimmed_sources(self, diagonal_3d):
        """Test that only the used source dimensions are kept."""
        sep = TransformSeparator(diagonal_3d)
        sep.trim_source_dimensions = True
        sep.add_target_dimensions(0, 2)
        result = sep.separate()

        assert sep.get_source_dimensions() == [0, 2]
        assert sep.get_target_dimensions() == [0, 2]
        assert result == linear([[2, 0, 10], [0, 4, 30], [0, 0, 1]])

    def test_untrimmed_sources(self, diagonal_3d):
        """Test that all source dimensions are kept without trimming."""
        sep = TransformSeparator(diagonal_3d)
        sep.add_target_dimensions(1)
        result = sep.separate()

        assert result.source_dimensions == 3
        assert result.target_dimensions == 1
        assert sep.get_source_dimensions() == [0, 1, 2]
        np.testing.assert_array_equal(result.transform([5, 1, 7]), [23])

    def test_target_without_source(self):
        """Test that a constant target dimension can not be separated."""
        t = linear([[1, 0, 0], [0, 0, 5], [0, 0, 1]])
        sep = TransformSeparator(t)
        sep.trim_source_dimensions = True
        sep.add_target_dimensions(1)

        with pytest.raises(SeparationError):
            sep.separate()


class TestSourceSeparation:
    """Test separation driven by source dimensions."""

    def test_kept_targets(self, diagonal_3d):
        sep = TransformSeparator(diagonal_3d)
        sep.add_source_dimensions(0, 2)
        result = sep.separate()

        assert sep.get_target_dimensions() == [0, 2]
        np.testing.assert_array_equal(result.transform([1, 1]), [12, 34])

    def test_mixed_target_fails(self):
        """Test that a target mixing kept and removed sources is rejected."""
        sheared = linear([[1, 0, 1, 0], [0, 1, 0, 0], [0, 0, 1, 0], [0, 0, 0, 1]])
        sep = TransformSeparator(sheared)
        sep.add_source_dimensions(0, 1)

        with pytest.raises(SeparationError):
            sep.separate()

    def test_sources_and_targets(self, diagonal_3d):
        """Test declaring both sources and targets."""
        sep = TransformSeparator(diagonal_3d)
        sep.add_source_dimensions(1, 2)
        sep.add_target_dimensions(2)
        result = sep.separate()

        assert result.source_dimensions == 2
        assert result.target_dimensions == 1
        np.testing.assert_array_equal(result.transform([0, 1]), [34])


class TestStructuralSeparation:
    """Test separation of composite transforms."""

    def test_pass_through(self):
        """Test isolating the sub-transform of a pass-through transform."""
        t = PassThroughTransform(1, scale_translation([10], [0]), 1)
        sep = TransformSeparator(t)
        sep.trim_source_dimensions = True
        sep.add_target_dimensions(1)
        result = sep.separate()

        assert sep.get_source_dimensions() == [1]
        np.testing.assert_array_equal(result.transform([3]), [30])

    def test_pass_through_sources(self):
        t = PassThroughTransform(1, scale_translation([10], [0]), 1)
        sep = TransformSeparator(t)
        sep.add_source_dimensions(0, 2)
        result = sep.separate()

        assert sep.get_target_dimensions() == [0, 2]
        np.testing.assert_array_equal(result.transform([4, 5]), [4, 5])

    def test_concatenated_with_linear_steps(self):
        """Test separation through a chain of transforms."""
        function = FunctionTransform(lambda p: p * 3, 1, 1, inverse=lambda p: p / 3)
        chain = concatenate(scale_translation([2, 5], [0, 0]), PassThroughTransform(0, function, 1))
        sep = TransformSeparator(chain)
        sep.trim_source_dimensions = True
        sep.add_target_dimensions(1)
        result = sep.separate()

        assert sep.get_source_dimensions() == [1]
        np.testing.assert_allclose(result.transform([2]), [10])

    def test_function_can_not_be_split(self):
        function = FunctionTransform(lambda p: p[::-1], 2, 2)
        sep = TransformSeparator(function)
        sep.add_target_dimensions(0)

        with pytest.raises(SeparationError):
            sep.separate()


class TestSeparateFunction:
    """Test the helper used for dropping unused grid dimensions."""

    def test_no_reduction_needed(self, diagonal_3d):
        result, kept = separate(diagonal_3d, 3)

        assert result is diagonal_3d
        assert kept is None

    def test_reduction(self):
        t = linear([[0.5, 0, 0, 100], [0, 0.5, 0, 20], [0, 0, 0, 1]])
        result, kept = separate(t, 2)

        assert kept == [0, 1]
        assert result == linear([[0.5, 0, 100], [0, 0.5, 20], [0, 0, 1]])

    def test_reduction_failure(self):
        """Test that a target using all sources can not be reduced."""
        t = linear([[1, 0, 1, 0], [0, 1, 0, 0], [0, 0, 0, 1]])

        with pytest.raises(SeparationError):
            separate(t, 2)
