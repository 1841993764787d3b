"""
gridgeom Transform Separator

This module extracts sub-transforms that use only some source or target
dimensions of a transform. It is used to keep grid-to-CRS transforms
invertible when a request has fewer dimensions than the grid, and to
reduce grid geometries to a subset of their dimensions.

The separation is structural: linear transforms are split according to the
non-zero coefficients of their matrix, concatenated and pass-through
transforms are split step by step. Function transforms can only be kept
whole.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core.exceptions import SeparationError, verify_dimensions
from .transforms import (
    MathTransform, LinearTransform, ConcatenatedTransform, PassThroughTransform,
    concatenate, identity_transform
)

logger = logging.getLogger(__name__)


# ============================================================================
# Public Interface
# ============================================================================

class TransformSeparator:
    """
    Extracts a sub-transform from a given transform.

    Source dimensions to keep are declared by ``add_source_dimensions`` and
    target dimensions by ``add_target_dimensions``. When only targets are
    declared, the source dimensions are inferred; they are trimmed to the
    ones actually used if ``trim_source_dimensions`` is true.

    Examples:
        >>> sep = TransformSeparator(grid_to_crs)
        >>> sep.trim_source_dimensions = True
        >>> sep.add_target_dimensions(0, 1)
        >>> horizontal = sep.separate()
        >>> sep.get_source_dimensions()
        [0, 1]
    """

    def __init__(self, transform: MathTransform):
        self.transform = transform
        self.trim_source_dimensions = False
        self._source_dimensions: Optional[List[int]] = None
        self._target_dimensions: Optional[List[int]] = None

    def add_source_dimensions(self, *dimensions: int) -> None:
        self._source_dimensions = self._merge(
            self._source_dimensions, dimensions, self.transform.source_dimensions
        )

    def add_target_dimensions(self, *dimensions: int) -> None:
        self._target_dimensions = self._merge(
            self._target_dimensions, dimensions, self.transform.target_dimensions
        )

    @staticmethod
    def _merge(current: Optional[List[int]], added: Sequence[int], limit: int) -> List[int]:
        merged = sorted(set(current or []) | {int(d) for d in added})
        return verify_dimensions(merged, limit)

    def get_source_dimensions(self) -> List[int]:
        """Source dimensions of the last separated transform, in increasing order."""
        if self._source_dimensions is None:
            return list(range(self.transform.source_dimensions))
        return list(self._source_dimensions)

    def get_target_dimensions(self) -> List[int]:
        """Target dimensions of the last separated transform, in increasing order."""
        if self._target_dimensions is None:
            return list(range(self.transform.target_dimensions))
        return list(self._target_dimensions)

    def separate(self) -> MathTransform:
        """
        Separate the transform.

        Returns:
            MathTransform: Transform from the kept source dimensions to the
                kept target dimensions

        Raises:
            SeparationError: If the requested dimensions can not be isolated
        """
        transform = self.transform
        sources = self._source_dimensions
        targets = self._target_dimensions

        if sources is not None:
            transform, kept_targets = _separate_sources(transform, sources)
            if targets is not None:
                missing = [t for t in targets if t not in kept_targets]
                if missing:
                    raise SeparationError(
                        f"Target dimensions {missing} do not depend only on source dimensions {sources}"
                    )
                positions = [kept_targets.index(t) for t in targets]
                transform, used = _separate_targets(transform, positions)
                if len(used) != len(sources):
                    transform = concatenate(_selection(len(sources), used), transform)
            else:
                targets = kept_targets
        else:
            if targets is None:
                targets = list(range(transform.target_dimensions))
            transform, used = _separate_targets(transform, targets)
            if self.trim_source_dimensions:
                sources = used
            else:
                sources = list(range(self.transform.source_dimensions))
                transform = concatenate(_selection(len(sources), used), transform)

        self._source_dimensions = list(sources)
        self._target_dimensions = list(targets)
        return transform


def separate(transform: MathTransform, required_dimensions: int) -> Tuple[MathTransform, Optional[List[int]]]:
    """
    Drop the source dimensions that are not needed for producing the target
    dimensions of a transform, in an effort to make it invertible.

    Args:
        transform: Transform from grid indices to request coordinates
        required_dimensions: Number of target dimensions of the request

    Returns:
        Tuple: The reduced transform and the kept source dimensions, or the
            unchanged transform and None if no reduction is needed

    Raises:
        SeparationError: If the number of kept source dimensions is not
            ``required_dimensions``
    """
    if required_dimensions >= transform.source_dimensions:
        return transform, None
    sep = TransformSeparator(transform)
    sep.trim_source_dimensions = True
    reduced = sep.separate()
    kept = sep.get_source_dimensions()
    if len(kept) != required_dimensions:
        raise SeparationError(
            f"{required_dimensions} target dimension(s) depend on source dimensions {kept}"
        )
    logger.debug("Kept source dimensions %s of %s", kept, transform.source_dimensions)
    return reduced, kept

# ============================================================================
# Structural Separation
# ============================================================================

def _selection(num_sources: int, selected: Sequence[int]) -> LinearTransform:
    """Linear transform picking the ``selected`` coordinates out of ``num_sources``."""
    matrix = np.zeros((len(selected) + 1, num_sources + 1))
    for k, j in enumerate(selected):
        matrix[k, j] = 1.0
    matrix[-1, -1] = 1.0
    return LinearTransform(matrix)


def _separate_targets(transform: MathTransform, targets: Sequence[int]) -> Tuple[MathTransform, List[int]]:
    """
    Keep the given target dimensions and the source dimensions they use.

    Returns:
        Tuple: Transform from the used source dimensions to the targets, and
            the used source dimensions in increasing order
    """
    targets = list(targets)
    if isinstance(transform, LinearTransform):
        matrix = transform.matrix
        used = [j for j in range(transform.source_dimensions)
                if np.any(matrix[targets, j] != 0)]
        if not used:
            raise SeparationError(f"Target dimensions {targets} do not depend on any source dimension")
        rows = targets + [transform.target_dimensions]
        cols = used + [transform.source_dimensions]
        return LinearTransform(matrix[np.ix_(rows, cols)]), used

    if isinstance(transform, ConcatenatedTransform):
        second, middle = _separate_targets(transform.second, targets)
        first, used = _separate_targets(transform.first, middle)
        return concatenate(first, second), used

    if isinstance(transform, PassThroughTransform):
        return _separate_pass_through_targets(transform, targets)

    if targets == list(range(transform.target_dimensions)):
        return transform, list(range(transform.source_dimensions))
    raise SeparationError(f"Cannot isolate target dimensions {targets} of {transform!r}")


def _separate_pass_through_targets(transform: PassThroughTransform,
                                   targets: List[int]) -> Tuple[MathTransform, List[int]]:
    lead = transform.first_affected
    sub = transform.sub_transform
    sub_end = lead + sub.target_dimensions
    offset = sub.source_dimensions - sub.target_dimensions

    leading = [t for t in targets if t < lead]
    affected = [t - lead for t in targets if lead <= t < sub_end]
    trailing = [t + offset for t in targets if t >= sub_end]

    if not affected:
        kept = leading + trailing
        return identity_transform(len(kept)), kept

    sub_transform, sub_used = _separate_targets(sub, affected)
    used = leading + [lead + s for s in sub_used] + trailing
    return PassThroughTransform(len(leading), sub_transform, len(trailing)), used


def _separate_sources(transform: MathTransform, sources: Sequence[int]) -> Tuple[MathTransform, List[int]]:
    """
    Keep the given source dimensions and the target dimensions computed
    from them only.

    Returns:
        Tuple: Transform from the sources to the kept targets, and the kept
            target dimensions in increasing order
    """
    sources = list(sources)
    if isinstance(transform, LinearTransform):
        matrix = transform.matrix
        removed = [j for j in range(transform.source_dimensions) if j not in sources]
        kept = []
        for i in range(transform.target_dimensions):
            depends_on_kept = bool(np.any(matrix[i, sources] != 0))
            depends_on_removed = bool(removed) and bool(np.any(matrix[i, removed] != 0))
            if depends_on_removed:
                if depends_on_kept:
                    raise SeparationError(
                        f"Target dimension {i} mixes kept source dimensions {sources} with removed ones"
                    )
                continue
            kept.append(i)
        if not kept:
            raise SeparationError(f"No target dimension depends only on source dimensions {sources}")
        rows = kept + [transform.target_dimensions]
        cols = sources + [transform.source_dimensions]
        return LinearTransform(matrix[np.ix_(rows, cols)]), kept

    if isinstance(transform, ConcatenatedTransform):
        first, middle = _separate_sources(transform.first, sources)
        second, kept = _separate_sources(transform.second, middle)
        return concatenate(first, second), kept

    if isinstance(transform, PassThroughTransform):
        return _separate_pass_through_sources(transform, sources)

    if sources == list(range(transform.source_dimensions)):
        return transform, list(range(transform.target_dimensions))
    raise SeparationError(f"Cannot isolate source dimensions {sources} of {transform!r}")


def _separate_pass_through_sources(transform: PassThroughTransform,
                                   sources: List[int]) -> Tuple[MathTransform, List[int]]:
    lead = transform.first_affected
    sub = transform.sub_transform
    sub_end = lead + sub.source_dimensions
    offset = sub.target_dimensions - sub.source_dimensions

    leading = [s for s in sources if s < lead]
    affected = [s - lead for s in sources if lead <= s < sub_end]
    trailing = [s + offset for s in sources if s >= sub_end]

    if not affected:
        kept = leading + trailing
        return identity_transform(len(kept)), kept

    sub_transform, sub_kept = _separate_sources(sub, affected)
    kept = leading + [lead + t for t in sub_kept] + trailing
    return PassThroughTransform(len(leading), sub_transform, len(trailing)), kept
