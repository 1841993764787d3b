"""
gridgeom Coordinate Operations

This module resolves coordinate operations between reference systems and
transforms envelopes and positions through math transforms. Operations
between pyproj backed systems come from pyproj unless one is registered.
"""

import itertools
import logging
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

import numpy as np
import pyproj
from pyproj.enums import TransformDirection
from pyproj.exceptions import ProjError

from ..core.core_types import CoordinateReferenceSystem, Envelope, DirectPosition
from ..core.exceptions import (
    OperationNotFoundError, NoninvertibleTransformError, ensure_dimension_matches
)
from .transforms import FunctionTransform, MathTransform, identity_transform

logger = logging.getLogger(__name__)

OperationKey = Tuple[CoordinateReferenceSystem, CoordinateReferenceSystem]

# ============================================================================
# Operation Registry
# ============================================================================

class CoordinateOperationRegistry:
    """
    Table of transforms between coordinate reference systems.

    An operation registered from A to B is also used, inverted, for
    converting from B to A. Registered operations take precedence over
    pyproj, which is used between systems backed by pyproj definitions.
    """

    def __init__(self):
        self._operations: Dict[OperationKey, List[MathTransform]] = {}

    def register(self, source: CoordinateReferenceSystem, target: CoordinateReferenceSystem,
                 transform: MathTransform) -> None:
        """
        Register the transform converting coordinates from ``source`` to ``target``.
        """
        ensure_dimension_matches("transform source", source.dimension, transform.source_dimensions)
        ensure_dimension_matches("transform target", target.dimension, transform.target_dimensions)
        self._operations.setdefault((source, target), []).append(transform)

    def clear(self) -> None:
        self._operations.clear()

    def find_operation(self, source: CoordinateReferenceSystem,
                       target: CoordinateReferenceSystem) -> MathTransform:
        """
        Find the transform from ``source`` to ``target`` coordinates.

        Raises:
            OperationNotFoundError: If no operation exists, if more than one
                operation is registered, if only a non-invertible reverse
                operation is registered, or if pyproj can not convert
        """
        if source == target:
            return identity_transform(source.dimension)

        candidates = self._operations.get((source, target), [])
        if len(candidates) > 1:
            raise OperationNotFoundError(
                source.name, target.name, f"Ambiguous: {len(candidates)} operations registered"
            )
        if candidates:
            return candidates[0]

        reverse = self._operations.get((target, source), [])
        if len(reverse) > 1:
            raise OperationNotFoundError(
                source.name, target.name, f"Ambiguous: {len(reverse)} reverse operations registered"
            )
        if reverse:
            try:
                return reverse[0].inverse()
            except NoninvertibleTransformError as e:
                raise OperationNotFoundError(source.name, target.name, str(e)) from e

        return _pyproj_operation(source, target)


_default_registry = CoordinateOperationRegistry()


def get_default_registry() -> CoordinateOperationRegistry:
    return _default_registry


def register_operation(source: CoordinateReferenceSystem, target: CoordinateReferenceSystem,
                       transform: MathTransform) -> None:
    """Register an operation in the default registry."""
    _default_registry.register(source, target, transform)


def find_operation(source: CoordinateReferenceSystem, target: CoordinateReferenceSystem,
                   registry: Optional[CoordinateOperationRegistry] = None) -> MathTransform:
    """Find an operation in the given registry, or in the default registry."""
    return (registry or _default_registry).find_operation(source, target)

# ============================================================================
# pyproj Operations
# ============================================================================

@lru_cache(maxsize=64)
def _pyproj_operation(source: CoordinateReferenceSystem,
                      target: CoordinateReferenceSystem) -> FunctionTransform:
    """
    Wrap a pyproj transformer between two pyproj backed systems.

    Coordinates are in east, north order (``always_xy=True``). A NaN input
    coordinate makes the whole output point unconstrained, since pyproj
    couples all axes.
    """
    if source.definition is None or target.definition is None:
        raise OperationNotFoundError(source.name, target.name)
    dimension = source.dimension
    if dimension not in (2, 3) or target.dimension != dimension:
        raise OperationNotFoundError(
            source.name, target.name,
            f"pyproj converts 2 or 3 coordinates, got {source.dimension} and {target.dimension}"
        )
    try:
        transformer = pyproj.Transformer.from_crs(source.definition, target.definition, always_xy=True)
    except ProjError as e:
        raise OperationNotFoundError(source.name, target.name, str(e)) from e

    def convert(point, direction):
        if np.isnan(point).any():
            return np.full(dimension, np.nan)
        return transformer.transform(*point, direction=direction)

    logger.debug("Using pyproj operation from %s to %s", source.name, target.name)
    return FunctionTransform(
        lambda point: convert(point, TransformDirection.FORWARD),
        dimension, dimension,
        inverse=lambda point: convert(point, TransformDirection.INVERSE),
        name=f"{source.name} to {target.name}",
    )

# ============================================================================
# Envelope and Position Transformation
# ============================================================================

def transform_envelope(transform: MathTransform, envelope: Envelope,
                       crs: Optional[CoordinateReferenceSystem] = None) -> Envelope:
    """
    Transform an envelope by projecting all its corners.

    An output dimension computed from an unconstrained (NaN) input becomes
    unconstrained as well. The result is exact for linear transforms and an
    approximation for non-linear ones.

    Args:
        transform: Transform to apply
        envelope: Envelope in the transform source space
        crs: Reference system to attach to the result

    Returns:
        Envelope: Bounding box of the transformed corners
    """
    ensure_dimension_matches("envelope", transform.source_dimensions, envelope.dimension)
    corners = np.array(list(itertools.product(*zip(envelope.lower, envelope.upper))), dtype=float)
    projected = transform.transform(corners)
    with np.errstate(invalid="ignore"):
        lower = projected.min(axis=0)
        upper = projected.max(axis=0)
    unconstrained = np.isnan(projected).any(axis=0)
    lower[unconstrained] = np.nan
    upper[unconstrained] = np.nan
    return Envelope(tuple(lower), tuple(upper), crs)


def transform_position(transform: MathTransform, position: DirectPosition,
                       crs: Optional[CoordinateReferenceSystem] = None) -> DirectPosition:
    """Transform a single position."""
    ensure_dimension_matches("position", transform.source_dimensions, position.dimension)
    return DirectPosition(tuple(transform.transform(position.coordinates)), crs)
