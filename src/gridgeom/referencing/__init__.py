"""
gridgeom Referencing

This package provides the numeric building blocks of grid geometries:
a small dense matrix helper, math transforms, transform separation and
coordinate operation lookup.
"""

from . import matrices

from .transforms import (
    MathTransform,
    LinearTransform,
    ConcatenatedTransform,
    PassThroughTransform,
    FunctionTransform,
    linear,
    identity_transform,
    scale_translation,
    translation,
    concatenate,
)

from .separator import (
    TransformSeparator,
    separate,
)

from .operations import (
    CoordinateOperationRegistry,
    get_default_registry,
    register_operation,
    find_operation,
    transform_envelope,
    transform_position,
)

__all__ = [
    "matrices",
    # Transforms
    "MathTransform",
    "LinearTransform",
    "ConcatenatedTransform",
    "PassThroughTransform",
    "FunctionTransform",
    "linear",
    "identity_transform",
    "scale_translation",
    "translation",
    "concatenate",
    # Separation
    "TransformSeparator",
    "separate",
    # Operations
    "CoordinateOperationRegistry",
    "get_default_registry",
    "register_operation",
    "find_operation",
    "transform_envelope",
    "transform_position",
]
