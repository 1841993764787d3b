"""
gridgeom Utilities

This package provides utility functions for grid information queries and
coordinate conversions.
"""

# Information functions
from .info import (
    get_extent_info,
    get_geometry_info,
)

# Conversion functions
from .conversion import (
    convert_coordinates_to_indices,
    convert_indices_to_coordinates,
    convert_envelope_to_extent,
    convert_extent_to_envelope,
)

__all__ = [
    # Information functions
    "get_extent_info",
    "get_geometry_info",
    # Conversion functions
    "convert_coordinates_to_indices",
    "convert_indices_to_coordinates",
    "convert_envelope_to_extent",
    "convert_extent_to_envelope",
]
