"""
gridgeom - Grid geometry derivation for N-dimensional gridded data.

This package describes gridded data by a grid geometry (an integer index
extent, a coordinate reference system and a transform from indices to
coordinates) and derives new grid geometries for an area of interest,
a target resolution, a slice or a subset of dimensions.

Key Features:
- Immutable grid extents and grid geometries
- Single-use derivation requests: rounding, subgrid or slice, then reduce
- Subsampling factors rounded so that the error over the extent stays
  below half a cell
- Separation of transforms to drop unused dimensions
- Registry of coordinate operations between reference systems
- Selection of xarray datasets by derived grid geometries

Quick Start:
    >>> import gridgeom as gg
    >>> extent = gg.GridExtent.from_shape((360, 180), axis_names=("lon", "lat"))
    >>> grid_to_crs = gg.linear([[1, 0, -180], [0, -1, 90], [0, 0, 1]])
    >>> world = gg.GridGeometry(extent, grid_to_crs)
    >>>
    >>> # Area of interest at a 2 degree resolution
    >>> aoi = gg.Envelope.from_ranges((10, 50), (-20, 20))
    >>> grid = world.derive().subgrid(aoi, 2, 2).build()
    >>>
    >>> # Same selection applied to a dataset
    >>> subset = gg.subset_dataset(ds, {"lon": (10, 50), "lat": (-20, 20)})
"""

__version__ = "1.0.0"
__author__ = "gridgeom Development Team"

# Import main interface functions
from .main import (
    # Derivation shortcuts
    derive_subgrid,
    derive_slice,
    reduce_dimensions,

    # Dataset subsetting
    subset_dataset,

    # Utility functions
    get_extent_info,
    get_geometry_info,
    convert_coordinates_to_indices,
    convert_indices_to_coordinates,
    convert_envelope_to_extent,
    convert_extent_to_envelope,
)

# Import grid classes
from .grid import (
    GridExtent,
    GridGeometry,
    GridDerivation,
    geometry_from_dataset,
    compute_indexers,
    apply_grid_geometry,
)

# Import data classes
from .core.core_types import (
    CoordinateReferenceSystem,
    Envelope,
    DirectPosition,
    GridRoundingMode,
    PixelInCell,
    DerivationState,
)

# Import transforms and coordinate operations
from .referencing import (
    MathTransform,
    LinearTransform,
    FunctionTransform,
    PassThroughTransform,
    linear,
    scale_translation,
    concatenate,
    TransformSeparator,
    register_operation,
    find_operation,
    get_default_registry,
)

# Import configuration for advanced users
from .core.config import (
    DEFAULT_ROUNDING_NAME,
    NO_SUBSAMPLING,
)

# Import exceptions for error handling
from .core.exceptions import (
    GridGeometryError,
    IncompleteGridGeometryError,
    IllegalRequestError,
    DerivationStateError,
    MismatchedDimensionError,
    TransformFailureError,
    OutOfDomainError,
    DisjointExtentError,
    CoordinateError,
    ReferencingError,
    NoninvertibleTransformError,
    SeparationError,
    OperationNotFoundError,
)

# Import logging configuration
from .core.logging_config import setup_logging, set_log_level

# Define what gets imported with "from gridgeom import *"
__all__ = [
    # Version info
    '__version__',

    # Main interface functions
    'derive_subgrid',
    'derive_slice',
    'reduce_dimensions',
    'subset_dataset',

    # Utility functions
    'get_extent_info',
    'get_geometry_info',
    'convert_coordinates_to_indices',
    'convert_indices_to_coordinates',
    'convert_envelope_to_extent',
    'convert_extent_to_envelope',

    # Grid classes
    'GridExtent',
    'GridGeometry',
    'GridDerivation',
    'geometry_from_dataset',
    'compute_indexers',
    'apply_grid_geometry',

    # Data classes
    'CoordinateReferenceSystem',
    'Envelope',
    'DirectPosition',
    'GridRoundingMode',
    'PixelInCell',
    'DerivationState',

    # Transforms and operations
    'MathTransform',
    'LinearTransform',
    'FunctionTransform',
    'PassThroughTransform',
    'linear',
    'scale_translation',
    'concatenate',
    'TransformSeparator',
    'register_operation',
    'find_operation',
    'get_default_registry',

    # Configuration constants
    'DEFAULT_ROUNDING_NAME',
    'NO_SUBSAMPLING',

    # Exception classes
    'GridGeometryError',
    'IncompleteGridGeometryError',
    'IllegalRequestError',
    'DerivationStateError',
    'MismatchedDimensionError',
    'TransformFailureError',
    'OutOfDomainError',
    'DisjointExtentError',
    'CoordinateError',
    'ReferencingError',
    'NoninvertibleTransformError',
    'SeparationError',
    'OperationNotFoundError',

    # Logging configuration
    'setup_logging',
    'set_log_level',
]

import logging
_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())
