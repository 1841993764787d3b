"""
gridgeom Configuration and Constants

This module centralizes all configuration parameters, constants, and default values
for better maintainability and consistency across the codebase.
"""

import logging
import os

# ============================================================================
# Rounding
# ============================================================================

# Users can override via GRIDGEOM_ROUNDING environment variable
# (one of NEAREST, CONTAINED, ENCLOSING)
DEFAULT_ROUNDING_NAME = os.environ.get("GRIDGEOM_ROUNDING", "NEAREST")

# ============================================================================
# Subsampling
# ============================================================================

# Value used for padding a resolution vector shorter than the number of
# target dimensions. Any value <= 1 means "no subsampling" for that axis.
NO_SUBSAMPLING = 0.0

# ============================================================================
# Numerical Tolerances
# ============================================================================

# Step used by finite differences when a function transform does not
# provide its own derivative
DERIVATIVE_STEP = 1e-6

# Relative tolerance when checking that xarray coordinates are regularly spaced
REGULAR_SPACING_RTOL = 1e-6

# ============================================================================
# Logging
# ============================================================================

LOGGER_NAME = "gridgeom"
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# ============================================================================
# Helper Functions
# ============================================================================

def get_default_rounding():
    """Get the default rounding mode, honoring the GRIDGEOM_ROUNDING override."""
    from .core_types import GridRoundingMode
    try:
        return GridRoundingMode[DEFAULT_ROUNDING_NAME.strip().upper()]
    except KeyError:
        logging.getLogger(__name__).warning(
            "Unknown GRIDGEOM_ROUNDING value %r, using NEAREST", DEFAULT_ROUNDING_NAME
        )
        return GridRoundingMode.NEAREST
