"""
gridgeom Type Definitions and Data Classes

This module defines all data structures and type aliases used throughout the codebase
for better type safety and code clarity.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Sequence, Union
import re
import numpy as np
import pyproj
from pyproj.exceptions import CRSError

from .exceptions import IllegalRequestError

# ============================================================================
# Type Aliases
# ============================================================================

CoordinateRange = Tuple[float, float]
Coordinates = Tuple[float, ...]
DimensionMap = Optional[Sequence[int]]
ArrayLike = Union[Sequence[float], np.ndarray]

# ============================================================================
# Validation Utilities (Module Level)
# ============================================================================

def _as_float_tuple(name: str, values: ArrayLike) -> Coordinates:
    """Convert a sequence of numbers to a tuple of floats."""
    try:
        return tuple(float(v) for v in np.asarray(values, dtype=float).ravel())
    except (TypeError, ValueError) as e:
        raise IllegalRequestError(name, f"Expected a sequence of numbers: {e}", values)

def _validate_bounds(lower: Coordinates, upper: Coordinates) -> None:
    """Validate envelope bounds. NaN bounds are accepted as unconstrained."""
    if len(lower) != len(upper):
        raise IllegalRequestError(
            "envelope",
            f"lower has {len(lower)} values but upper has {len(upper)}"
        )
    for i, (lo, hi) in enumerate(zip(lower, upper)):
        if lo > hi:
            raise IllegalRequestError(
                "envelope",
                f"lower[{i}] must be <= upper[{i}]",
                (lo, hi)
            )

# ============================================================================
# Enumerations
# ============================================================================

class GridRoundingMode(Enum):
    """
    Rule for converting continuous index bounds to integer index bounds.

    NEAREST rounds both bounds to the nearest integer, CONTAINED rounds
    inward and ENCLOSING rounds outward.
    """
    NEAREST = "nearest"
    CONTAINED = "contained"
    ENCLOSING = "enclosing"

    @classmethod
    def parse(cls, value: Union[str, "GridRoundingMode"]) -> "GridRoundingMode":
        """Accept either a member or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise IllegalRequestError(
            "rounding",
            f"Expected one of {[m.name for m in cls]}",
            value
        )


class PixelInCell(Enum):
    """Part of a grid cell that a grid-to-CRS transform maps integer indices to."""
    CELL_CORNER = "cell_corner"
    CELL_CENTER = "cell_center"


class DerivationState(Enum):
    """Which mutually exclusive restriction a grid derivation has received."""
    INITIAL = "initial"
    SLICED = "slice"
    SUBGRIDDED = "subgrid"

# ============================================================================
# Coordinate Reference System
# ============================================================================

# Names of the form "AUTHORITY:CODE" are resolved by pyproj
_AUTHORITY_CODE = re.compile(r"^[A-Za-z]+:[\w.]+$")


def _resolve_definition(name: str, definition) -> Optional[pyproj.CRS]:
    """Resolve a pyproj CRS from an explicit definition or an authority code name."""
    if definition is None and not _AUTHORITY_CODE.match(name):
        return None
    user_input = definition if definition is not None else name
    try:
        return pyproj.CRS.from_user_input(user_input)
    except CRSError as e:
        raise IllegalRequestError("crs", f"Unknown coordinate reference system: {e}", user_input) from e


def _xy_axes(definition: pyproj.CRS) -> Tuple[str, ...]:
    """Axis abbreviations in east, north order, as used with always_xy=True."""
    info = definition.axis_info
    axes = [axis.abbrev or axis.name for axis in info]
    if len(info) >= 2 and info[0].direction in ("north", "south") and info[1].direction in ("east", "west"):
        axes[0], axes[1] = axes[1], axes[0]
    return tuple(axes)


@dataclass(frozen=True, eq=False)
class CoordinateReferenceSystem:
    """
    Coordinate reference system of grid or request coordinates.

    Systems named by an authority code such as "EPSG:4326", or given an
    explicit ``definition`` (anything ``pyproj.CRS.from_user_input``
    accepts), are backed by pyproj. Their coordinates are in east, north
    order, as with ``always_xy=True``. Other names describe local systems
    (e.g. a model grid in km) that pyproj does not know; conversions to
    and from them must be registered.

    Two pyproj backed systems are equal when pyproj considers them equal
    and they have the same axes. Local systems are equal when they have
    the same name and axes.

    Attributes:
        name: Identifier such as "EPSG:4326"
        axes: Axis names in coordinate order, default from the pyproj axes
        definition: pyproj CRS, or None for a local system

    Examples:
        >>> wgs84 = CoordinateReferenceSystem("EPSG:4326")
        >>> wgs84.axes
        ('Lon', 'Lat')
        >>> model = CoordinateReferenceSystem("model", ("x", "y", "z"))
    """
    name: str
    axes: Tuple[str, ...] = field(default_factory=tuple)
    definition: Optional[pyproj.CRS] = None

    def __post_init__(self):
        definition = _resolve_definition(str(self.name), self.definition)
        axes = tuple(str(a) for a in self.axes)
        if not axes and definition is not None:
            axes = _xy_axes(definition)
        if not axes:
            raise IllegalRequestError("axes", "A coordinate reference system needs at least one axis")
        object.__setattr__(self, "definition", definition)
        object.__setattr__(self, "axes", axes)

    @classmethod
    def from_user_input(cls, value, axes: Sequence[str] = ()) -> "CoordinateReferenceSystem":
        """Build a pyproj backed system from an EPSG code, WKT, PROJ string or pyproj CRS."""
        definition = pyproj.CRS.from_user_input(value) if not isinstance(value, pyproj.CRS) else value
        return cls(definition.to_string(), tuple(axes), definition)

    @property
    def dimension(self) -> int:
        return len(self.axes)

    def __eq__(self, other):
        if not isinstance(other, CoordinateReferenceSystem):
            return NotImplemented
        if self.axes != other.axes:
            return False
        if self.definition is not None and other.definition is not None:
            return self.definition == other.definition
        return self.definition is None and other.definition is None and self.name == other.name

    def __hash__(self):
        return hash(self.axes)

    def reduce(self, dimensions: Sequence[int]) -> "CoordinateReferenceSystem":
        """
        Return the sub-system made of the given axes.

        The sub-system of a pyproj backed system is a local system, since
        pyproj has no general notion of a subset of axes.
        """
        dimensions = list(dimensions)
        if dimensions == list(range(self.dimension)):
            return self
        axes = tuple(self.axes[i] for i in dimensions)
        return CoordinateReferenceSystem(f"{self.name}[{','.join(axes)}]", axes)

# ============================================================================
# Envelope and Position
# ============================================================================

@dataclass(frozen=True)
class Envelope:
    """
    Axis-aligned bounding box in some coordinate space.

    A NaN bound means that the dimension is unconstrained.

    Attributes:
        lower: Minimal coordinate in each dimension
        upper: Maximal coordinate in each dimension
        crs: Coordinate reference system of the coordinates, if known
    """
    lower: Coordinates
    upper: Coordinates
    crs: Optional[CoordinateReferenceSystem] = None

    def __post_init__(self):
        lower = _as_float_tuple("lower", self.lower)
        upper = _as_float_tuple("upper", self.upper)
        _validate_bounds(lower, upper)
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)

    @classmethod
    def from_ranges(cls, *ranges: CoordinateRange,
                    crs: Optional[CoordinateReferenceSystem] = None) -> "Envelope":
        """Build an envelope from (min, max) pairs, one per dimension."""
        return cls(tuple(r[0] for r in ranges), tuple(r[1] for r in ranges), crs)

    @property
    def dimension(self) -> int:
        return len(self.lower)

    def with_crs(self, crs: Optional[CoordinateReferenceSystem]) -> "Envelope":
        return Envelope(self.lower, self.upper, crs)


@dataclass(frozen=True)
class DirectPosition:
    """
    A point in some coordinate space. NaN coordinates are unconstrained.

    Attributes:
        coordinates: Coordinate values
        crs: Coordinate reference system of the coordinates, if known
    """
    coordinates: Coordinates
    crs: Optional[CoordinateReferenceSystem] = None

    def __post_init__(self):
        object.__setattr__(self, "coordinates", _as_float_tuple("coordinates", self.coordinates))

    @property
    def dimension(self) -> int:
        return len(self.coordinates)

    def __getitem__(self, i: int) -> float:
        return self.coordinates[i]
