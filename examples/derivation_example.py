"""
Example: Deriving Grid Geometries with gridgeom

This example demonstrates how to derive grid geometries for an area of
interest, a coarser resolution, a slice and a subset of dimensions, and
how to apply them to an xarray dataset.
"""

import math

import numpy as np
import xarray as xr

import gridgeom as gg

# ============================================================================
# Example 1: Describe a Global Grid
# ============================================================================

print("="*70)
print("Example 1: Describe a Global Grid")
print("="*70)

wgs84 = gg.CoordinateReferenceSystem("EPSG:4326", ("lon", "lat"))
extent = gg.GridExtent.from_shape((360, 180), axis_names=("lon", "lat"))
world = gg.GridGeometry(extent, gg.linear([[1, 0, -180], [0, -1, 90], [0, 0, 1]]), wgs84)

info = gg.get_geometry_info(world)
print(f"\nShape: {info['shape']}")
print(f"Envelope: {info['envelope_lower']} to {info['envelope_upper']}")
print(f"Resolution: {info['resolution']}")

# ============================================================================
# Example 2: Area of Interest and Resolution
# ============================================================================

print("\n" + "="*70)
print("Example 2: Area of Interest and Resolution")
print("="*70)

aoi = gg.Envelope.from_ranges((10, 50), (-20, 20))

derivation = world.derive().subgrid(aoi)
print(f"\nSubgrid extent: {derivation.extent()}")

derivation = world.derive().subgrid(aoi, 2, 2)
grid = derivation.build()
print(f"Subsampled extent: {grid.extent}")
print(f"Subsampling:\n{derivation.subsampling.matrix}")
print(f"Envelope: {grid.envelope.lower} to {grid.envelope.upper}")

mercator = gg.CoordinateReferenceSystem("EPSG:3857")
projected = gg.Envelope((1.2e6, -2.2e6), (5.5e6, 2.2e6), mercator)
print(f"Area in {mercator.name} {mercator.axes}: {world.derive().subgrid(projected).extent()}")

for mode in gg.GridRoundingMode:
    rounded = world.derive().rounding(mode).subgrid(gg.Envelope((10.3, -20), (49.6, 20))).extent()
    print(f"  {mode.name:<10} lon cells [{rounded.get_low(0)} … {rounded.get_high(0)}]")

# ============================================================================
# Example 3: Slices and Dimension Reduction
# ============================================================================

print("\n" + "="*70)
print("Example 3: Slices and Dimension Reduction")
print("="*70)

cube_crs = gg.CoordinateReferenceSystem("cube", ("x", "y", "time"))
cube = gg.GridGeometry(
    gg.GridExtent.from_shape((10, 20, 5), axis_names=("x", "y", "time")),
    gg.scale_translation([0.5, 0.5, 3600.0], [100.0, 20.0, 0.0]),
    cube_crs,
)

layer = gg.derive_slice(cube, [math.nan, math.nan, 7200.0], dimensions=[0, 1])
print(f"\nLayer at t=7200: {layer.extent}, CRS axes {layer.crs.axes}")

series = gg.reduce_dimensions(cube, [2])
print(f"Time axis only: {series.extent}, resolution {series.resolution()}")

# ============================================================================
# Example 4: Subsetting an xarray Dataset
# ============================================================================

print("\n" + "="*70)
print("Example 4: Subsetting an xarray Dataset")
print("="*70)

lon = np.arange(-179.5, 180.0, 1.0)
lat = np.arange(89.5, -90.0, -1.0)
ds = xr.Dataset(
    {"t": (("lat", "lon"), np.random.default_rng(0).normal(288.0, 10.0, (lat.size, lon.size)))},
    coords={"lat": lat, "lon": lon},
)

subset = gg.subset_dataset(ds, {"lon": (10, 50), "lat": (-20, 20)})
print(f"\nSubset sizes: {dict(subset.sizes)}")

coarse = gg.subset_dataset(ds, {"lon": (10, 50), "lat": (-20, 20)}, resolution={"lon": 2.0, "lat": 2.0})
print(f"Coarse sizes: {dict(coarse.sizes)}")
print(f"Coarse lon: {coarse['lon'].values[:3]} ...")

base = gg.geometry_from_dataset(ds, dims=["lon", "lat"])
point = base.derive().slice([121.5, 23.5]).build()
value = gg.apply_grid_geometry(ds, base, point, drop_sliced=True)
print(f"Value at (121.5, 23.5): {float(value['t']):.2f}")

# ============================================================================
# Notes on Usage
# ============================================================================

print("\n" + "="*70)
print("IMPORTANT NOTES")
print("="*70)

print("""
1. Derivations are single-use:
   - rounding() before subgrid() or slice()
   - subgrid() or slice(), but not both
   - reduce() once, after the subgrid or slice

2. Subsampling:
   - Factors are integers of at least 1 per grid dimension
   - Factors are rounded so that the error over the extent stays below
     half a cell

3. Reference systems:
   - Areas of interest in EPSG or other pyproj systems are converted by pyproj
   - Local systems (e.g. a model grid in km) need a registered operation
     (gg.register_operation)
""")

print("\n" + "="*70)
print("Example Complete!")
print("="*70)
