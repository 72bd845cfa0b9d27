#!/usr/bin/env python3
"""Web Mercator helpers used to derive MBTiles `bounds` and `center`.

World fractions are normalised Web Mercator coordinates: x runs 0..1 from the
antimeridian eastwards, y runs 0..1 from the top of the map (north) down, the
same orientation XYZ tile rows use.
"""

from __future__ import annotations

import math
from typing import Callable, Tuple

import mercantile

from .tile_coord import MAX_ZOOM

LngLatBounds = Tuple[float, float, float, float]
WorldBounds = Tuple[float, float, float, float]

# Full extent of the Web Mercator square in metres
EARTH_CIRCUMFERENCE_M = 2 * math.pi * 6378137.0

# (west, south, east, north) of the z0 tile: +-180, +-85.0511287798...
WORLD_LNGLAT_BOUNDS: LngLatBounds = tuple(mercantile.bounds(mercantile.Tile(0, 0, 0)))


def lnglat_to_world_fraction(lng: float, lat: float) -> Tuple[float, float]:
    # x is linear in degrees; only latitude goes through the Mercator projection
    _, y = mercantile.xy(lng, lat)
    return lng / 360.0 + 0.5, 0.5 - y / EARTH_CIRCUMFERENCE_M


def world_fraction_to_lnglat(fx: float, fy: float) -> Tuple[float, float]:
    lnglat = mercantile.lnglat(0.0, (0.5 - fy) * EARTH_CIRCUMFERENCE_M)
    return (fx - 0.5) * 360.0, lnglat.lat


def lnglat_bounds_to_world_fractions(bounds: LngLatBounds) -> WorldBounds:
    """Convert (west, south, east, north) degrees to (min_x, min_y, max_x, max_y) fractions."""
    west, south, east, north = bounds
    min_x, max_y = lnglat_to_world_fraction(west, south)
    max_x, min_y = lnglat_to_world_fraction(east, north)
    return min_x, min_y, max_x, max_y


def world_fractions_to_lnglat_bounds(bounds: WorldBounds) -> LngLatBounds:
    """Inverse of :func:`lnglat_bounds_to_world_fractions`."""
    min_x, min_y, max_x, max_y = bounds
    west, north = world_fraction_to_lnglat(min_x, min_y)
    east, south = world_fraction_to_lnglat(max_x, max_y)
    return west, south, east, north


def zoom_from_world_extent(width: float, height: float) -> float:
    """Fractional zoom at which one tile spans the larger of width and height.

    Clamped to 0..MAX_ZOOM; a box with no extent (a single point) gets
    MAX_ZOOM. The caller rounds up to get an integer zoom.
    """
    extent = max(width, height)
    if extent <= 0:
        return float(MAX_ZOOM)
    return min(float(MAX_ZOOM), max(0.0, -math.log2(extent)))


def zoom_from_lnglat_bounds(
    bounds: LngLatBounds,
    to_world: Callable[[LngLatBounds], WorldBounds] = lnglat_bounds_to_world_fractions,
) -> int:
    """Smallest integer zoom whose tile footprint is no larger than the box."""
    min_x, min_y, max_x, max_y = to_world(bounds)
    return int(math.ceil(zoom_from_world_extent(abs(max_x - min_x), abs(max_y - min_y))))


__all__ = [
    "EARTH_CIRCUMFERENCE_M",
    "WORLD_LNGLAT_BOUNDS",
    "lnglat_to_world_fraction",
    "world_fraction_to_lnglat",
    "lnglat_bounds_to_world_fractions",
    "world_fractions_to_lnglat_bounds",
    "zoom_from_world_extent",
    "zoom_from_lnglat_bounds",
]
