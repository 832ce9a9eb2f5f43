"""Geographic utilities for coordinate projections and distance estimates."""

from __future__ import annotations

import math
from functools import lru_cache

import pyproj

from geotopo.log_config import get_logger

logger = get_logger(__name__)

# Standard CRS definitions
WGS84 = "EPSG:4326"  # Geographic coordinate system (lat/lon)
WEB_MERCATOR = "EPSG:3857"  # Spherical Mercator used for the map surface

KM_PER_DEGREE = 111.32


@lru_cache(maxsize=32)
def get_transformer(src_crs: str, dst_crs: str) -> pyproj.Transformer:
    """Create a coordinate transformer between CRS.

    Args:
        src_crs: Source coordinate reference system.
        dst_crs: Destination coordinate reference system.

    Returns:
        Pyproj transformer for coordinate conversion.
    """
    return pyproj.Transformer.from_crs(src_crs, dst_crs, always_xy=True)


def mercator_y(latitude: float) -> float:
    """Return the Web Mercator northing (meters) for a latitude in degrees.

    Callers must clamp the latitude away from the poles first.
    """
    transformer = get_transformer(WGS84, WEB_MERCATOR)
    _, y = transformer.transform(0.0, latitude)
    return float(y)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def degree_distance_km(
    lat1: float, lon1: float, lat2: float, lon2: float
) -> float:
    """Rough planar distance between two points from their degree deltas.

    Treats one degree as ``KM_PER_DEGREE`` kilometers in both axes. Good
    enough for display purposes; not a geodesic distance.
    """
    delta_lat = lat2 - lat1
    delta_lon = lon2 - lon1
    return math.hypot(delta_lat, delta_lon) * KM_PER_DEGREE


def geographic_region(latitude: float, longitude: float) -> str:
    """Coarse continental label for a coordinate, for display only."""
    if -130 <= longitude <= -60 and latitude >= 15:
        return "North America"
    if -90 <= longitude <= -30 and latitude < 15:
        return "South America"
    if -20 <= longitude <= 50:
        return "Europe/Africa"
    if 50 < longitude <= 180:
        return "Asia/Oceania"
    return "Unknown Region"
