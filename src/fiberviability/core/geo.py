"""
Geospatial helpers.

The warehouse computes geodesic distances for the BigQuery backend; this tiny layer
lets the offline local store do the same calculation without GIS dependencies.
"""

from __future__ import annotations

from math import asin, cos, degrees, radians, sin, sqrt

EARTH_RADIUS_M = 6_371_000


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Compute great-circle distance in meters between two lat/lng points."""
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    dlat = phi2 - phi1
    dlng = radians(lng2) - radians(lng1)

    h = sin(dlat / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_M * asin(min(1.0, sqrt(h)))


def offset_north_m(lat: float, lng: float, meters: float) -> tuple[float, float]:
    """Return the point `meters` due north of (lat, lng) on the haversine sphere."""
    return lat + degrees(meters / EARTH_RADIUS_M), lng
