"""Geographic utility functions."""

import math

from .models import Location

EARTH_RADIUS = 6371000  # meters


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points in meters using Haversine formula"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (math.sin(delta_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS * c


def distance_between(a: Location, b: Location) -> float:
    """Great-circle distance in meters between two locations"""
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)


def bounding_box(center: Location, span_m: float) -> tuple[float, float, float, float]:
    """Square box of side span_m around center as (south, west, north, east).

    Uses the local degrees-per-meter approximation, which is accurate well
    beyond the few-kilometer spans used for POI searches.
    """
    half = span_m / 2
    dlat = math.degrees(half / EARTH_RADIUS)
    cos_lat = max(math.cos(math.radians(center.lat)), 1e-6)
    dlon = math.degrees(half / (EARTH_RADIUS * cos_lat))
    return (center.lat - dlat, center.lon - dlon, center.lat + dlat, center.lon + dlon)
