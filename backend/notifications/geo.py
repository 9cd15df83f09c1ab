"""
Great-circle distance helpers for radius-based alert filters.
"""

import math

from config.alert_settings import EARTH_RADIUS_MILES
from models.types import Coordinates


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Distance between two WGS84 points in miles using the Haversine formula.

    The haversine term is clamped into [0, 1] since floating-point drift can
    push it slightly outside that range for antipodal or identical points.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def within_radius(point_a: Coordinates, point_b: Coordinates, radius_miles: float) -> bool:
    """True if point_b lies within radius_miles of point_a (inclusive)."""
    distance = haversine_miles(point_a[0], point_a[1], point_b[0], point_b[1])
    return distance <= radius_miles
