from math import radians, degrees, sin, cos, sqrt, asin
from typing import Tuple

# Earth's radius in kilometers
R = 6371.0

METERS_PER_MILE = 1609.34
KM_PER_MILE = METERS_PER_MILE / 1000.0

def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great-circle distance between two points
    on the Earth (specified in decimal degrees) using the Haversine formula.

    Returns:
        Distance between the two points in kilometers.
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])

    dlon = lon2 - lon1
    dlat = lat2 - lat1

    a = sin(dlat / 2)**2 + cos(lat1) * cos(lat2) * sin(dlon / 2)**2
    # Clamp rounding drift so asin never sees a value above 1.
    c = 2 * asin(sqrt(min(1.0, a)))

    return R * c

def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Same as `haversine`, in statute miles."""
    return haversine(lat1, lon1, lat2, lon2) / KM_PER_MILE

def miles_to_meters(miles: float) -> float:
    return miles * METERS_PER_MILE

def bounding_box(lat: float, lon: float, radius_meters: float) -> Tuple[float, float, float, float]:
    """
    Square box reaching `radius_meters` from (lat, lon) in each direction.

    Returns:
        (min_lon, min_lat, max_lon, max_lat), clamped to valid ranges.
    """
    reach_km = radius_meters / 1000.0
    dlat = degrees(reach_km / R)
    # Longitude degrees shrink toward the poles; avoid dividing by ~0.
    cos_lat = max(cos(radians(lat)), 1e-6)
    dlon = degrees(reach_km / (R * cos_lat))

    min_lat = max(-90.0, lat - dlat)
    max_lat = min(90.0, lat + dlat)
    min_lon = max(-180.0, lon - dlon)
    max_lon = min(180.0, lon + dlon)
    return min_lon, min_lat, max_lon, max_lat
