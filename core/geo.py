# core/geo.py
"""
Spherical distance helpers for the "nearby complaints" search.
"""
import math

# Same radius MongoDB uses for $nearSphere with GeoJSON points
EARTH_RADIUS_KM = 6378.1


def haversine_km(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Great-circle distance in kilometres between two (lon, lat) points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = phi2 - phi1
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(
    lon: float, lat: float, radius_km: float
) -> tuple[float, float, float | None, float | None]:
    """
    Lat/lon box that contains every point within `radius_km` of (lon, lat).

    Returns (min_lat, max_lat, min_lon, max_lon). The longitude bounds are
    None when the circle covers a pole or crosses the antimeridian; callers
    then filter on latitude only.
    """
    angular = radius_km / EARTH_RADIUS_KM
    lat_r = math.radians(lat)
    min_lat = math.degrees(lat_r - angular)
    max_lat = math.degrees(lat_r + angular)

    if min_lat <= -90 or max_lat >= 90 or math.sin(angular) >= math.cos(lat_r):
        return max(min_lat, -90.0), min(max_lat, 90.0), None, None

    dlon = math.degrees(math.asin(math.sin(angular) / math.cos(lat_r)))
    min_lon, max_lon = lon - dlon, lon + dlon
    if min_lon < -180 or max_lon > 180:
        return min_lat, max_lat, None, None
    return min_lat, max_lat, min_lon, max_lon
