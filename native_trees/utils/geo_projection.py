"""
Geospatial utilities for turning a geocoded point into an occurrence search area.
"""
from typing import Tuple
from pyproj import Geod
from shapely import wkt
from shapely.geometry import Polygon, box

from native_trees.domain.models import GeoPoint

# Geodesic calculations on the WGS84 ellipsoid (the datum GBIF coordinates use)
_GEOD = Geod(ellps="WGS84")


def search_area_bounds(
    point: GeoPoint,
    radius_km: float,
) -> Tuple[float, float, float, float]:
    """
    Compute a bounding box extending ``radius_km`` from a point in each cardinal direction.

    Args:
        point: Centre of the search area
        radius_km: Distance from the centre to each edge, in kilometres

    Returns:
        Tuple of (min_lon, min_lat, max_lon, max_lat) in degrees
    """
    if radius_km <= 0:
        raise ValueError("Search radius must be positive")

    distance_m = radius_km * 1000.0
    # Azimuths: north, east, south, west
    lons, lats, _ = _GEOD.fwd(
        [point.lon] * 4,
        [point.lat] * 4,
        [0.0, 90.0, 180.0, 270.0],
        [distance_m] * 4,
    )
    return min(lons), min(lats), max(lons), max(lats)


def search_area_polygon(point: GeoPoint, radius_km: float) -> Polygon:
    """
    Build the search area as a counter-clockwise polygon.

    Args:
        point: Centre of the search area
        radius_km: Distance from the centre to each edge, in kilometres

    Returns:
        Shapely Polygon
    """
    min_lon, min_lat, max_lon, max_lat = search_area_bounds(point, radius_km)
    return box(min_lon, min_lat, max_lon, max_lat, ccw=True)


def search_area_wkt(point: GeoPoint, radius_km: float) -> str:
    """
    Serialize the search area as WKT for the occurrence search ``geometry`` filter.

    GBIF rejects clockwise rings, hence the counter-clockwise polygon.

    Args:
        point: Centre of the search area
        radius_km: Distance from the centre to each edge, in kilometres

    Returns:
        WKT polygon string
    """
    return wkt.dumps(search_area_polygon(point, radius_km), rounding_precision=5)
