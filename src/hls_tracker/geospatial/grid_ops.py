"""MGRS grid cell to bounding box conversion."""

import math

import mgrs
from mgrs.core import MGRSError

from hls_tracker.config.constants import HALF_EXTENT_KM, KM_PER_DEGREE
from hls_tracker.exceptions import InvalidCoordinate
from hls_tracker.models.models import BoundingBox

# 10 km precision point at 50 km east / 50 km north of the square's origin
_CENTER_SUFFIX = "55"


def cell_center(mgrs_cell: str) -> tuple[float, float]:
    """Return the center of a 100 km MGRS square.

    :param mgrs_cell: 5-character MGRS cell, e.g. "10SEG"
    :returns: Tuple of (latitude, longitude) in degrees
    :raises InvalidCoordinate: If the cell cannot be converted
    """
    try:
        lat, lon = mgrs.MGRS().toLatLon(f"{mgrs_cell}{_CENTER_SUFFIX}")
    except (MGRSError, ValueError, TypeError) as e:
        raise InvalidCoordinate(f"Could not convert MGRS cell {mgrs_cell!r}: {e}") from e
    return float(lat), float(lon)


def bbox_around(lat: float, lon: float) -> BoundingBox:
    """Build a 100 km box centered on a point.

    Longitude extent is corrected by the cosine of the latitude.

    :param lat: Center latitude
    :param lon: Center longitude
    :returns: BoundingBox
    :raises InvalidCoordinate: If the point is non-finite or out of range
    """
    if not (math.isfinite(lat) and math.isfinite(lon)) or abs(lat) >= 90 or abs(lon) > 180:
        raise InvalidCoordinate(f"Coordinate out of range: lat={lat}, lon={lon}")

    lat_delta = HALF_EXTENT_KM / KM_PER_DEGREE
    lon_delta = HALF_EXTENT_KM / (KM_PER_DEGREE * math.cos(math.radians(lat)))
    return BoundingBox(
        west=lon - lon_delta,
        south=lat - lat_delta,
        east=lon + lon_delta,
        north=lat + lat_delta,
    )


def locate_cell(mgrs_cell: str) -> BoundingBox:
    """Convert an MGRS cell to its 100 km bounding box.

    :param mgrs_cell: 5-character MGRS cell (validated upstream)
    :returns: BoundingBox centered on the cell
    """
    lat, lon = cell_center(mgrs_cell)
    return bbox_around(lat, lon)


def extent_km(bbox: BoundingBox) -> tuple[float, float]:
    """Convert a box back to kilometres.

    :param bbox: Bounding box
    :returns: Tuple of (width_km, height_km)
    """
    center_lat = (bbox.south + bbox.north) / 2
    width = (bbox.east - bbox.west) * KM_PER_DEGREE * math.cos(math.radians(center_lat))
    height = (bbox.north - bbox.south) * KM_PER_DEGREE
    return width, height
