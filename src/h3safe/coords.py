"""
Coordinate bridge between caller points and native coordinates.

Callers work in degrees with longitude first, ``Point(lng, lat)``, the same
axis order as shapely and GeoJSON. The native engine works in radians with
latitude first (``LatLng``). Values are converted without clamping or
normalisation; range handling is left to the engine.
"""

import math
from typing import NamedTuple

from .errors import InvalidArgument
from .native import LatLng


class Point(NamedTuple):
    """A longitude/latitude pair in degrees."""

    lng: float
    lat: float


def to_native(point: Point) -> LatLng:
    """
    Convert a point in degrees to a native coordinate in radians.

    Args:
        point: (lng, lat) in degrees

    Returns:
        LatLng structure in radians
    """
    lng, lat = point
    return LatLng(math.radians(lat), math.radians(lng))


def from_native(coord: LatLng) -> Point:
    """Convert a native coordinate in radians back to a Point in degrees."""
    return Point(math.degrees(coord.lng), math.degrees(coord.lat))


def check_finite(point: Point) -> Point:
    """
    Coerce a point to floats and reject NaN or infinite components.

    Raises:
        InvalidArgument: A component is not a finite number
    """
    try:
        lng, lat = point
        lng, lat = float(lng), float(lat)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"not a (lng, lat) pair: {point!r}") from exc

    if not (math.isfinite(lng) and math.isfinite(lat)):
        raise InvalidArgument(f"point must be finite, got ({lng}, {lat})")
    return Point(lng, lat)
