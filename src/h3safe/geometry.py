"""
Polygon value type and interop with shapely and GeoJSON.

Rings are stored open: a closing point equal to the first is dropped on
construction and added back only when exporting to shapely or GeoJSON.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry import mapping, shape
from shapely.geometry.base import BaseGeometry
from shapely.errors import ShapelyError

from .coords import Point, check_finite
from .errors import InvalidArgument, InvalidGeometry

Ring = Tuple[Point, ...]


def _normalize_ring(ring: Iterable, name: str) -> Ring:
    points = []
    for coord in ring:
        try:
            points.append(check_finite(coord))
        except InvalidArgument as exc:
            raise InvalidGeometry(f"{name} ring: {exc}") from exc

    if not points:
        raise InvalidArgument(f"{name} ring is empty")
    if len(points) > 1 and points[0] == points[-1]:
        points.pop()
    if len(set(points)) < 3:
        raise InvalidGeometry(f"{name} ring needs at least 3 distinct points")
    return tuple(points)


def _ring_points(coords) -> list:
    # shapely coordinates may carry a z value
    return [Point(c[0], c[1]) for c in coords]


@dataclass(frozen=True)
class Polygon:
    """
    An outer ring with zero or more holes, all as (lng, lat) degree points.

    Raises:
        InvalidArgument: a ring is empty
        InvalidGeometry: a ring has fewer than 3 distinct points or a
            non-finite coordinate
    """

    exterior: Ring
    holes: Tuple[Ring, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "exterior", _normalize_ring(self.exterior, "exterior"))
        object.__setattr__(
            self, "holes", tuple(_normalize_ring(hole, "hole") for hole in self.holes)
        )

    @classmethod
    def from_shapely(cls, geometry: BaseGeometry) -> "Polygon":
        """Build from a shapely Polygon."""
        if geometry.geom_type != "Polygon":
            raise InvalidGeometry(f"expected a Polygon, got {geometry.geom_type}")
        if geometry.is_empty:
            raise InvalidArgument("polygon is empty")
        return cls(
            _ring_points(geometry.exterior.coords),
            tuple(_ring_points(interior.coords) for interior in geometry.interiors),
        )

    def to_shapely(self) -> ShapelyPolygon:
        return ShapelyPolygon(self.exterior, list(self.holes))


def as_polygon(value: Any) -> Polygon:
    """
    Coerce supported inputs to a Polygon.

    Accepts a Polygon, a shapely Polygon, a GeoJSON-like mapping holding a
    Polygon geometry (bare or wrapped in a Feature), or a sequence of
    (lng, lat) points taken as the outer ring.

    Raises:
        InvalidGeometry: the input is not a single polygon
    """
    if isinstance(value, Polygon):
        return value
    if isinstance(value, BaseGeometry):
        return Polygon.from_shapely(value)
    if isinstance(value, Mapping):
        if value.get("type") == "Feature":
            value = value.get("geometry") or {}
        try:
            geometry = shape(value)
        except (AttributeError, KeyError, TypeError, ValueError, ShapelyError) as exc:
            raise InvalidGeometry(f"not a GeoJSON geometry: {exc}") from exc
        return Polygon.from_shapely(geometry)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return Polygon(value)
    raise InvalidGeometry(f"cannot interpret {type(value).__name__} as a polygon")


def polygons_from_geojson(data: Mapping[str, Any]) -> List[Polygon]:
    """
    Every polygon in a GeoJSON object.

    FeatureCollections and Features are unwrapped and MultiPolygons split
    into their parts.

    Raises:
        InvalidGeometry: a geometry is missing, malformed or not polygonal
    """
    if not isinstance(data, Mapping):
        raise InvalidGeometry(f"expected a GeoJSON object, got {type(data).__name__}")
    if data.get("type") == "FeatureCollection":
        features = data.get("features", [])
        if not isinstance(features, list):
            raise InvalidGeometry("FeatureCollection features must be a list")
        if not all(isinstance(feature, Mapping) for feature in features):
            raise InvalidGeometry("every feature must be a GeoJSON object")
        geometries = [feature.get("geometry") for feature in features]
    elif data.get("type") == "Feature":
        geometries = [data.get("geometry")]
    else:
        geometries = [data]

    polygons = []
    for geometry in geometries:
        if not geometry:
            raise InvalidGeometry("feature has no geometry")
        try:
            parsed = shape(geometry)
        except (AttributeError, KeyError, TypeError, ValueError, ShapelyError) as exc:
            raise InvalidGeometry(f"not a GeoJSON geometry: {exc}") from exc
        if parsed.geom_type == "MultiPolygon":
            polygons.extend(Polygon.from_shapely(part) for part in parsed.geoms)
        else:
            polygons.append(Polygon.from_shapely(parsed))
    return polygons


def polygon_feature(
    polygon: Polygon, properties: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """GeoJSON Feature mapping for a polygon, rings closed."""
    return {
        "type": "Feature",
        "properties": dict(properties or {}),
        "geometry": mapping(polygon.to_shapely()),
    }


def feature_collection(features: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    return {"type": "FeatureCollection", "features": list(features)}
