"""
Region operations: polygon fill and cells to polygons.

Polygons are validated before anything crosses the native boundary, then
marshalled into ``GeoPolygon``/``GeoLoop`` arrays that live only for the
duration of the call.
"""

import ctypes
import logging
from typing import Any, Iterable, List, Optional, Tuple

from .coords import to_native
from .engine import resolve_engine
from .geometry import Polygon, Ring, as_polygon
from .index import H3Index
from .linked import read_linked_multi_polygon
from .native import NativeEngine, LatLng, GeoLoop, GeoPolygon, CONTAINMENT_CENTER
from .resolution import validate_resolution
from .sized import query_size, sized_cells

logger = logging.getLogger(__name__)


def _geo_loop(ring: Ring, keep: list) -> GeoLoop:
    verts = (LatLng * len(ring))(*[to_native(point) for point in ring])
    keep.append(verts)
    return GeoLoop(len(ring), ctypes.cast(verts, ctypes.POINTER(LatLng)))


def _geo_polygon(polygon: Polygon) -> Tuple[GeoPolygon, list]:
    """
    Marshal a polygon into native structures.

    Returns:
        The GeoPolygon and a list of the arrays it points into; the caller
        must hold the list for as long as the GeoPolygon is in use.
    """
    keep: list = []
    outer = _geo_loop(polygon.exterior, keep)
    holes = (GeoLoop * len(polygon.holes))(*[_geo_loop(hole, keep) for hole in polygon.holes])
    keep.append(holes)
    native = GeoPolygon(outer, len(polygon.holes), ctypes.cast(holes, ctypes.POINTER(GeoLoop)))
    return native, keep


def max_polyfill_size(
    polygon: Any, resolution: int, engine: Optional[NativeEngine] = None
) -> int:
    """Upper bound on the number of cells polyfill can return."""
    res = int(validate_resolution(resolution))
    polygon = as_polygon(polygon)
    engine = resolve_engine(engine)

    native, keep = _geo_polygon(polygon)  # keep backs the pointers in native
    return query_size(
        lambda out: engine.max_polygon_to_cells_size(native, res, CONTAINMENT_CENTER, out),
        "maxPolygonToCellsSize",
    )


def polyfill(polygon: Any, resolution: int, engine: Optional[NativeEngine] = None) -> List[H3Index]:
    """
    Cells whose centers lie inside polygon (and outside its holes).

    Args:
        polygon: Polygon, shapely Polygon or GeoJSON-like polygon mapping
        resolution: Resolution of the returned cells

    Raises:
        InvalidResolution: resolution outside [0, 15]
        InvalidArgument, InvalidGeometry: malformed polygon
    """
    res = int(validate_resolution(resolution))
    polygon = as_polygon(polygon)
    engine = resolve_engine(engine)

    native, keep = _geo_polygon(polygon)
    cells = sized_cells(
        lambda out: engine.max_polygon_to_cells_size(native, res, CONTAINMENT_CENTER, out),
        lambda buffer, size: engine.polygon_to_cells(native, res, CONTAINMENT_CENTER, buffer),
        "polygonToCells",
        limit=engine.max_buffer_cells,
    )
    logger.debug("polyfill at resolution %d: %d cells", res, len(cells))
    return [H3Index(cell) for cell in cells]


def cells_to_multi_polygon(
    cells: Iterable[H3Index], engine: Optional[NativeEngine] = None
) -> List[Polygon]:
    """
    Outlines of a set of cells.

    Contiguous cells merge into one polygon; enclosed gaps become holes.

    Raises:
        InvalidIndex: an input is not a valid cell
    """
    cells = list(cells)
    engine = resolve_engine(engine)
    for cell in cells:
        cell.validate(engine)
    if not cells:
        return []
    return read_linked_multi_polygon(cells, engine)
