"""
Owned access to native linked multi-polygons.

``cellsToLinkedMultiPolygon`` hands back a chain of native nodes
(polygon -> loop -> coordinate) that must be released with exactly one
``destroyLinkedMultiPolygon`` call. ``LinkedMultiPolygon`` owns one such
chain for the length of a ``with`` block and releases it on the way out,
whether the block finishes or raises.
"""

import ctypes
import logging
from typing import List, Optional, Sequence

from .coords import Point, from_native
from .engine import resolve_engine
from .errors import check_native
from .geometry import Polygon
from .native import NativeEngine, LinkedGeoLoop, LinkedGeoPolygon
from .sized import cell_array

logger = logging.getLogger(__name__)


def _read_loop(loop: LinkedGeoLoop) -> List[Point]:
    points = []
    node = loop.first
    while node:
        points.append(from_native(node.contents.vertex))
        node = node.contents.next
    return points


def _read_polygons(root: LinkedGeoPolygon) -> List[Polygon]:
    """Walk the chain from root; the first loop of each polygon is its outer ring."""
    polygons = []
    polygon = ctypes.pointer(root)
    while polygon:
        rings = []
        loop = polygon.contents.first
        while loop:
            rings.append(_read_loop(loop.contents))
            loop = loop.contents.next
        if rings:
            polygons.append(Polygon(rings[0], tuple(rings[1:])))
        polygon = polygon.contents.next
    return polygons


class LinkedMultiPolygon:
    """
    Context manager owning one native linked multi-polygon.

    The structure is built on ``__enter__``; if that fails there is nothing
    to release. It is released once on ``__exit__`` and cannot be read
    afterwards.

    Usage:
        with LinkedMultiPolygon(cells) as linked:
            polygons = linked.polygons()
    """

    def __init__(self, cells: Sequence, engine: Optional[NativeEngine] = None):
        self._engine = resolve_engine(engine)
        self._values = [int(cell) for cell in cells]
        self._root: Optional[LinkedGeoPolygon] = None
        self._used = False

    def __enter__(self) -> "LinkedMultiPolygon":
        if self._used:
            raise RuntimeError("LinkedMultiPolygon can only be entered once")
        self._used = True

        root = LinkedGeoPolygon()
        code = self._engine.cells_to_linked_multi_polygon(
            cell_array(self._values), len(self._values), root
        )
        check_native(code, "cellsToLinkedMultiPolygon")
        self._root = root
        logger.debug("acquired linked multi-polygon for %d cells", len(self._values))
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
        return False

    @property
    def live(self) -> bool:
        return self._root is not None

    def polygons(self) -> List[Polygon]:
        """Copy the native chain into Polygon values."""
        if self._root is None:
            raise RuntimeError("linked multi-polygon is not live")
        return _read_polygons(self._root)

    def release(self) -> None:
        """Destroy the native structure. Later calls do nothing."""
        if self._root is None:
            return
        root, self._root = self._root, None
        self._engine.destroy_linked_multi_polygon(root)
        logger.debug("released linked multi-polygon")


def read_linked_multi_polygon(
    cells: Sequence, engine: Optional[NativeEngine] = None
) -> List[Polygon]:
    """Build, copy out and release the linked multi-polygon for cells."""
    with LinkedMultiPolygon(cells, engine) as linked:
        return linked.polygons()
