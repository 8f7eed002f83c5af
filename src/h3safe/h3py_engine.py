"""
Native engine served by the h3 Python package.

``H3PyEngine`` implements the same call contract as ``LibH3Engine`` on top
of ``h3.api.basic_int``: results are written into the caller's ctypes
buffers, h3-py exceptions come back as H3Error codes, and linked
multi-polygons are built as real ctypes node chains that stay registered
until ``destroy_linked_multi_polygon`` is called for them.
"""

import ctypes
import functools
import logging
import math
import threading
from typing import Dict, List, Sequence, Tuple

import h3
from h3.api import basic_int as h3i

from .errors import (
    E_SUCCESS,
    E_FAILED,
    E_DOMAIN,
    E_LATLNG_DOMAIN,
    E_RES_DOMAIN,
    E_CELL_INVALID,
    E_PENTAGON,
    E_DUPLICATE_INPUT,
    E_NOT_NEIGHBORS,
    E_RES_MISMATCH,
    E_MEMORY_ALLOC,
    E_MEMORY_BOUNDS,
    E_OPTION_INVALID,
)
from .native import (
    NativeEngine,
    LatLng,
    GeoLoop,
    GeoPolygon,
    LinkedLatLng,
    LinkedGeoLoop,
    LinkedGeoPolygon,
    MAX_CELL_BNDRY_VERTS,
    INVALID_FACE,
    CONTAINMENT_CENTER,
)

logger = logging.getLogger(__name__)


# k at which a disk covers every res 15 cell (K_ALL_CELLS_AT_RES_15 in libh3)
_K_ALL_CELLS_AT_RES_15 = 13780510

# Specific exception types first; several share base classes.
_EXCEPTION_CODES = (
    (h3.H3PentagonError, E_PENTAGON),
    (h3.H3ResMismatchError, E_RES_MISMATCH),
    (h3.H3ResDomainError, E_RES_DOMAIN),
    (h3.H3LatLngDomainError, E_LATLNG_DOMAIN),
    (h3.H3CellInvalidError, E_CELL_INVALID),
    (h3.H3DuplicateInputError, E_DUPLICATE_INPUT),
    (h3.H3NotNeighborsError, E_NOT_NEIGHBORS),
    (h3.H3MemoryAllocError, E_MEMORY_ALLOC),
    (h3.H3MemoryBoundsError, E_MEMORY_BOUNDS),
    (h3.H3OptionInvalidError, E_OPTION_INVALID),
    (h3.H3DomainError, E_DOMAIN),
    (h3.H3FailedError, E_FAILED),
)


def _error_code(exc: Exception) -> int:
    for exc_type, code in _EXCEPTION_CODES:
        if isinstance(exc, exc_type):
            return code
    return E_FAILED


def _native_call(func):
    """Run an engine method and report h3-py exceptions as H3Error codes."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            code = func(*args, **kwargs)
        except h3.H3BaseException as exc:
            logger.debug("%s raised %s", func.__name__, type(exc).__name__)
            return _error_code(exc)
        return E_SUCCESS if code is None else code

    return wrapper


def _to_lat_lng(lat: float, lng: float) -> LatLng:
    return LatLng(math.radians(lat), math.radians(lng))


def _to_degrees(coord: LatLng) -> Tuple[float, float]:
    return math.degrees(coord.lat), math.degrees(coord.lng)


def _fill(out: ctypes.Array, values: Sequence[int]) -> int:
    """Copy values into the head of a caller buffer."""
    if len(values) > len(out):
        return E_MEMORY_BOUNDS
    for i, value in enumerate(values):
        out[i] = value
    return E_SUCCESS


def _read_geo_loop(loop: GeoLoop) -> List[Tuple[float, float]]:
    return [_to_degrees(loop.verts[i]) for i in range(loop.numVerts)]


def _to_h3shape(polygon: GeoPolygon) -> "h3.LatLngPoly":
    holes = [_read_geo_loop(polygon.holes[i]) for i in range(polygon.numHoles)]
    return h3.LatLngPoly(_read_geo_loop(polygon.geoloop), *holes)


def _open_ring(coords: Sequence[Tuple[float, float]]) -> Sequence[Tuple[float, float]]:
    if len(coords) > 1 and tuple(coords[0]) == tuple(coords[-1]):
        return coords[:-1]
    return coords


class H3PyEngine(NativeEngine):
    """
    Engine implementation backed by h3-py.

    Linked multi-polygon roots are keyed by address in an allocation
    registry; ``live_linked_allocations`` reports how many are outstanding.
    """

    def __init__(self, max_buffer_cells=None):
        self.max_buffer_cells = max_buffer_cells
        self._allocations: Dict[int, list] = {}
        self._lock = threading.Lock()

    # -- inspection --

    def is_valid_cell(self, cell):
        return int(h3i.is_valid_cell(cell))

    def get_resolution(self, cell):
        return h3i.get_resolution(cell)

    def get_base_cell_number(self, cell):
        return h3i.get_base_cell_number(cell)

    def is_pentagon(self, cell):
        return int(h3i.is_pentagon(cell))

    def is_res_class_iii(self, cell):
        return int(h3i.is_res_class_III(cell))

    @_native_call
    def max_face_count(self, cell, out):
        out.value = 5 if h3i.is_pentagon(cell) else 2

    @_native_call
    def get_icosahedron_faces(self, cell, out):
        faces = sorted(h3i.get_icosahedron_faces(cell))
        code = _fill(out, faces)
        for i in range(len(faces), len(out)):
            out[i] = INVALID_FACE
        return code

    @_native_call
    def h3_to_string(self, cell, buffer, size):
        text = h3i.int_to_str(cell).encode("ascii")
        if len(text) + 1 > size:
            return E_MEMORY_BOUNDS
        buffer.value = text

    def string_to_h3(self, text, out):
        try:
            out.value = h3i.str_to_int(text.decode("ascii"))
        except (ValueError, UnicodeDecodeError):
            return E_FAILED
        return E_SUCCESS

    # -- indexing --

    @_native_call
    def lat_lng_to_cell(self, coord, res, out):
        lat, lng = _to_degrees(coord)
        out.value = h3i.latlng_to_cell(lat, lng, res)

    @_native_call
    def cell_to_lat_lng(self, cell, out):
        lat, lng = h3i.cell_to_latlng(cell)
        out.lat = math.radians(lat)
        out.lng = math.radians(lng)

    @_native_call
    def cell_to_boundary(self, cell, out):
        verts = h3i.cell_to_boundary(cell)
        if len(verts) > MAX_CELL_BNDRY_VERTS:
            return E_MEMORY_BOUNDS
        out.numVerts = len(verts)
        for i, (lat, lng) in enumerate(verts):
            out.verts[i] = _to_lat_lng(lat, lng)

    # -- hierarchy --

    @_native_call
    def cell_to_parent(self, cell, res, out):
        out.value = h3i.cell_to_parent(cell, res)

    @_native_call
    def cell_to_children_size(self, cell, res, out):
        out.value = h3i.cell_to_children_size(cell, res)

    @_native_call
    def cell_to_children(self, cell, res, out):
        return _fill(out, h3i.cell_to_children(cell, res))

    @_native_call
    def compact_cells(self, cells, out, num_cells):
        return _fill(out, h3i.compact_cells(cells[:num_cells]))

    @_native_call
    def uncompact_cells_size(self, cells, num_cells, res, out):
        total = 0
        for cell in cells[:num_cells]:
            if cell == 0:
                continue
            if h3i.get_resolution(cell) > res:
                return E_RES_MISMATCH
            total += h3i.cell_to_children_size(cell, res)
        out.value = total

    @_native_call
    def uncompact_cells(self, cells, num_cells, out, max_out, res):
        values = h3i.uncompact_cells([c for c in cells[:num_cells] if c != 0], res)
        if len(values) > max_out:
            return E_MEMORY_BOUNDS
        return _fill(out, values)

    # -- traversal --

    def _disk_distances(self, origin: int, k: int) -> List[Tuple[int, int]]:
        """Breadth-first walk of neighbours out to distance k."""
        distances = {origin: 0}
        order = [origin]
        frontier = [origin]
        for distance in range(1, k + 1):
            next_frontier = []
            for cell in frontier:
                for neighbor in h3i.grid_disk(cell, 1):
                    if neighbor not in distances:
                        distances[neighbor] = distance
                        order.append(neighbor)
                        next_frontier.append(neighbor)
            if not next_frontier:
                break
            frontier = next_frontier
        return [(cell, distances[cell]) for cell in order]

    @staticmethod
    def _fill_distances(found, out, distances) -> int:
        if len(found) > len(out) or len(found) > len(distances):
            return E_MEMORY_BOUNDS
        for i, (cell, distance) in enumerate(found):
            out[i] = cell
            distances[i] = distance
        return E_SUCCESS

    @_native_call
    def max_grid_disk_size(self, k, out):
        if k < 0:
            return E_DOMAIN
        if k >= _K_ALL_CELLS_AT_RES_15:
            out.value = h3i.get_num_cells(15)
        else:
            out.value = 3 * k * (k + 1) + 1

    @_native_call
    def grid_disk_distances(self, origin, k, out, distances):
        if k < 0:
            return E_DOMAIN
        return self._fill_distances(self._disk_distances(origin, k), out, distances)

    @_native_call
    def grid_disk_distances_unsafe(self, origin, k, out, distances):
        if k < 0:
            return E_DOMAIN
        found = self._disk_distances(origin, k)
        if any(h3i.is_pentagon(cell) for cell, _ in found):
            return E_PENTAGON
        return self._fill_distances(found, out, distances)

    @_native_call
    def grid_ring_unsafe(self, origin, k, out):
        if k < 0:
            return E_DOMAIN
        found = self._disk_distances(origin, k)
        if any(h3i.is_pentagon(cell) for cell, _ in found):
            return E_PENTAGON
        return _fill(out, [cell for cell, distance in found if distance == k])

    @_native_call
    def grid_distance(self, origin, destination, out):
        out.value = h3i.grid_distance(origin, destination)

    @_native_call
    def grid_path_cells_size(self, start, end, out):
        out.value = h3i.grid_distance(start, end) + 1

    @_native_call
    def grid_path_cells(self, start, end, out):
        return _fill(out, h3i.grid_path_cells(start, end))

    # -- regions --

    @_native_call
    def max_polygon_to_cells_size(self, polygon, res, flags, out):
        if flags != CONTAINMENT_CENTER:
            return E_OPTION_INVALID
        shape = _to_h3shape(polygon)
        # outer vertex count as headroom, as libh3 does for edge cells
        out.value = len(h3i.h3shape_to_cells(shape, res)) + len(shape.outer)

    @_native_call
    def polygon_to_cells(self, polygon, res, flags, out):
        if flags != CONTAINMENT_CENTER:
            return E_OPTION_INVALID
        return _fill(out, h3i.h3shape_to_cells(_to_h3shape(polygon), res))

    @staticmethod
    def _link_loop(coords, keep: list) -> LinkedGeoLoop:
        loop = LinkedGeoLoop()
        nodes = [LinkedLatLng(vertex=_to_lat_lng(lat, lng)) for lat, lng in _open_ring(coords)]
        for node, following in zip(nodes, nodes[1:]):
            node.next = ctypes.pointer(following)
        if nodes:
            loop.first = ctypes.pointer(nodes[0])
            loop.last = ctypes.pointer(nodes[-1])
        keep.append(loop)
        keep.extend(nodes)
        return loop

    @_native_call
    def cells_to_linked_multi_polygon(self, cells, num_cells, out):
        keep: list = []
        values = cells[:num_cells]
        if values:
            shape = h3i.cells_to_h3shape(values, tight=False)
            polys = list(shape.polys)
            nodes = [out] + [LinkedGeoPolygon() for _ in polys[1:]]
            for node, poly in zip(nodes, polys):
                loops = [self._link_loop(ring, keep) for ring in (poly.outer, *poly.holes)]
                for loop, following in zip(loops, loops[1:]):
                    loop.next = ctypes.pointer(following)
                node.first = ctypes.pointer(loops[0])
                node.last = ctypes.pointer(loops[-1])
            for node, following in zip(nodes, nodes[1:]):
                node.next = ctypes.pointer(following)
            keep.extend(nodes[1:])

        with self._lock:
            self._allocations[ctypes.addressof(out)] = keep
        logger.debug("linked multi-polygon built from %d cells", num_cells)

    def destroy_linked_multi_polygon(self, polygon):
        with self._lock:
            keep = self._allocations.pop(ctypes.addressof(polygon), None)
        if keep is None:
            raise RuntimeError("destroy_linked_multi_polygon called on a structure that is not live")
        polygon.first = None
        polygon.last = None
        polygon.next = None
        keep.clear()

    @property
    def live_linked_allocations(self):
        with self._lock:
            return len(self._allocations)

    # -- resolution tables --

    @_native_call
    def get_hexagon_edge_length_avg_m(self, res, out):
        out.value = h3i.average_hexagon_edge_length(res, unit="m")

    @_native_call
    def get_hexagon_area_avg_m2(self, res, out):
        out.value = h3i.average_hexagon_area(res, unit="m^2")

    @_native_call
    def get_num_cells(self, res, out):
        out.value = h3i.get_num_cells(res)
