"""
Native call surface of the H3 v4 C library.

This module declares the C structures with ctypes and defines the engine
protocol that the rest of the package talks to. The protocol mirrors the C
API one call per method: fallible calls return an H3Error integer and write
results into ctypes out-parameters supplied by the caller.

``LibH3Engine`` binds the protocol to the shared libh3 through ctypes.
"""

import ctypes
import ctypes.util
import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from .errors import EngineUnavailable

logger = logging.getLogger(__name__)


# ==================== C Types ====================

H3IndexT = ctypes.c_uint64
H3Error = ctypes.c_uint32

MAX_CELL_BNDRY_VERTS = 10
"""Upper bound on CellBoundary.numVerts (pentagons with distortion vertices)."""

H3_STRING_BUFFER_SIZE = 17
"""16 hex digits plus the terminating NUL."""

INVALID_FACE = -1
"""Sentinel written by getIcosahedronFaces into unused slots."""

CONTAINMENT_CENTER = 0
"""polygonToCells flag: include cells whose center lies inside the polygon."""


class LatLng(ctypes.Structure):
    """Latitude/longitude pair in radians."""

    _fields_ = [
        ("lat", ctypes.c_double),
        ("lng", ctypes.c_double),
    ]


class CellBoundary(ctypes.Structure):
    _fields_ = [
        ("numVerts", ctypes.c_int),
        ("verts", LatLng * MAX_CELL_BNDRY_VERTS),
    ]


class GeoLoop(ctypes.Structure):
    _fields_ = [
        ("numVerts", ctypes.c_int),
        ("verts", ctypes.POINTER(LatLng)),
    ]


class GeoPolygon(ctypes.Structure):
    _fields_ = [
        ("geoloop", GeoLoop),
        ("numHoles", ctypes.c_int),
        ("holes", ctypes.POINTER(GeoLoop)),
    ]


class LinkedLatLng(ctypes.Structure):
    pass


LinkedLatLng._fields_ = [
    ("vertex", LatLng),
    ("next", ctypes.POINTER(LinkedLatLng)),
]


class LinkedGeoLoop(ctypes.Structure):
    pass


LinkedGeoLoop._fields_ = [
    ("first", ctypes.POINTER(LinkedLatLng)),
    ("last", ctypes.POINTER(LinkedLatLng)),
    ("next", ctypes.POINTER(LinkedGeoLoop)),
]


class LinkedGeoPolygon(ctypes.Structure):
    pass


LinkedGeoPolygon._fields_ = [
    ("first", ctypes.POINTER(LinkedGeoLoop)),
    ("last", ctypes.POINTER(LinkedGeoLoop)),
    ("next", ctypes.POINTER(LinkedGeoPolygon)),
]


# ==================== Engine Protocol ====================

class NativeEngine(ABC):
    """
    Abstract base class for native H3 engines.

    Methods take ctypes objects for every out-parameter and buffer and return
    the native H3Error code (0 on success). Predicates return plain ints.
    Engines never raise for domain failures; translating codes into typed
    errors is the caller's job.
    """

    max_buffer_cells: Optional[int] = None

    # -- inspection --

    @abstractmethod
    def is_valid_cell(self, cell: int) -> int:
        pass

    @abstractmethod
    def get_resolution(self, cell: int) -> int:
        pass

    @abstractmethod
    def get_base_cell_number(self, cell: int) -> int:
        pass

    @abstractmethod
    def is_pentagon(self, cell: int) -> int:
        pass

    @abstractmethod
    def is_res_class_iii(self, cell: int) -> int:
        pass

    @abstractmethod
    def max_face_count(self, cell: int, out: ctypes.c_int) -> int:
        pass

    @abstractmethod
    def get_icosahedron_faces(self, cell: int, out: ctypes.Array) -> int:
        pass

    @abstractmethod
    def h3_to_string(self, cell: int, buffer: ctypes.Array, size: int) -> int:
        pass

    @abstractmethod
    def string_to_h3(self, text: bytes, out: H3IndexT) -> int:
        pass

    # -- indexing --

    @abstractmethod
    def lat_lng_to_cell(self, coord: LatLng, res: int, out: H3IndexT) -> int:
        pass

    @abstractmethod
    def cell_to_lat_lng(self, cell: int, out: LatLng) -> int:
        pass

    @abstractmethod
    def cell_to_boundary(self, cell: int, out: CellBoundary) -> int:
        pass

    # -- hierarchy --

    @abstractmethod
    def cell_to_parent(self, cell: int, res: int, out: H3IndexT) -> int:
        pass

    @abstractmethod
    def cell_to_children_size(self, cell: int, res: int, out: ctypes.c_int64) -> int:
        pass

    @abstractmethod
    def cell_to_children(self, cell: int, res: int, out: ctypes.Array) -> int:
        pass

    @abstractmethod
    def compact_cells(self, cells: ctypes.Array, out: ctypes.Array, num_cells: int) -> int:
        pass

    @abstractmethod
    def uncompact_cells_size(
        self, cells: ctypes.Array, num_cells: int, res: int, out: ctypes.c_int64
    ) -> int:
        pass

    @abstractmethod
    def uncompact_cells(
        self, cells: ctypes.Array, num_cells: int, out: ctypes.Array, max_out: int, res: int
    ) -> int:
        pass

    # -- traversal --

    @abstractmethod
    def max_grid_disk_size(self, k: int, out: ctypes.c_int64) -> int:
        pass

    @abstractmethod
    def grid_disk_distances(
        self, origin: int, k: int, out: ctypes.Array, distances: ctypes.Array
    ) -> int:
        pass

    @abstractmethod
    def grid_disk_distances_unsafe(
        self, origin: int, k: int, out: ctypes.Array, distances: ctypes.Array
    ) -> int:
        pass

    @abstractmethod
    def grid_ring_unsafe(self, origin: int, k: int, out: ctypes.Array) -> int:
        pass

    @abstractmethod
    def grid_distance(self, origin: int, destination: int, out: ctypes.c_int64) -> int:
        pass

    @abstractmethod
    def grid_path_cells_size(self, start: int, end: int, out: ctypes.c_int64) -> int:
        pass

    @abstractmethod
    def grid_path_cells(self, start: int, end: int, out: ctypes.Array) -> int:
        pass

    # -- regions --

    @abstractmethod
    def max_polygon_to_cells_size(
        self, polygon: GeoPolygon, res: int, flags: int, out: ctypes.c_int64
    ) -> int:
        pass

    @abstractmethod
    def polygon_to_cells(
        self, polygon: GeoPolygon, res: int, flags: int, out: ctypes.Array
    ) -> int:
        pass

    @abstractmethod
    def cells_to_linked_multi_polygon(
        self, cells: ctypes.Array, num_cells: int, out: LinkedGeoPolygon
    ) -> int:
        pass

    @abstractmethod
    def destroy_linked_multi_polygon(self, polygon: LinkedGeoPolygon) -> None:
        pass

    @property
    @abstractmethod
    def live_linked_allocations(self) -> int:
        """Linked multi-polygons constructed but not yet destroyed."""
        pass

    # -- resolution tables --

    @abstractmethod
    def get_hexagon_edge_length_avg_m(self, res: int, out: ctypes.c_double) -> int:
        pass

    @abstractmethod
    def get_hexagon_area_avg_m2(self, res: int, out: ctypes.c_double) -> int:
        pass

    @abstractmethod
    def get_num_cells(self, res: int, out: ctypes.c_int64) -> int:
        pass


# ==================== libh3 via ctypes ====================

_P = ctypes.POINTER

# name -> (argtypes, restype)
_SIGNATURES: Dict[str, Tuple[List, object]] = {
    "isValidCell": ([H3IndexT], ctypes.c_int),
    "getResolution": ([H3IndexT], ctypes.c_int),
    "getBaseCellNumber": ([H3IndexT], ctypes.c_int),
    "isPentagon": ([H3IndexT], ctypes.c_int),
    "isResClassIII": ([H3IndexT], ctypes.c_int),
    "maxFaceCount": ([H3IndexT, _P(ctypes.c_int)], H3Error),
    "getIcosahedronFaces": ([H3IndexT, _P(ctypes.c_int)], H3Error),
    "h3ToString": ([H3IndexT, ctypes.c_char_p, ctypes.c_size_t], H3Error),
    "stringToH3": ([ctypes.c_char_p, _P(H3IndexT)], H3Error),
    "latLngToCell": ([_P(LatLng), ctypes.c_int, _P(H3IndexT)], H3Error),
    "cellToLatLng": ([H3IndexT, _P(LatLng)], H3Error),
    "cellToBoundary": ([H3IndexT, _P(CellBoundary)], H3Error),
    "cellToParent": ([H3IndexT, ctypes.c_int, _P(H3IndexT)], H3Error),
    "cellToChildrenSize": ([H3IndexT, ctypes.c_int, _P(ctypes.c_int64)], H3Error),
    "cellToChildren": ([H3IndexT, ctypes.c_int, _P(H3IndexT)], H3Error),
    "compactCells": ([_P(H3IndexT), _P(H3IndexT), ctypes.c_int64], H3Error),
    "uncompactCellsSize": (
        [_P(H3IndexT), ctypes.c_int64, ctypes.c_int, _P(ctypes.c_int64)], H3Error
    ),
    "uncompactCells": (
        [_P(H3IndexT), ctypes.c_int64, _P(H3IndexT), ctypes.c_int64, ctypes.c_int], H3Error
    ),
    "maxGridDiskSize": ([ctypes.c_int, _P(ctypes.c_int64)], H3Error),
    "gridDiskDistances": ([H3IndexT, ctypes.c_int, _P(H3IndexT), _P(ctypes.c_int)], H3Error),
    "gridDiskDistancesUnsafe": (
        [H3IndexT, ctypes.c_int, _P(H3IndexT), _P(ctypes.c_int)], H3Error
    ),
    "gridRingUnsafe": ([H3IndexT, ctypes.c_int, _P(H3IndexT)], H3Error),
    "gridDistance": ([H3IndexT, H3IndexT, _P(ctypes.c_int64)], H3Error),
    "gridPathCellsSize": ([H3IndexT, H3IndexT, _P(ctypes.c_int64)], H3Error),
    "gridPathCells": ([H3IndexT, H3IndexT, _P(H3IndexT)], H3Error),
    "maxPolygonToCellsSize": (
        [_P(GeoPolygon), ctypes.c_int, ctypes.c_uint32, _P(ctypes.c_int64)], H3Error
    ),
    "polygonToCells": ([_P(GeoPolygon), ctypes.c_int, ctypes.c_uint32, _P(H3IndexT)], H3Error),
    "cellsToLinkedMultiPolygon": ([_P(H3IndexT), ctypes.c_int, _P(LinkedGeoPolygon)], H3Error),
    "destroyLinkedMultiPolygon": ([_P(LinkedGeoPolygon)], None),
    "getHexagonEdgeLengthAvgM": ([ctypes.c_int, _P(ctypes.c_double)], H3Error),
    "getHexagonAreaAvgM2": ([ctypes.c_int, _P(ctypes.c_double)], H3Error),
    "getNumCells": ([ctypes.c_int, _P(ctypes.c_int64)], H3Error),
}


def find_library(library_path: Optional[str] = None) -> Optional[str]:
    """
    Locate the libh3 shared library.

    Args:
        library_path: Explicit path; returned unchanged when given

    Returns:
        A path or soname accepted by ctypes.CDLL, or None if not found
    """
    if library_path:
        return library_path
    return ctypes.util.find_library("h3")


def load_library(library_path: Optional[str] = None) -> ctypes.CDLL:
    """
    Load libh3 and declare the argument and return types of every call used.

    Raises:
        EngineUnavailable: The library is missing or lacks the v4 API
    """
    path = find_library(library_path)
    if path is None:
        raise EngineUnavailable("libh3 shared library not found (set H3SAFE_LIBRARY)")

    try:
        lib = ctypes.CDLL(path)
    except OSError as exc:
        raise EngineUnavailable(f"could not load libh3 from {path}: {exc}") from exc

    for name, (argtypes, restype) in _SIGNATURES.items():
        try:
            func = getattr(lib, name)
        except AttributeError as exc:
            raise EngineUnavailable(
                f"{path} does not export {name}; libh3 >= 4.0 is required"
            ) from exc
        func.argtypes = argtypes
        func.restype = restype

    logger.debug("loaded libh3 from %s", path)
    return lib


class LibH3Engine(NativeEngine):
    """
    Engine backed by the shared libh3 C library.

    Calls go straight through ctypes; the only bookkeeping done here is a
    counter of linked multi-polygons that have not been destroyed yet.
    """

    def __init__(self, lib: ctypes.CDLL, max_buffer_cells: Optional[int] = None):
        """
        Args:
            lib: Library returned by load_library()
            max_buffer_cells: Cap on sized-output allocations
        """
        self._lib = lib
        self.max_buffer_cells = max_buffer_cells
        self._live = 0
        self._lock = threading.Lock()

    def is_valid_cell(self, cell):
        return self._lib.isValidCell(cell)

    def get_resolution(self, cell):
        return self._lib.getResolution(cell)

    def get_base_cell_number(self, cell):
        return self._lib.getBaseCellNumber(cell)

    def is_pentagon(self, cell):
        return self._lib.isPentagon(cell)

    def is_res_class_iii(self, cell):
        return self._lib.isResClassIII(cell)

    def max_face_count(self, cell, out):
        return self._lib.maxFaceCount(cell, ctypes.byref(out))

    def get_icosahedron_faces(self, cell, out):
        return self._lib.getIcosahedronFaces(cell, out)

    def h3_to_string(self, cell, buffer, size):
        return self._lib.h3ToString(cell, buffer, size)

    def string_to_h3(self, text, out):
        return self._lib.stringToH3(text, ctypes.byref(out))

    def lat_lng_to_cell(self, coord, res, out):
        return self._lib.latLngToCell(ctypes.byref(coord), res, ctypes.byref(out))

    def cell_to_lat_lng(self, cell, out):
        return self._lib.cellToLatLng(cell, ctypes.byref(out))

    def cell_to_boundary(self, cell, out):
        return self._lib.cellToBoundary(cell, ctypes.byref(out))

    def cell_to_parent(self, cell, res, out):
        return self._lib.cellToParent(cell, res, ctypes.byref(out))

    def cell_to_children_size(self, cell, res, out):
        return self._lib.cellToChildrenSize(cell, res, ctypes.byref(out))

    def cell_to_children(self, cell, res, out):
        return self._lib.cellToChildren(cell, res, out)

    def compact_cells(self, cells, out, num_cells):
        return self._lib.compactCells(cells, out, num_cells)

    def uncompact_cells_size(self, cells, num_cells, res, out):
        return self._lib.uncompactCellsSize(cells, num_cells, res, ctypes.byref(out))

    def uncompact_cells(self, cells, num_cells, out, max_out, res):
        return self._lib.uncompactCells(cells, num_cells, out, max_out, res)

    def max_grid_disk_size(self, k, out):
        return self._lib.maxGridDiskSize(k, ctypes.byref(out))

    def grid_disk_distances(self, origin, k, out, distances):
        return self._lib.gridDiskDistances(origin, k, out, distances)

    def grid_disk_distances_unsafe(self, origin, k, out, distances):
        return self._lib.gridDiskDistancesUnsafe(origin, k, out, distances)

    def grid_ring_unsafe(self, origin, k, out):
        return self._lib.gridRingUnsafe(origin, k, out)

    def grid_distance(self, origin, destination, out):
        return self._lib.gridDistance(origin, destination, ctypes.byref(out))

    def grid_path_cells_size(self, start, end, out):
        return self._lib.gridPathCellsSize(start, end, ctypes.byref(out))

    def grid_path_cells(self, start, end, out):
        return self._lib.gridPathCells(start, end, out)

    def max_polygon_to_cells_size(self, polygon, res, flags, out):
        return self._lib.maxPolygonToCellsSize(
            ctypes.byref(polygon), res, flags, ctypes.byref(out)
        )

    def polygon_to_cells(self, polygon, res, flags, out):
        return self._lib.polygonToCells(ctypes.byref(polygon), res, flags, out)

    def cells_to_linked_multi_polygon(self, cells, num_cells, out):
        code = self._lib.cellsToLinkedMultiPolygon(cells, num_cells, ctypes.byref(out))
        if code == 0:
            with self._lock:
                self._live += 1
        return code

    def destroy_linked_multi_polygon(self, polygon):
        self._lib.destroyLinkedMultiPolygon(ctypes.byref(polygon))
        with self._lock:
            self._live -= 1

    @property
    def live_linked_allocations(self):
        with self._lock:
            return self._live

    def get_hexagon_edge_length_avg_m(self, res, out):
        return self._lib.getHexagonEdgeLengthAvgM(res, ctypes.byref(out))

    def get_hexagon_area_avg_m2(self, res, out):
        return self._lib.getHexagonAreaAvgM2(res, ctypes.byref(out))

    def get_num_cells(self, res, out):
        return self._lib.getNumCells(res, ctypes.byref(out))
