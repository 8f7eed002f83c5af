"""
Grid traversal: k-rings, hex ranges, hollow rings, distances and lines.

Arguments are checked in a fixed order: plain argument checks first (a
negative distance never reaches the engine), then index validity, then
the native calls.
"""

import ctypes
from typing import List, Optional, Tuple

from .engine import resolve_engine
from .errors import InvalidArgument, check_native
from .index import H3Index
from .native import NativeEngine
from .sized import sized_cells, sized_cells_with_distances


MAX_DISTANCE = 2**31 - 1
"""Largest distance the native int parameter can carry."""


def _check_distance(k: int) -> None:
    if isinstance(k, bool) or not isinstance(k, int):
        raise InvalidArgument(f"distance must be an integer, got {k!r}")
    if k < 0:
        raise InvalidArgument(f"distance must be non-negative, got {k}")
    # ctypes would silently wrap anything wider
    if k > MAX_DISTANCE:
        raise InvalidArgument(f"distance must be at most {MAX_DISTANCE}, got {k}")


def _group_by_distance(found: List[Tuple[int, int]], k: int) -> List[List[H3Index]]:
    rings: List[List[H3Index]] = [[] for _ in range(k + 1)]
    for cell, distance in found:
        rings[distance].append(H3Index(cell))
    return rings


def _disk(index: H3Index, k: int, engine: Optional[NativeEngine], unsafe: bool):
    _check_distance(k)
    engine = resolve_engine(engine)
    index.validate(engine)

    if unsafe:
        fill, operation = engine.grid_disk_distances_unsafe, "gridDiskDistancesUnsafe"
    else:
        fill, operation = engine.grid_disk_distances, "gridDiskDistances"

    return sized_cells_with_distances(
        lambda out: engine.max_grid_disk_size(k, out),
        lambda cells, distances: fill(index.value, k, cells, distances),
        operation,
        limit=engine.max_buffer_cells,
    )


def k_ring(index: H3Index, k: int, engine: Optional[NativeEngine] = None) -> List[H3Index]:
    """
    All cells within grid distance k of index, origin first.

    Safe around pentagons.
    """
    return [H3Index(cell) for cell, _ in _disk(index, k, engine, unsafe=False)]


def k_ring_distances(
    index: H3Index, k: int, engine: Optional[NativeEngine] = None
) -> List[List[H3Index]]:
    """
    Cells within grid distance k, grouped by distance.

    Returns:
        k + 1 lists; element d holds the cells at distance d
    """
    return _group_by_distance(_disk(index, k, engine, unsafe=False), k)


def hex_range(index: H3Index, k: int, engine: Optional[NativeEngine] = None) -> List[H3Index]:
    """
    Like k_ring, but fails instead of working around pentagons.

    Raises:
        PentagonDistortion: a pentagon lies within distance k
    """
    return [H3Index(cell) for cell, _ in _disk(index, k, engine, unsafe=True)]


def hex_range_distances(
    index: H3Index, k: int, engine: Optional[NativeEngine] = None
) -> List[List[H3Index]]:
    return _group_by_distance(_disk(index, k, engine, unsafe=True), k)


def hex_ring(index: H3Index, k: int, engine: Optional[NativeEngine] = None) -> List[H3Index]:
    """
    Hollow ring of cells at exactly grid distance k.

    The buffer is sized by the full disk size for k, which always covers
    the ring. k = 0 gives the origin alone.

    Raises:
        PentagonDistortion: a pentagon lies within distance k
    """
    _check_distance(k)
    engine = resolve_engine(engine)
    index.validate(engine)

    cells = sized_cells(
        lambda out: engine.max_grid_disk_size(k, out),
        lambda buffer, size: engine.grid_ring_unsafe(index.value, k, buffer),
        "gridRingUnsafe",
        limit=engine.max_buffer_cells,
    )
    return [H3Index(cell) for cell in cells]


def grid_distance(
    origin: H3Index, destination: H3Index, engine: Optional[NativeEngine] = None
) -> int:
    """
    Number of grid steps between two cells.

    Raises:
        OutOfRange: the engine cannot compute a distance (too far apart,
            different resolutions, or separated by pentagon distortion)
    """
    engine = resolve_engine(engine)
    origin.validate(engine)
    destination.validate(engine)

    out = ctypes.c_int64()
    check_native(engine.grid_distance(origin.value, destination.value, out), "gridDistance")
    return out.value


def line(start: H3Index, end: H3Index, engine: Optional[NativeEngine] = None) -> List[H3Index]:
    """Cells along the grid path from start to end, both included."""
    engine = resolve_engine(engine)
    start.validate(engine)
    end.validate(engine)

    cells = sized_cells(
        lambda out: engine.grid_path_cells_size(start.value, end.value, out),
        lambda buffer, size: engine.grid_path_cells(start.value, end.value, buffer),
        "gridPathCells",
        limit=engine.max_buffer_cells,
    )
    return [H3Index(cell) for cell in cells]
