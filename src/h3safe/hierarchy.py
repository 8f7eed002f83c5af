"""
Hierarchy operations: children, compaction and uncompaction.
"""

from typing import Iterable, List, Optional

from .engine import resolve_engine
from .errors import InvalidArgument, InvalidResolution, check_native
from .index import H3Index
from .native import NativeEngine
from .resolution import validate_resolution
from .sized import allocate, cell_array, collect, query_size, sized_cells


def _check_finer(index: H3Index, resolution: int, engine: NativeEngine) -> None:
    own = engine.get_resolution(index.value)
    if resolution < own:
        raise InvalidResolution(
            f"resolution {resolution} is coarser than cell resolution {own} of {index}"
        )


def max_children(index: H3Index, resolution: int, engine: Optional[NativeEngine] = None) -> int:
    """Number of children index has at the given (finer or equal) resolution."""
    res = int(validate_resolution(resolution))
    engine = resolve_engine(engine)
    index.validate(engine)
    _check_finer(index, res, engine)

    return query_size(
        lambda out: engine.cell_to_children_size(index.value, res, out), "cellToChildrenSize"
    )


def children(
    index: H3Index, resolution: int, engine: Optional[NativeEngine] = None
) -> List[H3Index]:
    """
    Descendants of index at the given resolution.

    A cell's only child at its own resolution is itself.

    Raises:
        InvalidResolution: resolution is out of range or coarser than index
    """
    res = int(validate_resolution(resolution))
    engine = resolve_engine(engine)
    index.validate(engine)
    _check_finer(index, res, engine)

    cells = sized_cells(
        lambda out: engine.cell_to_children_size(index.value, res, out),
        lambda buffer, size: engine.cell_to_children(index.value, res, buffer),
        "cellToChildren",
        limit=engine.max_buffer_cells,
    )
    return [H3Index(cell) for cell in cells]


def compact(cells: Iterable[H3Index], engine: Optional[NativeEngine] = None) -> List[H3Index]:
    """
    Replace complete sibling sets by their parents, recursively.

    All inputs must share one resolution and be distinct.

    Raises:
        InvalidIndex: an input is not a valid cell
        InvalidResolution: inputs have mixed resolutions
        InvalidArgument: an input appears more than once
    """
    cells = list(cells)
    engine = resolve_engine(engine)
    for cell in cells:
        cell.validate(engine)
    if not cells:
        return []

    if len(set(cells)) != len(cells):
        raise InvalidArgument("compact input contains duplicate cells")
    resolutions = {engine.get_resolution(cell.value) for cell in cells}
    if len(resolutions) > 1:
        raise InvalidResolution(
            f"compact input mixes resolutions {sorted(resolutions)}"
        )

    values = cell_array([cell.value for cell in cells])
    # compacted output is never larger than the input
    buffer = allocate(len(cells), limit=engine.max_buffer_cells)
    check_native(engine.compact_cells(values, buffer, len(cells)), "compactCells")
    return [H3Index(cell) for cell in collect(buffer)]


def uncompact(
    cells: Iterable[H3Index], resolution: int, engine: Optional[NativeEngine] = None
) -> List[H3Index]:
    """
    Expand a compacted set so that every cell is at the given resolution.

    Raises:
        InvalidResolution: resolution is out of range or coarser than an input
    """
    res = int(validate_resolution(resolution))
    cells = list(cells)
    engine = resolve_engine(engine)
    for cell in cells:
        cell.validate(engine)
        _check_finer(cell, res, engine)
    if not cells:
        return []

    values = cell_array([cell.value for cell in cells])
    result = sized_cells(
        lambda out: engine.uncompact_cells_size(values, len(cells), res, out),
        lambda buffer, size: engine.uncompact_cells(values, len(cells), buffer, size, res),
        "uncompactCells",
        limit=engine.max_buffer_cells,
    )
    return [H3Index(cell) for cell in result]
