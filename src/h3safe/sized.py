"""
Query-size-then-allocate protocol for native calls with array output.

Every native call that fills a caller buffer goes through here:

1. ask the engine for the maximum output size,
2. allocate a zeroed buffer of exactly that size,
3. let the engine fill it,
4. turn a non-zero return code into a typed error,
5. drop the zero sentinel slots and copy survivors out as Python ints.

The ctypes buffers never leave this module's callers.
"""

import ctypes
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import MemoryAllocationFailed, OutOfRange, check_native
from .native import H3IndexT

logger = logging.getLogger(__name__)


SENTINEL = 0
"""Empty buffer slot; never a valid index."""


def query_size(call: Callable[[ctypes.c_int64], int], operation: str) -> int:
    """
    Run a native size query.

    Args:
        call: Function taking the int64 out-parameter and returning an H3Error
        operation: Native call name for error messages

    Returns:
        The reported maximum number of output slots
    """
    out = ctypes.c_int64()
    check_native(call(out), operation)
    if out.value < 0:
        raise OutOfRange(f"{operation} reported a negative size ({out.value})")
    return out.value


def allocate(size: int, ctype=H3IndexT, limit: Optional[int] = None) -> ctypes.Array:
    """
    Allocate a zero-initialised native buffer.

    Raises:
        MemoryAllocationFailed: size exceeds ``limit`` or cannot be allocated
    """
    if limit is not None and size > limit:
        raise MemoryAllocationFailed(
            f"output of {size} cells exceeds the configured limit of {limit}"
        )
    try:
        return (ctype * size)()
    except (MemoryError, OverflowError) as exc:
        raise MemoryAllocationFailed(f"could not allocate {size} output slots") from exc


def collect(buffer: ctypes.Array, sentinel: int = SENTINEL) -> List[int]:
    """Copy the non-sentinel slots of a filled buffer, in buffer order."""
    return [value for value in buffer if value != sentinel]


def cell_array(values: Sequence[int]) -> ctypes.Array:
    """Native input array holding ``values``."""
    return (H3IndexT * len(values))(*values)


def sized_cells(
    size_call: Callable[[ctypes.c_int64], int],
    fill_call: Callable[[ctypes.Array, int], int],
    operation: str,
    limit: Optional[int] = None,
) -> List[int]:
    """
    Size, allocate, fill and collect an index buffer.

    Args:
        size_call: Size query taking the int64 out-parameter
        fill_call: Fill call taking (buffer, capacity)
        operation: Native call name for error messages
        limit: Optional cap on the buffer size

    Returns:
        Non-sentinel index values in engine order
    """
    size = query_size(size_call, operation)
    buffer = allocate(size, limit=limit)
    check_native(fill_call(buffer, size), operation)
    cells = collect(buffer)
    logger.debug("%s: %d of %d slots used", operation, len(cells), size)
    return cells


def sized_cells_with_distances(
    size_call: Callable[[ctypes.c_int64], int],
    fill_call: Callable[[ctypes.Array, ctypes.Array], int],
    operation: str,
    limit: Optional[int] = None,
) -> List[Tuple[int, int]]:
    """
    Like ``sized_cells`` for calls that also fill a parallel distance array.

    Returns:
        (index value, distance) pairs for every non-sentinel slot
    """
    size = query_size(size_call, operation)
    cells = allocate(size, limit=limit)
    distances = allocate(size, ctypes.c_int, limit=limit)
    check_native(fill_call(cells, distances), operation)
    return [
        (cell, distance)
        for cell, distance in zip(cells, distances)
        if cell != SENTINEL
    ]
