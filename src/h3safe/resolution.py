"""
Grid resolutions and the per-resolution tables held by the engine.
"""

import ctypes
from enum import IntEnum
from typing import Optional

from .engine import resolve_engine
from .errors import InvalidResolution, check_native
from .native import NativeEngine


MAX_GRID_RESOLUTION = 15


class GridResolution(IntEnum):
    """Resolutions 0 (coarsest) through 15 (finest)."""

    Z0 = 0
    Z1 = 1
    Z2 = 2
    Z3 = 3
    Z4 = 4
    Z5 = 5
    Z6 = 6
    Z7 = 7
    Z8 = 8
    Z9 = 9
    Z10 = 10
    Z11 = 11
    Z12 = 12
    Z13 = 13
    Z14 = 14
    Z15 = 15

    def edge_length(self, engine: Optional[NativeEngine] = None) -> float:
        """Average hexagon edge length in metres."""
        out = ctypes.c_double()
        code = resolve_engine(engine).get_hexagon_edge_length_avg_m(int(self), out)
        check_native(code, "getHexagonEdgeLengthAvgM")
        return out.value

    def hex_area(self, engine: Optional[NativeEngine] = None) -> float:
        """Average hexagon area in square metres."""
        out = ctypes.c_double()
        code = resolve_engine(engine).get_hexagon_area_avg_m2(int(self), out)
        check_native(code, "getHexagonAreaAvgM2")
        return out.value

    def num_cells(self, engine: Optional[NativeEngine] = None) -> int:
        """Number of cells (hexagons and pentagons) at this resolution."""
        out = ctypes.c_int64()
        check_native(resolve_engine(engine).get_num_cells(int(self), out), "getNumCells")
        return out.value


def validate_resolution(resolution) -> GridResolution:
    """
    Check a resolution argument.

    Args:
        resolution: int or GridResolution

    Returns:
        The matching GridResolution

    Raises:
        InvalidResolution: Not an integer in [0, 15]
    """
    if isinstance(resolution, bool) or not isinstance(resolution, int):
        raise InvalidResolution(f"resolution must be an integer, got {resolution!r}")
    if not 0 <= resolution <= MAX_GRID_RESOLUTION:
        raise InvalidResolution(
            f"resolution must be in [0, {MAX_GRID_RESOLUTION}], got {resolution}"
        )
    return GridResolution(resolution)
