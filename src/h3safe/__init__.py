"""
h3-safe: a checked Python boundary over the H3 hexagonal grid engine.

This package wraps the H3 v4 C API so that invalid indices, native error
codes, output buffer sizing and native linked geometry never leak to the
caller. Calls run against libh3 through ctypes when the shared library is
available and against the h3 Python package otherwise.
"""

__version__ = "0.1.0"

from .errors import (
    H3SafeError,
    EngineUnavailable,
    InvalidIndex,
    InvalidResolution,
    InvalidArgument,
    InvalidGeometry,
    ParseError,
    MemoryAllocationFailed,
    PentagonDistortion,
    OutOfRange,
)
from .config import EngineConfig
from .native import NativeEngine, LibH3Engine
from .h3py_engine import H3PyEngine
from .engine import create_engine, default_engine
from .coords import Point
from .resolution import GridResolution, MAX_GRID_RESOLUTION, validate_resolution
from .index import H3Index
from .traversal import (
    k_ring,
    k_ring_distances,
    hex_range,
    hex_range_distances,
    hex_ring,
    grid_distance,
    line,
)
from .hierarchy import children, max_children, compact, uncompact
from .geometry import Polygon, as_polygon, polygon_feature, feature_collection
from .linked import LinkedMultiPolygon, read_linked_multi_polygon
from .region import polyfill, max_polyfill_size, cells_to_multi_polygon

__all__ = [
    "H3SafeError",
    "EngineUnavailable",
    "InvalidIndex",
    "InvalidResolution",
    "InvalidArgument",
    "InvalidGeometry",
    "ParseError",
    "MemoryAllocationFailed",
    "PentagonDistortion",
    "OutOfRange",
    "EngineConfig",
    "NativeEngine",
    "LibH3Engine",
    "H3PyEngine",
    "create_engine",
    "default_engine",
    "Point",
    "GridResolution",
    "MAX_GRID_RESOLUTION",
    "validate_resolution",
    "H3Index",
    "k_ring",
    "k_ring_distances",
    "hex_range",
    "hex_range_distances",
    "hex_ring",
    "grid_distance",
    "line",
    "children",
    "max_children",
    "compact",
    "uncompact",
    "Polygon",
    "as_polygon",
    "polygon_feature",
    "feature_collection",
    "LinkedMultiPolygon",
    "read_linked_multi_polygon",
    "polyfill",
    "max_polyfill_size",
    "cells_to_multi_polygon",
]
