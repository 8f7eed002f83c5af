"""
The H3 index handle.

``H3Index`` is an immutable wrapper around an unsigned 64-bit cell index.
Building one from a raw integer never consults the engine; every accessor
except ``is_valid`` checks validity first and raises ``InvalidIndex`` before
making any other native call.
"""

import ctypes
import re
from dataclasses import dataclass
from typing import List, Optional

from .coords import Point, check_finite, from_native, to_native
from .engine import resolve_engine
from .errors import (
    InvalidArgument,
    InvalidIndex,
    InvalidResolution,
    OutOfRange,
    ParseError,
    check_native,
)
from .native import (
    NativeEngine,
    H3IndexT,
    LatLng,
    CellBoundary,
    MAX_CELL_BNDRY_VERTS,
    H3_STRING_BUFFER_SIZE,
    INVALID_FACE,
)
from .resolution import GridResolution, validate_resolution
from .sized import allocate, collect

_MAX_VALUE = 2 ** 64
_CELL_TEXT = re.compile(r"[0-9a-fA-F]{15}")


@dataclass(frozen=True, order=True)
class H3Index:
    """
    A 64-bit H3 cell index.

    Ordering and hashing follow the integer value. ``str()`` gives the
    canonical lowercase hex text.
    """

    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidIndex(f"index must be an integer, got {self.value!r}")
        if not 0 <= self.value < _MAX_VALUE:
            raise InvalidIndex(f"index {self.value} does not fit in 64 bits")

    def __str__(self) -> str:
        return format(self.value, "x")

    def __repr__(self) -> str:
        return f"H3Index(0x{self.value:x})"

    def __int__(self) -> int:
        return self.value

    # ==================== Construction ====================

    @classmethod
    def from_int(cls, value: int, engine: Optional[NativeEngine] = None) -> "H3Index":
        """Build a handle and check that it names a valid cell."""
        return cls(value).validate(engine)

    @classmethod
    def from_point(
        cls, point: Point, resolution: int, engine: Optional[NativeEngine] = None
    ) -> "H3Index":
        """
        Index the cell containing a point.

        Args:
            point: (lng, lat) in degrees
            resolution: Target resolution, 0-15

        Raises:
            InvalidResolution: resolution outside [0, 15]
            InvalidArgument: point is not finite, or the engine rejects it
        """
        res = validate_resolution(resolution)
        point = check_finite(point)
        engine = resolve_engine(engine)

        out = H3IndexT()
        check_native(engine.lat_lng_to_cell(to_native(point), int(res), out), "latLngToCell")
        if out.value == 0:
            raise InvalidArgument(f"no cell contains ({point.lng}, {point.lat})")
        return cls(out.value)

    @classmethod
    def from_string(cls, text: str, engine: Optional[NativeEngine] = None) -> "H3Index":
        """
        Parse the 15-character hex form of a cell index.

        Raises:
            ParseError: text is not exactly 15 hex digits
            InvalidIndex: text is well formed but names no valid cell
        """
        if not isinstance(text, str) or not _CELL_TEXT.fullmatch(text):
            raise ParseError(f"expected 15 hex digits, got {text!r}")

        engine = resolve_engine(engine)
        out = H3IndexT()
        code = engine.string_to_h3(text.encode("ascii"), out)
        if code != 0:
            raise ParseError(f"could not parse {text!r} as an index", code=code)
        return cls(out.value).validate(engine)

    # ==================== Validity ====================

    def is_valid(self, engine: Optional[NativeEngine] = None) -> bool:
        """Whether the engine accepts this value as a cell. Never raises."""
        return bool(resolve_engine(engine).is_valid_cell(self.value))

    def validate(self, engine: Optional[NativeEngine] = None) -> "H3Index":
        """Return self, or raise InvalidIndex if the value is not a valid cell."""
        self._checked(engine)
        return self

    def _checked(self, engine: Optional[NativeEngine]) -> NativeEngine:
        engine = resolve_engine(engine)
        if not engine.is_valid_cell(self.value):
            raise InvalidIndex(f"{self} is not a valid H3 cell")
        return engine

    # ==================== Inspection ====================

    def resolution(self, engine: Optional[NativeEngine] = None) -> GridResolution:
        return GridResolution(self._checked(engine).get_resolution(self.value))

    def base_cell(self, engine: Optional[NativeEngine] = None) -> int:
        return self._checked(engine).get_base_cell_number(self.value)

    def is_pentagon(self, engine: Optional[NativeEngine] = None) -> bool:
        return bool(self._checked(engine).is_pentagon(self.value))

    def is_res_class_iii(self, engine: Optional[NativeEngine] = None) -> bool:
        """Class III resolutions (odd numbered) are rotated relative to class II."""
        return bool(self._checked(engine).is_res_class_iii(self.value))

    def icosahedron_faces(self, engine: Optional[NativeEngine] = None) -> List[int]:
        """Icosahedron faces intersected by this cell, in ascending order."""
        engine = self._checked(engine)

        count = ctypes.c_int()
        check_native(engine.max_face_count(self.value, count), "maxFaceCount")
        buffer = allocate(count.value, ctypes.c_int, limit=engine.max_buffer_cells)
        check_native(engine.get_icosahedron_faces(self.value, buffer), "getIcosahedronFaces")
        return sorted(collect(buffer, sentinel=INVALID_FACE))

    def to_string(self, engine: Optional[NativeEngine] = None) -> str:
        engine = self._checked(engine)
        buffer = ctypes.create_string_buffer(H3_STRING_BUFFER_SIZE)
        check_native(engine.h3_to_string(self.value, buffer, H3_STRING_BUFFER_SIZE), "h3ToString")
        return buffer.value.decode("ascii")

    # ==================== Geometry ====================

    def to_point(self, engine: Optional[NativeEngine] = None) -> Point:
        """Center of the cell as (lng, lat) degrees."""
        engine = self._checked(engine)
        out = LatLng()
        check_native(engine.cell_to_lat_lng(self.value, out), "cellToLatLng")
        return from_native(out)

    def centroid(self, engine: Optional[NativeEngine] = None) -> Point:
        return self.to_point(engine)

    def to_boundary(self, engine: Optional[NativeEngine] = None) -> List[Point]:
        """
        Cell boundary as an open ring of (lng, lat) points.

        Hexagons have 6 vertices and class II pentagons 5; cells crossing an
        icosahedron edge carry extra distortion vertices, up to 10 in all.
        """
        engine = self._checked(engine)
        out = CellBoundary()
        check_native(engine.cell_to_boundary(self.value, out), "cellToBoundary")
        if not 0 <= out.numVerts <= MAX_CELL_BNDRY_VERTS:
            raise OutOfRange(f"engine returned {out.numVerts} boundary vertices")
        return [from_native(out.verts[i]) for i in range(out.numVerts)]

    # ==================== Hierarchy ====================

    def parent(self, resolution: int, engine: Optional[NativeEngine] = None) -> "H3Index":
        """
        Ancestor at a coarser (or equal) resolution.

        Raises:
            InvalidResolution: resolution is out of range or finer than this cell
        """
        res = validate_resolution(resolution)
        engine = self._checked(engine)
        own = engine.get_resolution(self.value)
        if res > own:
            raise InvalidResolution(
                f"parent resolution {int(res)} is finer than cell resolution {own}"
            )

        out = H3IndexT()
        check_native(engine.cell_to_parent(self.value, int(res), out), "cellToParent")
        return H3Index(out.value)
