"""Smoke tests for the ctypes libh3 engine."""

import pytest

from h3safe.errors import EngineUnavailable, PentagonDistortion
from h3safe.index import H3Index
from h3safe.native import LibH3Engine, find_library, load_library
from h3safe.region import cells_to_multi_polygon
from h3safe.traversal import hex_ring, k_ring


@pytest.fixture
def libh3():
    """LibH3Engine over the installed shared library."""
    if find_library() is None:
        pytest.skip("libh3 not found - install libh3 >= 4.0 to run these tests")
    try:
        return LibH3Engine(load_library())
    except EngineUnavailable as exc:
        pytest.skip(str(exc))


class TestLoadLibrary:
    """Tests for library loading."""

    def test_missing_path(self):
        with pytest.raises(EngineUnavailable):
            load_library("/nonexistent/libh3.so")


class TestLibH3Engine:
    """Tests against the real C library."""

    def test_point_to_index(self, libh3):
        index = H3Index.from_point((-122.0553238, 37.3615593), 5, libh3)
        assert index == H3Index(0x85283473FFFFFFF)

    def test_k_ring(self, libh3):
        assert len(k_ring(H3Index(0x8928308280FFFFF), 2, libh3)) == 19

    def test_hex_ring_pentagon(self, libh3):
        with pytest.raises(PentagonDistortion):
            hex_ring(H3Index(0x821C07FFFFFFFFF), 1, libh3)

    def test_linked_release(self, libh3):
        cells = k_ring(H3Index(0x8928308280FFFFF), 1, libh3)
        polygons = cells_to_multi_polygon(cells, libh3)
        assert len(polygons) == 1
        assert libh3.live_linked_allocations == 0
