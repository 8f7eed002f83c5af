"""Tests for the query-size-then-allocate protocol."""

import ctypes

import pytest

from h3safe.errors import (
    E_MEMORY_BOUNDS,
    E_SUCCESS,
    MemoryAllocationFailed,
    OutOfRange,
    InvalidIndex,
)
from h3safe.sized import (
    allocate,
    cell_array,
    collect,
    query_size,
    sized_cells,
    sized_cells_with_distances,
)


def _size_call(size, code=E_SUCCESS):
    def call(out):
        out.value = size
        return code
    return call


class TestQuerySize:
    """Tests for query_size."""

    def test_reports_size(self):
        assert query_size(_size_call(19), "maxGridDiskSize") == 19

    def test_error_code(self):
        with pytest.raises(InvalidIndex):
            query_size(_size_call(0, code=5), "cellToChildrenSize")

    def test_negative_size(self):
        with pytest.raises(OutOfRange):
            query_size(_size_call(-3), "maxGridDiskSize")


class TestAllocate:
    """Tests for buffer allocation."""

    def test_zeroed(self):
        buffer = allocate(4)
        assert list(buffer) == [0, 0, 0, 0]

    def test_limit(self):
        with pytest.raises(MemoryAllocationFailed, match="limit of 10"):
            allocate(11, limit=10)

    def test_too_large(self):
        with pytest.raises(MemoryAllocationFailed):
            allocate(2 ** 62)

    def test_other_ctype(self):
        buffer = allocate(3, ctypes.c_int)
        assert buffer._type_ is ctypes.c_int


class TestCollect:
    """Tests for sentinel filtering."""

    def test_drops_sentinels_keeps_order(self):
        assert collect(cell_array([0, 5, 0, 3, 9, 0])) == [5, 3, 9]

    def test_custom_sentinel(self):
        buffer = (ctypes.c_int * 4)(3, -1, 7, -1)
        assert collect(buffer, sentinel=-1) == [3, 7]


class TestSizedCells:
    """Tests for the full protocol."""

    def test_fill_sees_exact_capacity(self):
        seen = {}

        def fill(buffer, size):
            seen["len"] = len(buffer)
            seen["size"] = size
            buffer[0] = 11
            buffer[2] = 12
            return E_SUCCESS

        assert sized_cells(_size_call(5), fill, "cellToChildren") == [11, 12]
        assert seen == {"len": 5, "size": 5}

    def test_fill_error_discards_buffer(self):
        def fill(buffer, size):
            buffer[0] = 1
            return E_MEMORY_BOUNDS

        with pytest.raises(MemoryAllocationFailed):
            sized_cells(_size_call(2), fill, "cellToChildren")

    def test_size_error_skips_fill(self):
        calls = []
        with pytest.raises(InvalidIndex):
            sized_cells(_size_call(0, code=5), lambda b, s: calls.append(s), "cellToChildren")
        assert calls == []

    def test_limit_applies(self):
        with pytest.raises(MemoryAllocationFailed):
            sized_cells(_size_call(100), lambda b, s: E_SUCCESS, "polygonToCells", limit=10)

    def test_with_distances(self):
        def fill(cells, distances):
            cells[0], distances[0] = 7, 0
            cells[1], distances[1] = 8, 1
            return E_SUCCESS

        found = sized_cells_with_distances(_size_call(7), fill, "gridDiskDistances")
        assert found == [(7, 0), (8, 1)]
