"""Tests for grid traversal."""

from unittest.mock import MagicMock

import h3
import pytest

from h3safe.errors import (
    E_MEMORY_BOUNDS,
    InvalidArgument,
    InvalidIndex,
    MemoryAllocationFailed,
    OutOfRange,
    PentagonDistortion,
)
from h3safe.h3py_engine import H3PyEngine
from h3safe.index import H3Index
from h3safe.native import NativeEngine
from h3safe.traversal import (
    MAX_DISTANCE,
    grid_distance,
    hex_range,
    hex_range_distances,
    hex_ring,
    k_ring,
    k_ring_distances,
    line,
)


SF_RING_1 = [
    0x8928308280FFFFF,
    0x8928308280BFFFF,
    0x89283082807FFFF,
    0x89283082877FFFF,
    0x89283082803FFFF,
    0x89283082873FFFF,
    0x8928308283BFFFF,
]


class TestKRing:
    """Tests for k_ring and k_ring_distances."""

    def test_k_ring_1(self, engine, sf_cell):
        ring = k_ring(sf_cell, 1, engine)
        assert len(ring) == 7
        assert ring[0] == sf_cell
        assert set(ring) == {H3Index(value) for value in SF_RING_1}

    def test_k_ring_2(self, engine, sf_cell):
        ring = k_ring(sf_cell, 2, engine)
        assert len(ring) == 1 + 6 + 12
        assert {H3Index(value) for value in SF_RING_1} <= set(ring)

    def test_zero_is_origin_only(self, engine, sf_cell):
        assert k_ring(sf_cell, 0, engine) == [sf_cell]

    def test_pentagon(self, engine, pentagon):
        ring = k_ring(pentagon, 1, engine)
        assert set(ring) == {
            H3Index(0x821C2FFFFFFFFFF),
            H3Index(0x821C27FFFFFFFFF),
            H3Index(0x821C07FFFFFFFFF),
            H3Index(0x821C17FFFFFFFFF),
            H3Index(0x821C1FFFFFFFFFF),
            H3Index(0x821C37FFFFFFFFF),
        }

    def test_distances(self, engine, sf_cell):
        rings = k_ring_distances(sf_cell, 1, engine)
        assert len(rings) == 2
        assert rings[0] == [sf_cell]
        assert set(rings[1]) == {H3Index(value) for value in SF_RING_1[1:]}

    def test_distances_near_pentagon(self, engine):
        rings = k_ring_distances(H3Index(0x870800003FFFFFF), 2, engine)
        assert [len(ring) for ring in rings] == [1, 6, 11]

    def test_matches_h3(self, engine, sf_cell):
        expected = {h3.str_to_int(c) for c in h3.grid_disk("8928308280fffff", 3)}
        assert {cell.value for cell in k_ring(sf_cell, 3, engine)} == expected

    def test_size_within_native_maximum(self, engine, pentagon):
        for k in range(4):
            assert len(k_ring(pentagon, k, engine)) <= 3 * k * (k + 1) + 1

    def test_negative_never_reaches_engine(self, sf_cell):
        engine = MagicMock(spec=NativeEngine)
        with pytest.raises(InvalidArgument):
            k_ring(sf_cell, -1, engine)
        assert engine.method_calls == []

    def test_distance_wider_than_native_int(self, sf_cell):
        engine = MagicMock(spec=NativeEngine)
        for k in (2**31, 2**32):
            with pytest.raises(InvalidArgument):
                k_ring(sf_cell, k, engine)
            with pytest.raises(InvalidArgument):
                hex_ring(sf_cell, k, engine)
        assert engine.method_calls == []

    def test_largest_distance_reaches_engine_intact(self, sf_cell):
        engine = MagicMock(spec=NativeEngine)
        engine.is_valid_cell.return_value = 1
        engine.max_grid_disk_size.return_value = E_MEMORY_BOUNDS
        with pytest.raises(MemoryAllocationFailed):
            k_ring(sf_cell, MAX_DISTANCE, engine)
        assert engine.max_grid_disk_size.call_args[0][0] == MAX_DISTANCE
        engine.grid_disk_distances.assert_not_called()

    def test_invalid_origin(self, engine):
        with pytest.raises(InvalidIndex):
            k_ring(H3Index(0x5004295803A88), 1, engine)

    def test_buffer_cap(self, sf_cell):
        capped = H3PyEngine(max_buffer_cells=10)
        with pytest.raises(MemoryAllocationFailed):
            k_ring(sf_cell, 2, capped)


class TestHexRange:
    """Tests for the pentagon-unsafe variants."""

    def test_away_from_pentagons(self, engine, sf_cell):
        assert set(hex_range(sf_cell, 2, engine)) == set(k_ring(sf_cell, 2, engine))

    def test_distances(self, engine, sf_cell):
        rings = hex_range_distances(sf_cell, 2, engine)
        assert [len(ring) for ring in rings] == [1, 6, 12]

    def test_pentagon_distortion(self, engine, pentagon):
        with pytest.raises(PentagonDistortion):
            hex_range(pentagon, 1, engine)

    def test_negative(self, engine, sf_cell):
        with pytest.raises(InvalidArgument):
            hex_range_distances(sf_cell, -2, engine)


class TestHexRing:
    """Tests for hollow rings."""

    def test_ring_1(self, engine, sf_cell):
        assert set(hex_ring(sf_cell, 1, engine)) == {H3Index(v) for v in SF_RING_1[1:]}

    def test_ring_2(self, engine, sf_cell):
        assert len(hex_ring(sf_cell, 2, engine)) == 12

    def test_zero(self, engine, sf_cell):
        assert hex_ring(sf_cell, 0, engine) == [sf_cell]

    def test_pentagon(self, engine, pentagon):
        with pytest.raises(PentagonDistortion):
            hex_ring(pentagon, 1, engine)


class TestDistanceAndLine:
    """Tests for grid_distance and line."""

    def test_distance(self, engine, sf_cell):
        for distance, ring in enumerate(k_ring_distances(sf_cell, 2, engine)):
            for cell in ring:
                assert grid_distance(sf_cell, cell, engine) == distance

    def test_distance_too_far(self, engine, sf_cell):
        far = H3Index.from_point((139.6503, 35.6762), 9, engine)
        with pytest.raises(OutOfRange):
            grid_distance(sf_cell, far, engine)

    def test_line(self, engine, sf_cell):
        end = hex_ring(sf_cell, 3, engine)[0]
        path = line(sf_cell, end, engine)
        assert len(path) == 4
        assert path[0] == sf_cell
        assert path[-1] == end

    def test_line_invalid_end(self, engine, sf_cell):
        with pytest.raises(InvalidIndex):
            line(sf_cell, H3Index(0), engine)
