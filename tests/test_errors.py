"""Tests for native error code translation."""

import pytest

from h3safe.errors import (
    H3SafeError,
    InvalidIndex,
    InvalidResolution,
    InvalidArgument,
    InvalidGeometry,
    ParseError,
    MemoryAllocationFailed,
    PentagonDistortion,
    OutOfRange,
    EngineUnavailable,
    check_native,
    error_for_code,
    E_SUCCESS,
    E_FAILED,
    E_DOMAIN,
    E_LATLNG_DOMAIN,
    E_RES_DOMAIN,
    E_CELL_INVALID,
    E_VERTEX_INVALID,
    E_PENTAGON,
    E_DUPLICATE_INPUT,
    E_RES_MISMATCH,
    E_MEMORY_ALLOC,
    E_MEMORY_BOUNDS,
    E_OPTION_INVALID,
)


class TestCheckNative:
    """Tests for check_native."""

    def test_success_returns_none(self):
        assert check_native(E_SUCCESS, "latLngToCell") is None

    @pytest.mark.parametrize("code,error_class", [
        (E_FAILED, OutOfRange),
        (E_DOMAIN, OutOfRange),
        (E_LATLNG_DOMAIN, InvalidArgument),
        (E_RES_DOMAIN, InvalidResolution),
        (E_CELL_INVALID, InvalidIndex),
        (E_VERTEX_INVALID, InvalidIndex),
        (E_PENTAGON, PentagonDistortion),
        (E_DUPLICATE_INPUT, InvalidArgument),
        (E_RES_MISMATCH, InvalidResolution),
        (E_MEMORY_ALLOC, MemoryAllocationFailed),
        (E_MEMORY_BOUNDS, MemoryAllocationFailed),
        (E_OPTION_INVALID, InvalidArgument),
    ])
    def test_code_maps_to_error(self, code, error_class):
        with pytest.raises(error_class) as info:
            check_native(code, "someCall")
        assert info.value.code == code

    def test_message_names_operation_and_code(self):
        error = error_for_code(E_PENTAGON, "gridRingUnsafe")
        assert str(error) == "gridRingUnsafe failed: E_PENTAGON"

    def test_unknown_code_is_base_error(self):
        error = error_for_code(99, "someCall")
        assert type(error) is H3SafeError
        assert "unknown error 99" in str(error)


class TestTaxonomy:
    """Tests for the error class hierarchy."""

    def test_all_subclass_base(self):
        for error_class in (
            InvalidIndex, InvalidResolution, InvalidArgument, InvalidGeometry,
            ParseError, MemoryAllocationFailed, PentagonDistortion, OutOfRange,
            EngineUnavailable,
        ):
            assert issubclass(error_class, H3SafeError)

    def test_input_errors_are_value_errors(self):
        for error_class in (InvalidIndex, InvalidResolution, InvalidArgument,
                            InvalidGeometry, ParseError):
            assert issubclass(error_class, ValueError)

    def test_exit_codes_are_distinct(self):
        classes = [
            H3SafeError, EngineUnavailable, InvalidIndex, InvalidResolution,
            InvalidArgument, InvalidGeometry, ParseError, MemoryAllocationFailed,
            PentagonDistortion, OutOfRange,
        ]
        codes = [error_class.exit_code for error_class in classes]
        assert len(set(codes)) == len(codes)
        assert 0 not in codes
        # 1 is "no command", 2 is an argparse usage error
        assert not {1, 2} & set(codes)
