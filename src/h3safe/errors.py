"""
Typed errors for the native boundary.

Every failure that can come out of this package is one of the classes below.
Native H3 error codes are translated by ``check_native`` as soon as a call
returns, so no integer error code ever reaches a caller.

Each class carries a distinct ``exit_code`` used by the command-line tool.
"""

import logging
from typing import Dict, Optional, Type

logger = logging.getLogger(__name__)


# H3 v4 error codes (h3api.h)
E_SUCCESS = 0
E_FAILED = 1
E_DOMAIN = 2
E_LATLNG_DOMAIN = 3
E_RES_DOMAIN = 4
E_CELL_INVALID = 5
E_DIR_EDGE_INVALID = 6
E_UNDIR_EDGE_INVALID = 7
E_VERTEX_INVALID = 8
E_PENTAGON = 9
E_DUPLICATE_INPUT = 10
E_NOT_NEIGHBORS = 11
E_RES_MISMATCH = 12
E_MEMORY_ALLOC = 13
E_MEMORY_BOUNDS = 14
E_OPTION_INVALID = 15


class H3SafeError(Exception):
    """Base class for all errors raised by h3safe."""

    exit_code = 4

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class EngineUnavailable(H3SafeError):
    """No usable native engine could be loaded."""

    exit_code = 3


class InvalidIndex(H3SafeError, ValueError):
    """The handle failed the native validity predicate."""

    exit_code = 10


class InvalidResolution(H3SafeError, ValueError):
    """Resolution outside [0, 15] or in the wrong direction for the operation."""

    exit_code = 11


class InvalidArgument(H3SafeError, ValueError):
    """A precondition on a plain argument was violated."""

    exit_code = 12


class InvalidGeometry(H3SafeError, ValueError):
    """Degenerate or malformed polygon input."""

    exit_code = 13


class ParseError(H3SafeError, ValueError):
    """Malformed textual index."""

    exit_code = 14


class MemoryAllocationFailed(H3SafeError):
    """A buffer or native structure could not be allocated."""

    exit_code = 15


class PentagonDistortion(H3SafeError):
    """The engine hit a pentagon during a pentagon-unsafe traversal."""

    exit_code = 16


class OutOfRange(H3SafeError):
    """The engine could not compute a grid result for the given inputs."""

    exit_code = 17


_CODE_NAMES: Dict[int, str] = {
    E_FAILED: "E_FAILED",
    E_DOMAIN: "E_DOMAIN",
    E_LATLNG_DOMAIN: "E_LATLNG_DOMAIN",
    E_RES_DOMAIN: "E_RES_DOMAIN",
    E_CELL_INVALID: "E_CELL_INVALID",
    E_DIR_EDGE_INVALID: "E_DIR_EDGE_INVALID",
    E_UNDIR_EDGE_INVALID: "E_UNDIR_EDGE_INVALID",
    E_VERTEX_INVALID: "E_VERTEX_INVALID",
    E_PENTAGON: "E_PENTAGON",
    E_DUPLICATE_INPUT: "E_DUPLICATE_INPUT",
    E_NOT_NEIGHBORS: "E_NOT_NEIGHBORS",
    E_RES_MISMATCH: "E_RES_MISMATCH",
    E_MEMORY_ALLOC: "E_MEMORY_ALLOC",
    E_MEMORY_BOUNDS: "E_MEMORY_BOUNDS",
    E_OPTION_INVALID: "E_OPTION_INVALID",
}

_CODE_ERRORS: Dict[int, Type[H3SafeError]] = {
    E_FAILED: OutOfRange,
    E_DOMAIN: OutOfRange,
    E_LATLNG_DOMAIN: InvalidArgument,
    E_RES_DOMAIN: InvalidResolution,
    E_CELL_INVALID: InvalidIndex,
    E_DIR_EDGE_INVALID: InvalidIndex,
    E_UNDIR_EDGE_INVALID: InvalidIndex,
    E_VERTEX_INVALID: InvalidIndex,
    E_PENTAGON: PentagonDistortion,
    E_DUPLICATE_INPUT: InvalidArgument,
    E_NOT_NEIGHBORS: OutOfRange,
    E_RES_MISMATCH: InvalidResolution,
    E_MEMORY_ALLOC: MemoryAllocationFailed,
    E_MEMORY_BOUNDS: MemoryAllocationFailed,
    E_OPTION_INVALID: InvalidArgument,
}


def error_for_code(code: int, operation: str) -> H3SafeError:
    """
    Build the typed error for a non-zero native error code.

    Args:
        code: H3Error value returned by the engine
        operation: Name of the native call, used in the message

    Returns:
        An H3SafeError subclass instance (not raised)
    """
    name = _CODE_NAMES.get(code, f"unknown error {code}")
    error_class = _CODE_ERRORS.get(code, H3SafeError)
    return error_class(f"{operation} failed: {name}", code=code)


def check_native(code: int, operation: str) -> None:
    """Raise the typed error for ``code`` unless it is E_SUCCESS."""
    if code == E_SUCCESS:
        return
    logger.debug("native call %s returned %d", operation, code)
    raise error_for_code(code, operation)
