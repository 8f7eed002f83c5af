"""
Engine selection.

Public operations accept an optional ``engine=`` argument. When it is left
out they use ``default_engine()``, built once from the environment.
"""

import logging
from functools import lru_cache
from typing import Optional

from .config import EngineConfig
from .errors import EngineUnavailable
from .native import NativeEngine, LibH3Engine, load_library
from .h3py_engine import H3PyEngine

logger = logging.getLogger(__name__)


def create_engine(config: Optional[EngineConfig] = None) -> NativeEngine:
    """
    Build a native engine.

    Args:
        config: Engine configuration (defaults to EngineConfig())

    Returns:
        LibH3Engine or H3PyEngine

    Raises:
        EngineUnavailable: engine="libh3" and the shared library cannot be used
    """
    config = config or EngineConfig()

    if config.engine == "h3py":
        return H3PyEngine(max_buffer_cells=config.max_buffer_cells)

    try:
        lib = load_library(config.library_path)
    except EngineUnavailable as exc:
        if config.engine == "libh3":
            raise
        logger.info("libh3 unavailable (%s); using the h3 package", exc)
        return H3PyEngine(max_buffer_cells=config.max_buffer_cells)

    return LibH3Engine(lib, max_buffer_cells=config.max_buffer_cells)


@lru_cache(maxsize=1)
def default_engine() -> NativeEngine:
    """Engine built from the environment, created on first use."""
    return create_engine(EngineConfig.from_env())


def resolve_engine(engine: Optional[NativeEngine] = None) -> NativeEngine:
    return engine if engine is not None else default_engine()
