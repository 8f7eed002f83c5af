"""Tests for engine configuration and selection."""

import pytest

from h3safe.config import EngineConfig
from h3safe.engine import create_engine, resolve_engine
from h3safe.errors import EngineUnavailable
from h3safe.h3py_engine import H3PyEngine


class TestEngineConfig:
    """Tests for EngineConfig."""

    def test_defaults(self):
        config = EngineConfig()
        assert config.engine == "auto"
        assert config.library_path is None
        assert config.max_buffer_cells is None

    def test_invalid_engine(self):
        with pytest.raises(ValueError, match="engine must be one of"):
            EngineConfig(engine="gpu")

    def test_invalid_buffer_cap(self):
        with pytest.raises(ValueError):
            EngineConfig(max_buffer_cells=0)

    def test_from_env(self):
        config = EngineConfig.from_env({
            "H3SAFE_ENGINE": "H3PY",
            "H3SAFE_LIBRARY": "/opt/lib/libh3.so",
            "H3SAFE_MAX_BUFFER_CELLS": "1000",
        })
        assert config.engine == "h3py"
        assert config.library_path == "/opt/lib/libh3.so"
        assert config.max_buffer_cells == 1000

    def test_from_empty_env(self):
        assert EngineConfig.from_env({}) == EngineConfig()


class TestCreateEngine:
    """Tests for engine construction."""

    def test_h3py(self):
        engine = create_engine(EngineConfig(engine="h3py", max_buffer_cells=50))
        assert isinstance(engine, H3PyEngine)
        assert engine.max_buffer_cells == 50

    def test_libh3_missing_raises(self):
        config = EngineConfig(engine="libh3", library_path="/nonexistent/libh3.so")
        with pytest.raises(EngineUnavailable):
            create_engine(config)

    def test_auto_falls_back(self):
        config = EngineConfig(engine="auto", library_path="/nonexistent/libh3.so")
        assert isinstance(create_engine(config), H3PyEngine)

    def test_resolve_prefers_explicit(self, engine):
        assert resolve_engine(engine) is engine
