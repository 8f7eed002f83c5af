"""Shared fixtures."""

import pytest

from h3safe.h3py_engine import H3PyEngine
from h3safe.index import H3Index


@pytest.fixture
def engine():
    """Fresh h3-py backed engine with an empty allocation registry."""
    return H3PyEngine()


@pytest.fixture
def sf_cell():
    """Resolution 9 hexagon in San Francisco."""
    return H3Index(0x8928308280FFFFF)


@pytest.fixture
def pentagon():
    """Resolution 2 pentagon."""
    return H3Index(0x821C07FFFFFFFFF)
