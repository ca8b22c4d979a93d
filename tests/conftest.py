# tests/conftest.py
from __future__ import annotations

import pytest

from roundfour.config import load_settings
from roundfour.fields import NumberField
from roundfour.maxord import DEFAULT_CACHE
from roundfour.orders import equation_order
from roundfour.runtime import APPLY, reset


@pytest.fixture(autouse=True)
def debug_runtime(monkeypatch, tmp_path):
    """Fresh workspace and a debug runtime (ring checks on) for every test."""
    monkeypatch.setenv("ROUNDFOUR_HOME", str(tmp_path / "ws"))
    reset()
    APPLY(load_settings("debug"))
    DEFAULT_CACHE.clear()
    yield
    DEFAULT_CACHE.clear()
    reset()


@pytest.fixture
def sqrt5():
    """K = Q(a), a^2 = 5, with its equation order Z[a] (disc 20)."""
    K = NumberField("x**2 - 5")
    return K, equation_order(K)


@pytest.fixture
def gauss():
    """K = Q(i) via x^2 + 1; Z[i] is already maximal."""
    K = NumberField("x**2 + 1")
    return K, equation_order(K)
