"""
pytest configuration for the tracer advection tests

Goals:
- keep tests fast and deterministic
- run the NumPy path (no JAX) unless a test enables it explicitly
- start every test from the default OCN_* advection settings
"""

import os
import sys

import pytest

# Ensure project root on sys.path for 'pyocean' and 'scripts' imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture(autouse=True)
def _advection_env(monkeypatch):
    for name in (
        "OCN_DISABLE_TR_ADV",
        "OCN_MONOTONIC",
        "OCN_HORIZ_TRACER_ADV_ORDER",
        "OCN_VERT_TRACER_ADV_ORDER",
        "OCN_COEF_3RD_ORDER",
        "OCN_DZDK_POSITIVE",
        "OCN_NUM_HALOS",
        "OCN_CHECK_TRACER_MONOTONICITY",
        "OCN_TRACER_ADV_DIAG",
    ):
        monkeypatch.delenv(name, raising=False)
    # Force non-interactive backend for matplotlib (avoid display requirements)
    monkeypatch.setenv("MPLBACKEND", os.getenv("MPLBACKEND", "Agg"))
    # Keep JAX path deterministic; tests validate boolean API only
    monkeypatch.setenv("OCN_USE_JAX", os.getenv("OCN_USE_JAX", "0"))
    yield
