"""
jax_compat.py: optional JAX acceleration layer for pyocean tracer advection

Provides:
- JAX enable switch via env OCN_USE_JAX (0/1)
- Compatibility helpers:
    * stencil_reconstruct: jitted weighted gather of a per-level field over
      padded edge stencils (NumPy einsum fallback)
    * gather_levels: fancy-index gather with NO_CELL slots filled
- to_numpy: safe conversion from device arrays to numpy
- is_enabled: query flag
"""
from __future__ import annotations

import os
import numpy as _np

# Global flag; JAX unavailable means the NumPy path
_JAX_ENABLED = False
_JAX = None
_JNP = None
_JAX_BACKEND = "none"  # cpu|gpu|tpu|metal|unknown|none

try:
    _JAX_ENABLED = int(os.getenv("OCN_USE_JAX", "0")) == 1
except ValueError:
    _JAX_ENABLED = False

if _JAX_ENABLED:
    try:
        import jax as _JAX
        import jax.numpy as _JNP
        plat_env = os.getenv("OCN_JAX_PLATFORM")
        if plat_env:
            os.environ.setdefault("JAX_PLATFORM_NAME", plat_env)
        try:
            devs = _JAX.devices()
            if devs:
                _JAX_BACKEND = getattr(devs[0], "platform", "unknown")
            else:
                _JAX_BACKEND = _JAX.default_backend() or "unknown"
        except RuntimeError:
            _JAX_BACKEND = "unknown"
        # Enable only on real accelerators unless forced
        if (_JAX_BACKEND in ("gpu", "cuda", "tpu")) or (os.getenv("OCN_JAX_FORCE", "0") == "1"):
            _JAX_ENABLED = True
        else:
            _JAX_ENABLED = False
    except ImportError:
        _JAX = None
        _JNP = None
        _JAX_ENABLED = False
        _JAX_BACKEND = "none"


def is_enabled() -> bool:
    return _JAX_ENABLED


def backend() -> str:
    """Return detected JAX backend string: gpu|cpu|tpu|metal|unknown|none"""
    return _JAX_BACKEND


def to_numpy(x):
    """Convert a JAX array (if enabled) to a writeable float NumPy array."""
    arr = _np.asarray(x)
    if not arr.flags.writeable:
        arr = arr.copy()
    return arr


def gather_levels(phi, cells, fill: float = 0.0):
    """
    phi: (n_cells, n_levels); cells: (..., ) int with NO_CELL (-1) slots.
    Returns phi[cells] with shape cells.shape + (n_levels,), `fill` on -1 slots.
    """
    cells = _np.asarray(cells)
    valid = cells >= 0
    out = phi[_np.where(valid, cells, 0)]
    return _np.where(valid[..., _np.newaxis], out, fill)


if _JAX_ENABLED:
    @_JAX.jit
    def _reconstruct_jax(phi_s, weights):
        return _JNP.einsum("esk,es->ek", phi_s, weights)


def stencil_reconstruct(phi, cells, weights):
    """
    Weighted stencil sum per edge and level:

        out[e, k] = sum_s weights[e, s] * phi[cells[e, s], k]

    Padding slots (cells == -1) must carry zero weight; they read as 0.
    """
    phi_s = gather_levels(phi, cells)
    weights = _np.asarray(weights, dtype=float)
    if _JAX_ENABLED:
        return to_numpy(_reconstruct_jax(_JNP.asarray(phi_s), _JNP.asarray(weights)))
    return _np.einsum("esk,es->ek", phi_s, weights)
