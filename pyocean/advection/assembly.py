"""
assembly.py

Turns edge / interface flux buffers into concentration tendencies and adds
them to caller-owned arrays.

    T_h[c, k] = sum_e s[c, e] F_h[e, k] / (h[c, k] A[c])
    T_v[c, k] = (F_v[c, k] - F_v[c, k + 1]) / (h[c, k] A[c])

Every flux leaves one control volume and enters its neighbour with the same
value, so the volume-weighted sum of the tendency over a closed domain is
zero up to round-off.
"""

from __future__ import annotations

import numpy as np

from pyocean.mesh import AdvectionMesh


def horizontal_flux_tendency(
    flux_h: np.ndarray, layer_thickness: np.ndarray, mesh: AdvectionMesh
) -> np.ndarray:
    net = mesh.incidence.divergence(flux_h)
    return np.where(mesh.level_mask, net / mesh.control_volumes(layer_thickness), 0.0)


def vertical_flux_tendency(
    flux_v: np.ndarray, layer_thickness: np.ndarray, mesh: AdvectionMesh
) -> np.ndarray:
    net = flux_v[:, :-1] - flux_v[:, 1:]
    return np.where(mesh.level_mask, net / mesh.control_volumes(layer_thickness), 0.0)


def flux_tendency(
    flux_h: np.ndarray, flux_v: np.ndarray, layer_thickness: np.ndarray, mesh: AdvectionMesh
) -> np.ndarray:
    """Full advective tendency of one tracer from its horizontal and vertical fluxes."""
    return horizontal_flux_tendency(flux_h, layer_thickness, mesh) + vertical_flux_tendency(
        flux_v, layer_thickness, mesh
    )


def accumulate(target: np.ndarray, contribution: np.ndarray, mesh: AdvectionMesh) -> None:
    """
    target[c, k] += contribution[c, k] on owned cells and valid layers only.
    Entries outside that set are left bit-for-bit unchanged.
    """
    writable = mesh.level_mask & mesh.owned_mask[:, np.newaxis]
    target[writable] += contribution[writable]
