from __future__ import annotations

"""
Tracer advection diagnostics.

Purpose
- Side-effect-free integrals and checks used by tests, the demo script and the
  optional monotonicity report of the limited scheme.
- Volume weights are the layer volumes h * A on valid layers (zero below the
  sea floor), so sums are in tracer * m^3 and step-wise deltas are exact
  budget residuals.

Notes
- All functions are pure (no global mutation). Callers decide where to log/print.
"""

import numpy as np

from pyocean.constants import MONOTONICITY_EPS
from pyocean.mesh import AdvectionMesh


def layer_volumes(layer_thickness: np.ndarray, mesh: AdvectionMesh, owned_only: bool = True) -> np.ndarray:
    """
    Layer volumes (n_cells, n_vert_levels); zero on invalid layers and, with
    owned_only, on halo cells.
    """
    vol = np.where(mesh.level_mask, layer_thickness * mesh.area_cell[:, np.newaxis], 0.0)
    if owned_only:
        vol = np.where(mesh.owned_mask[:, np.newaxis], vol, 0.0)
    return vol


def tracer_content(tracers: np.ndarray, layer_thickness: np.ndarray, mesh: AdvectionMesh) -> np.ndarray:
    """Total tracer amount sum(V * phi) per tracer, shape (n_tracers,)."""
    vol = layer_volumes(layer_thickness, mesh)
    phi = np.where(vol[np.newaxis] > 0.0, tracers, 0.0)
    return np.sum(phi * vol[np.newaxis], axis=(1, 2))


def tendency_integral(tend: np.ndarray, layer_thickness: np.ndarray, mesh: AdvectionMesh) -> np.ndarray:
    """
    Volume-weighted tendency sum(V * T) per tracer. Zero (to round-off) for
    advection on a closed or periodic domain.
    """
    return tracer_content(tend, layer_thickness, mesh)


def monotonicity_violations(
    phi_new: np.ndarray,
    phi_min: np.ndarray,
    phi_max: np.ndarray,
    mask: np.ndarray,
    eps: float = MONOTONICITY_EPS,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Boolean (under, over) maps of entries leaving [phi_min - eps, phi_max + eps]
    where mask is True.
    """
    under = mask & (phi_new < phi_min - eps)
    over = mask & (phi_new > phi_max + eps)
    return under, over


def advective_cfl(
    normal_thickness_flux: np.ndarray,
    w: np.ndarray,
    layer_thickness: np.ndarray,
    mesh: AdvectionMesh,
    dt: float,
    dzdk_positive: bool = False,
) -> float:
    """
    Largest fraction of a control volume emptied in one step by outgoing
    horizontal and vertical transport. Donor-cell updates stay bounded for
    values <= 1.
    """
    flux_h = np.where(mesh.edge_level_mask, mesh.dv_edge[:, np.newaxis] * normal_thickness_flux, 0.0)
    out = mesh.incidence.outflow(flux_h)
    u = w if dzdk_positive else -w
    u = np.where(mesh.interface_mask, u, 0.0) * mesh.area_cell[:, np.newaxis]
    out = out + np.maximum(-u[:, :-1], 0.0) + np.maximum(u[:, 1:], 0.0)
    ratio = np.where(mesh.level_mask, dt * out / mesh.control_volumes(layer_thickness), 0.0)
    return float(np.max(ratio)) if ratio.size else 0.0
