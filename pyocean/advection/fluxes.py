"""
fluxes.py

Edge and interface advective fluxes of a single tracer field.

All functions take one tracer phi of shape (n_cells, n_vert_levels) and return
flux buffers in volume-flux units (tracer * m^3 / s):

- horizontal: (n_edges, n_vert_levels), positive from cells_on_edge[e, 0] to
  cells_on_edge[e, 1]; zero on levels at or below max_level_edge_top.
- vertical: (n_cells, n_vert_levels + 1) at layer interfaces, positive along
  increasing level index; zero at the sea surface, the sea floor and below.

Horizontal high order (orders 3 and 4):

    phi_e = sum_i (adv_coefs[e, i] + c3 * sign(u) * adv_coefs_3rd[e, i]) * phi[stencil_i]

with c3 = coef_3rd_order for order 3 and c3 = 0 for order 4. Levels outside
high_order_advection_mask use the centred 2nd-order value 0.5 * (phi1 + phi2),
computed exactly as the order-2 scheme does.

Vertical high order, interface k between layers k-1 and k, u along +k:

    flux4 = u * (7 (phi[k] + phi[k-1]) - (phi[k+1] + phi[k-2])) / 12
    flux3 = flux4 + c3 * |u| * ((phi[k+1] - phi[k-2]) - 3 (phi[k] - phi[k-1])) / 12

Interfaces without both phi[k-2] and phi[k+1] inside the column use the
thickness-weighted 2nd-order value.
"""

from __future__ import annotations

import numpy as np

from pyocean.jax_compat import stencil_reconstruct
from pyocean.mesh import AdvectionMesh


def _edge_cells(mesh: AdvectionMesh) -> tuple[np.ndarray, np.ndarray]:
    c1 = mesh.cells_on_edge[:, 0]
    c2 = mesh.cells_on_edge[:, 1]
    return np.where(c1 < 0, 0, c1), np.where(c2 < 0, 0, c2)


def _edge_flux(phi_edge: np.ndarray, normal_thickness_flux: np.ndarray, mesh: AdvectionMesh) -> np.ndarray:
    flux = mesh.dv_edge[:, np.newaxis] * normal_thickness_flux * phi_edge
    return np.where(mesh.edge_level_mask, flux, 0.0)


def _masked(phi: np.ndarray, mesh: AdvectionMesh) -> np.ndarray:
    # values below the sea floor never enter a flux
    return np.where(mesh.level_mask, phi, 0.0)


# ---------------------------- horizontal ---------------------------- #

def centered_edge_value(phi: np.ndarray, mesh: AdvectionMesh) -> np.ndarray:
    c1, c2 = _edge_cells(mesh)
    return 0.5 * (phi[c1] + phi[c2])


def centered_edge_flux(phi: np.ndarray, normal_thickness_flux: np.ndarray, mesh: AdvectionMesh) -> np.ndarray:
    """2nd-order centred horizontal flux."""
    phi = _masked(phi, mesh)
    return _edge_flux(centered_edge_value(phi, mesh), normal_thickness_flux, mesh)


def horizontal_high_order_flux(
    phi: np.ndarray,
    normal_thickness_flux: np.ndarray,
    mesh: AdvectionMesh,
    order: int,
    coef_3rd_order: float,
) -> np.ndarray:
    """Unlimited horizontal flux of the configured order (2, 3 or 4)."""
    phi = _masked(phi, mesh)
    centred = centered_edge_value(phi, mesh)
    if order == 2:
        return _edge_flux(centred, normal_thickness_flux, mesh)

    high = stencil_reconstruct(phi, mesh.adv_cells_for_edge, mesh.adv_coefs)
    if order == 3:
        upwind = stencil_reconstruct(phi, mesh.adv_cells_for_edge, mesh.adv_coefs_3rd)
        high = high + coef_3rd_order * np.sign(normal_thickness_flux) * upwind
    phi_edge = np.where(mesh.high_order_advection_mask, high, centred)
    return _edge_flux(phi_edge, normal_thickness_flux, mesh)


def horizontal_low_order_flux(phi: np.ndarray, normal_thickness_flux: np.ndarray, mesh: AdvectionMesh) -> np.ndarray:
    """Donor-cell (upwind) horizontal flux."""
    phi = _masked(phi, mesh)
    c1, c2 = _edge_cells(mesh)
    u = normal_thickness_flux
    flux = mesh.dv_edge[:, np.newaxis] * (np.maximum(u, 0.0) * phi[c1] + np.minimum(u, 0.0) * phi[c2])
    return np.where(mesh.edge_level_mask, flux, 0.0)


# ----------------------------- vertical ----------------------------- #

def vertical_velocity_along_k(w: np.ndarray, dzdk_positive: bool) -> np.ndarray:
    """Vertical transport velocity in the direction of increasing level index."""
    return w if dzdk_positive else -w


def _padded(field: np.ndarray, width: int) -> np.ndarray:
    return np.pad(field, ((0, 0), (width, width)))


def second_order_interface_value(phi: np.ndarray, layer_thickness: np.ndarray, mesh: AdvectionMesh) -> np.ndarray:
    """
    Thickness-weighted interface value between layers k-1 and k,
    shape (n_cells, n_vert_levels + 1); zero where the interface is not interior.
    """
    n_k = mesh.n_vert_levels
    phip = _padded(_masked(phi, mesh), 1)
    hp = _padded(_masked(layer_thickness, mesh), 1)
    phi_prev, phi_next = phip[:, 0 : n_k + 1], phip[:, 1 : n_k + 2]
    h_prev, h_next = hp[:, 0 : n_k + 1], hp[:, 1 : n_k + 2]
    total = np.where(mesh.interface_mask, h_prev + h_next, 1.0)
    value = (h_next * phi_prev + h_prev * phi_next) / total
    return np.where(mesh.interface_mask, value, 0.0)


def vertical_high_order_flux(
    phi: np.ndarray,
    w: np.ndarray,
    layer_thickness: np.ndarray,
    mesh: AdvectionMesh,
    order: int,
    coef_3rd_order: float,
    dzdk_positive: bool = False,
) -> np.ndarray:
    """Unlimited vertical flux of the configured order (2, 3 or 4)."""
    n_k = mesh.n_vert_levels
    u = vertical_velocity_along_k(np.asarray(w, dtype=float), dzdk_positive)
    flux = u * second_order_interface_value(phi, layer_thickness, mesh)

    if order != 2:
        phip = _padded(_masked(phi, mesh), 2)
        q_im2 = phip[:, 0 : n_k + 1]
        q_im1 = phip[:, 1 : n_k + 2]
        q_i = phip[:, 2 : n_k + 3]
        q_ip1 = phip[:, 3 : n_k + 4]
        flux4 = u * (7.0 * (q_i + q_im1) - (q_ip1 + q_im2)) / 12.0
        if order == 3:
            high = flux4 + coef_3rd_order * np.abs(u) * ((q_ip1 - q_im2) - 3.0 * (q_i - q_im1)) / 12.0
        else:
            high = flux4
        k = np.arange(n_k + 1)
        interior = (
            mesh.interface_mask
            & (k[np.newaxis, :] >= 2)
            & (k[np.newaxis, :] + 1 < mesh.max_level_cell[:, np.newaxis])
        )
        flux = np.where(interior, high, flux)

    flux = mesh.area_cell[:, np.newaxis] * flux
    return np.where(mesh.interface_mask, flux, 0.0)


def vertical_low_order_flux(
    phi: np.ndarray,
    w: np.ndarray,
    mesh: AdvectionMesh,
    dzdk_positive: bool = False,
) -> np.ndarray:
    """Donor-cell vertical flux at interior interfaces."""
    n_k = mesh.n_vert_levels
    u = vertical_velocity_along_k(np.asarray(w, dtype=float), dzdk_positive)
    phip = _padded(_masked(phi, mesh), 1)
    phi_prev, phi_next = phip[:, 0 : n_k + 1], phip[:, 1 : n_k + 2]
    flux = mesh.area_cell[:, np.newaxis] * (np.maximum(u, 0.0) * phi_prev + np.minimum(u, 0.0) * phi_next)
    return np.where(mesh.interface_mask, flux, 0.0)
