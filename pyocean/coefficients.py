# pyocean/coefficients.py

"""
Setup of tracer advection stencils and reconstruction coefficients.

For each edge the high-order edge value of a tracer is a weighted sum over a
stencil made of the two cells sharing the edge and their neighbours:

    phi_edge = sum_i (adv_coefs[e, i] + coef_3rd * sign(u) * adv_coefs_3rd[e, i]) * phi[stencil_i]

with
    adv_coefs     = 1/2 at cells 1 and 2  - dc^2 / 12 * (d2_1 + d2_2)   (centred + 4th order)
    adv_coefs_3rd =                       - dc^2 / 12 * (d2_1 - d2_2)   (upwind correction)

where d2_j are the second derivatives of the tracer along the edge normal at
cell j, obtained from a quadratic least-squares fit over cell j and its
neighbours. On a uniform 1-D line this reduces to the classic
(7 (q_i + q_{i-1}) - (q_{i+1} + q_{i-2})) / 12 fourth-order interpolant.

Edges that lack a complete stencil (domain walls, outermost halo) get no
high-order weights; the flux reconstructor falls back to second order there.
"""

from __future__ import annotations

import numpy as np

from .constants import NO_CELL
from .mesh import AdvectionMesh


def _wrap(d: np.ndarray, period: float | None) -> np.ndarray:
    if not period:
        return d
    return d - period * np.round(d / period)


def derive_cell_connectivity(cells_on_edge: np.ndarray, n_cells: int):
    """
    Build edges_on_cell, cells_on_cell, n_edges_on_cell and edge_sign_on_cell
    from cells_on_edge. Edge order around a cell follows edge numbering.
    """
    cells_on_edge = np.asarray(cells_on_edge, dtype=np.int64)
    slots: list[list[tuple[int, int, float]]] = [[] for _ in range(n_cells)]
    for e, (c1, c2) in enumerate(cells_on_edge):
        if c1 != NO_CELL:
            slots[c1].append((e, int(c2), -1.0))
        if c2 != NO_CELL:
            slots[c2].append((e, int(c1), 1.0))

    max_edges = max(1, max(len(s) for s in slots))
    edges_on_cell = np.full((n_cells, max_edges), NO_CELL, dtype=np.int64)
    cells_on_cell = np.full((n_cells, max_edges), NO_CELL, dtype=np.int64)
    edge_sign_on_cell = np.zeros((n_cells, max_edges), dtype=float)
    n_edges_on_cell = np.zeros(n_cells, dtype=np.int64)
    for c, s in enumerate(slots):
        n_edges_on_cell[c] = len(s)
        for i, (e, nb, sign) in enumerate(s):
            edges_on_cell[c, i] = e
            cells_on_cell[c, i] = nb
            edge_sign_on_cell[c, i] = sign
    return edges_on_cell, cells_on_cell, n_edges_on_cell, edge_sign_on_cell


def second_derivative_weights(
    points: np.ndarray,
    x_cell: np.ndarray,
    y_cell: np.ndarray,
    normal: tuple[float, float],
    period: tuple[float | None, float | None] = (None, None),
) -> np.ndarray:
    """
    Weights w such that sum(w * phi[points]) approximates d2(phi)/dn2 at points[0].

    A quadratic a0 + a1 x + a2 y + a3 x^2 + a4 x y + a5 y^2 is fitted in the
    minimum-norm least-squares sense (pseudo-inverse), so under-determined
    stencils (quads, 1-D lines) still give the exact second derivative along
    the directions they resolve.
    """
    dx = _wrap(x_cell[points] - x_cell[points[0]], period[0])
    dy = _wrap(y_cell[points] - y_cell[points[0]], period[1])
    scale = float(np.max(np.hypot(dx, dy)))
    if scale <= 0.0:
        return np.zeros(len(points))
    xs, ys = dx / scale, dy / scale
    design = np.column_stack([np.ones_like(xs), xs, ys, xs * xs, xs * ys, ys * ys])
    pinv = np.linalg.pinv(design)
    nx, ny = normal
    d2 = 2.0 * (nx * nx * pinv[3] + nx * ny * pinv[4] + ny * ny * pinv[5])
    return d2 / (scale * scale)


def _cell_ring(c: int, cells_on_cell: np.ndarray, n_edges_on_cell: np.ndarray) -> np.ndarray:
    return cells_on_cell[c, : n_edges_on_cell[c]]


def _has_full_ring(c: int, cells_on_cell: np.ndarray, n_edges_on_cell: np.ndarray) -> bool:
    ring = _cell_ring(c, cells_on_cell, n_edges_on_cell)
    return len(ring) >= 2 and bool(np.all(ring != NO_CELL))


def compute_advection_coefficients(
    cells_on_edge: np.ndarray,
    cells_on_cell: np.ndarray,
    n_edges_on_cell: np.ndarray,
    x_cell: np.ndarray,
    y_cell: np.ndarray,
    dc_edge: np.ndarray,
    period: tuple[float | None, float | None] = (None, None),
):
    """
    Return (n_adv_cells_for_edge, adv_cells_for_edge, adv_coefs, adv_coefs_3rd).

    Stencils are the sorted unique union of both edge cells and their
    neighbour rings. Edges whose cells do not both have a complete ring get
    an empty stencil.
    """
    n_edges = cells_on_edge.shape[0]
    stencils: list[np.ndarray] = []
    coefs: list[np.ndarray] = []
    coefs3: list[np.ndarray] = []

    for e in range(n_edges):
        c1, c2 = (int(c) for c in cells_on_edge[e])
        if (
            c1 == NO_CELL
            or c2 == NO_CELL
            or not _has_full_ring(c1, cells_on_cell, n_edges_on_cell)
            or not _has_full_ring(c2, cells_on_cell, n_edges_on_cell)
        ):
            stencils.append(np.zeros(0, dtype=np.int64))
            coefs.append(np.zeros(0))
            coefs3.append(np.zeros(0))
            continue

        ring1 = _cell_ring(c1, cells_on_cell, n_edges_on_cell)
        ring2 = _cell_ring(c2, cells_on_cell, n_edges_on_cell)
        stencil = np.unique(np.concatenate([[c1, c2], ring1, ring2]))
        pos = {int(c): i for i, c in enumerate(stencil)}

        # Edge normal from cell 1 to cell 2
        nx = float(_wrap(x_cell[c2] - x_cell[c1], period[0]))
        ny = float(_wrap(y_cell[c2] - y_cell[c1], period[1]))
        norm = np.hypot(nx, ny)
        normal = (nx / norm, ny / norm)

        pts1 = np.concatenate([[c1], ring1])
        pts2 = np.concatenate([[c2], ring2])
        d2_1 = second_derivative_weights(pts1, x_cell, y_cell, normal, period)
        d2_2 = second_derivative_weights(pts2, x_cell, y_cell, normal, period)

        a = np.zeros(len(stencil))
        a3 = np.zeros(len(stencil))
        for c, wgt in zip(pts1, d2_1):
            a[pos[int(c)]] += wgt
            a3[pos[int(c)]] += wgt
        for c, wgt in zip(pts2, d2_2):
            a[pos[int(c)]] += wgt
            a3[pos[int(c)]] -= wgt

        dc2 = float(dc_edge[e]) ** 2
        a *= -dc2 / 12.0
        a3 *= -dc2 / 12.0
        # 2nd-order centred part
        a[pos[c1]] += 0.5
        a[pos[c2]] += 0.5

        stencils.append(stencil)
        coefs.append(a)
        coefs3.append(a3)

    max_adv = max(1, max(len(s) for s in stencils))
    n_adv = np.array([len(s) for s in stencils], dtype=np.int64)
    adv_cells = np.full((n_edges, max_adv), NO_CELL, dtype=np.int64)
    adv_coefs = np.zeros((n_edges, max_adv))
    adv_coefs_3rd = np.zeros((n_edges, max_adv))
    for e, (s, a, a3) in enumerate(zip(stencils, coefs, coefs3)):
        adv_cells[e, : len(s)] = s
        adv_coefs[e, : len(s)] = a
        adv_coefs_3rd[e, : len(s)] = a3
    return n_adv, adv_cells, adv_coefs, adv_coefs_3rd


def high_order_mask(
    n_adv_cells_for_edge: np.ndarray,
    adv_cells_for_edge: np.ndarray,
    max_level_cell: np.ndarray,
    max_level_edge_top: np.ndarray,
    n_vert_levels: int,
) -> np.ndarray:
    """
    (n_edges, n_vert_levels) mask of levels where every stencil cell is wet.
    """
    has_stencil = n_adv_cells_for_edge > 0
    safe = np.where(adv_cells_for_edge == NO_CELL, 0, adv_cells_for_edge)
    levels = np.where(adv_cells_for_edge == NO_CELL, np.iinfo(np.int64).max, max_level_cell[safe])
    stencil_bottom = np.min(levels, axis=1)
    bottom = np.where(has_stencil, np.minimum(stencil_bottom, max_level_edge_top), 0)
    k = np.arange(n_vert_levels)
    return k[np.newaxis, :] < bottom[:, np.newaxis]


def build_advection_mesh(
    cells_on_edge: np.ndarray,
    x_cell: np.ndarray,
    y_cell: np.ndarray,
    area_cell: np.ndarray,
    dv_edge: np.ndarray,
    max_level_cell: np.ndarray,
    n_vert_levels: int,
    dc_edge: np.ndarray | None = None,
    period: tuple[float | None, float | None] = (None, None),
    n_cells_array: tuple[int, ...] | None = None,
) -> AdvectionMesh:
    """
    Assemble an AdvectionMesh from connectivity, cell centres and geometry.

    Args:
        cells_on_edge: (n_edges, 2) cell pairs, NO_CELL for a missing side
        x_cell, y_cell: planar cell-centre coordinates
        area_cell: horizontal cell areas
        dv_edge: edge lengths
        max_level_cell: number of valid layers per column
        n_vert_levels: layers per column
        dc_edge: centre-to-centre distances; derived from coordinates if None
        period: periodic domain lengths in x and y (None = not periodic)
        n_cells_array: cumulative owned/halo cell counts; defaults to all owned
    """
    cells_on_edge = np.asarray(cells_on_edge, dtype=np.int64)
    x_cell = np.asarray(x_cell, dtype=float)
    y_cell = np.asarray(y_cell, dtype=float)
    area_cell = np.asarray(area_cell, dtype=float)
    max_level_cell = np.asarray(max_level_cell, dtype=np.int64)
    n_cells = area_cell.shape[0]

    edges_on_cell, cells_on_cell, n_edges_on_cell, edge_sign_on_cell = derive_cell_connectivity(
        cells_on_edge, n_cells
    )

    c1 = cells_on_edge[:, 0]
    c2 = cells_on_edge[:, 1]
    interior = (c1 != NO_CELL) & (c2 != NO_CELL)
    s1 = np.where(c1 == NO_CELL, 0, c1)
    s2 = np.where(c2 == NO_CELL, 0, c2)

    if dc_edge is None:
        dx = _wrap(x_cell[s2] - x_cell[s1], period[0])
        dy = _wrap(y_cell[s2] - y_cell[s1], period[1])
        dc_edge = np.where(interior, np.hypot(dx, dy), 0.0)
    dc_edge = np.asarray(dc_edge, dtype=float)

    max_level_edge_top = np.where(
        interior, np.minimum(max_level_cell[s1], max_level_cell[s2]), 0
    ).astype(np.int64)

    n_adv, adv_cells, adv_coefs, adv_coefs_3rd = compute_advection_coefficients(
        cells_on_edge, cells_on_cell, n_edges_on_cell, x_cell, y_cell, dc_edge, period
    )
    mask = high_order_mask(n_adv, adv_cells, max_level_cell, max_level_edge_top, n_vert_levels)

    return AdvectionMesh(
        cells_on_edge=cells_on_edge,
        edges_on_cell=edges_on_cell,
        cells_on_cell=cells_on_cell,
        n_edges_on_cell=n_edges_on_cell,
        edge_sign_on_cell=edge_sign_on_cell,
        dv_edge=np.asarray(dv_edge, dtype=float),
        dc_edge=dc_edge,
        area_cell=area_cell,
        n_vert_levels=int(n_vert_levels),
        max_level_cell=max_level_cell,
        max_level_edge_top=max_level_edge_top,
        n_adv_cells_for_edge=n_adv,
        adv_cells_for_edge=adv_cells,
        adv_coefs=adv_coefs,
        adv_coefs_3rd=adv_coefs_3rd,
        high_order_advection_mask=mask,
        n_cells_array=tuple(int(n) for n in n_cells_array) if n_cells_array else (n_cells,),
    )
