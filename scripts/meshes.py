# scripts/meshes.py

"""
Small planar meshes and non-divergent transport fields for demos and tests.

- ring_mesh: 1-D periodic row of cells (edge e joins cell e and e+1)
- quad_mesh: nx * ny rectangles, periodic in x, periodic or walled in y
- uniform_flow: per-layer uniform velocity (U_k, V_k), no vertical motion
- overturning_flow: x-z overturning cell on a ring mesh from a streamfunction

Transport fields are discretely non-divergent on the given mesh, so uniform
tracers stay uniform under advection.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from pyocean.coefficients import build_advection_mesh
from pyocean.constants import NO_CELL
from pyocean.mesh import AdvectionMesh


@dataclass
class DemoMesh:
    mesh: AdvectionMesh
    x_cell: np.ndarray
    y_cell: np.ndarray
    edge_normal: np.ndarray  # (n_edges, 2) unit normal from cell 1 to cell 2
    shape: tuple[int, int]  # (nx, ny)

    @property
    def n_levels(self) -> int:
        return self.mesh.n_vert_levels


def _levels(max_level_cell, n_cells: int, n_levels: int) -> np.ndarray:
    if max_level_cell is None:
        return np.full(n_cells, n_levels, dtype=np.int64)
    return np.asarray(max_level_cell, dtype=np.int64)


def ring_mesh(
    n_cells: int,
    n_levels: int = 1,
    dx: float = 1.0,
    max_level_cell=None,
    n_cells_array: tuple[int, ...] | None = None,
) -> DemoMesh:
    x_cell = (np.arange(n_cells) + 0.5) * dx
    y_cell = np.zeros(n_cells)
    cells_on_edge = np.stack([np.arange(n_cells), (np.arange(n_cells) + 1) % n_cells], axis=1)
    mesh = build_advection_mesh(
        cells_on_edge,
        x_cell,
        y_cell,
        area_cell=np.full(n_cells, dx),
        dv_edge=np.ones(n_cells),
        max_level_cell=_levels(max_level_cell, n_cells, n_levels),
        n_vert_levels=n_levels,
        period=(n_cells * dx, None),
        n_cells_array=n_cells_array,
    )
    normal = np.tile([1.0, 0.0], (n_cells, 1))
    return DemoMesh(mesh=mesh, x_cell=x_cell, y_cell=y_cell, edge_normal=normal, shape=(n_cells, 1))


def quad_mesh(
    nx: int,
    ny: int,
    n_levels: int = 1,
    dx: float = 1.0,
    dy: float | None = None,
    periodic_y: bool = True,
    max_level_cell=None,
) -> DemoMesh:
    """
    Cells are numbered c = j * nx + i. Edges: x-normal edges first (cell
    (i, j) to (i + 1, j)), then y-normal edges (cell (i, j) to (i, j + 1)).
    Without periodic_y the south and north walls carry boundary edges whose
    missing side is NO_CELL.
    """
    dy = dx if dy is None else dy
    n_cells = nx * ny
    ii, jj = np.meshgrid(np.arange(nx), np.arange(ny))
    ii, jj = ii.ravel(), jj.ravel()
    x_cell = (ii + 0.5) * dx
    y_cell = (jj + 0.5) * dy

    def cell(i, j):
        return (j % ny) * nx + (i % nx)

    pairs, normals, dv = [], [], []
    for j in range(ny):
        for i in range(nx):
            pairs.append((cell(i, j), cell(i + 1, j)))
            normals.append((1.0, 0.0))
            dv.append(dy)
    if periodic_y:
        for j in range(ny):
            for i in range(nx):
                pairs.append((cell(i, j), cell(i, j + 1)))
                normals.append((0.0, 1.0))
                dv.append(dx)
    else:
        for i in range(nx):
            pairs.append((NO_CELL, cell(i, 0)))
            normals.append((0.0, 1.0))
            dv.append(dx)
        for j in range(ny - 1):
            for i in range(nx):
                pairs.append((cell(i, j), cell(i, j + 1)))
                normals.append((0.0, 1.0))
                dv.append(dx)
        for i in range(nx):
            pairs.append((cell(i, ny - 1), NO_CELL))
            normals.append((0.0, 1.0))
            dv.append(dx)

    mesh = build_advection_mesh(
        np.array(pairs, dtype=np.int64),
        x_cell,
        y_cell,
        area_cell=np.full(n_cells, dx * dy),
        dv_edge=np.array(dv),
        max_level_cell=_levels(max_level_cell, n_cells, n_levels),
        n_vert_levels=n_levels,
        period=(nx * dx, ny * dy if periodic_y else None),
    )
    return DemoMesh(mesh=mesh, x_cell=x_cell, y_cell=y_cell, edge_normal=np.array(normals), shape=(nx, ny))


def uniform_flow(demo: DemoMesh, layer_thickness: np.ndarray, u, v=0.0) -> tuple[np.ndarray, np.ndarray]:
    """
    Per-layer uniform velocity; layer_thickness must be horizontally uniform
    for the result to be non-divergent. Returns (normal_thickness_flux, w).
    """
    mesh = demo.mesh
    n_k = mesh.n_vert_levels
    u = np.broadcast_to(np.asarray(u, dtype=float), (n_k,))
    v = np.broadcast_to(np.asarray(v, dtype=float), (n_k,))
    normal_velocity = demo.edge_normal[:, :1] * u[np.newaxis, :] + demo.edge_normal[:, 1:] * v[np.newaxis, :]
    h_edge = np.broadcast_to(layer_thickness[0], (mesh.n_edges, n_k))
    normal_thickness_flux = np.where(mesh.edge_level_mask, normal_velocity * h_edge, 0.0)
    w = np.zeros((mesh.n_cells, n_k + 1))
    return normal_thickness_flux, w


def overturning_flow(demo: DemoMesh, amplitude: float = 1.0, dzdk_positive: bool = False):
    """
    Closed x-z overturning cell on a ring mesh with a flat bottom.

    psi[e, k] is a streamfunction at edge e and interface k (zero at the
    surface and the bottom); the horizontal volume transport through edge e in
    layer k is psi[e, k] - psi[e, k + 1] and the transport across interface k
    of cell c (along +k) is psi[c, k] - psi[c - 1, k].
    Returns (normal_thickness_flux, w).
    """
    mesh = demo.mesh
    n, n_k = mesh.n_cells, mesh.n_vert_levels
    x_edge = (np.arange(n) + 1.0) / n
    z = np.arange(n_k + 1) / n_k
    psi = amplitude * np.sin(2.0 * np.pi * x_edge)[:, np.newaxis] * np.sin(np.pi * z)[np.newaxis, :]
    psi[:, 0] = 0.0
    psi[:, -1] = 0.0

    transport_h = psi[:, :-1] - psi[:, 1:]
    transport_v = psi - np.roll(psi, 1, axis=0)
    normal_thickness_flux = transport_h / mesh.dv_edge[:, np.newaxis]
    u_k = transport_v / mesh.area_cell[:, np.newaxis]
    w = u_k if dzdk_positive else -u_k
    return normal_thickness_flux, w


def gaussian_blob(demo: DemoMesh, x0: float, y0: float, radius: float, n_levels: int | None = None) -> np.ndarray:
    n_k = demo.n_levels if n_levels is None else n_levels
    r2 = (demo.x_cell - x0) ** 2 + (demo.y_cell - y0) ** 2
    blob = np.exp(-r2 / (radius * radius))
    return np.repeat(blob[:, np.newaxis], n_k, axis=1)
