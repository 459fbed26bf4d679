# pyocean/mesh.py

"""
Read-only geometry and stencil-coefficient bundle consumed by the tracer
advection engines.

The mesh is a column-structured unstructured horizontal mesh: polygonal cells
connected by edges, with a fixed number of vertical layers per column and a
per-column sea-floor index. Connectivity tables use 0-based indices and the
sentinel NO_CELL (-1) for "no cell" (domain boundary, or beyond the halo).

Conventions:
- cells_on_edge[e] = (c1, c2); positive normal transport goes from c1 to c2.
- edge_sign_on_cell[c, i] = -1 if c is the first cell of edges_on_cell[c, i],
  +1 if it is the second, 0 on padding slots.
- max_level_cell[c] = number of valid layers in column c, i.e. the index of
  the first invalid layer below the sea floor.
- Cells are ordered owned cells first, then halo layers outward;
  n_cells_array holds the cumulative counts (owned, owned + halo 1, ...).

Instances are normally built with pyocean.coefficients.build_advection_mesh.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property

import numpy as np

from .numerics.incidence import EdgeIncidence


@dataclass(frozen=True)
class AdvectionMesh:
    # Connectivity
    cells_on_edge: np.ndarray  # (n_edges, 2) int
    edges_on_cell: np.ndarray  # (n_cells, max_edges) int, NO_CELL padded
    cells_on_cell: np.ndarray  # (n_cells, max_edges) int, NO_CELL padded
    n_edges_on_cell: np.ndarray  # (n_cells,) int
    edge_sign_on_cell: np.ndarray  # (n_cells, max_edges) float

    # Geometry
    dv_edge: np.ndarray  # (n_edges,) edge length
    dc_edge: np.ndarray  # (n_edges,) distance between cell centres
    area_cell: np.ndarray  # (n_cells,)

    # Vertical structure
    n_vert_levels: int
    max_level_cell: np.ndarray  # (n_cells,) int
    max_level_edge_top: np.ndarray  # (n_edges,) int

    # Reconstruction stencils (padded rows + counts)
    n_adv_cells_for_edge: np.ndarray  # (n_edges,) int
    adv_cells_for_edge: np.ndarray  # (n_edges, max_adv) int, NO_CELL padded
    adv_coefs: np.ndarray  # (n_edges, max_adv) centred + 4th-order weights
    adv_coefs_3rd: np.ndarray  # (n_edges, max_adv) upwind 3rd-order correction
    high_order_advection_mask: np.ndarray  # (n_edges, n_vert_levels) bool

    # Halo metadata
    n_cells_array: tuple[int, ...] = ()

    # ----------------- sizes -----------------
    @property
    def n_cells(self) -> int:
        return int(self.area_cell.shape[0])

    @property
    def n_edges(self) -> int:
        return int(self.cells_on_edge.shape[0])

    @property
    def n_cells_solve(self) -> int:
        """Number of owned cells (tendencies are accumulated only there)."""
        if self.n_cells_array:
            return int(self.n_cells_array[0])
        return self.n_cells

    @property
    def num_halos(self) -> int:
        return max(0, len(self.n_cells_array) - 1)

    # ----------------- masks -----------------
    @cached_property
    def level_mask(self) -> np.ndarray:
        """(n_cells, n_vert_levels) True where the layer lies above the sea floor."""
        k = np.arange(self.n_vert_levels)
        return k[np.newaxis, :] < self.max_level_cell[:, np.newaxis]

    @cached_property
    def edge_level_mask(self) -> np.ndarray:
        """(n_edges, n_vert_levels) True where the edge carries horizontal flux."""
        k = np.arange(self.n_vert_levels)
        return k[np.newaxis, :] < self.max_level_edge_top[:, np.newaxis]

    @cached_property
    def interface_mask(self) -> np.ndarray:
        """
        (n_cells, n_vert_levels + 1) True on interior interfaces of each column.
        Interface k is the top of layer k; the sea surface (k = 0) and the
        sea floor (k = max_level_cell) carry no flux.
        """
        k = np.arange(self.n_vert_levels + 1)
        return (k[np.newaxis, :] >= 1) & (k[np.newaxis, :] < self.max_level_cell[:, np.newaxis])

    @cached_property
    def owned_mask(self) -> np.ndarray:
        owned = np.zeros(self.n_cells, dtype=bool)
        owned[: self.n_cells_solve] = True
        return owned

    @cached_property
    def incidence(self) -> EdgeIncidence:
        """Sparse edge -> cell gather operators built from cells_on_edge."""
        return EdgeIncidence.from_cells_on_edge(self.cells_on_edge, self.n_cells)

    def control_volumes(self, layer_thickness: np.ndarray) -> np.ndarray:
        """
        Layer volume h * A per (cell, layer); 1.0 on invalid layers so that
        divisions stay finite there (those entries are masked by callers).
        """
        vol = np.asarray(layer_thickness, dtype=float) * self.area_cell[:, np.newaxis]
        return np.where(self.level_mask, vol, 1.0)

    # ----------------- contract checks -----------------
    def check_fields(
        self,
        tend: np.ndarray,
        tracers: np.ndarray,
        normal_thickness_flux: np.ndarray,
        w: np.ndarray,
        layer_thickness: np.ndarray,
    ) -> None:
        """
        Fail fast on malformed inputs; shapes are part of the calling contract.
        """
        n_c, n_e, n_k = self.n_cells, self.n_edges, self.n_vert_levels
        if tracers.ndim != 3 or tracers.shape[1:] != (n_c, n_k):
            raise ValueError(f"tracers shape {tracers.shape} != (n_tracers, {n_c}, {n_k})")
        if tend.shape != tracers.shape:
            raise ValueError(f"tend shape {tend.shape} != tracers shape {tracers.shape}")
        if normal_thickness_flux.shape != (n_e, n_k):
            raise ValueError(
                f"normal_thickness_flux shape {normal_thickness_flux.shape} != ({n_e}, {n_k})"
            )
        if w.shape != (n_c, n_k + 1):
            raise ValueError(f"w shape {w.shape} != ({n_c}, {n_k + 1})")
        if layer_thickness.shape != (n_c, n_k):
            raise ValueError(f"layer_thickness shape {layer_thickness.shape} != ({n_c}, {n_k})")

    def __repr__(self) -> str:
        return (
            f"AdvectionMesh(n_cells={self.n_cells}, n_edges={self.n_edges}, "
            f"n_vert_levels={self.n_vert_levels}, n_cells_solve={self.n_cells_solve}, "
            f"max_adv_cells={self.adv_cells_for_edge.shape[1]})"
        )

