"""
Signed edge -> cell incidence operators for flux assembly.

Every edge flux is computed once into an (n_edges, n_levels) buffer and then
gathered onto cells through sparse matrix products, so each control volume
is written by exactly one row of the product (no scatter races).

    first[c, e]  = 1 if c == cells_on_edge[e, 0]
    second[c, e] = 1 if c == cells_on_edge[e, 1]

Net inflow of an edge-oriented flux F (positive from cell 1 to cell 2):

    divergence(F) = (second - first) @ F

which matches sum_i edge_sign_on_cell[c, i] * F[edges_on_cell[c, i]].
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import scipy.sparse as sp


@dataclass(frozen=True)
class EdgeIncidence:
    first: sp.csr_matrix  # (n_cells, n_edges)
    second: sp.csr_matrix  # (n_cells, n_edges)

    @classmethod
    def from_cells_on_edge(cls, cells_on_edge: np.ndarray, n_cells: int) -> EdgeIncidence:
        cells_on_edge = np.asarray(cells_on_edge, dtype=np.int64)
        n_edges = cells_on_edge.shape[0]

        def _side(col: int) -> sp.csr_matrix:
            cells = cells_on_edge[:, col]
            keep = cells >= 0
            edges = np.arange(n_edges)[keep]
            data = np.ones(edges.shape[0])
            return sp.csr_matrix((data, (cells[keep], edges)), shape=(n_cells, n_edges))

        return cls(first=_side(0), second=_side(1))

    def divergence(self, flux: np.ndarray) -> np.ndarray:
        """Net inflow per (cell, level) of an edge-oriented flux."""
        return np.asarray(self.second @ flux - self.first @ flux)

    def inflow(self, flux: np.ndarray) -> np.ndarray:
        """Sum of the incoming parts of the flux per (cell, level)."""
        return np.asarray(self.second @ np.maximum(flux, 0.0) + self.first @ np.maximum(-flux, 0.0))

    def outflow(self, flux: np.ndarray) -> np.ndarray:
        """Sum of the outgoing parts of the flux per (cell, level), as a positive number."""
        return np.asarray(self.first @ np.maximum(flux, 0.0) + self.second @ np.maximum(-flux, 0.0))
