from __future__ import annotations

import os

import numpy as np

try:
    import matplotlib.pyplot as plt  # type: ignore
except ImportError:
    plt = None


def _require_matplotlib():
    if plt is None:
        raise RuntimeError("matplotlib is required for plotting. Please install 'matplotlib'.")


def plot_tracer_level(
    phi: np.ndarray,
    shape: tuple[int, int],
    out_path: str,
    level: int = 0,
    title: str | None = None,
    vmin: float | None = None,
    vmax: float | None = None,
) -> str:
    """
    Save a map of one tracer level on a structured (nx, ny) cell layout
    (cells numbered c = j * nx + i, as built by scripts.meshes.quad_mesh).

    Args:
      phi: (n_cells, n_levels) tracer concentrations
      shape: (nx, ny)
      out_path: PNG file to write (parent directories are created)
    Returns:
      out_path
    """
    _require_matplotlib()
    nx, ny = shape
    field = np.asarray(phi)[:, level].reshape(ny, nx)

    os.makedirs(os.path.dirname(os.path.abspath(out_path)), exist_ok=True)
    fig, ax = plt.subplots(figsize=(5, 4.5))
    im = ax.imshow(field, origin="lower", cmap="viridis", vmin=vmin, vmax=vmax)
    fig.colorbar(im, ax=ax, shrink=0.85)
    ax.set_xlabel("i")
    ax.set_ylabel("j")
    ax.set_title(title or f"tracer level {level}")
    fig.tight_layout()
    fig.savefig(out_path, dpi=120)
    plt.close(fig)
    return out_path
