import logging
from pathlib import Path

import matplotlib.pyplot as plt
import matplotlib.tri as mtri

log = logging.getLogger(__name__)

STYLE = {
    "savefig.bbox": "tight",
    "savefig.dpi": 150,
    "axes.grid": False,
    "image.cmap": "viridis",
}


def setup_style():
    """Apply shared matplotlib style."""
    plt.rcParams.update(STYLE)


def save_figure(fig, filename: str | Path):
    """
    Save figure to the specified path.
    """
    filepath = Path(filename)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(filepath, bbox_inches="tight")
    plt.close(fig)
    log.info(f"Saved: {filepath}")
    return filepath


def plot_sparsity(A, filename: str | Path):
    """Spy plot of the assembled matrix."""
    setup_style()
    fig, ax = plt.subplots(figsize=(5, 5))
    ax.spy(A, markersize=max(1.0, 200.0 / max(len(A), 1)))
    ax.set_title(f"Sparsity pattern ({len(A)}x{len(A)})")
    return save_figure(fig, filename)


def plot_solution(mesh, u, filename: str | Path, title: str = "u_h"):
    """Piecewise linear solution on the triangulation."""
    setup_style()
    triangulation = mtri.Triangulation(mesh.VX, mesh.VY, mesh.EToV)
    fig, ax = plt.subplots(figsize=(6, 5))
    tpc = ax.tripcolor(triangulation, u, shading="gouraud", cmap="viridis")
    ax.triplot(triangulation, color="k", linewidth=0.3, alpha=0.5)
    fig.colorbar(tpc, ax=ax)
    ax.set_aspect("equal")
    ax.set_title(title)
    return save_figure(fig, filename)
