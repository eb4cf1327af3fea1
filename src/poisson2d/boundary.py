from __future__ import annotations

import logging
from typing import Callable

import numpy as np
from numba import njit
from numpy.typing import NDArray

from .assembly import GlobalSystem
from .datastructures import TriMesh

log = logging.getLogger(__name__)


def get_boundary_nodes(markers: NDArray[np.int64]) -> NDArray[np.int64]:
    """Essential vertex indices in increasing order (the elimination order)."""
    return np.flatnonzero(np.asarray(markers))


def boundary_function(
    mesh: TriMesh,
    func: Callable[[NDArray[np.float64], NDArray[np.float64]], NDArray[np.float64]],
) -> Callable[[int], float]:
    """Adapt a closed form g(x, y) to g(vertex index)."""

    def g(i: int) -> float:
        return float(func(mesh.VX[i], mesh.VY[i]))

    return g


@njit
def _eliminate_core(A, F, bnodes, values):
    """Symmetric elimination, one essential vertex at a time."""
    n = A.shape[0]
    for k in range(len(bnodes)):
        i = bnodes[k]
        gi = values[k]
        # Column i is read for row j before it is zeroed at position j
        for j in range(n):
            F[j] -= A[j, i] * gi
            A[i, j] = 0.0
            A[j, i] = 0.0
        A[i, i] = 1.0
        F[i] = gi


def apply_dirichlet(
    system: GlobalSystem,
    markers: NDArray[np.int64],
    g: Callable[[int], float],
) -> GlobalSystem:
    """
    Impose essential boundary conditions by symmetric row/column elimination.

    Vertices with a nonzero marker are eliminated in increasing index order.
    For vertex i the coupling column A[:, i] is moved to the right-hand side,
    row and column i are zeroed, A[i, i] = 1 and F[i] = g(i). Couplings between
    two essential vertices are zeroed by whichever is eliminated first; the
    later one then subtracts nothing for that pair.

    Parameters
    ----------
    system : GlobalSystem
        Assembled system, modified in place.
    markers : ndarray (n,)
        Boundary markers, 0 for free vertices.
    g : callable
        Prescribed value for a vertex index.

    Returns
    -------
    GlobalSystem
        The same system object.
    """
    markers = np.asarray(markers)
    if markers.shape != (system.n,):
        raise ValueError(f"Expected {system.n} boundary markers, got shape {markers.shape}")

    bnodes = get_boundary_nodes(markers).astype(np.int64)
    values = np.array([g(int(i)) for i in bnodes], dtype=np.float64)

    _eliminate_core(system.A, system.F, bnodes, values)
    log.info(f"Eliminated {len(bnodes)} essential vertices, {system.n - len(bnodes)} free")
    return system
