from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Union

import numpy as np
from numba import njit
from numpy.typing import NDArray

from .datastructures import TriMesh, check_connectivity
from .elements import element_matrices
from .errors import AllocationFailureError
from .geometry import AREA_TOL

log = logging.getLogger(__name__)

Source = Union[float, Callable[[NDArray[np.float64], NDArray[np.float64]], NDArray[np.float64]]]


@dataclass
class GlobalSystem:
    """Dense system A u = F owned by a single solve."""

    A: NDArray[np.float64]
    F: NDArray[np.float64]

    @property
    def n(self) -> int:
        return len(self.F)

    def is_symmetric(self, atol: float = 1e-12) -> bool:
        return bool(np.allclose(self.A, self.A.T, atol=atol))

    def copy(self) -> GlobalSystem:
        return GlobalSystem(A=self.A.copy(), F=self.F.copy())


def allocate_system(n: int) -> GlobalSystem:
    """Zero-initialised dense n x n system."""
    try:
        A = np.zeros((n, n), dtype=np.float64)
        F = np.zeros(n, dtype=np.float64)
    except MemoryError as exc:
        raise AllocationFailureError(n) from exc
    return GlobalSystem(A=A, F=F)


@njit
def _scatter_add_core(Ke_all, fe_all, EToV, A, F):
    """Accumulate element matrices and load vectors into the global system."""
    n_elem = EToV.shape[0]
    for e in range(n_elem):
        for i in range(3):
            gi = EToV[e, i]
            F[gi] += fe_all[e, i]
            for j in range(3):
                A[gi, EToV[e, j]] += Ke_all[e, i, j]


def _nodal_source(mesh: TriMesh, source: Source) -> NDArray[np.float64]:
    """Source values at the corners of every triangle, shape (noelms, 3)."""
    if callable(source):
        f_nodes = np.asarray(source(mesh.VX, mesh.VY), dtype=np.float64)
        return np.broadcast_to(f_nodes, (mesh.nonodes,))[mesh.EToV]
    return np.full((mesh.noelms, 3), float(source))


def assemble_system(
    mesh: TriMesh,
    source: Source = 0.0,
    system: GlobalSystem | None = None,
    tol: float = AREA_TOL,
) -> GlobalSystem:
    """
    Assemble the P1 stiffness matrix and load vector for -Δu = f.

    Parameters
    ----------
    mesh : TriMesh
        Vertices and counter-clockwise triangles.
    source : float or callable
        Constant source term, or f(x, y) evaluated at the vertices.
    system : GlobalSystem, optional
        Zero-initialised system to accumulate into; allocated if omitted.
    tol : float
        Relative area tolerance for degenerate triangles.

    Returns
    -------
    GlobalSystem
        A (symmetric, zero row sums) and F before boundary treatment.
    """
    check_connectivity(mesh.EToV, mesh.nonodes)
    if system is None:
        system = allocate_system(mesh.nonodes)
    elif system.n != mesh.nonodes:
        raise ValueError(f"System has {system.n} unknowns, mesh has {mesh.nonodes} vertices")

    Ke_all, Me_all = element_matrices(mesh.element_coords, tol)
    fe_all = np.einsum("eij,ej->ei", Me_all, _nodal_source(mesh, source))

    _scatter_add_core(
        np.ascontiguousarray(Ke_all),
        np.ascontiguousarray(fe_all),
        mesh.EToV,
        system.A,
        system.F,
    )
    log.info(f"Assembled {mesh.nonodes}x{mesh.nonodes} system from {mesh.noelms} triangles")
    return system
