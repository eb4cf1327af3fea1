from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy.linalg import lapack

from .assembly import GlobalSystem, assemble_system
from .boundary import apply_dirichlet, boundary_function
from .datastructures import TriMesh
from .elements import element_load_matrix
from .errors import InvalidArgumentError, SingularSystemError
from .exact import QUADRATIC, Problem

log = logging.getLogger(__name__)


def dense_solve(system: GlobalSystem) -> NDArray[np.float64]:
    """
    Solve A x = F by LU factorization (LAPACK dgesv).

    A is left untouched; F is overwritten with x, which is also returned.
    """
    _, _, x, info = lapack.dgesv(system.A, system.F.reshape(-1, 1))
    if info > 0:
        raise SingularSystemError(int(info) - 1)
    if info < 0:
        raise InvalidArgumentError(int(-info))
    system.F[:] = x[:, 0]
    return system.F


def discrete_l2_error(mesh: TriMesh, u_nodal: np.ndarray, u_exact: np.ndarray) -> float:
    """L2 norm of the piecewise linear interpolant of the nodal error (exact integration)."""
    e = (u_nodal - u_exact)[mesh.EToV]
    Me_all = element_load_matrix(mesh.element_coords)
    return float(np.sqrt(np.einsum("ei,eij,ej->", e, Me_all, e)))


@dataclass
class PoissonResult:
    """Nodal solution with its comparison against the exact solution."""

    mesh: TriMesh
    u: NDArray[np.float64]
    exact: NDArray[np.float64]
    wall_time_seconds: float = 0.0
    max_error: float = field(init=False)
    l2_error: float = field(init=False)

    def __post_init__(self) -> None:
        self.max_error = float(np.max(np.abs(self.u - self.exact))) if len(self.u) else 0.0
        self.l2_error = discrete_l2_error(self.mesh, self.u, self.exact)


def solve_poisson(
    mesh: TriMesh,
    problem: Problem = QUADRATIC,
    system: GlobalSystem | None = None,
) -> PoissonResult:
    """
    Solve -Δu = f with u = exact on the marked boundary vertices.

    Assembles, eliminates the essential vertices, solves, and compares the
    nodal values with the problem's exact solution.
    """
    time_start = time.perf_counter()

    system = assemble_system(mesh, problem.source, system=system)
    apply_dirichlet(system, mesh.markers, boundary_function(mesh, problem.exact))
    u = dense_solve(system)

    wall_time = time.perf_counter() - time_start
    result = PoissonResult(
        mesh=mesh,
        u=u,
        exact=np.asarray(problem.exact(mesh.VX, mesh.VY), dtype=np.float64),
        wall_time_seconds=wall_time,
    )
    log.info(
        f"Solved '{problem.name}' on {mesh.nonodes} nodes in {wall_time:.3f}s: "
        f"max error {result.max_error:.3e}, L2 error {result.l2_error:.3e}"
    )
    return result


def refinement_study(
    max_areas: Sequence[float],
    problem: Problem = QUADRATIC,
    algorithm: int | None = None,
) -> pd.DataFrame:
    """Solve on gmsh unit-square meshes for each area constraint."""
    from .mesh import DELAUNAY, unit_square

    rows = []
    for max_area in max_areas:
        mesh = unit_square(max_area, algorithm=DELAUNAY if algorithm is None else algorithm)
        result = solve_poisson(mesh, problem)
        rows.append(
            {
                "max_area": max_area,
                "nonodes": mesh.nonodes,
                "noelms": mesh.noelms,
                "max_error": result.max_error,
                "l2_error": result.l2_error,
            }
        )
    return pd.DataFrame(rows)
