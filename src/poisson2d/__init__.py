"""P1 finite elements for the 2D Poisson equation on triangles.

This package assembles dense P1 (linear) stiffness matrices and load vectors,
eliminates Dirichlet boundary conditions symmetrically and solves the system
with LAPACK LU.

Main components:
- TriMesh: triangular mesh (vertices, connectivity, boundary markers)
- element_stiffness, element_load_matrix: local 3x3 matrices
- assemble_system: global stiffness matrix and load vector
- apply_dirichlet: essential boundary conditions
- solve_poisson: assemble, eliminate, solve and compare with the exact solution
"""

from .datastructures import (
    TriMesh,
    BOUNDARY_MARKER,
    BOUNDARY_TOL,
    EDGE_VERTICES,
    boundary_markers,
    check_connectivity,
    orient_ccw,
    structured_rectangle,
)
from .errors import (
    PoissonError,
    DegenerateGeometryError,
    IndexOutOfRangeError,
    SingularSystemError,
    InvalidArgumentError,
    AllocationFailureError,
)
from .geometry import AREA_TOL, TriangleGeometry, triangle_geometry, check_geometry
from .elements import element_stiffness, element_load_matrix, element_matrices
from .assembly import GlobalSystem, allocate_system, assemble_system
from .boundary import apply_dirichlet, boundary_function, get_boundary_nodes
from .exact import Problem, PROBLEMS, QUADRATIC, get_problem, quadratic_solution
from .solvers import PoissonResult, dense_solve, solve_poisson, refinement_study

__all__ = [
    # Mesh
    "TriMesh",
    "BOUNDARY_MARKER",
    "BOUNDARY_TOL",
    "EDGE_VERTICES",
    "boundary_markers",
    "check_connectivity",
    "orient_ccw",
    "structured_rectangle",
    # Errors
    "PoissonError",
    "DegenerateGeometryError",
    "IndexOutOfRangeError",
    "SingularSystemError",
    "InvalidArgumentError",
    "AllocationFailureError",
    # Elements
    "AREA_TOL",
    "TriangleGeometry",
    "triangle_geometry",
    "check_geometry",
    "element_stiffness",
    "element_load_matrix",
    "element_matrices",
    # Assembly
    "GlobalSystem",
    "allocate_system",
    "assemble_system",
    # Boundary conditions
    "apply_dirichlet",
    "boundary_function",
    "get_boundary_nodes",
    # Problems
    "Problem",
    "PROBLEMS",
    "QUADRATIC",
    "get_problem",
    "quadratic_solution",
    # Solvers
    "PoissonResult",
    "dense_solve",
    "solve_poisson",
    "refinement_study",
]
