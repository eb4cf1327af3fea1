import numpy as np

from .geometry import AREA_TOL, TriangleGeometry, checked_geometry

# Area-weighted pattern of the P1 mass matrix: diag 1/6, off-diagonal 1/12
_MASS_PATTERN = (np.ones((3, 3)) + np.eye(3)) / 12.0


def stiffness_from_geometry(geometry: TriangleGeometry) -> np.ndarray:
    """Gradient-dot-gradient matrix for precomputed (possibly batched) geometry."""
    dx, dy = geometry.dx, geometry.dy
    area = np.asarray(geometry.area)[..., None, None]
    return 0.25 * (dx[..., :, None] * dx[..., None, :] + dy[..., :, None] * dy[..., None, :]) / area


def load_matrix_from_geometry(geometry: TriangleGeometry) -> np.ndarray:
    """Mass matrix for precomputed (possibly batched) geometry."""
    area = np.asarray(geometry.area)[..., None, None]
    return area * _MASS_PATTERN


def element_stiffness(coords: np.ndarray, tol: float = AREA_TOL) -> np.ndarray:
    """
    Element stiffness matrix for the Laplacian: -u''

    Weak form contribution: ∫ ∇u · ∇v dx

    Parameters
    ----------
    coords : ndarray (3, 2) or (T, 3, 2)
        Corner coordinates, counter-clockwise.
    tol : float
        Relative area tolerance for degenerate triangles.

    Returns
    -------
    Ke : ndarray (3, 3) or (T, 3, 3)
        Symmetric element stiffness matrix with zero row sums.
    """
    return stiffness_from_geometry(checked_geometry(coords, tol))


def element_load_matrix(coords: np.ndarray, tol: float = AREA_TOL) -> np.ndarray:
    """
    Element mass matrix used to project the source term.

    Weak form contribution: ∫ f v dx, with f linear over the element.
    Applied to the nodal source values it gives the element load vector;
    for constant f each corner receives f * area / 3.

    Parameters
    ----------
    coords : ndarray (3, 2) or (T, 3, 2)
        Corner coordinates, counter-clockwise.
    tol : float
        Relative area tolerance for degenerate triangles.

    Returns
    -------
    Me : ndarray (3, 3) or (T, 3, 3)
        Diagonal area/6, off-diagonal area/12.
    """
    return load_matrix_from_geometry(checked_geometry(coords, tol))


def element_matrices(coords: np.ndarray, tol: float = AREA_TOL) -> tuple[np.ndarray, np.ndarray]:
    """Stiffness and mass matrices from a single geometry evaluation."""
    geometry = checked_geometry(coords, tol)
    return stiffness_from_geometry(geometry), load_matrix_from_geometry(geometry)
