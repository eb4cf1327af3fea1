from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .errors import DegenerateGeometryError

# Relative tolerance: area <= AREA_TOL * (longest edge)^2 counts as degenerate
AREA_TOL = 1e-12


@dataclass(frozen=True)
class TriangleGeometry:
    """Edge differences and signed area of one or many triangles.

    ``dx[..., k]`` and ``dy[..., k]`` belong to the edge opposite corner k:
    ``(x2 - x3, x3 - x1, x1 - x2)`` and likewise for y.
    """

    dx: NDArray[np.float64]
    dy: NDArray[np.float64]
    area: NDArray[np.float64]

    @property
    def edge_lengths_sq(self) -> NDArray[np.float64]:
        return self.dx**2 + self.dy**2


def triangle_geometry(coords: NDArray[np.float64]) -> TriangleGeometry:
    """
    Compute edge differences and signed area from corner coordinates.

    Parameters
    ----------
    coords : ndarray (3, 2) or (T, 3, 2)
        Corner coordinates ordered (corner0, corner1, corner2).

    Returns
    -------
    TriangleGeometry
        ``dx``/``dy`` of shape (..., 3), ``area`` of shape (...).
    """
    coords = np.asarray(coords, dtype=np.float64)
    if coords.shape[-2:] != (3, 2):
        raise ValueError(f"Expected corner coordinates of shape (..., 3, 2), got {coords.shape}")

    x1, x2, x3 = coords[..., 0, 0], coords[..., 1, 0], coords[..., 2, 0]
    y1, y2, y3 = coords[..., 0, 1], coords[..., 1, 1], coords[..., 2, 1]

    dx = np.stack([x2 - x3, x3 - x1, x1 - x2], axis=-1)
    dy = np.stack([y2 - y3, y3 - y1, y1 - y2], axis=-1)

    # 0.5 * (dx31 * dy12 - dy31 * dx12)
    area = 0.5 * (dx[..., 1] * dy[..., 2] - dy[..., 1] * dx[..., 2])
    return TriangleGeometry(dx=dx, dy=dy, area=area)


def check_geometry(geometry: TriangleGeometry, tol: float = AREA_TOL) -> None:
    """Raise DegenerateGeometryError for the first collinear or inverted triangle."""
    area = np.atleast_1d(geometry.area)
    scale = np.atleast_2d(geometry.edge_lengths_sq).max(axis=-1)
    bad = np.flatnonzero(~(area > tol * scale))
    if bad.size:
        e = int(bad[0])
        raise DegenerateGeometryError(e, float(area[e]))


def checked_geometry(coords: NDArray[np.float64], tol: float = AREA_TOL) -> TriangleGeometry:
    """triangle_geometry followed by check_geometry."""
    geometry = triangle_geometry(coords)
    check_geometry(geometry, tol)
    return geometry
