"""Mesh provider: constrained Delaunay triangulation of a polygon via gmsh."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import numpy as np

from .datastructures import TriMesh, orient_ccw

log = logging.getLogger(__name__)

# Gmsh 2D algorithm ids
DELAUNAY = 5
FRONTAL_DELAUNAY = 6

# Gmsh element type id for 3-node triangles
_TRIANGLE = 2

UNIT_SQUARE = ((0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0))

Polygon = Sequence[tuple[float, float]]


def mesh_size_for_area(max_area: float) -> float:
    """Target edge length whose equilateral triangle stays below max_area."""
    if max_area <= 0:
        raise ValueError(f"Area constraint must be positive, got {max_area}")
    # Equilateral side h has area sqrt(3)/4 h^2 ~ 0.87 max_area for h = sqrt(2 A)
    return float(np.sqrt(2.0 * max_area))


def _add_loop(gmsh, polygon: Polygon, mesh_size: float) -> int:
    if len(polygon) < 3:
        raise ValueError(f"Polygon needs at least 3 vertices, got {len(polygon)}")
    points = [gmsh.model.geo.addPoint(x, y, 0, mesh_size) for x, y in polygon]
    lines = [
        gmsh.model.geo.addLine(points[k], points[(k + 1) % len(points)])
        for k in range(len(points))
    ]
    return gmsh.model.geo.addCurveLoop(lines)


def triangulate(
    polygon: Polygon,
    max_area: float,
    holes: Sequence[Polygon] = (),
    algorithm: int = DELAUNAY,
) -> TriMesh:
    """
    Triangulate a planar straight-line polygon with an area constraint.

    Parameters
    ----------
    polygon : sequence of (x, y)
        Outer boundary, either orientation.
    max_area : float
        Maximum triangle area; converted to a gmsh target size.
    holes : sequence of polygons
        Inner boundaries removed from the domain.
    algorithm : int
        Gmsh 2D meshing algorithm (default Delaunay).

    Returns
    -------
    TriMesh
        Contiguous 0-based vertices, counter-clockwise triangles, boundary
        markers on the outer and hole boundaries.
    """
    import gmsh

    mesh_size = mesh_size_for_area(max_area)

    gmsh.initialize()
    try:
        gmsh.option.setNumber("General.Terminal", 0)
        gmsh.model.add("domain")

        loops = [_add_loop(gmsh, polygon, mesh_size)]
        loops += [_add_loop(gmsh, hole, mesh_size) for hole in holes]
        gmsh.model.geo.addPlaneSurface(loops)
        gmsh.model.geo.synchronize()

        gmsh.option.setNumber("Mesh.Algorithm", algorithm)
        gmsh.model.mesh.generate(2)

        node_tags, coords, _ = gmsh.model.mesh.getNodes()
        _, elem_node_tags = gmsh.model.mesh.getElementsByType(_TRIANGLE)
    finally:
        gmsh.finalize()

    node_tags = node_tags.astype(np.int64)
    coords = coords.reshape(-1, 3)[:, :2]

    # Gmsh node tags need not be contiguous
    index = np.full(node_tags.max() + 1, -1, dtype=np.int64)
    index[node_tags] = np.arange(len(node_tags))
    EToV = index[elem_node_tags.astype(np.int64).reshape(-1, 3)]

    VX, VY = coords[:, 0].copy(), coords[:, 1].copy()
    mesh = TriMesh(VX=VX, VY=VY, EToV=orient_ccw(VX, VY, EToV))

    log.info(
        f"Triangulated polygon (max_area={max_area}): "
        f"{mesh.nonodes} vertices, {mesh.noelms} triangles, "
        f"{len(mesh.boundary_nodes)} on the boundary"
    )
    return mesh


def unit_square(max_area: float = 0.1, algorithm: int = DELAUNAY) -> TriMesh:
    """Triangulation of [0, 1] x [0, 1]."""
    return triangulate(UNIT_SQUARE, max_area, algorithm=algorithm)


def write_mesh(mesh: TriMesh, output_path: str | Path) -> Path:
    """Save mesh with meshio (format from the file suffix)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    mesh.to_meshio().write(output_path)
    log.info(f"Saved mesh to {output_path} ({mesh.nonodes} nodes, {mesh.noelms} elements)")
    return output_path


def read_mesh(path: str | Path) -> TriMesh:
    return TriMesh.from_meshio(path)
