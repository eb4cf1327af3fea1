from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .errors import IndexOutOfRangeError

if TYPE_CHECKING:
    import meshio

# Tolerance for boundary node detection (floating-point comparison)
BOUNDARY_TOL = 1e-10

# Element configuration (P1 triangles)
N_LOCAL_NODES = 3

# Edge k connects these vertex positions in EToV
EDGE_VERTICES = np.array([[0, 1], [1, 2], [2, 0]])

# Marker value given to essential-boundary vertices
BOUNDARY_MARKER = 1


@dataclass
class TriMesh:
    """2D triangular mesh for P1 finite elements (0-based connectivity)."""

    VX: NDArray[np.float64]
    VY: NDArray[np.float64]
    EToV: NDArray[np.int64]
    markers: NDArray[np.int64] | None = None

    def __post_init__(self) -> None:
        self.VX = np.ascontiguousarray(self.VX, dtype=np.float64).ravel()
        self.VY = np.ascontiguousarray(self.VY, dtype=np.float64).ravel()
        self.EToV = np.ascontiguousarray(self.EToV, dtype=np.int64).reshape(-1, N_LOCAL_NODES)
        if len(self.VX) != len(self.VY):
            raise ValueError(f"VX and VY differ in length: {len(self.VX)} != {len(self.VY)}")
        check_connectivity(self.EToV, self.nonodes)
        if self.markers is None:
            self.markers = boundary_markers(self.EToV, self.nonodes)
        else:
            self.markers = np.asarray(self.markers, dtype=np.int64).ravel()
            if len(self.markers) != self.nonodes:
                raise ValueError(
                    f"Expected {self.nonodes} boundary markers, got {len(self.markers)}"
                )

    @property
    def nonodes(self) -> int:
        return len(self.VX)

    @property
    def noelms(self) -> int:
        return len(self.EToV)

    @property
    def boundary_nodes(self) -> NDArray[np.int64]:
        """Essential vertices in increasing index order."""
        return np.flatnonzero(self.markers)

    @property
    def interior_nodes(self) -> NDArray[np.int64]:
        return np.flatnonzero(self.markers == 0)

    @property
    def element_coords(self) -> NDArray[np.float64]:
        """Corner coordinates of every triangle, shape (noelms, 3, 2)."""
        coords = np.empty((self.noelms, N_LOCAL_NODES, 2), dtype=np.float64)
        coords[:, :, 0] = self.VX[self.EToV]
        coords[:, :, 1] = self.VY[self.EToV]
        return coords

    @classmethod
    def from_meshio(cls, mesh: meshio.Mesh | str | Path) -> TriMesh:
        """
        Create TriMesh from a meshio mesh or mesh file.

        Parameters
        ----------
        mesh : meshio.Mesh or str or Path
            Either a meshio Mesh object or path to a mesh file.

        Returns
        -------
        TriMesh
            Mesh with counter-clockwise triangles and topological boundary markers.
        """
        import meshio as mio

        if isinstance(mesh, (str, Path)):
            mesh = mio.read(mesh)

        points = mesh.points[:, :2]
        VX = points[:, 0].astype(np.float64)
        VY = points[:, 1].astype(np.float64)

        EToV = None
        for cell_block in mesh.cells:
            if cell_block.type == "triangle":
                EToV = cell_block.data.astype(np.int64)
                break

        if EToV is None:
            raise ValueError("No triangle cells found in mesh")
        check_connectivity(EToV, len(VX))

        # Drop points not referenced by any triangle (e.g. geometry-only nodes)
        used = np.unique(EToV)
        if len(used) != len(VX):
            remap = np.full(len(VX), -1, dtype=np.int64)
            remap[used] = np.arange(len(used))
            VX, VY, EToV = VX[used], VY[used], remap[EToV]

        return cls(VX=VX, VY=VY, EToV=orient_ccw(VX, VY, EToV))

    def to_meshio(self) -> meshio.Mesh:
        import meshio as mio

        return mio.Mesh(
            points=np.column_stack([self.VX, self.VY, np.zeros(self.nonodes)]),
            cells=[("triangle", self.EToV)],
        )


def check_connectivity(EToV: NDArray[np.int64], nonodes: int) -> None:
    """Raise IndexOutOfRangeError for the first triangle with an invalid vertex id."""
    bad = (EToV < 0) | (EToV >= nonodes)
    if np.any(bad):
        e, k = np.argwhere(bad)[0]
        raise IndexOutOfRangeError(int(e), int(EToV[e, k]), nonodes)


def boundary_markers(EToV: NDArray[np.int64], nonodes: int) -> NDArray[np.int64]:
    """Mark vertices lying on an edge that belongs to exactly one triangle."""
    markers = np.zeros(nonodes, dtype=np.int64)
    if len(EToV) == 0:
        return markers

    # All element edges as sorted (a, b) pairs, shape (3 * noelms, 2)
    edges = np.sort(EToV[:, EDGE_VERTICES].reshape(-1, 2), axis=1)
    unique_edges, counts = np.unique(edges, axis=0, return_counts=True)
    markers[unique_edges[counts == 1].ravel()] = BOUNDARY_MARKER
    return markers


def orient_ccw(
    VX: NDArray[np.float64],
    VY: NDArray[np.float64],
    EToV: NDArray[np.int64],
) -> NDArray[np.int64]:
    """Return a copy of EToV with clockwise triangles flipped to counter-clockwise."""
    EToV = np.array(EToV, dtype=np.int64)
    x, y = VX[EToV], VY[EToV]
    twice_area = (x[:, 1] - x[:, 0]) * (y[:, 2] - y[:, 0]) - (x[:, 2] - x[:, 0]) * (y[:, 1] - y[:, 0])
    flip = twice_area < 0
    EToV[flip] = EToV[flip][:, [0, 2, 1]]
    return EToV


def structured_rectangle(
    x0: float,
    y0: float,
    L1: float,
    L2: float,
    noelms1: int,
    noelms2: int,
) -> TriMesh:
    """
    Structured triangulation of [x0, x0+L1] x [y0, y0+L2].

    Each of the noelms1 x noelms2 cells is split along its UL-LR diagonal, so
    the assembled Laplacian equals the 5-point finite difference stencil.
    Nodes are numbered column by column, top to bottom.
    """
    if noelms1 < 1 or noelms2 < 1:
        raise ValueError(f"Need at least one cell per direction, got {noelms1}x{noelms2}")

    nonodes1, nonodes2 = noelms1 + 1, noelms2 + 1
    noelms = 2 * noelms1 * noelms2

    temp_x = np.linspace(x0, x0 + L1, nonodes1)
    temp_y = np.linspace(y0 + L2, y0, nonodes2)
    XX, YY = np.meshgrid(temp_x, temp_y)
    VX = XX.flatten(order="F")
    VY = YY.flatten(order="F")

    col, row = np.meshgrid(np.arange(noelms1), np.arange(noelms2))
    col, row = col.flatten(order="F"), row.flatten(order="F")

    UL = row + col * nonodes2
    LL = UL + 1
    UR = UL + nonodes2
    LR = UR + 1

    EToV = np.empty((noelms, N_LOCAL_NODES), dtype=np.int64)
    # Upper triangles: [UL, LR, UR]
    EToV[0::2, 0] = UL
    EToV[0::2, 1] = LR
    EToV[0::2, 2] = UR
    # Lower triangles: [LL, LR, UL]
    EToV[1::2, 0] = LL
    EToV[1::2, 1] = LR
    EToV[1::2, 2] = UL

    on_boundary = (
        (np.abs(VX - x0) < BOUNDARY_TOL)
        | (np.abs(VX - (x0 + L1)) < BOUNDARY_TOL)
        | (np.abs(VY - y0) < BOUNDARY_TOL)
        | (np.abs(VY - (y0 + L2)) < BOUNDARY_TOL)
    )
    markers = np.where(on_boundary, BOUNDARY_MARKER, 0)

    return TriMesh(VX=VX, VY=VY, EToV=EToV, markers=markers)
