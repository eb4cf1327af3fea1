"""Tests for global assembly of the dense P1 system.

Run with: uv run pytest tests/test_assembly.py -v
"""

import numpy as np
import pytest

from poisson2d import (
    GlobalSystem,
    TriMesh,
    allocate_system,
    assemble_system,
    element_stiffness,
    structured_rectangle,
)
from poisson2d.errors import (
    AllocationFailureError,
    DegenerateGeometryError,
    IndexOutOfRangeError,
)


@pytest.fixture
def mesh_4x3():
    return structured_rectangle(0.0, 0.0, 1.0, 1.0, 4, 3)


@pytest.fixture
def perturbed_mesh():
    """Structured mesh with jittered interior nodes (non-uniform triangles)."""
    mesh = structured_rectangle(0.0, 0.0, 1.0, 1.0, 5, 5)
    rng = np.random.default_rng(42)
    interior = mesh.interior_nodes
    VX, VY = mesh.VX.copy(), mesh.VY.copy()
    VX[interior] += rng.uniform(-0.04, 0.04, len(interior))
    VY[interior] += rng.uniform(-0.04, 0.04, len(interior))
    return TriMesh(VX=VX, VY=VY, EToV=mesh.EToV, markers=mesh.markers)


class TestAllocation:
    """Test global system allocation."""

    def test_zero_initialised(self):
        """Fresh systems are all zeros with matching shapes."""
        system = allocate_system(5)
        assert system.A.shape == (5, 5)
        assert system.F.shape == (5,)
        assert system.n == 5
        assert not system.A.any() and not system.F.any()

    def test_allocation_failure(self):
        """An impossible N x N buffer raises AllocationFailureError."""
        with pytest.raises(AllocationFailureError) as excinfo:
            allocate_system(2**24)
        assert excinfo.value.nonodes == 2**24
        assert isinstance(excinfo.value, MemoryError)


class TestConnectivity:
    """Test vertex index validation."""

    def test_index_out_of_range(self):
        """A triangle referencing a missing vertex is rejected."""
        with pytest.raises(IndexOutOfRangeError) as excinfo:
            TriMesh(
                VX=[0.0, 1.0, 0.0],
                VY=[0.0, 0.0, 1.0],
                EToV=[[0, 1, 2], [0, 1, 3]],
                markers=[1, 1, 1],
            )
        assert excinfo.value.triangle == 1
        assert excinfo.value.vertex == 3
        assert excinfo.value.nonodes == 3

    def test_negative_index(self):
        """Negative vertex ids are out of range too."""
        with pytest.raises(IndexOutOfRangeError):
            TriMesh(VX=[0.0, 1.0, 0.0], VY=[0.0, 0.0, 1.0], EToV=[[0, 1, -1]], markers=[1, 1, 1])

    def test_index_out_of_range_without_markers(self):
        """Invalid ids are reported before boundary markers are derived."""
        with pytest.raises(IndexOutOfRangeError) as excinfo:
            TriMesh(VX=[0.0, 1.0, 0.0], VY=[0.0, 0.0, 1.0], EToV=[[0, 1, 2], [0, 1, 3]])
        assert excinfo.value.triangle == 1
        assert excinfo.value.vertex == 3

    def test_assembly_rechecks_connectivity(self):
        """Connectivity edited after construction is caught by assembly."""
        mesh = TriMesh(VX=[0.0, 1.0, 0.0], VY=[0.0, 0.0, 1.0], EToV=[[0, 1, 2]])
        mesh.EToV[0, 2] = 5
        with pytest.raises(IndexOutOfRangeError) as excinfo:
            assemble_system(mesh, -6.0)
        assert excinfo.value.vertex == 5

    def test_degenerate_triangle_aborts(self):
        """Assembly aborts before touching the system on a collinear triangle."""
        mesh = TriMesh(
            VX=[0.0, 1.0, 0.0, 2.0],
            VY=[0.0, 0.0, 1.0, 0.0],
            EToV=[[0, 1, 2], [0, 1, 3]],
            markers=[1, 1, 1, 1],
        )
        system = allocate_system(mesh.nonodes)
        with pytest.raises(DegenerateGeometryError) as excinfo:
            assemble_system(mesh, -6.0, system=system)
        assert excinfo.value.triangle == 1
        assert not system.A.any() and not system.F.any()

    def test_size_mismatch(self, mesh_4x3):
        """A preallocated system must match the mesh size."""
        with pytest.raises(ValueError):
            assemble_system(mesh_4x3, system=allocate_system(3))


class TestAssembly:
    """Test the assembled stiffness matrix and load vector."""

    def test_single_triangle_equals_local(self):
        """One triangle assembles to its own local matrix."""
        coords = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
        mesh = TriMesh(VX=coords[:, 0], VY=coords[:, 1], EToV=[[0, 1, 2]])
        system = assemble_system(mesh, -6.0)
        assert np.allclose(system.A, element_stiffness(coords))
        assert np.allclose(system.F, -6.0 * 0.5 / 3)

    def test_scatter_respects_global_ids(self):
        """Local corner k lands on global vertex EToV[k]."""
        coords = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
        perm = [2, 0, 1]  # global ids of corners 0, 1, 2
        VX, VY = np.empty(3), np.empty(3)
        VX[perm], VY[perm] = coords[:, 0], coords[:, 1]
        mesh = TriMesh(VX=VX, VY=VY, EToV=[perm])
        A = assemble_system(mesh).A
        K = element_stiffness(coords)
        assert np.allclose(A[np.ix_(perm, perm)], K)

    def test_symmetry(self, perturbed_mesh):
        """Global stiffness is symmetric."""
        system = assemble_system(perturbed_mesh, -6.0)
        assert system.is_symmetric()

    def test_zero_row_sums(self, perturbed_mesh):
        """Every row of the stiffness matrix sums to zero."""
        A = assemble_system(perturbed_mesh).A
        assert np.allclose(A.sum(axis=1), 0.0, atol=1e-12)
        assert np.allclose(np.diag(A), -(A.sum(axis=1) - np.diag(A)), atol=1e-12)

    def test_positive_semidefinite(self, mesh_4x3):
        """Pure Neumann stiffness has a one-dimensional kernel (constants)."""
        eig = np.linalg.eigvalsh(assemble_system(mesh_4x3).A)
        assert eig[0] == pytest.approx(0.0, abs=1e-10)
        assert eig[1] > 1e-6

    def test_load_total(self, perturbed_mesh):
        """Load entries sum to f times the domain area."""
        F = assemble_system(perturbed_mesh, -6.0).F
        assert F.sum() == pytest.approx(-6.0)

    def test_callable_constant_source(self, perturbed_mesh):
        """A callable constant source matches the scalar source."""
        F_scalar = assemble_system(perturbed_mesh, 2.5).F
        F_func = assemble_system(perturbed_mesh, lambda x, y: np.full_like(x, 2.5)).F
        assert np.allclose(F_scalar, F_func)

    def test_linear_source_integral(self, mesh_4x3):
        """Sum of F equals the integral of a linear source."""
        F = assemble_system(mesh_4x3, lambda x, y: x + 2.0 * y).F
        # ∫_0^1 ∫_0^1 (x + 2y) dx dy = 1.5
        assert F.sum() == pytest.approx(1.5)

    def test_quadratic_energy(self, mesh_4x3):
        """u^T A u equals ∫|grad u|^2 for a linear u on the unit square."""
        u = 0.3 + 2.0 * mesh_4x3.VX - 1.0 * mesh_4x3.VY
        A = assemble_system(mesh_4x3).A
        assert u @ A @ u == pytest.approx(5.0)

    def test_structured_five_point_stencil(self):
        """On the structured grid interior rows are the 5-point stencil."""
        mesh = structured_rectangle(0.0, 0.0, 1.0, 1.0, 4, 4)
        A = assemble_system(mesh).A
        for i in mesh.interior_nodes:
            row = A[i]
            assert row[i] == pytest.approx(4.0)
            nbrs = np.flatnonzero(np.abs(row) > 1e-12)
            assert len(nbrs) == 5
            assert np.allclose(row[nbrs[nbrs != i]], -1.0)

    def test_repeatable(self, perturbed_mesh):
        """Assembling twice into fresh systems gives identical results."""
        s1 = assemble_system(perturbed_mesh, -6.0)
        s2 = assemble_system(perturbed_mesh, -6.0)
        assert np.array_equal(s1.A, s2.A)
        assert np.array_equal(s1.F, s2.F)

    def test_triangle_order_independent(self, perturbed_mesh):
        """Permuting the triangle list changes nothing beyond rounding."""
        rng = np.random.default_rng(7)
        order = rng.permutation(perturbed_mesh.noelms)
        shuffled = TriMesh(
            VX=perturbed_mesh.VX,
            VY=perturbed_mesh.VY,
            EToV=perturbed_mesh.EToV[order],
            markers=perturbed_mesh.markers,
        )
        s1 = assemble_system(perturbed_mesh, -6.0)
        s2 = assemble_system(shuffled, -6.0)
        assert np.allclose(s1.A, s2.A, atol=1e-13)
        assert np.allclose(s1.F, s2.F, atol=1e-13)

    def test_corner_rotation_independent(self, perturbed_mesh):
        """Cyclic relabelling of corners keeps orientation and the result."""
        rotated = TriMesh(
            VX=perturbed_mesh.VX,
            VY=perturbed_mesh.VY,
            EToV=perturbed_mesh.EToV[:, [1, 2, 0]],
            markers=perturbed_mesh.markers,
        )
        s1 = assemble_system(perturbed_mesh, -6.0)
        s2 = assemble_system(rotated, -6.0)
        assert np.allclose(s1.A, s2.A, atol=1e-13)
        assert np.allclose(s1.F, s2.F, atol=1e-13)

    def test_accumulates_into_given_system(self, mesh_4x3):
        """Assembly adds to an existing system rather than overwriting it."""
        system = allocate_system(mesh_4x3.nonodes)
        assemble_system(mesh_4x3, -6.0, system=system)
        assemble_system(mesh_4x3, -6.0, system=system)
        single = assemble_system(mesh_4x3, -6.0)
        assert np.allclose(system.A, 2 * single.A)
        assert np.allclose(system.F, 2 * single.F)

    def test_copy_is_independent(self, mesh_4x3):
        """GlobalSystem.copy does not share buffers."""
        system = assemble_system(mesh_4x3)
        clone = system.copy()
        clone.A[0, 0] = 123.0
        assert isinstance(clone, GlobalSystem)
        assert system.A[0, 0] != 123.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
