"""Failure kinds raised by the assembly and solve pipeline.

Each error is raised where it is detected and propagated unchanged; the
pipeline never retries, since the same input always fails the same way.
"""

from __future__ import annotations


class PoissonError(Exception):
    """Base class for all solver failures."""


class DegenerateGeometryError(PoissonError, ValueError):
    """Triangle with (near) zero or negative signed area."""

    def __init__(self, triangle: int, area: float):
        self.triangle = triangle
        self.area = area
        super().__init__(
            f"Degenerate triangle {triangle}: signed area {area:.6e} is not positive"
        )


class IndexOutOfRangeError(PoissonError, IndexError):
    """Triangle references a vertex outside [0, nonodes)."""

    def __init__(self, triangle: int, vertex: int, nonodes: int):
        self.triangle = triangle
        self.vertex = vertex
        self.nonodes = nonodes
        super().__init__(
            f"Triangle {triangle} references vertex {vertex}, "
            f"mesh has {nonodes} vertices"
        )


class SingularSystemError(PoissonError, ArithmeticError):
    """LU factorization completed but U has an exactly zero pivot."""

    def __init__(self, pivot: int):
        self.pivot = pivot
        super().__init__(f"System matrix is exactly singular: U[{pivot}, {pivot}] = 0")


class InvalidArgumentError(PoissonError, ValueError):
    """Dense solver rejected one of its arguments."""

    def __init__(self, position: int):
        self.position = position
        super().__init__(f"Dense solver rejected argument {position}")


class AllocationFailureError(PoissonError, MemoryError):
    """Dense N x N system could not be allocated."""

    def __init__(self, nonodes: int):
        self.nonodes = nonodes
        super().__init__(
            f"Unable to allocate dense {nonodes}x{nonodes} system "
            f"({8 * nonodes * nonodes / 2**20:.1f} MiB)"
        )
