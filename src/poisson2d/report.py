"""Text dumps of the assembled system and the computed-vs-exact comparison."""

from __future__ import annotations

import numpy as np
import pandas as pd

from .solvers import PoissonResult


def format_sparsity(A: np.ndarray) -> str:
    """Nonzero pattern, one row per line: 'X' for nonzero, '0' for zero."""
    return "\n".join(" ".join("X" if a else "0" for a in row) for row in np.asarray(A))


def format_matrix(A: np.ndarray, precision: int = 6) -> str:
    return "\n".join(" ".join(f"{a:.{precision}f}" for a in row) for row in np.asarray(A))


def format_vector(F: np.ndarray, precision: int = 6) -> str:
    return "\n".join(f"{f:.{precision}f}" for f in np.asarray(F))


def format_system(A: np.ndarray, F: np.ndarray, precision: int = 6) -> str:
    """Rows of A next to F, with '=' on the middle row."""
    A, F = np.asarray(A), np.asarray(F)
    lines = []
    for i, row in enumerate(A):
        entries = "  ".join(f"{a:.{precision}f}" for a in row)
        sep = "=" if i == len(A) // 2 else " "
        lines.append(f"{entries}  {sep}  {F[i]:.{precision}f}")
    return "\n".join(lines)


def comparison_table(result: PoissonResult) -> pd.DataFrame:
    """Per-vertex computed vs exact values with the absolute difference."""
    mesh = result.mesh
    df = pd.DataFrame(
        {
            "x": mesh.VX,
            "y": mesh.VY,
            "boundary": mesh.markers != 0,
            "computed": result.u,
            "exact": result.exact,
        }
    )
    df["abs_error"] = (df["computed"] - df["exact"]).abs()
    df.index.name = "vertex"
    return df
