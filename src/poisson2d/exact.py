"""Closed-form model problems for -Δu = f with Dirichlet data g = u on the boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

import numpy as np
from numpy.typing import NDArray

ScalarField = Callable[[NDArray[np.float64], NDArray[np.float64]], NDArray[np.float64]]


def quadratic_solution(x, y):
    """u = 1 + x^2 + 2y^2, so -Δu = -6."""
    return 1.0 + np.asarray(x) ** 2 + 2.0 * np.asarray(y) ** 2


def harmonic_solution(x, y):
    """u = x^2 - y^2 + xy, so -Δu = 0."""
    x, y = np.asarray(x), np.asarray(y)
    return x**2 - y**2 + x * y


def cubic_solution(x, y):
    """u = x^3 + y^3, so -Δu = -6(x + y)."""
    return np.asarray(x) ** 3 + np.asarray(y) ** 3


def cubic_source(x, y):
    return -6.0 * (np.asarray(x) + np.asarray(y))


@dataclass(frozen=True)
class Problem:
    """Model problem: exact solution doubles as the boundary data."""

    name: str
    exact: ScalarField
    source: Union[float, ScalarField]

    def boundary_value(self, x: float, y: float) -> float:
        return float(self.exact(x, y))


QUADRATIC = Problem("quadratic", quadratic_solution, -6.0)
HARMONIC = Problem("harmonic", harmonic_solution, 0.0)
LINEAR_SOURCE = Problem("linear_source", cubic_solution, cubic_source)

PROBLEMS = {p.name: p for p in (QUADRATIC, HARMONIC, LINEAR_SOURCE)}


def get_problem(name: str) -> Problem:
    try:
        return PROBLEMS[name]
    except KeyError:
        raise ValueError(f"Unknown problem: {name} (choose from {sorted(PROBLEMS)})") from None
