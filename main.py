"""
Poisson FEM driver - assemble, eliminate, solve and report.

Usage:
    python main.py
    python main.py mesh.max_area=0.01 report.numeric=true
    python main.py mesh.algorithm=6
    python main.py mesh=structured mesh.noelms1=16 mesh.noelms2=16
    python main.py problem=linear_source refinement=[0.1,0.01,0.001]
"""

import logging
import sys
from pathlib import Path

import hydra
from omegaconf import DictConfig, OmegaConf

sys.path.insert(0, str(Path(__file__).parent / "src"))

from poisson2d import (  # noqa: E402
    PoissonError,
    TriMesh,
    apply_dirichlet,
    assemble_system,
    boundary_function,
    dense_solve,
    get_problem,
    refinement_study,
    structured_rectangle,
)
from poisson2d.solvers import PoissonResult  # noqa: E402
from poisson2d.report import (  # noqa: E402
    comparison_table,
    format_sparsity,
    format_system,
    format_vector,
)

log = logging.getLogger(__name__)


def create_mesh(cfg: DictConfig) -> TriMesh:
    if cfg.mesh.type == "unit_square":
        from poisson2d.mesh import unit_square

        return unit_square(max_area=cfg.mesh.max_area, algorithm=cfg.mesh.algorithm)
    elif cfg.mesh.type == "structured":
        return structured_rectangle(
            x0=cfg.mesh.x0, y0=cfg.mesh.y0,
            L1=cfg.mesh.L1, L2=cfg.mesh.L2,
            noelms1=cfg.mesh.noelms1, noelms2=cfg.mesh.noelms2,
        )
    elif cfg.mesh.type == "file":
        path = hydra.utils.to_absolute_path(cfg.mesh.path)
        return TriMesh.from_meshio(path)
    else:
        raise ValueError(f"Unknown mesh type: {cfg.mesh.type}")


def run(cfg: DictConfig) -> PoissonResult:
    """Single solve with the debug dumps requested in cfg.report."""
    problem = get_problem(cfg.problem)
    mesh = create_mesh(cfg)
    log.info(f"Mesh: {mesh.nonodes} vertices, {mesh.noelms} triangles, problem '{problem.name}'")

    system = assemble_system(mesh, problem.source)
    if cfg.report.sparsity:
        print(format_sparsity(system.A))
    if cfg.report.numeric:
        print(format_system(system.A, system.F))
    if cfg.report.sparsity_plot:
        from poisson2d.plot_style import plot_sparsity

        plot_sparsity(system.A, hydra.utils.to_absolute_path(cfg.report.sparsity_plot))

    apply_dirichlet(system, mesh.markers, boundary_function(mesh, problem.exact))
    if cfg.report.numeric:
        print()
        print(format_system(system.A, system.F))

    u = dense_solve(system)
    result = PoissonResult(mesh=mesh, u=u, exact=problem.exact(mesh.VX, mesh.VY))

    if cfg.report.solution:
        print(format_vector(result.u))
    if cfg.report.table:
        print(comparison_table(result).to_string(float_format=lambda v: f"{v:.6e}"))
    if cfg.report.solution_plot:
        from poisson2d.plot_style import plot_solution

        plot_solution(mesh, result.u, hydra.utils.to_absolute_path(cfg.report.solution_plot))

    log.info(f"Max nodal error {result.max_error:.6e}, L2 error {result.l2_error:.6e}")
    return result


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> float | None:
    """Main entry point. Returns the maximum nodal error."""
    log.debug(f"Config:\n{OmegaConf.to_yaml(cfg)}")
    try:
        result = run(cfg)
        if cfg.refinement:
            study = refinement_study(
                list(cfg.refinement),
                get_problem(cfg.problem),
                algorithm=OmegaConf.select(cfg, "mesh.algorithm"),
            )
            print(study.to_string(index=False))
    except PoissonError as exc:
        log.error(f"{type(exc).__name__}: {exc}")
        sys.exit(1)
    return result.max_error


if __name__ == "__main__":
    main()
