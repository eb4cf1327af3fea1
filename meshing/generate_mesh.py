"""
Mesh generation script using gmsh.

Generates area-constrained triangular meshes and saves them with meshio,
for use with `python main.py mesh=file mesh.path=...`.
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from poisson2d.mesh import triangulate, unit_square, write_mesh  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="Generate FEM meshes using gmsh")
    parser.add_argument(
        "--type",
        choices=["unit_square", "rectangle"],
        default="unit_square",
        help="Type of mesh to generate",
    )
    parser.add_argument(
        "--max-area",
        type=float,
        default=0.01,
        help="Maximum triangle area",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path(__file__).parent,
        help="Output directory for mesh files",
    )
    parser.add_argument(
        "--x0", type=float, default=0.0, help="x-coordinate of bottom-left corner"
    )
    parser.add_argument(
        "--y0", type=float, default=0.0, help="y-coordinate of bottom-left corner"
    )
    parser.add_argument("--L1", type=float, default=1.0, help="Width of rectangle")
    parser.add_argument("--L2", type=float, default=1.0, help="Height of rectangle")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.type == "unit_square":
        mesh = unit_square(max_area=args.max_area)
        output_path = args.output_dir / f"unit_square_a{args.max_area:.3f}.msh"
    elif args.type == "rectangle":
        corners = [
            (args.x0, args.y0),
            (args.x0 + args.L1, args.y0),
            (args.x0 + args.L1, args.y0 + args.L2),
            (args.x0, args.y0 + args.L2),
        ]
        mesh = triangulate(corners, max_area=args.max_area)
        output_path = args.output_dir / f"rectangle_a{args.max_area:.3f}.msh"

    write_mesh(mesh, output_path)


if __name__ == "__main__":
    main()
