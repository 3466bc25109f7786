"""
Run the nonlinear driver with both linear solvers on the same INP and print a
compact comparison.
"""
from pathlib import Path
import sys

import numpy as np

from nonlinear_rod_python import REPO_ROOT, conductivity, exact, source
from fem1d.assemble import EllipticAssembler1D
from fem1d.driver import solve_nonlinear
from fem1d.io import read_inp
from fem1d.mesh import generate_mesh_from_area
from fem1d.solver import gauss_seidel, local_optimal_scheme


def main(inp_file: str | None = None) -> int:
    inp = Path(inp_file) if inp_file else (REPO_ROOT / "inputs" / "nonlinear_rod.inp")
    cfg = read_inp(str(inp))
    nodes = generate_mesh_from_area(cfg.area)
    assembler = EllipticAssembler1D(nodes, conductivity, source=source)

    results = {}
    for name, linear_solver in (("LOS", local_optimal_scheme), ("Gauss-Seidel", gauss_seidel)):
        results[name] = solve_nonlinear(assembler, cfg.boundary_conditions, cfg.accuracy,
                                        reference=exact, linear_solver=linear_solver)

    print(f"\nComparison ({cfg.title}):")
    for name, stats in results.items():
        print(f"  {name:13s} iterations: {stats.iterations:4d}   residual: {stats.residual:.6e}"
              f"   error: {stats.error:.6e}")

    los = results["LOS"].values
    gs = results["Gauss-Seidel"].values
    print(f"  Max |u_LOS - u_GS|: {np.max(np.abs(los - gs)):.6e}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1] if len(sys.argv) > 1 else None))
