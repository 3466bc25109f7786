import sys
import os
import numpy as np

# Make local `fem1d` package importable when running this example from the repo root
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fem1d import mesh, driver
from fem1d.assemble import EllipticAssembler1D
from fem1d.io import Accuracy, BoundaryConditions, BoundaryKind, constant


def main():
    # 21 nodes on [0, 1], elements shrinking towards the right end
    nodes = mesh.generate_nodes(0.0, 1.0, 21, discharge_ratio=0.9)

    # -((1 + u^2) u')' + u = f with exact solution u = x^2
    def lam(u, x):
        return 1.0 + u * u

    def f(x):
        # -(d/dx)((1 + x^4) 2x) + x^2
        return -(2.0 + 10.0 * x ** 4) + x * x

    assembler = EllipticAssembler1D(nodes, lam, gamma=1.0, source=f)

    # u(0) = 0, u(1) = 1
    bc = BoundaryConditions(left=BoundaryKind.FIRST, right=BoundaryKind.FIRST,
                            left_func=constant(0.0), right_func=constant(1.0))

    accuracy = Accuracy(eps=1e-9, max_iter=500, delta=1e-12, auto_relax=True)
    stats = driver.solve_nonlinear(assembler, bc, accuracy, reference=lambda x: x * x)

    print("NodeID, X, u, u*")
    for i, (x, ui) in enumerate(zip(nodes, stats.values)):
        print(f"{i+1}, {x:.6f}, {ui:.8e}, {x * x:.8e}")
    print(f"Iterations: {stats.iterations}  Residual: {stats.residual:.3e}  Error: {stats.error:.3e}")

    out_csv = os.path.join(PROJECT_ROOT, 'example_solution.csv')
    with open(out_csv, 'w') as fh:
        fh.write('node,x,u\n')
        for i, (x, ui) in enumerate(zip(nodes, stats.values)):
            fh.write(f"{i+1},{x},{ui}\n")
    print(f"Saved nodal solution to {out_csv}")


if __name__ == '__main__':
    main()
