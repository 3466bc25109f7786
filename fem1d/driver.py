"""
Simple-iteration (Picard) driver for 1D nonlinear elliptic problems.

Each iteration:
- takes the system A(u_n) x = f(u_n) assembled at the current approximation
  with boundary conditions applied
- solves it with the linear solver (LOS by default) from a zero initial
  guess, giving x*
- picks the relaxation coefficient (fixed, or golden-section search on the
  residual of the blended approximation)
- forms u_{n+1} = ratio * x* + (1 - ratio) * u_n

The convergence measure is the relative residual of the linear solve's
result x*, taken in the system linearized at x* itself:
||f(x*) - A(x*) x*|| / ||f(x*)||. For a linear problem A and f do not depend
on the approximation, so one solve meets eps whatever the relaxation.
The loop stops on residual <= eps, on stagnation (||x* - u_n|| < delta), on
a non-finite residual or after max_iter iterations, and always runs at least
once. The reported values and error are those of x*.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Tuple
import warnings
import numpy as np

from .assemble import Assembler, EllipticAssembler1D
from .boundary import apply_boundary_conditions
from .errors import NonConvergenceWarning
from .io import Accuracy, BoundaryConditions, ProblemConfig, read_inp
from .logger_setup import setup_logger
from .mesh import generate_mesh_from_area
from .post import reference_values, write_output_txt
from .relaxation import blend, golden_section_search
from .solver import LinearSystem, is_stagnating, local_optimal_scheme, relative_residual
from .sparse import SparseMatrix

logger = setup_logger(__name__)


@dataclass
class Statistics:
    """
    Outcome of a nonlinear solve.

    Attributes:
        iterations: Number of simple iterations performed
        residual: Relative residual of the system linearized at `values`
        error: ||u* - u|| / ||u*|| against the reference solution, None without one
        values: Solution x* of the last linear solve at the mesh nodes
        relax_ratio: Relaxation coefficient used in the last iteration
        converged: residual <= eps was reached
        stagnated: the loop ended on the stagnation test
    """
    iterations: int
    residual: float
    error: Optional[float]
    values: np.ndarray
    relax_ratio: float
    converged: bool = False
    stagnated: bool = False


def linearized_system(assembler: Assembler, conditions: BoundaryConditions,
                      approx: np.ndarray) -> Tuple[SparseMatrix, np.ndarray]:
    """Assemble at `approx` and apply boundary conditions."""
    matrix, rhs = assembler.assemble(approx)
    rhs = np.array(rhs, dtype=float)
    apply_boundary_conditions(matrix, rhs, assembler.nodes, conditions)
    return matrix, rhs


def residual_functional(assembler: Assembler, conditions: BoundaryConditions,
                        approx: np.ndarray) -> float:
    """Relative residual of the system linearized at `approx`, evaluated at `approx`."""
    matrix, rhs = linearized_system(assembler, conditions, approx)
    return relative_residual(matrix, approx, rhs)


def optimal_relax_ratio(assembler: Assembler, conditions: BoundaryConditions,
                        new: np.ndarray, old: np.ndarray, accuracy: Accuracy) -> float:
    """Golden-section search for t in [0, 1] minimizing the residual of t*new + (1-t)*old."""
    def g(t: float) -> float:
        return residual_functional(assembler, conditions, blend(new, old, t))

    return golden_section_search(g, 0.0, 1.0, accuracy.eps)


def compute_error(values: np.ndarray, nodes: np.ndarray,
                  reference: Callable[[float], float]) -> float:
    """||u* - u|| / ||u*|| over the nodes; NaN/Inf are passed through."""
    u_star = reference_values(nodes, reference)
    return float(np.linalg.norm(u_star - values) / np.linalg.norm(u_star))


def solve_nonlinear(assembler: Assembler,
                    boundary_conditions: BoundaryConditions,
                    accuracy: Accuracy,
                    reference: Optional[Callable[[float], float]] = None,
                    linear_solver: Optional[Callable] = None,
                    callback: Optional[Callable[[int, float], None]] = None) -> Statistics:
    """Run simple iteration until convergence, stagnation or the iteration cap.

    assembler: object with `nodes` and `assemble(approx) -> (SparseMatrix, rhs)`
    reference: exact solution u*(x), used only for the error metric
    linear_solver: callable(matrix, rhs, accuracy, x0=...) -> LinearSolution,
        defaults to `local_optimal_scheme`
    callback: called as callback(iteration, residual) after every iteration

    NaN/Inf produced by ill-posed input are not trapped: the loop stops on a
    non-finite residual and the NaN values are reported in the returned
    Statistics.
    """
    if linear_solver is None:
        linear_solver = local_optimal_scheme

    nodes = np.asarray(assembler.nodes, dtype=float)
    approx = np.zeros(nodes.shape[0])
    matrix, rhs = linearized_system(assembler, boundary_conditions, approx)

    ratio = accuracy.relax_ratio
    iterations = 0
    while True:
        system = LinearSystem(matrix, rhs)
        system.solve(accuracy, linear_solver)
        new = system.x

        # system linearized at the solve's result; reused below when ratio == 1
        check_matrix, check_rhs = linearized_system(assembler, boundary_conditions, new)
        residual = relative_residual(check_matrix, new, check_rhs)
        finite = bool(np.isfinite(residual))
        converged = residual <= accuracy.eps

        if accuracy.auto_relax and finite:
            ratio = optimal_relax_ratio(assembler, boundary_conditions, new, approx, accuracy)

        stagnated = finite and is_stagnating(approx, new, accuracy.delta)
        approx = blend(new, approx, ratio)
        iterations += 1

        logger.info(f"RelRes = {residual:.10g} | Iter: {iterations} | Ratio: {ratio:.6g}")
        if callback is not None:
            callback(iterations, residual)

        if not finite:
            logger.warning(f"Non-finite residual at iteration {iterations}")
            break
        if converged or stagnated or iterations >= accuracy.max_iter:
            break

        if ratio == 1.0:
            matrix, rhs = check_matrix, check_rhs
        else:
            matrix, rhs = linearized_system(assembler, boundary_conditions, approx)

    if not converged and not stagnated:
        message = (f"Simple iteration stopped after {iterations} iterations "
                   f"without convergence (relative residual = {residual})")
        logger.warning(message)
        warnings.warn(message, NonConvergenceWarning, stacklevel=2)

    error = compute_error(new, nodes, reference) if reference is not None else None
    logger.info(f"Finished: iterations = {iterations}, residual = {residual:.10g}, error = {error}")

    return Statistics(
        iterations=iterations,
        residual=residual,
        error=error,
        values=new,
        relax_ratio=ratio,
        converged=bool(converged),
        stagnated=stagnated,
    )


def solve_from_inp(filepath: str,
                   lambda_func: Callable[[float, float], float],
                   gamma: Any = 0.0,
                   source: Any = 0.0,
                   reference: Optional[Callable[[float], float]] = None,
                   output_txt_path: Optional[str] = None) -> Tuple[Statistics, np.ndarray, ProblemConfig]:
    """Parse an INP file, solve with the linear-element assembler, write a text report.

    The PDE coefficients are passed in as callables (or constants for gamma
    and source); the INP file supplies domain, accuracy and boundary data.
    """
    cfg = read_inp(filepath)
    nodes = generate_mesh_from_area(cfg.area)
    assembler = EllipticAssembler1D(nodes, lambda_func, gamma=gamma, source=source)

    stats = solve_nonlinear(assembler, cfg.boundary_conditions, cfg.accuracy, reference=reference)

    if output_txt_path is None:
        inp = Path(filepath)
        output_txt_path = str(inp.with_name(f"{inp.stem}_output.txt"))
    write_output_txt(output_txt_path, stats, nodes, reference=reference, cfg=cfg)

    return stats, nodes, cfg
