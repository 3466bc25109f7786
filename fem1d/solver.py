"""
Sparse iterative solvers for fem1d linear systems.

Two strategies operate on `SparseMatrix` profile storage:
- Local Optimal Scheme (LOS): conjugate-direction Krylov method
  preconditioned by the incomplete LU factors of the matrix. The primary
  solver; works for symmetric-pattern matrices with unsymmetric values
  (Dirichlet rows) and for ill-conditioned systems.
- Relaxed Gauss-Seidel: simple fallback, first sweep over-relaxed with
  w = 1.7, later sweeps with w = 1.0.

Neither solver raises on slow convergence. When the iteration cap is hit
before the tolerance or the stagnation test is met, a
`NonConvergenceWarning` is issued and the last iterate is returned with
`converged=False`.

API:
- `local_optimal_scheme(matrix, rhs, accuracy, x0=None, callback=None)` -> LinearSolution
- `gauss_seidel(matrix, rhs, accuracy, x0=None)` -> LinearSolution
- `linear_solve(matrix, rhs, accuracy, method='los')` -> solution vector
- `relative_residual(matrix, x, rhs)` -> ||f - A x|| / ||f||
- `is_stagnating(prev, x, delta)` -> ||prev - x|| < delta
"""
from dataclasses import dataclass, field
from typing import Callable, Optional
import warnings
import numpy as np
from scipy import sparse

from .errors import AlreadyDecomposedError, NonConvergenceWarning
from .io import Accuracy
from .logger_setup import setup_logger
from .sparse import SparseMatrix

logger = setup_logger(__name__)


@dataclass
class LinearSolution:
    """Result of an iterative linear solve.

    `residual` is the quantity the solver tested against `eps`: the running
    estimate of (r, r) in the preconditioned space for LOS, the relative
    residual ||f - A x|| / ||f|| for Gauss-Seidel.
    """
    x: np.ndarray
    iterations: int
    residual: float
    converged: bool
    stagnated: bool = False


@dataclass
class LinearSystem:
    """A x = rhs with a mutable result vector `x` (initial guess on input)."""
    matrix: SparseMatrix
    rhs: np.ndarray
    x: Optional[np.ndarray] = None
    last_solution: Optional[LinearSolution] = field(default=None, repr=False)

    def __post_init__(self):
        self.rhs = np.array(self.rhs, dtype=float)
        if self.rhs.ndim != 1 or self.rhs.shape[0] != self.matrix.size:
            raise ValueError("rhs must be a 1D vector matching the matrix size")
        if self.x is None:
            self.x = np.zeros(self.matrix.size)
        else:
            self.x = np.array(self.x, dtype=float)

    @property
    def size(self) -> int:
        return self.matrix.size

    def relative_residual(self) -> float:
        return relative_residual(self.matrix, self.x, self.rhs)

    def solve(self, accuracy: Accuracy, solver: Optional[Callable] = None) -> LinearSolution:
        """Solve in place: `self.x` is overwritten with the solver's iterate."""
        if solver is None:
            solver = local_optimal_scheme
        solution = solver(self.matrix, self.rhs, accuracy, x0=self.x)
        self.x[...] = solution.x
        self.last_solution = solution
        return solution


def relative_residual(matrix: SparseMatrix, x: np.ndarray, rhs: np.ndarray) -> float:
    """Return ||f - A x|| / ||f||, or the absolute residual when f == 0."""
    rhs = np.asarray(rhs, dtype=float)
    r = rhs - matrix.matvec(x)
    norm_f = np.linalg.norm(rhs)
    if norm_f == 0.0:
        return float(np.linalg.norm(r))
    return float(np.linalg.norm(r) / norm_f)


def is_stagnating(prev: np.ndarray, x: np.ndarray, delta: float) -> bool:
    """True when two consecutive vectors differ by less than `delta` in norm."""
    return bool(np.linalg.norm(np.asarray(prev) - np.asarray(x)) < delta)


def _initial_guess(x0: Optional[np.ndarray], size: int) -> np.ndarray:
    if x0 is None:
        return np.zeros(size)
    x = np.array(x0, dtype=float)
    if x.ndim != 1 or x.shape[0] != size:
        raise ValueError(f"x0 must be a 1D vector of length {size}")
    return x


def _check_rhs(matrix: SparseMatrix, rhs: np.ndarray) -> np.ndarray:
    rhs = np.asarray(rhs, dtype=float)
    if rhs.ndim != 1 or rhs.shape[0] != matrix.size:
        raise ValueError("rhs must be a 1D vector with compatible length")
    return rhs


def local_optimal_scheme(matrix: SparseMatrix,
                         rhs: np.ndarray,
                         accuracy: Accuracy,
                         x0: Optional[np.ndarray] = None,
                         callback: Optional[Callable[[int, float], None]] = None) -> LinearSolution:
    """Solve A x = f with the ILU-preconditioned Local Optimal Scheme.

    With A ~ L U:
        r0 = L^-1 (f - A x0),  z0 = U^-1 r0,  p0 = L^-1 A z0
        alpha = (p, r) / (p, p)
        x += alpha z,  r -= alpha p
        beta = -(p, L^-1 A U^-1 r) / (p, p)
        z = U^-1 r + beta z,  p = L^-1 A U^-1 r + beta p

    (r, r) is not recomputed: it is updated as `residual -= alpha^2 (p, p)`,
    which drifts in floating point over many iterations.

    Iteration stops when |residual| <= eps, after `max_iter` iterations, or
    when the change of the residual estimate between two iterations is
    <= delta. The caller's matrix is not modified; a private factorized copy
    is used as preconditioner.

    Raises:
        AlreadyDecomposedError: `matrix` holds factors instead of A.
    """
    if matrix.decomposed:
        raise AlreadyDecomposedError()
    rhs = _check_rhs(matrix, rhs)
    factors = matrix.factorize()

    x = _initial_guess(x0, matrix.size)

    r = factors.forward_solve(rhs - matrix.matvec(x))
    residual = np.dot(r, r)
    residual_prev = residual + 1.0
    stagnation = 1.0

    z = factors.backward_solve(r)
    p = factors.forward_solve(matrix.matvec(z))

    logger.debug(f"LOS iter 0: residual = {residual}, stagnation = {stagnation}")

    k = 1
    # `not <=` lets a NaN residual into the loop, so the NaN reaches x
    while not abs(residual) <= accuracy.eps and k <= accuracy.max_iter and stagnation > accuracy.delta:
        pp = np.dot(p, p)
        if pp == 0.0:
            # search direction vanished: the residual is exactly zero
            residual = np.dot(r, r)
            break
        alpha = np.dot(p, r) / pp

        stagnation = abs(residual - residual_prev)
        residual_prev = residual
        residual -= alpha * alpha * pp

        x += alpha * z
        r -= alpha * p

        ur = factors.backward_solve(r)
        dot_rhs = factors.forward_solve(matrix.matvec(ur))
        beta = -np.dot(p, dot_rhs) / pp

        z = ur + beta * z
        p = dot_rhs + beta * p

        logger.debug(f"LOS iter {k}: residual = {residual}, stagnation = {stagnation}")
        if callback is not None:
            callback(k, float(residual))
        k += 1

    iterations = k - 1
    converged = bool(abs(residual) <= accuracy.eps)
    stagnated = bool(stagnation <= accuracy.delta)
    if not converged and not stagnated:
        _warn_not_converged("LOS", iterations, residual)
    return LinearSolution(x, iterations, float(residual), converged, stagnated)


def _gauss_seidel_sweep(csr: sparse.csr_matrix, diag: np.ndarray, x: np.ndarray,
                        rhs: np.ndarray, w: float) -> np.ndarray:
    """One relaxed Gauss-Seidel sweep; returns a new vector."""
    x = x.copy()
    indptr, indices, data = csr.indptr, csr.indices, csr.data
    for i in range(x.shape[0]):
        a, b = indptr[i], indptr[i + 1]
        row_sum = np.dot(data[a:b], x[indices[a:b]])
        x[i] += w * (rhs[i] - row_sum) / diag[i]
    return x


def gauss_seidel(matrix: SparseMatrix,
                 rhs: np.ndarray,
                 accuracy: Accuracy,
                 x0: Optional[np.ndarray] = None) -> LinearSolution:
    """Solve A x = f by relaxed Gauss-Seidel sweeps.

    x[i] += w (f[i] - sum_j A[i, j] x[j]) / A[i, i], the row sum including
    the diagonal. The first sweep uses w = 1.7, the rest w = 1.0. Stops on
    relative residual <= eps, `max_iter` sweeps, or when two consecutive
    iterates differ by less than delta.
    """
    if matrix.decomposed:
        raise AlreadyDecomposedError()
    rhs = _check_rhs(matrix, rhs)
    csr = matrix.to_csr()
    diag = matrix.di

    x = _gauss_seidel_sweep(csr, diag, _initial_guess(x0, matrix.size), rhs, 1.7)
    residual = relative_residual(matrix, x, rhs)
    iterations = 1
    prev = np.zeros(matrix.size)
    stagnated = False

    while iterations < accuracy.max_iter and residual > accuracy.eps:
        stagnated = is_stagnating(prev, x, accuracy.delta)
        if stagnated:
            break
        prev = x
        x = _gauss_seidel_sweep(csr, diag, x, rhs, 1.0)
        residual = relative_residual(matrix, x, rhs)
        iterations += 1
        logger.debug(f"Gauss-Seidel iter {iterations}: relative residual = {residual}")

    converged = bool(residual <= accuracy.eps)
    if not converged and not stagnated:
        _warn_not_converged("Gauss-Seidel", iterations, residual)
    return LinearSolution(x, iterations, float(residual), converged, stagnated)


_METHODS = {
    "los": local_optimal_scheme,
    "gauss_seidel": gauss_seidel,
}


def linear_solve(matrix: SparseMatrix, rhs: np.ndarray, accuracy: Accuracy,
                 method: str = "los") -> np.ndarray:
    """Solve A x = f and return x.

    method: 'los' (default) or 'gauss_seidel'.
    """
    try:
        solver = _METHODS[method]
    except KeyError:
        raise ValueError(f"Unknown linear solver method: {method!r}") from None
    return solver(matrix, rhs, accuracy).x


def _warn_not_converged(name: str, iterations: int, residual: float) -> None:
    message = f"{name} stopped after {iterations} iterations without convergence (residual = {residual})"
    logger.warning(message)
    warnings.warn(message, NonConvergenceWarning, stacklevel=3)
