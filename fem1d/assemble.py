"""
Global assembly for 1D nonlinear elliptic problems.

    -d/dx( lambda(u, x) du/dx ) + gamma(x) u = f(x)

The nonlinear driver only needs an object satisfying the `Assembler`
protocol: node coordinates plus `assemble(approx) -> (SparseMatrix, rhs)`
returning the system linearized at `approx` (coefficients frozen at the
current approximation). `EllipticAssembler1D` is the linear-element
implementation of that protocol.

Element [x_k, x_{k+1}], h = x_{k+1} - x_k:
    stiffness  lam / h * [[1, -1], [-1, 1]],  lam = mean of lambda at both nodes
    mass       gamma_k h / 6 * [[2, 1], [1, 2]],  gamma at the element midpoint
    load       h / 6 * [[2, 1], [1, 2]] @ [f_k, f_{k+1}]
"""
from typing import Callable, Protocol, Tuple, Union
import numpy as np

from .errors import DegenerateDomainError
from .sparse import SparseMatrix

ScalarFunc = Callable[[float], float]


class Assembler(Protocol):
    nodes: np.ndarray

    def assemble(self, approx: np.ndarray) -> Tuple[SparseMatrix, np.ndarray]:
        ...


def _as_function(value: Union[float, ScalarFunc]) -> ScalarFunc:
    if callable(value):
        return value
    value = float(value)
    return lambda x: value


class EllipticAssembler1D:
    """
    Linear-element assembler for -(lambda(u, x) u')' + gamma(x) u = f(x).

    nodes: (n,) increasing node coordinates
    lambda_func: lambda(u, x), the nonlinear diffusion coefficient
    gamma: reaction coefficient, constant or gamma(x)
    source: right-hand side, constant or f(x)
    """

    def __init__(self,
                 nodes: np.ndarray,
                 lambda_func: Callable[[float, float], float],
                 gamma: Union[float, ScalarFunc] = 0.0,
                 source: Union[float, ScalarFunc] = 0.0):
        nodes = np.array(nodes, dtype=float)
        if nodes.ndim != 1:
            raise ValueError("nodes must be a 1D array")
        if nodes.shape[0] < 2:
            raise DegenerateDomainError(f"A 1D mesh needs at least 2 nodes, got {nodes.shape[0]}")
        if np.any(np.diff(nodes) <= 0.0):
            raise ValueError("nodes must be strictly increasing")
        self.nodes = nodes
        self.lambda_func = lambda_func
        self.gamma = _as_function(gamma)
        self.source = _as_function(source)

    @property
    def size(self) -> int:
        return int(self.nodes.shape[0])

    def assemble(self, approx: np.ndarray) -> Tuple[SparseMatrix, np.ndarray]:
        """Assemble the system linearized at `approx`; returns fresh storage."""
        u = np.asarray(approx, dtype=float)
        if u.shape != self.nodes.shape:
            raise ValueError(f"approx must have shape {self.nodes.shape}, got {u.shape}")

        n = self.size
        x = self.nodes
        diag = np.zeros(n, dtype=float)
        lower = np.zeros(n - 1, dtype=float)
        upper = np.zeros(n - 1, dtype=float)
        rhs = np.zeros(n, dtype=float)

        lam = [self.lambda_func(u[i], x[i]) for i in range(n)]
        f = [self.source(x[i]) for i in range(n)]

        for k in range(n - 1):
            h = x[k + 1] - x[k]
            lam_mean = 0.5 * (lam[k] + lam[k + 1])
            gamma_mid = self.gamma(0.5 * (x[k] + x[k + 1]))

            stiff = lam_mean / h
            mass = gamma_mid * h / 6.0
            # symmetric 2x2 element matrix: diagonal and off-diagonal entries
            k_diag = stiff + 2.0 * mass
            k_off = -stiff + mass

            diag[k] += k_diag
            diag[k + 1] += k_diag
            lower[k] += k_off
            upper[k] += k_off

            rhs[k] += h / 6.0 * (2.0 * f[k] + f[k + 1])
            rhs[k + 1] += h / 6.0 * (f[k] + 2.0 * f[k + 1])

        return SparseMatrix.tridiagonal(lower, diag, upper), rhs
