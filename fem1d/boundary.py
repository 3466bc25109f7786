"""
Boundary condition application for 1D systems in profile storage.

Functions:
- apply_dirichlet(matrix, rhs, row, value): pin the row to identity, rhs = value
- apply_neumann(rhs, row, value): add the boundary flux to the rhs entry
- apply_robin(matrix, rhs, row, beta, value): diagonal += beta, rhs += beta * value
- apply_boundary_conditions(matrix, rhs, nodes, conditions): both endpoints

All functions modify `matrix` and `rhs` in place. The left endpoint acts on
row 0, the right endpoint on the last row, so the two never interfere.
"""
import numpy as np

from .errors import DegenerateDomainError
from .io import BoundaryConditions, BoundaryKind
from .sparse import SparseMatrix


def apply_dirichlet(matrix: SparseMatrix, rhs: np.ndarray, row: int, value: float) -> None:
    """Replace equation `row` by u[row] = value.

    Only the row is cleared (diagonal 1, off-diagonals 0); the column is left
    as assembled, so the matrix values become unsymmetric while the pattern
    stays symmetric.
    """
    matrix.di[row] = 1.0
    matrix.zero_row_off_diagonal(row)
    rhs[row] = value


def apply_neumann(rhs: np.ndarray, row: int, value: float) -> None:
    """Add a prescribed flux to the load vector; the matrix is untouched."""
    rhs[row] += value


def apply_robin(matrix: SparseMatrix, rhs: np.ndarray, row: int, beta: float, value: float) -> None:
    """Add the beta * (u - value) boundary term to equation `row`."""
    matrix.di[row] += beta
    rhs[row] += beta * value


def _apply_endpoint(matrix: SparseMatrix, rhs: np.ndarray, row: int, kind: BoundaryKind,
                    value: float, beta: float) -> None:
    if kind == BoundaryKind.FIRST:
        apply_dirichlet(matrix, rhs, row, value)
    elif kind == BoundaryKind.SECOND:
        apply_neumann(rhs, row, value)
    elif kind == BoundaryKind.THIRD:
        apply_robin(matrix, rhs, row, beta, value)
    else:
        raise ValueError(f"Unknown boundary condition kind: {kind!r}")


def apply_boundary_conditions(matrix: SparseMatrix, rhs: np.ndarray, nodes: np.ndarray,
                              conditions: BoundaryConditions) -> None:
    """Apply left and right boundary conditions in place.

    Boundary functions are evaluated at nodes[0] and nodes[-1].

    Raises:
        DegenerateDomainError: fewer than two equations, so both endpoints
            would act on the same row.
    """
    n = matrix.size
    if n < 2:
        raise DegenerateDomainError(f"Boundary conditions need at least 2 nodes, got {n}")
    if rhs.shape[0] != n or len(nodes) != n:
        raise ValueError("rhs and nodes must match the matrix size")

    x_left = float(nodes[0])
    x_right = float(nodes[-1])
    _apply_endpoint(matrix, rhs, 0, conditions.left,
                    conditions.left_func(x_left), conditions.beta)
    _apply_endpoint(matrix, rhs, n - 1, conditions.right,
                    conditions.right_func(x_right), conditions.beta)
