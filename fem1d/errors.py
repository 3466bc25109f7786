"""
Exception and warning types raised by the fem1d solvers.

- AlreadyDecomposedError: factorization requested on factors, or a factored
  matrix handed to a solver that factorizes privately
- NotDecomposedError: triangular solve requested on a raw matrix
- DegenerateDomainError: fewer than two nodes, endpoints coincide
- NonConvergenceWarning: iteration cap reached, best iterate still returned
"""


class Fem1DError(Exception):
    """Base class for fem1d errors."""


class AlreadyDecomposedError(Fem1DError):
    def __init__(self, message: str = "Matrix must not be decomposed"):
        super().__init__(message)


class NotDecomposedError(Fem1DError):
    def __init__(self, message: str = "Matrix must be decomposed"):
        super().__init__(message)


class DegenerateDomainError(Fem1DError, ValueError):
    """Raised for single-node domains, where left and right rows coincide."""


class NonConvergenceWarning(RuntimeWarning):
    """Iteration cap reached before the residual or stagnation tolerance."""
