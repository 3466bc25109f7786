"""
Sparse profile storage for 1D FEM matrices and their incomplete factors.

A matrix of order n is stored as
- `di`  (n,)   diagonal
- `ig`  (n+1,) row starts into `jg`/`ggl`/`ggu`
- `jg`  (nnz,) column indices of the strictly lower part, `jg[k] < i` for
  k in `ig[i]:ig[i+1]`, strictly increasing inside a row
- `ggl` (nnz,) lower values, `ggl[k] = A[i, jg[k]]`
- `ggu` (nnz,) upper values, `ggu[k] = A[jg[k], i]`

The sparsity pattern is symmetric, the values need not be. Raw matrices
(`SparseMatrix`) and incomplete LU factors (`SparseFactors`) share this
layout but are different types: `SparseMatrix.factorize()` returns new
factor storage and leaves the raw matrix untouched, triangular solves exist
only on the factors.

The factorization is LU with a shared diagonal,

    A ~ L U,  L = diag(di) + lower(ggl),  U = diag(di) + upper(ggu),

computed only over the stored profile (no fill-in). For a tridiagonal or a
full skyline profile this is the exact LU decomposition.
"""
from typing import Tuple
import numpy as np
from scipy import sparse

from .errors import AlreadyDecomposedError, NotDecomposedError


def _validate_profile(di: np.ndarray, ggl: np.ndarray, ggu: np.ndarray,
                      ig: np.ndarray, jg: np.ndarray) -> None:
    n = di.shape[0]
    if di.ndim != 1:
        raise ValueError("di must be a 1D array")
    if ig.ndim != 1 or ig.shape[0] != n + 1:
        raise ValueError("ig must have length size + 1")
    if ig[0] != 0 or np.any(np.diff(ig) < 0):
        raise ValueError("ig must start at 0 and be non-decreasing")
    if ig[-1] != jg.shape[0]:
        raise ValueError("ig[-1] must equal the number of stored off-diagonal entries")
    if ggl.shape != jg.shape or ggu.shape != jg.shape:
        raise ValueError("ggl, ggu and jg must have the same length")
    if jg.size == 0:
        return
    rows = np.repeat(np.arange(n), np.diff(ig))
    if np.any(jg < 0) or np.any(jg >= rows):
        raise ValueError("jg must hold column indices strictly below the diagonal")
    same_row = rows[1:] == rows[:-1]
    if np.any(jg[1:][same_row] <= jg[:-1][same_row]):
        raise ValueError("column indices must be strictly increasing within a row")


class _ProfileStorage:
    _decomposed = False

    def __init__(self, di, ggl, ggu, ig, jg):
        # np.array copies, so storages never share buffers with the caller
        self.di = np.array(di, dtype=float)
        self.ggl = np.array(ggl, dtype=float)
        self.ggu = np.array(ggu, dtype=float)
        self.ig = np.array(ig, dtype=int)
        self.jg = np.array(jg, dtype=int)
        _validate_profile(self.di, self.ggl, self.ggu, self.ig, self.jg)

    @property
    def decomposed(self) -> bool:
        return self._decomposed

    @property
    def size(self) -> int:
        return int(self.di.shape[0])

    @property
    def nnz(self) -> int:
        """Number of stored strictly-lower entries."""
        return int(self.jg.shape[0])

    def _check_vector(self, v: np.ndarray, name: str) -> np.ndarray:
        v = np.asarray(v, dtype=float)
        if v.ndim != 1 or v.shape[0] != self.size:
            raise ValueError(f"{name} must be a 1D vector of length {self.size}")
        return v

    def _rows(self) -> np.ndarray:
        return np.repeat(np.arange(self.size), np.diff(self.ig))


class SparseMatrix(_ProfileStorage):
    """Raw (not factorized) matrix in profile storage."""

    @classmethod
    def from_dense(cls, a: np.ndarray) -> "SparseMatrix":
        """Build profile storage from a dense square array.

        The stored pattern is every (i, j), j < i, where A[i, j] or A[j, i] is
        nonzero.
        """
        a = np.asarray(a, dtype=float)
        if a.ndim != 2 or a.shape[0] != a.shape[1]:
            raise ValueError("a must be a square 2D array")
        n = a.shape[0]
        ig = [0]
        jg, ggl, ggu = [], [], []
        for i in range(n):
            for j in range(i):
                if a[i, j] != 0.0 or a[j, i] != 0.0:
                    jg.append(j)
                    ggl.append(a[i, j])
                    ggu.append(a[j, i])
            ig.append(len(jg))
        return cls(np.diag(a), ggl, ggu, ig, jg)

    @classmethod
    def tridiagonal(cls, lower, diag, upper) -> "SparseMatrix":
        """Three-band matrix: lower[k] = A[k+1, k], upper[k] = A[k, k+1]."""
        diag = np.asarray(diag, dtype=float)
        n = diag.shape[0]
        lower = np.asarray(lower, dtype=float)
        upper = np.asarray(upper, dtype=float)
        if n == 0:
            raise ValueError("diag must not be empty")
        if lower.shape != (n - 1,) or upper.shape != (n - 1,):
            raise ValueError("lower and upper must have length len(diag) - 1")
        ig = np.concatenate(([0], np.arange(n)))
        jg = np.arange(n - 1)
        return cls(diag, lower, upper, ig, jg)

    def copy(self) -> "SparseMatrix":
        return SparseMatrix(self.di, self.ggl, self.ggu, self.ig, self.jg)

    def matvec(self, x: np.ndarray) -> np.ndarray:
        """Return A @ x using the diagonal and both triangles of the profile."""
        x = self._check_vector(x, "x")
        rows = self._rows()
        y = self.di * x
        np.add.at(y, rows, self.ggl * x[self.jg])
        np.add.at(y, self.jg, self.ggu * x[rows])
        return y

    def __matmul__(self, x: np.ndarray) -> np.ndarray:
        return self.matvec(x)

    def to_dense(self) -> np.ndarray:
        a = np.diag(self.di)
        rows = self._rows()
        a[rows, self.jg] = self.ggl
        a[self.jg, rows] = self.ggu
        return a

    def to_csr(self) -> sparse.csr_matrix:
        """SciPy CSR copy, used where whole-row access is needed."""
        n = self.size
        rows = self._rows()
        diag_idx = np.arange(n)
        row_idx = np.concatenate((diag_idx, rows, self.jg))
        col_idx = np.concatenate((diag_idx, self.jg, rows))
        data = np.concatenate((self.di, self.ggl, self.ggu))
        return sparse.coo_matrix((data, (row_idx, col_idx)), shape=(n, n)).tocsr()

    def zero_row_off_diagonal(self, i: int) -> None:
        """Set every off-diagonal entry of row i to zero, in place."""
        if not 0 <= i < self.size:
            raise IndexError(f"row {i} out of range for size {self.size}")
        self.ggl[self.ig[i]:self.ig[i + 1]] = 0.0
        # A[i, j] for j > i lives in row j as an upper value
        self.ggu[self.jg == i] = 0.0

    def factorize(self) -> "SparseFactors":
        """Incomplete LU factorization over the stored profile.

        Returns new `SparseFactors`; this matrix is not modified. A
        non-positive pivot produces NaN in the factors (NumPy semantics),
        it is not trapped here.
        """
        ig, jg = self.ig, self.jg
        di = self.di.copy()
        ggl = self.ggl.copy()
        ggu = self.ggu.copy()

        for i in range(self.size):
            i0, i1 = ig[i], ig[i + 1]
            diag_sum = 0.0
            for k in range(i0, i1):
                j = jg[k]
                j0, j1 = ig[j], ig[j + 1]
                # sum over columns m < j present in both row i and row j
                sum_l = 0.0
                sum_u = 0.0
                ki, kj = i0, j0
                while ki < k and kj < j1:
                    if jg[ki] == jg[kj]:
                        sum_l += ggl[ki] * ggu[kj]
                        sum_u += ggu[ki] * ggl[kj]
                        ki += 1
                        kj += 1
                    elif jg[ki] < jg[kj]:
                        ki += 1
                    else:
                        kj += 1
                ggl[k] = (ggl[k] - sum_l) / di[j]
                ggu[k] = (ggu[k] - sum_u) / di[j]
                diag_sum += ggl[k] * ggu[k]
            di[i] = np.sqrt(di[i] - diag_sum)

        return SparseFactors(di, ggl, ggu, ig, jg)

    def forward_solve(self, b: np.ndarray) -> np.ndarray:
        raise NotDecomposedError()

    def backward_solve(self, y: np.ndarray) -> np.ndarray:
        raise NotDecomposedError()


class SparseFactors(_ProfileStorage):
    """Incomplete LU factors in profile storage."""

    _decomposed = True

    def factorize(self) -> "SparseFactors":
        raise AlreadyDecomposedError("Matrix is already decomposed")

    def forward_solve(self, b: np.ndarray) -> np.ndarray:
        """Solve L y = b without forming L^-1."""
        y = self._check_vector(b, "b").copy()
        ig, jg, ggl, di = self.ig, self.jg, self.ggl, self.di
        for i in range(self.size):
            k0, k1 = ig[i], ig[i + 1]
            y[i] = (y[i] - np.dot(ggl[k0:k1], y[jg[k0:k1]])) / di[i]
        return y

    def backward_solve(self, y: np.ndarray) -> np.ndarray:
        """Solve U x = y without forming U^-1.

        Rows are walked from last to first; once x[i] is known its column of
        U (stored as row i's upper values) is scattered into the rows above.
        """
        x = self._check_vector(y, "y").copy()
        ig, jg, ggu, di = self.ig, self.jg, self.ggu, self.di
        for i in range(self.size - 1, -1, -1):
            x[i] /= di[i]
            k0, k1 = ig[i], ig[i + 1]
            x[jg[k0:k1]] -= ggu[k0:k1] * x[i]
        return x

    def to_dense_factors(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return dense (L, U)."""
        rows = self._rows()
        lower = np.diag(self.di)
        upper = np.diag(self.di)
        lower[rows, self.jg] = self.ggl
        upper[self.jg, rows] = self.ggu
        return lower, upper
