import sys
import os
import numpy as np
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

from fem1d import solver
from fem1d.boundary import apply_dirichlet
from fem1d.errors import AlreadyDecomposedError, NonConvergenceWarning
from fem1d.io import Accuracy
from fem1d.sparse import SparseMatrix


def _tridiagonal(n=10):
    return SparseMatrix.tridiagonal(-np.ones(n - 1), 4.0 * np.ones(n), -np.ones(n - 1))


def _banded(n=10):
    # ILU(0) of this profile is not exact
    a = 10.0 * np.eye(n)
    for off in (1, 3):
        a -= 0.5 * np.eye(n, k=off)
        a -= 0.5 * np.eye(n, k=-off)
    return SparseMatrix.from_dense(a)


def test_los_tridiagonal():
    m = _tridiagonal()
    f = np.ones(10)
    sol = solver.local_optimal_scheme(m, f, Accuracy(eps=1e-12, max_iter=100, delta=0.0))
    assert sol.converged
    assert sol.iterations <= 2
    assert solver.relative_residual(m, sol.x, f) < 1e-8


def test_los_banded_spd():
    m = _banded()
    f = np.arange(1.0, 11.0)
    sol = solver.local_optimal_scheme(m, f, Accuracy(eps=1e-20, max_iter=9, delta=0.0))
    assert sol.iterations < 10
    assert solver.relative_residual(m, sol.x, f) < 1e-8
    assert np.allclose(sol.x, np.linalg.solve(m.to_dense(), f))


def test_los_unsymmetric_dirichlet_rows():
    m = _tridiagonal(6)
    f = np.ones(6)
    apply_dirichlet(m, f, 0, 2.0)
    sol = solver.local_optimal_scheme(m, f, Accuracy(eps=1e-12, max_iter=50, delta=0.0))
    assert solver.relative_residual(m, sol.x, f) < 1e-8
    assert np.isclose(sol.x[0], 2.0)


def test_los_uses_initial_guess():
    m = _tridiagonal()
    f = np.ones(10)
    exact = np.linalg.solve(m.to_dense(), f)
    sol = solver.local_optimal_scheme(m, f, Accuracy(eps=1e-12), x0=exact)
    # started at the solution, nothing to do
    assert sol.iterations <= 1
    assert np.allclose(sol.x, exact)


def test_los_callback():
    seen = []
    solver.local_optimal_scheme(_banded(), np.ones(10), Accuracy(eps=1e-20, max_iter=5, delta=0.0),
                                callback=lambda k, r: seen.append(k))
    assert seen == [1, 2, 3, 4, 5]


def test_los_rejects_factors():
    f = _tridiagonal().factorize()
    with pytest.raises(AlreadyDecomposedError):
        solver.local_optimal_scheme(f, np.ones(10), Accuracy())


def test_los_nonconvergence_warning():
    with pytest.warns(NonConvergenceWarning):
        sol = solver.local_optimal_scheme(_banded(), np.ones(10), Accuracy(eps=0.0, max_iter=1, delta=0.0))
    assert not sol.converged
    assert sol.iterations == 1


def test_los_zero_matrix_gives_nan():
    m = SparseMatrix.tridiagonal(np.zeros(2), np.zeros(3), np.zeros(2))
    with pytest.warns(NonConvergenceWarning):
        sol = solver.local_optimal_scheme(m, np.ones(3), Accuracy(eps=1e-12, max_iter=10))
    assert not sol.converged
    assert not sol.stagnated
    assert np.any(np.isnan(sol.x))


def test_gauss_seidel_and_los_agree():
    m = _tridiagonal()
    f = np.linspace(1.0, 2.0, 10)
    acc = Accuracy(eps=1e-12, max_iter=1000, delta=0.0)
    x_gs = solver.gauss_seidel(m, f, acc).x
    x_los = solver.local_optimal_scheme(m, f, acc).x
    assert solver.relative_residual(m, x_gs, f) < 1e-6
    assert solver.relative_residual(m, x_los, f) < 1e-6
    assert np.allclose(x_gs, x_los, atol=1e-6)


def test_gauss_seidel_stagnation():
    m = _tridiagonal()
    sol = solver.gauss_seidel(m, np.ones(10), Accuracy(eps=0.0, max_iter=1000, delta=1e-3))
    assert sol.stagnated
    assert sol.iterations < 1000


def test_gauss_seidel_nonconvergence_warning():
    with pytest.warns(NonConvergenceWarning):
        sol = solver.gauss_seidel(_tridiagonal(), np.ones(10), Accuracy(eps=0.0, max_iter=1, delta=0.0))
    assert sol.iterations == 1
    assert not sol.converged


def test_linear_solve_methods():
    m = _tridiagonal()
    f = np.ones(10)
    acc = Accuracy(eps=1e-12, max_iter=500, delta=0.0)
    for method in ("los", "gauss_seidel"):
        x = solver.linear_solve(m, f, acc, method=method)
        assert np.allclose(m @ x, f, atol=1e-6)
    with pytest.raises(ValueError):
        solver.linear_solve(m, f, acc, method="cg")


def test_relative_residual_zero_rhs():
    m = _tridiagonal(3)
    x = np.array([1.0, 0.0, 0.0])
    # ||f|| == 0 falls back to the absolute residual
    assert np.isclose(solver.relative_residual(m, x, np.zeros(3)), np.linalg.norm(m @ x))


def test_is_stagnating():
    assert solver.is_stagnating(np.ones(3), np.ones(3) + 1e-12, 1e-10)
    assert not solver.is_stagnating(np.ones(3), np.zeros(3), 1e-10)


def test_linear_system_solves_in_place():
    m = _tridiagonal()
    system = solver.LinearSystem(m, np.ones(10))
    x = system.x
    sol = system.solve(Accuracy(eps=1e-12, delta=0.0))
    assert system.x is x
    assert system.last_solution is sol
    assert system.relative_residual() < 1e-8


def test_linear_system_rejects_bad_rhs():
    with pytest.raises(ValueError):
        solver.LinearSystem(_tridiagonal(), np.ones(3))


def test_gauss_seidel_rejects_factors():
    with pytest.raises(AlreadyDecomposedError):
        solver.gauss_seidel(_tridiagonal().factorize(), np.ones(10), Accuracy())
