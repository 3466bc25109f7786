import sys
import os
import numpy as np
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

from fem1d.assemble import EllipticAssembler1D
from fem1d.errors import DegenerateDomainError


def test_stiffness_constant_lambda():
    asm = EllipticAssembler1D([0.0, 0.5, 1.0], lambda u, x: 1.0)
    K, F = asm.assemble(np.zeros(3))
    expected = np.array([[2.0, -2.0, 0.0],
                         [-2.0, 4.0, -2.0],
                         [0.0, -2.0, 2.0]])
    assert np.allclose(K.to_dense(), expected)
    assert np.allclose(F, 0.0)


def test_lambda_depends_on_approximation():
    asm = EllipticAssembler1D([0.0, 1.0], lambda u, x: 1.0 + u)
    K, _ = asm.assemble(np.array([1.0, 3.0]))
    # mean of lambda at both nodes is 3
    assert np.allclose(K.to_dense(), [[3.0, -3.0], [-3.0, 3.0]])


def test_mass_and_load():
    asm = EllipticAssembler1D([0.0, 0.5, 1.0], lambda u, x: 0.0, gamma=6.0, source=1.0)
    K, F = asm.assemble(np.zeros(3))
    # gamma h / 6 [[2, 1], [1, 2]] with h = 0.5
    expected = np.array([[1.0, 0.5, 0.0],
                         [0.5, 2.0, 0.5],
                         [0.0, 0.5, 1.0]])
    assert np.allclose(K.to_dense(), expected)
    assert np.allclose(F, [0.25, 0.5, 0.25])


def test_load_linear_source():
    asm = EllipticAssembler1D([0.0, 1.0, 2.0], lambda u, x: 1.0, source=lambda x: x)
    _, F = asm.assemble(np.zeros(3))
    # interior: h * f(x) for linear f
    assert np.isclose(F[1], 1.0)
    assert np.isclose(F[0], 1.0 / 6.0)
    assert np.isclose(F[2], 5.0 / 6.0)


def test_assembler_validates_nodes():
    with pytest.raises(DegenerateDomainError):
        EllipticAssembler1D([0.0], lambda u, x: 1.0)
    with pytest.raises(ValueError):
        EllipticAssembler1D([0.0, 0.0, 1.0], lambda u, x: 1.0)
    asm = EllipticAssembler1D([0.0, 1.0], lambda u, x: 1.0)
    with pytest.raises(ValueError):
        asm.assemble(np.zeros(3))


def test_assemble_returns_fresh_storage():
    asm = EllipticAssembler1D([0.0, 0.5, 1.0], lambda u, x: 1.0)
    K1, F1 = asm.assemble(np.zeros(3))
    K1.di[:] = 0.0
    F1[:] = 9.0
    K2, F2 = asm.assemble(np.zeros(3))
    assert np.allclose(K2.di, [2.0, 4.0, 2.0])
    assert np.allclose(F2, 0.0)
