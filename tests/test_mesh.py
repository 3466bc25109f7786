import sys
import os
import numpy as np
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

from fem1d import mesh
from fem1d.errors import DegenerateDomainError
from fem1d.io import Area


def test_uniform_nodes():
    nodes = mesh.generate_nodes(0.0, 2.0, 5)
    assert np.allclose(nodes, [0.0, 0.5, 1.0, 1.5, 2.0])


def test_geometric_nodes():
    # h = 1, 2, 4
    nodes = mesh.generate_nodes(0.0, 7.0, 4, discharge_ratio=2.0)
    assert np.allclose(nodes, [0.0, 1.0, 3.0, 7.0])
    assert nodes[-1] == 7.0


def test_element_lengths_sum():
    h = mesh.element_lengths(3.0, 10, 0.8)
    assert np.isclose(h.sum(), 3.0)
    assert np.allclose(h[1:] / h[:-1], 0.8)


def test_mesh_from_area():
    nodes = mesh.generate_mesh_from_area(Area(left=1.0, right=2.0, n_points=3))
    assert np.allclose(nodes, [1.0, 1.5, 2.0])


def test_invalid_mesh_arguments():
    with pytest.raises(DegenerateDomainError):
        mesh.generate_nodes(0.0, 1.0, 1)
    with pytest.raises(ValueError):
        mesh.generate_nodes(1.0, 1.0, 3)
    with pytest.raises(ValueError):
        mesh.generate_nodes(0.0, 1.0, 3, discharge_ratio=0.0)
