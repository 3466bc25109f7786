"""
Mesh generation utilities for fem1d.

Places the nodes of a 1D mesh on [left, right]. Element lengths follow a
geometric progression h_{k+1} = q * h_k with discharge ratio q (uniform
mesh for q == 1), built as cumulative sums of the element lengths.
"""
import numpy as np

from .errors import DegenerateDomainError
from .io import Area


def element_lengths(length: float, n_elements: int, discharge_ratio: float = 1.0) -> np.ndarray:
    """Lengths of `n_elements` consecutive elements summing to `length`."""
    q = float(discharge_ratio)
    if q == 1.0:
        return np.full(n_elements, length / n_elements)
    # h0 * (1 + q + ... + q^(n-1)) = length
    h0 = length * (1.0 - q) / (1.0 - q ** n_elements)
    return h0 * q ** np.arange(n_elements)


def generate_nodes(left: float, right: float, n_points: int,
                   discharge_ratio: float = 1.0) -> np.ndarray:
    """
    Generate node coordinates x_0 = left < x_1 < ... < x_{n-1} = right.

    Returns:
        nodes: (n_points,) float ndarray

    Raises:
        DegenerateDomainError: n_points < 2
        ValueError: right <= left or discharge_ratio <= 0
    """
    if n_points < 2:
        raise DegenerateDomainError(f"A 1D mesh needs at least 2 nodes, got {n_points}")
    if right <= left:
        raise ValueError(f"right ({right}) must exceed left ({left})")
    if discharge_ratio <= 0.0:
        raise ValueError(f"discharge_ratio must be positive, got {discharge_ratio}")

    h = element_lengths(right - left, n_points - 1, discharge_ratio)
    nodes = np.empty(n_points, dtype=float)
    nodes[0] = left
    nodes[1:] = left + np.cumsum(h)
    # pin the endpoint against round-off in the cumulative sum
    nodes[-1] = right
    return nodes


def generate_mesh_from_area(area: Area) -> np.ndarray:
    """Node coordinates for the domain described by `area`."""
    return generate_nodes(area.left, area.right, area.n_points, area.discharge_ratio)
