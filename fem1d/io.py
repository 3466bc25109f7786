"""
Input/Output module for fem1d nonlinear elliptic problems.

Holds the configuration dataclasses shared by the solvers and parses fem1d
input files (.INP) into a `ProblemConfig`.

Input file layout (whitespace separated, one record per line):

    TITLE
    LEFT RIGHT NPOINTS DISCHARGE            (domain and node placement)
    EPS MAXITER DELTA RELAXRATIO AUTORELAX  (accuracy, AUTORELAX is 0 or 1)
    LEFTKIND LEFTVALUE                      (kind: 1/2/3 or First/Second/Third)
    RIGHTKIND RIGHTVALUE
    BETA                                    (Robin coefficient)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, List, Tuple, Union
from pathlib import Path


# ============================================================================
# DATACLASSES for structured input representation
# ============================================================================

class BoundaryKind(IntEnum):
    """
    Boundary condition kind at a domain endpoint.

        FIRST  (1) = Dirichlet, u = g
        SECOND (2) = Neumann, flux g added to the load vector
        THIRD  (3) = Robin, beta * (u - g) term
    """
    FIRST = 1
    SECOND = 2
    THIRD = 3

    @classmethod
    def parse(cls, token: Union[str, int, "BoundaryKind"]) -> "BoundaryKind":
        if isinstance(token, cls):
            return token
        text = str(token).strip()
        if text.isdigit():
            return cls(int(text))
        try:
            return cls[text.upper()]
        except KeyError:
            raise ValueError(f"Unknown boundary condition kind: {token!r}") from None


@dataclass
class Area:
    """
    Domain [left, right] split into n_points nodes.

    Attributes:
        left, right: Domain endpoints (right > left)
        n_points: Number of mesh nodes (>= 2)
        discharge_ratio: Ratio between consecutive element lengths
            1.0 = uniform mesh
            > 1 = elements grow towards the right endpoint
            < 1 = elements shrink towards the right endpoint
    """
    left: float = 0.0
    right: float = 1.0
    n_points: int = 11
    discharge_ratio: float = 1.0


@dataclass
class Accuracy:
    """
    Iteration controls shared by the linear and nonlinear solvers.

    Attributes:
        eps: Residual tolerance (also the golden-section bracket width)
        max_iter: Iteration cap
        delta: Stagnation tolerance
        relax_ratio: Fixed relaxation coefficient used when auto_relax is off
        auto_relax: Choose the relaxation coefficient by golden-section search
    """
    eps: float = 1e-7
    max_iter: int = 1000
    delta: float = 1e-10
    relax_ratio: float = 1.0
    auto_relax: bool = False

    def __post_init__(self):
        if self.eps < 0.0:
            raise ValueError(f"eps must be non-negative, got {self.eps}")
        if self.delta < 0.0:
            raise ValueError(f"delta must be non-negative, got {self.delta}")
        if int(self.max_iter) != self.max_iter or self.max_iter < 1:
            raise ValueError(f"max_iter must be a positive integer, got {self.max_iter}")
        if not 0.0 < self.relax_ratio <= 2.0:
            raise ValueError(f"relax_ratio must lie in (0, 2], got {self.relax_ratio}")
        self.max_iter = int(self.max_iter)


def constant(value: float) -> Callable[[float], float]:
    """Scalar function returning `value` everywhere."""
    value = float(value)

    def func(x: float) -> float:
        return value

    return func


@dataclass
class BoundaryConditions:
    """
    Boundary data at both endpoints.

    Attributes:
        left, right: Boundary kind at x = left / x = right
        left_func, right_func: g(x), evaluated at the endpoint coordinate
        beta: Robin coefficient, used by THIRD kind endpoints
    """
    left: BoundaryKind = BoundaryKind.FIRST
    right: BoundaryKind = BoundaryKind.FIRST
    left_func: Callable[[float], float] = field(default_factory=lambda: constant(0.0))
    right_func: Callable[[float], float] = field(default_factory=lambda: constant(0.0))
    beta: float = 1.0

    def __post_init__(self):
        self.left = BoundaryKind.parse(self.left)
        self.right = BoundaryKind.parse(self.right)


@dataclass
class ProblemConfig:
    """
    Complete problem configuration parsed from a fem1d input file.

    The PDE coefficients (lambda, gamma, f) and the reference solution are
    Python callables supplied by the caller, not part of the file.
    """
    title: str
    area: Area
    accuracy: Accuracy
    boundary_conditions: BoundaryConditions
    # Raw boundary values as read, kept for reporting
    left_value: float = 0.0
    right_value: float = 0.0


# ============================================================================
# PARSER FUNCTION
# ============================================================================

def read_inp(filepath: str) -> ProblemConfig:
    """
    Parse a fem1d input file and return structured configuration.

    Args:
        filepath: Path to .INP file

    Returns:
        ProblemConfig: Typed configuration object

    Raises:
        FileNotFoundError: If input file not found
        ValueError: If file format is invalid
    """
    filepath = Path(filepath)   # type: ignore
    if not filepath.exists():   # type: ignore
        raise FileNotFoundError(f"Input file not found: {filepath}")

    tokens = _tokenize_file(filepath)   # type: ignore
    if len(tokens) < 15:
        raise ValueError(f"Input file is truncated: expected 15 records, got {len(tokens)}")
    idx = 0

    title = tokens[idx]
    idx += 1

    # ========== BLOCK 1: Domain ==========
    area = Area(
        left=float(tokens[idx]),
        right=float(tokens[idx + 1]),
        n_points=int(tokens[idx + 2]),
        discharge_ratio=float(tokens[idx + 3]),
    )
    idx += 4

    # ========== BLOCK 2: Accuracy ==========
    accuracy = Accuracy(
        eps=float(tokens[idx]),
        max_iter=int(tokens[idx + 1]),
        delta=float(tokens[idx + 2]),
        relax_ratio=float(tokens[idx + 3]),
        auto_relax=bool(int(tokens[idx + 4])),
    )
    idx += 5

    # ========== BLOCK 3: Boundary conditions ==========
    left_kind = BoundaryKind.parse(tokens[idx])
    left_value = float(tokens[idx + 1])
    idx += 2
    right_kind = BoundaryKind.parse(tokens[idx])
    right_value = float(tokens[idx + 1])
    idx += 2
    beta = float(tokens[idx])
    idx += 1

    boundary_conditions = BoundaryConditions(
        left=left_kind,
        right=right_kind,
        left_func=constant(left_value),
        right_func=constant(right_value),
        beta=beta,
    )
    return ProblemConfig(title, area, accuracy, boundary_conditions, left_value, right_value)


def _tokenize_file(filepath: Path) -> List[str]:
    """
    Tokenize input file: split by whitespace, remove comments.

    Handles:
    - Title on the first line (kept as a single token, never a comment)
    - Fortran fixed-form comments (C in column 1)
    - Python-style comments (#)
    """
    tokens = []
    with open(filepath, 'r') as f:
        lines = f.readlines()

    if lines:
        tokens.append(lines[0].strip())
        lines = lines[1:]

    for line in lines:
        if line.startswith('C'):
            continue
        if '#' in line:
            line = line[:line.index('#')]
        tokens.extend(line.split())

    return tokens


def validate_config(config: ProblemConfig) -> Tuple[bool, List[str]]:
    """
    Perform basic validation of parsed configuration.

    Returns:
        (is_valid, error_messages): Tuple of validation result and any errors found
    """
    errors = []

    area = config.area
    if area.right <= area.left:
        errors.append(f"Invalid domain: right ({area.right}) must exceed left ({area.left})")
    if area.n_points < 2:
        errors.append(f"Invalid NPOINTS: {area.n_points} (at least 2 nodes required)")
    if area.discharge_ratio <= 0.0:
        errors.append(f"Invalid DISCHARGE: {area.discharge_ratio} (must be positive)")

    bc = config.boundary_conditions
    if BoundaryKind.THIRD in (bc.left, bc.right) and bc.beta == 0.0:
        errors.append("Robin boundary requested with BETA = 0")

    if config.accuracy.auto_relax and config.accuracy.eps == 0.0:
        errors.append("AUTORELAX with EPS = 0: golden-section search runs to its step cap")

    return len(errors) == 0, errors
