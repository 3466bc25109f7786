"""
Relaxation coefficient search for the simple-iteration driver.

The blend t * x_new + (1 - t) * x_old is chosen to minimize the residual
functional g(t) on [0, 1] by golden-section narrowing. Each narrowing step
keeps one inner point and its cached value, so g is evaluated exactly once
per step (two evaluations to start).
"""
from dataclasses import dataclass
from typing import Callable
import math
import numpy as np

from .logger_setup import setup_logger

logger = setup_logger(__name__)

GOLDEN = (math.sqrt(5.0) - 1.0) / 2.0


@dataclass
class GoldenSectionState:
    """Bracket [left, right], inner points x_left < x_right and cached g values."""
    left: float
    right: float
    x_left: float
    x_right: float
    f_left: float
    f_right: float
    evaluations: int = 2

    @classmethod
    def start(cls, func: Callable[[float], float], left: float, right: float) -> "GoldenSectionState":
        x_left = left + (1.0 - GOLDEN) * (right - left)
        x_right = left + GOLDEN * (right - left)
        return cls(left, right, x_left, x_right, func(x_left), func(x_right))

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def midpoint(self) -> float:
        return (self.left + self.right) / 2.0

    def narrow(self, func: Callable[[float], float]) -> None:
        """Drop the bracket end next to the larger value; evaluate one new point."""
        if self.f_left > self.f_right:
            self.left = self.x_left
            self.x_left, self.f_left = self.x_right, self.f_right
            self.x_right = self.left + GOLDEN * (self.right - self.left)
            self.f_right = func(self.x_right)
        else:
            self.right = self.x_right
            self.x_right, self.f_right = self.x_left, self.f_left
            self.x_left = self.left + (1.0 - GOLDEN) * (self.right - self.left)
            self.f_left = func(self.x_left)
        self.evaluations += 1


def golden_section_search(func: Callable[[float], float],
                          left: float = 0.0,
                          right: float = 1.0,
                          eps: float = 1e-7,
                          max_iter: int = 200) -> float:
    """Return the midpoint of the final bracket around the minimum of `func`.

    `func` must be unimodal on [left, right]. Narrowing stops once the
    bracket width is <= eps, or after `max_iter` steps (the bracket cannot
    shrink below floating-point resolution, so tiny eps would never end).
    """
    if right <= left:
        raise ValueError(f"Empty bracket: [{left}, {right}]")
    state = GoldenSectionState.start(func, left, right)
    steps = 0
    while state.width > eps and steps < max_iter:
        state.narrow(func)
        steps += 1
    logger.debug(f"Golden section: t = {state.midpoint}, width = {state.width}, "
                 f"evaluations = {state.evaluations}")
    return state.midpoint


def blend(new: np.ndarray, old: np.ndarray, t: float) -> np.ndarray:
    """Return the fresh vector t * new + (1 - t) * old."""
    return t * np.asarray(new, dtype=float) + (1.0 - t) * np.asarray(old, dtype=float)
