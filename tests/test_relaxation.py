import sys
import os
import numpy as np
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

from fem1d.relaxation import GOLDEN, GoldenSectionState, blend, golden_section_search


class _Counted:
    def __init__(self, func):
        self.func = func
        self.calls = 0

    def __call__(self, t):
        self.calls += 1
        return self.func(t)


def test_golden_section_parabola():
    eps = 1e-7
    t = golden_section_search(lambda t: (t - 0.3) ** 2, 0.0, 1.0, eps)
    assert abs(t - 0.3) <= eps


def test_golden_section_one_evaluation_per_step():
    func = _Counted(lambda t: (t - 0.3) ** 2)
    state = GoldenSectionState.start(func, 0.0, 1.0)
    assert func.calls == 2
    for _ in range(5):
        state.narrow(func)
    assert func.calls == 7
    assert state.evaluations == 7
    assert np.isclose(state.width, GOLDEN ** 5)
    assert state.left <= 0.3 <= state.right


def test_golden_section_step_cap():
    func = _Counted(lambda t: (t - 0.7) ** 2)
    golden_section_search(func, 0.0, 1.0, eps=0.0, max_iter=20)
    assert func.calls == 22


def test_golden_section_minimum_at_bracket_end():
    t = golden_section_search(lambda t: t, 0.0, 1.0, eps=1e-6)
    assert t < 1e-5


def test_golden_section_empty_bracket():
    with pytest.raises(ValueError):
        golden_section_search(lambda t: t, 1.0, 1.0)


def test_blend():
    new = np.array([1.0, 2.0])
    old = np.array([3.0, 4.0])
    out = blend(new, old, 0.25)
    assert np.allclose(out, [2.5, 3.5])
    assert out is not new and out is not old
    assert np.allclose(blend(new, old, 1.0), new)
