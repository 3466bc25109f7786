import sys
import os
import numpy as np

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

from fem1d import post
from fem1d.driver import Statistics
from fem1d.io import Accuracy, Area, BoundaryConditions, ProblemConfig


def _stats(error=None):
    return Statistics(iterations=4, residual=1.5e-8, error=error,
                      values=np.array([0.0, 0.5, 1.0]), relax_ratio=0.75, converged=True)


def test_report_without_reference():
    text = post.format_report(_stats(), np.array([0.0, 0.5, 1.0]))
    assert "Value of u*" not in text
    assert "Error       : n/a" in text
    assert "Iterations  : 4" in text
    assert "Relax Ratio : 7.50000E-01" in text
    assert "INPUT ECHO DATA" not in text


def test_report_with_reference_and_config():
    cfg = ProblemConfig("Rod", Area(n_points=3), Accuracy(auto_relax=True), BoundaryConditions(),
                        left_value=0.0, right_value=1.0)
    text = post.format_report(_stats(error=2.0e-3), np.array([0.0, 0.5, 1.0]),
                              reference=lambda x: x + 0.1, cfg=cfg)
    lines = text.splitlines()
    assert lines[0] == "Rod"
    assert "Value of u*" in text
    assert "Auto Relax  : True" in text
    assert "Error       : 2.00000E-03" in text
    # |u - u*| column
    assert any(line.strip().startswith("2") and line.rstrip().endswith("1.00000E-01") for line in lines)


def test_reference_values():
    vals = post.reference_values(np.array([0.0, 1.0, 2.0]), lambda x: x * x)
    assert np.allclose(vals, [0.0, 1.0, 4.0])


def test_write_output_txt(tmp_path):
    out = tmp_path / "report.txt"
    post.write_output_txt(str(out), _stats(), np.array([0.0, 0.5, 1.0]))
    assert out.read_text() == post.format_report(_stats(), np.array([0.0, 0.5, 1.0]))
