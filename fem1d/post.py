"""
Postprocessing helpers for fem1d.

Provides utilities to tabulate a nonlinear solution against an optional
reference solution and write Fortran-style text output.
"""
from typing import Any, Callable, List, Optional
import numpy as np


def _append_input_echo(lines: List[str], cfg: Any) -> None:
    """Append a concise, labeled echo of parsed input data."""
    kind_map = {
        1: "First (Dirichlet)",
        2: "Second (Neumann)",
        3: "Third (Robin)",
    }

    lines.append("INPUT ECHO DATA")
    lines.append("------------------------------------------------------------")
    lines.append(f"TITLE : {cfg.title}  (Problem title)")
    lines.append("")

    a = cfg.area
    lines.append("DOMAIN / MESH")
    lines.append(f"LEFT, RIGHT : {a.left}, {a.right}  (Domain end points)")
    lines.append(f"NPOINTS     : {a.n_points}  (Number of nodes)")
    lines.append(f"DISCHARGE   : {a.discharge_ratio}  (Ratio of consecutive element lengths)")
    lines.append("")

    acc = cfg.accuracy
    lines.append("ACCURACY")
    lines.append(f"EPS        : {acc.eps}  (Residual tolerance)")
    lines.append(f"MAXITER    : {acc.max_iter}  (Iteration cap)")
    lines.append(f"DELTA      : {acc.delta}  (Stagnation tolerance)")
    lines.append(f"RELAXRATIO : {acc.relax_ratio}  (Fixed relaxation coefficient)")
    lines.append(f"AUTORELAX  : {int(acc.auto_relax)}  (1=golden-section search)")
    lines.append("")

    bc = cfg.boundary_conditions
    lines.append("BOUNDARY CONDITIONS")
    lines.append(f"LEFT  : {int(bc.left)}  {kind_map.get(int(bc.left), 'Unknown')}, value = {cfg.left_value}")
    lines.append(f"RIGHT : {int(bc.right)}  {kind_map.get(int(bc.right), 'Unknown')}, value = {cfg.right_value}")
    lines.append(f"BETA  : {bc.beta}  (Robin coefficient)")
    lines.append("")


def reference_values(nodes: np.ndarray, reference: Callable[[float], float]) -> np.ndarray:
    """Evaluate the reference solution u*(x) at every node."""
    return np.array([reference(float(x)) for x in np.asarray(nodes, dtype=float)], dtype=float)


def format_report(stats: Any,
                  nodes: np.ndarray,
                  reference: Optional[Callable[[float], float]] = None,
                  cfg: Any = None) -> str:
    """Build the text report: nodal table followed by the iteration summary.

    Without a reference solution the u* and |u - u*| columns are omitted and
    the error line reads "n/a".
    """
    nodes = np.asarray(nodes, dtype=float)
    values = np.asarray(stats.values, dtype=float)
    u_star = reference_values(nodes, reference) if reference is not None else None

    if u_star is None:
        cols = "    Node    x-coord.      Value of u"
    else:
        cols = "    Node    x-coord.      Value of u    Value of u*     |u - u*|"

    line = "  _____________________________________________________________________________"
    lines = []
    if cfg is not None:
        lines.append(str(cfg.title))
        lines.append(line)
        lines.append("")
        _append_input_echo(lines, cfg)
    lines.append("     S O L U T I O N :")
    lines.append(line)
    lines.append("")
    lines.append(cols)
    lines.append(line)
    lines.append("")

    for i in range(nodes.shape[0]):
        node = i + 1
        if u_star is None:
            lines.append(f"{node:8d}   {nodes[i]:0.5E}   {values[i]:0.5E}")
        else:
            diff = abs(values[i] - u_star[i])
            lines.append(
                f"{node:8d}   {nodes[i]:0.5E}   {values[i]:0.5E}   {u_star[i]:0.5E}   {diff:0.5E}"
            )
    lines.append(line)
    lines.append("")

    error = "n/a" if stats.error is None else f"{stats.error:0.5E}"
    auto_relax = bool(cfg.accuracy.auto_relax) if cfg is not None else None
    lines.append(f"     Iterations  : {stats.iterations}")
    lines.append(f"     Residual    : {stats.residual:0.5E}")
    lines.append(f"     Error       : {error}")
    if auto_relax is not None:
        lines.append(f"     Auto Relax  : {auto_relax}")
    lines.append(f"     Relax Ratio : {stats.relax_ratio:0.5E}")
    lines.append(f"     Converged   : {stats.converged}")
    lines.append("")
    return "\n".join(lines)


def write_output_txt(output_path: str,
                     stats: Any,
                     nodes: np.ndarray,
                     reference: Optional[Callable[[float], float]] = None,
                     cfg: Any = None) -> None:
    """Write the report produced by `format_report` to `output_path`."""
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(format_report(stats, nodes, reference=reference, cfg=cfg))
