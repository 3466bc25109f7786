"""
Run the fem1d nonlinear solver from an INP file and write a Fortran-style TXT.

The INP file carries domain, accuracy and boundary data; the coefficients
below match inputs/nonlinear_rod.inp, whose exact solution is u = x.
"""
from pathlib import Path
import sys


REPO_ROOT = Path(__file__).resolve().parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from fem1d.driver import solve_from_inp


def conductivity(u: float, x: float) -> float:
    return 1.0 + u * u


def source(x: float) -> float:
    return -2.0 * x


def exact(x: float) -> float:
    return x


def run_python_case(input_file: str | None = None, output_file: str | None = None) -> Path:
    inp = Path(input_file) if input_file else (REPO_ROOT / "inputs" / "nonlinear_rod.inp")
    if not inp.exists():
        raise FileNotFoundError(f"Input file not found: {inp}")

    out = Path(output_file) if output_file else (REPO_ROOT / "outputs" / f"{inp.stem}_python.txt")
    out.parent.mkdir(parents=True, exist_ok=True)

    stats, nodes, cfg = solve_from_inp(str(inp), conductivity, gamma=0.0, source=source,
                                       reference=exact, output_txt_path=str(out))
    print(f"Python solve complete: {cfg.title}")
    print(f"Input : {inp}")
    print(f"Output: {out}")
    print(f"Iterations: {stats.iterations}, residual: {stats.residual:.8e}, error: {stats.error:.8e}")
    return out


if __name__ == "__main__":
    arg_inp = sys.argv[1] if len(sys.argv) > 1 else None
    arg_out = sys.argv[2] if len(sys.argv) > 2 else None
    run_python_case(arg_inp, arg_out)
