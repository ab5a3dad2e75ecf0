"""
Compare the cost of analytic and AD Jacobian evaluations.

Run from the project root:
    python mct/scripts/benchmark_jacobian.py
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import time
import numpy as np

from mct import MultiChannelTransportModel
from mct.tests.two_channel import create_model_config


def run_benchmark(n_col=100, n_channel=4, n_comp=2, weno_order=3, analytic=True, repeats=20):
    """Average time of one residual_with_jacobian() call."""
    rng = np.random.default_rng(0)
    config = create_model_config(
        cross_sections=np.linspace(1.0, 2.0, n_channel),
        exchange=rng.uniform(0.0, 0.1, n_channel * n_channel * n_comp),
        n_comp=n_comp,
        n_col=n_col,
        weno_order=weno_order,
        dispersion=1e-3,
        analytic_jacobian=analytic,
    )
    model = MultiChannelTransportModel.from_config(config)
    model.set_flow_rates(np.where(np.arange(n_channel) % 2 == 0, 1.0, -1.0))

    y = rng.random(model.num_dofs)
    y_dot = np.zeros_like(y)

    # Warm up (JIT compilation for the AD path)
    model.residual_with_jacobian(0.0, y, y_dot)

    start_time = time.time()
    for _ in range(repeats):
        model.residual_with_jacobian(0.0, y, y_dot)
    elapsed = (time.time() - start_time) / repeats
    return elapsed, model.num_dofs, model.jacobian_pattern.n_colors


if __name__ == "__main__":
    print("=" * 80)
    print("JACOBIAN BENCHMARK")
    print("=" * 80)
    print(f"{'NCOL':>6} {'WENO':>5} {'DOFs':>7} {'Colors':>7} {'Analytic [ms]':>14} {'AD [ms]':>10} {'Ratio':>7}")

    for n_col in [50, 100, 200]:
        for weno_order in [1, 2, 3]:
            t_analytic, n_dofs, n_colors = run_benchmark(n_col=n_col, weno_order=weno_order, analytic=True)
            t_ad, _, _ = run_benchmark(n_col=n_col, weno_order=weno_order, analytic=False)
            print(f"{n_col:>6} {weno_order:>5} {n_dofs:>7} {n_colors:>7} "
                  f"{t_analytic * 1e3:>14.2f} {t_ad * 1e3:>10.2f} {t_ad / t_analytic:>7.1f}")
