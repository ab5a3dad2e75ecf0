"""
Section-aware time integration of a single unit operation.
"""

import logging
import numpy as np
import matplotlib.pyplot as plt
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .errors import ConfigurationError, IntegrationError, Status
from .exporter import InMemoryRecorder
from .timestepping import NEWTON_TOL, bdf_coefficients, error_weights, newton_solve, weighted_rms

logger = logging.getLogger(__name__)


@dataclass
class SimulatorConfig:
    """Configuration of the simulator."""
    section_times: Sequence[float] = (0.0, 1.0)
    solution_times: Optional[Sequence[float]] = None   # Defaults to the section times
    section_continuity: Optional[Sequence[bool]] = None  # One flag per inner section boundary
    time_scheme: str = 'bdf2'  # Options: 'bdf2', 'euler'
    substeps: int = 1  # Steps between consecutive output times
    max_newton_iter: int = 10
    abstol: float = 1e-8
    reltol: float = 1e-6
    max_step_halvings: int = 8
    consistent_init_tol: float = 1e-12
    lean_consistent_init: bool = False
    print_interval: int = 100


class Simulator:
    """
    Integrates a unit operation over a sequence of sections.

    Features:
    - Fixed step BDF2 (variable-coefficient after step halving) or backward Euler
    - Modified Newton iteration with the model's sparse LU
    - Consistent (re)initialization at discontinuous section transitions
    - Staggered direct forward sensitivities
    - Step halving on Newton failure
    """

    def __init__(self, model, config: SimulatorConfig = None):
        """
        Initialize the simulator.

        Args:
            model: Configured unit operation
            config: Simulator configuration
        """
        self.model = model
        self.config = config if config is not None else SimulatorConfig()

        if self.config.time_scheme not in ('bdf2', 'euler'):
            raise ValueError(f"Unknown time scheme: {self.config.time_scheme}. "
                             "Options: 'bdf2', 'euler'")

        self.section_times = np.asarray(self.config.section_times, dtype=float)
        if len(self.section_times) < 2 or np.any(np.diff(self.section_times) <= 0):
            raise ConfigurationError("section_times must be strictly increasing with at least two entries")

        n_inner = len(self.section_times) - 2
        continuity = self.config.section_continuity
        self.section_continuity = np.zeros(n_inner, dtype=bool) if continuity is None \
            else np.asarray(continuity, dtype=bool)
        if self.section_continuity.shape != (n_inner,):
            raise ConfigurationError(f"section_continuity needs {n_inner} entries")

        times = self.section_times if self.config.solution_times is None else self.config.solution_times
        self.solution_times = np.asarray(times, dtype=float)
        if np.any(np.diff(self.solution_times) < 0) or \
                np.any(self.solution_times < self.section_times[0]) or \
                np.any(self.solution_times > self.section_times[-1]):
            raise ConfigurationError("solution_times must be sorted and lie within the section times")

        if self.config.substeps < 1:
            raise ConfigurationError("substeps must be at least 1")
        if self.config.lean_consistent_init and not model.supports('lean_consistent_initialization'):
            raise ConfigurationError("The unit operation has no lean consistent initialization")

        # Solution storage
        self.recorder = InMemoryRecorder()
        self.sensitivity_recorders: List[InMemoryRecorder] = []
        self.workspace = model.create_workspace()
        self.y = None
        self.y_dot = None
        self.s = None
        self.s_dot = None
        self.time = float(self.section_times[0])
        self.iteration = 0
        self.rejected_steps = 0

        # History for BDF2
        self._y_prev = None
        self._s_prev = None
        self._h_prev = None

    def _initialize(self, t: float) -> None:
        """Make state, derivative and sensitivities consistent at time t."""
        model, config, ws = self.model, self.config, self.workspace
        if config.lean_consistent_init:
            status = model.lean_consistent_initial_state(t, self.y, config.consistent_init_tol, ws)
            if status == Status.OK:
                status = model.lean_consistent_initial_time_derivative(t, self.y, self.y_dot, ws)
        else:
            status = model.consistent_initial_state(t, self.y, config.consistent_init_tol, ws)
            if status == Status.OK:
                status = model.consistent_initial_time_derivative(t, self.y, self.y_dot, ws)
        if status != Status.OK:
            raise IntegrationError(f"Consistent initialization failed at t = {t:.6g}")

        if len(self.s):
            model.residual_with_jacobian(t, self.y, self.y_dot, ws)
            if config.lean_consistent_init:
                status = model.lean_consistent_initial_sensitivity(t, self.y, self.y_dot, self.s, self.s_dot)
            else:
                status = model.consistent_initial_sensitivity(t, self.y, self.y_dot, self.s, self.s_dot)
            if status != Status.OK:
                raise IntegrationError(f"Consistent sensitivity initialization failed at t = {t:.6g}")

        # Restart the multistep history
        self._y_prev = None
        self._s_prev = None
        self._h_prev = None

    def _record(self, t: float) -> None:
        self.recorder.begin_timestep(t)
        self.model.report_solution(self.recorder, self.y)
        for d, recorder in enumerate(self.sensitivity_recorders):
            recorder.begin_timestep(t)
            self.model.report_solution(recorder, self.s[d])

    def step(self, t: float, h: float) -> Status:
        """
        Attempt one step from t to t + h; state is only updated on success.

        Returns:
            Status of the step
        """
        model, config = self.model, self.config
        use_bdf2 = config.time_scheme == 'bdf2' and self._y_prev is not None
        h_prev = self._h_prev if use_bdf2 else None
        alpha, c_n, c_nm1 = bdf_coefficients(h, h_prev)

        y_hist = c_n * self.y
        if use_bdf2:
            y_hist = y_hist + c_nm1 * self._y_prev

        t_new = t + h
        y_new = self.y + h * self.y_dot
        weights = error_weights(self.y, config.reltol, config.abstol)
        status, _ = newton_solve(model, t_new, y_new, alpha, y_hist, weights,
                                 config.max_newton_iter, self.workspace)
        if status != Status.OK:
            return status
        y_dot_new = alpha * y_new + y_hist

        s_new = s_dot_new = None
        if len(self.s):
            # Jacobian at the converged state; the Newton factorization stays in use
            _, status = model.residual_with_jacobian(t_new, y_new, y_dot_new, self.workspace,
                                                     refactorize=False)
            if status != Status.OK:
                return status
            s_hist = c_n * self.s
            if use_bdf2:
                s_hist = s_hist + c_nm1 * self._s_prev

            dfdp = model.residual_sens_fwd_ad_only(t_new, y_new, y_dot_new)
            s_new, status = self._solve_sensitivities(t_new, alpha, s_hist, dfdp, self.s + h * self.s_dot)
            if status != Status.OK:
                return status
            s_dot_new = alpha * s_new + s_hist

        self._y_prev, self.y, self.y_dot = self.y, y_new, y_dot_new
        if s_new is not None:
            self._s_prev, self.s, self.s_dot = self.s, s_new, s_dot_new
        self._h_prev = h
        return Status.OK

    def _solve_sensitivities(self, t: float, alpha: float, s_hist: np.ndarray, dfdp: np.ndarray,
                             s: np.ndarray):
        """
        Corrector iteration on the linear sensitivity equations.

        The residual J s + M s' + dF/dp uses the Jacobian at the converged
        state, the iteration matrix is the factorization of the state step.

        Returns:
            (sensitivities, status)
        """
        model, config = self.model, self.config
        weights = [error_weights(s_d, config.reltol, config.abstol) for s_d in self.s]
        for _ in range(config.max_newton_iter):
            res_s = model.residual_sens_fwd_combine(s, alpha * s + s_hist, dfdp)
            converged = True
            for d in range(len(s)):
                delta, status = model.linear_solve(t, alpha, 1e-8, res_s[d], weights[d])
                if status == Status.FAILURE:
                    return s, status
                s[d] -= delta
                converged = converged and weighted_rms(delta, weights[d]) <= NEWTON_TOL
            if converged:
                return s, Status.OK
        return s, Status.RECOVERABLE

    def _advance(self, t_end: float) -> None:
        """Integrate from the current time to t_end with step halving."""
        n_sub = self.config.substeps
        h_nominal = (t_end - self.time) / n_sub
        h = h_nominal
        halvings = 0
        eps = 1e-12 * max(1.0, abs(t_end))

        while t_end - self.time > eps:
            h = min(h, t_end - self.time)
            status = self.step(self.time, h)
            if status != Status.OK:
                self.rejected_steps += 1
                halvings += 1
                if halvings > self.config.max_step_halvings:
                    raise IntegrationError(
                        f"Step failed at t = {self.time:.6g} after {self.config.max_step_halvings} "
                        f"step halvings (status {status.name})")
                h = 0.5 * h
                logger.debug("Step rejected at t = %g, retrying with h = %g", self.time, h)
                continue

            self.time += h
            self.iteration += 1

            if self.iteration % self.config.print_interval == 0:
                print(f"Step {self.iteration:6d}, t = {self.time:.4e}, h = {h:.4e}, "
                      f"rejected = {self.rejected_steps}")

            halvings = 0
            h = h_nominal

    def solve(self) -> Dict:
        """
        Run the simulation over all sections.

        Returns:
            Dictionary with the recorders and integration statistics
        """
        model = self.model
        n = model.num_dofs
        self.y = np.zeros(n)
        self.y_dot = np.zeros(n)
        model.apply_initial_condition(self.y, self.y_dot)
        model.set_section_times(self.section_times, self.section_continuity)

        if model.supports('forward_sensitivities'):
            self.s, self.s_dot = model.initialize_sensitivity_states()
        else:
            self.s, self.s_dot = np.zeros((0, n)), np.zeros((0, n))
        self.sensitivity_recorders = [InMemoryRecorder() for _ in range(len(self.s))]
        self.recorder = InMemoryRecorder()
        model.report_solution_structure(self.recorder)

        self.time = float(self.section_times[0])
        self.iteration = 0
        self.rejected_steps = 0

        print("Starting multi-channel transport simulation")
        print("=" * 50)
        print(f"DOFs: {n}, Sensitivities: {len(self.s)}")
        print(f"Sections: {len(self.section_times) - 1}, Time scheme: {self.config.time_scheme}")
        print(f"Output times: {len(self.solution_times)}")
        print("=" * 50)

        out_idx = 0
        for sec in range(len(self.section_times) - 1):
            t_start, t_end = self.section_times[sec], self.section_times[sec + 1]
            model.notify_discontinuous_section_transition(t_start, sec)
            if sec == 0 or not self.section_continuity[sec - 1]:
                self._initialize(t_start)

            if sec == 0:
                while out_idx < len(self.solution_times) and self.solution_times[out_idx] <= t_start:
                    self._record(t_start)
                    out_idx += 1

            # Output times inside this section, then the section end
            targets = [t for t in self.solution_times[out_idx:] if t <= t_end]
            if not targets or targets[-1] < t_end:
                targets.append(t_end)

            for target in targets:
                self._advance(target)
                self.time = float(target)
                while out_idx < len(self.solution_times) and self.solution_times[out_idx] <= target:
                    self._record(target)
                    out_idx += 1

        print(f"\nReached end time {self.time:.4e} after {self.iteration} steps "
              f"({self.rejected_steps} rejected)")

        return {
            'time': self.time,
            'steps': self.iteration,
            'rejected_steps': self.rejected_steps,
            'solution': self.recorder,
            'sensitivities': self.sensitivity_recorders,
        }

    def plot_outlet(self, component: int = 0, filename: str = None):
        """Plot inlet and outlet concentrations of every channel."""
        rec = self.recorder
        if len(rec) == 0:
            raise ValueError("No solution recorded, run solve() first")

        plt.figure(figsize=(8, 5))
        for port in range(rec.outlet.shape[1]):
            line, = plt.plot(rec.time, rec.outlet[:, port, component], linewidth=2,
                             label=f'Outlet channel {port}')
            plt.plot(rec.time, rec.inlet[:, port, component], '--', color=line.get_color(),
                     alpha=0.7, label=f'Inlet channel {port}')
        plt.xlabel('t [s]')
        plt.ylabel('Concentration')
        plt.title(f'Component {component}')
        plt.grid(True)
        plt.legend()

        if filename:
            plt.savefig(filename, dpi=150, bbox_inches='tight')
            print(f"Saved plot to {filename}")

        plt.show()
