"""
Multi-channel transport unit operation.

Several parallel channels share one axial grid. Every channel carries its
own convection and axial dispersion and exchanges mass with the other
channels at the same axial position. The model provides the DAE residual

    F(t, y, y') = 0

over the state [inlet block | bulk block], its Jacobian (analytic or by
automatic differentiation), linear solves with the iteration matrix,
consistent initialization and forward parameter sensitivities.

Example:
    model = MultiChannelTransportModel.from_config(config)
    y = np.zeros(model.num_dofs)
    y_dot = np.zeros(model.num_dofs)
    model.apply_initial_condition(y, y_dot)
    res, status = model.residual_with_jacobian(0.0, y, y_dot)
"""

import logging
import numpy as np
from scipy.sparse.linalg import splu, spsolve
from typing import Dict, List, Optional, Sequence, Tuple, Union

from . import consistent_init
from .autodiff import jacobian_products, jit_kernel, parameter_products, stack_tangents
from .convection_dispersion import ConvectionDispersionOperator
from .discretization import Discretization
from .errors import ConfigurationError, Status
from .exchange import ChannelExchange
from .exporter import ORDERING, SolutionExporter
from .indexer import Indexer
from .inlet import evaluate_polynomial, polynomial_derivative, read_inlet_coefficients
from .jacobian import JacobianPattern, mass_matrix
from .parameter_provider import ParameterProvider
from .parameters import ModelParameters, ParameterId, TransportParameters, parameter_slot
from .reconstruction import WenoConfig
from .sensitivity import SensitivityRegistry
from .unit_operation import UnitOperation, Workspace

logger = logging.getLogger(__name__)


def _wrms(v: np.ndarray, weight: np.ndarray) -> float:
    return float(np.sqrt(np.mean((v * weight) ** 2))) if v.size else 0.0


class MultiChannelTransportModel(UnitOperation):
    """
    Convection-dispersion-exchange model of n_channel parallel channels.

    Each channel has one inlet and one outlet port. The inlet DOFs are
    algebraic (y_in = c_in(t)); the bulk DOFs are differential.
    """

    IDENTIFIER = 'MULTI_CHANNEL_TRANSPORT'

    capabilities = frozenset({
        'analytic_jacobian',
        'ad_jacobian',
        'forward_sensitivities',
        'lean_consistent_initialization',
    })

    def __init__(self, unit_op_idx: int = 0):
        self.unit_op_idx = unit_op_idx
        self.disc: Optional[Discretization] = None
        self.weno_config: Optional[WenoConfig] = None
        self._indexer: Optional[Indexer] = None
        self._params: Optional[ModelParameters] = None
        self._init_state = None
        self._analytic_jacobian = True

        # Section state
        self._section_times = None
        self._section_idx = 0
        self._section_start = 0.0

        # Jacobian and factorization
        self._jac_data = None
        self._factorize = True
        self._lu = None
        self._lu_alpha = None
        self._iteration_matrix = None

        self._sens = SensitivityRegistry()

    # --- Configuration ---

    @classmethod
    def from_config(cls, config: Union[Dict, ParameterProvider], unit_op_idx: int = 0) -> 'MultiChannelTransportModel':
        """
        Create and fully configure a model.

        Args:
            config: Unit operation scope, as a dictionary or a ParameterProvider
            unit_op_idx: Index of the unit operation in the flowsheet
        """
        provider = config if isinstance(config, ParameterProvider) else ParameterProvider(config)
        unit_type = provider.get_string('UNIT_TYPE')
        if unit_type != cls.IDENTIFIER:
            raise ConfigurationError(f"UNIT_TYPE is '{unit_type}', expected '{cls.IDENTIFIER}'")

        model = cls(unit_op_idx)
        model.configure_model_discretization(provider)
        model.configure(provider)
        return model

    def configure_model_discretization(self, provider: ParameterProvider) -> None:
        """Read the discretization, build the operators and fix the Jacobian pattern."""
        self.disc = Discretization.from_provider(provider)
        with provider.scope('discretization'):
            self.weno_config = WenoConfig.from_provider(provider)
            if provider.exists('USE_ANALYTIC_JACOBIAN'):
                self._analytic_jacobian = provider.get_bool('USE_ANALYTIC_JACOBIAN')

        disc = self.disc
        self._indexer = Indexer(disc)
        self._transport = ConvectionDispersionOperator(disc, self._indexer, self.weno_config)
        self._exchange = ChannelExchange(disc, self._indexer)

        inlet_dofs = np.arange(disc.n_inlet_dofs)
        self._pattern = JacobianPattern(disc.n_dofs, [
            (inlet_dofs, inlet_dofs),
            self._transport.pattern_entries(),
            self._exchange.pattern_entries(),
        ])
        self._mass = mass_matrix(disc.n_dofs, disc.n_inlet_dofs)
        self._jac_data = np.zeros(self._pattern.nnz)
        self._factorize = True

        self._kernel_ad = jit_kernel(self._residual_kernel)
        self._seeds = self._pattern.seed_matrix()

        logger.info("Unit %d: %d components, %d cells, %d channels, WENO order %d, %d DOFs, "
                    "%d Jacobian nonzeros in %d colors",
                    self.unit_op_idx, disc.n_comp, disc.n_col, disc.n_channel, self.weno_config.order,
                    disc.n_dofs, self._pattern.nnz, self._pattern.n_colors)

    def _channel_component_values(self, provider: ParameterProvider, name: str,
                                  allow_scalar: bool = False) -> np.ndarray:
        n_channel, n_comp = self.disc.n_channel, self.disc.n_comp
        values = provider.get_double_array(name)
        if len(values) == n_comp:
            return np.tile(values[None, :], (n_channel, 1))
        if len(values) == n_channel * n_comp:
            return values.reshape(n_channel, n_comp)
        if allow_scalar and len(values) == 1:
            return np.full((n_channel, n_comp), values[0])
        expected = f"{n_comp} or {n_channel * n_comp}" + (" or 1" if allow_scalar else "")
        raise ConfigurationError(f"{name} has {len(values)} entries, expected {expected}")

    def configure(self, provider: ParameterProvider) -> None:
        """Read the model parameters of the unit operation scope."""
        if self.disc is None:
            raise RuntimeError("configure_model_discretization() must be called before configure()")
        n_channel, n_comp = self.disc.n_channel, self.disc.n_comp

        col_length = provider.get_double('COL_LENGTH')
        if col_length <= 0:
            raise ConfigurationError(f"COL_LENGTH must be positive, got {col_length}")

        areas = provider.get_double_array('CHANNEL_CROSS_SECTION_AREAS')
        if len(areas) != n_channel:
            raise ConfigurationError(
                f"CHANNEL_CROSS_SECTION_AREAS has {len(areas)} entries, expected {n_channel}")
        if np.any(areas <= 0):
            raise ConfigurationError("CHANNEL_CROSS_SECTION_AREAS must be positive")

        dispersion = self._channel_component_values(provider, 'COL_DISPERSION', allow_scalar=True)
        if np.any(dispersion < 0):
            raise ConfigurationError("COL_DISPERSION must be non-negative")

        exchange = provider.get_double_array('EXCHANGE_MATRIX')
        if len(exchange) != n_channel * n_channel * n_comp:
            raise ConfigurationError(
                f"EXCHANGE_MATRIX has {len(exchange)} entries, expected {n_channel * n_channel * n_comp}")
        exchange = exchange.reshape(n_channel, n_channel, n_comp)

        if provider.exists('VELOCITY'):
            velocity = provider.get_double_array('VELOCITY')
            if len(velocity) == 0 or len(velocity) % n_channel != 0:
                raise ConfigurationError(
                    f"VELOCITY has {len(velocity)} entries, expected a multiple of {n_channel}")
            velocity = velocity.reshape(-1, n_channel)
        else:
            # Set by the system layer through set_flow_rates()
            velocity = np.zeros((1, n_channel))

        init_c = self._channel_component_values(provider, 'INIT_C')

        self._init_state = None
        if provider.exists('INIT_STATE'):
            init_state = provider.get_double_array('INIT_STATE')
            if len(init_state) not in (self.num_dofs, 2 * self.num_dofs):
                raise ConfigurationError(
                    f"INIT_STATE has {len(init_state)} entries, expected {self.num_dofs} or {2 * self.num_dofs}")
            self._init_state = init_state

        self._params = ModelParameters(
            velocity=velocity,
            dispersion=dispersion,
            exchange=exchange,
            cross_sections=areas,
            col_length=np.asarray(col_length, dtype=float),
            inlet_coeffs=read_inlet_coefficients(provider, n_channel, n_comp),
            init_c=init_c,
        )
        self._section_idx = 0
        self._section_start = 0.0
        self._transport.set_flow_direction(self._params.for_section(0).velocity)
        self._factorize = True

    # --- System layer interface ---

    @property
    def num_dofs(self) -> int:
        return self.disc.n_dofs

    @property
    def num_inlet_ports(self) -> int:
        return self.disc.n_channel

    @property
    def num_outlet_ports(self) -> int:
        return self.disc.n_channel

    def local_inlet_component_index(self, port: int) -> int:
        return self._indexer.inlet_offset(port, 0)

    def local_inlet_component_stride(self, port: int) -> int:
        return self._indexer.stride_comp

    def local_outlet_component_index(self, port: int) -> int:
        cell = self.disc.n_col - 1 if self.forward_flow(port) else 0
        return self._indexer.bulk_offset(cell, port, 0)

    def local_outlet_component_stride(self, port: int) -> int:
        return self._indexer.stride_comp

    def set_flow_rates(self, in_rates: Sequence[float], out_rates: Sequence[float] = None) -> None:
        """
        Set the volumetric flow rate of every channel.

        The interstitial velocity is the flow rate divided by the channel
        cross-section area; negative rates reverse the flow. Outlet rates
        equal inlet rates and are not used.

        The velocities replace the row of the current section in the
        velocity table; the other sections keep their values.
        """
        in_rates = np.asarray(in_rates, dtype=float)
        if in_rates.shape != (self.disc.n_channel,):
            raise ValueError(f"Expected {self.disc.n_channel} flow rates, got {in_rates.shape}")
        velocity = in_rates / self._params.cross_sections
        params = self._params.copy()
        params.velocity[min(self._section_idx, params.velocity.shape[0] - 1)] = velocity
        self._params = params
        self._transport.set_flow_direction(velocity)
        self._factorize = True
        logger.debug("Unit %d: velocities set to %s", self.unit_op_idx, velocity)

    def set_section_times(self, section_times: Sequence[float],
                          section_continuity: Sequence[bool] = None) -> None:
        section_times = np.asarray(section_times, dtype=float)
        if section_times.ndim != 1 or len(section_times) < 2 or np.any(np.diff(section_times) <= 0):
            raise ValueError("Section times must be a strictly increasing sequence of at least two times")
        if section_continuity is not None and len(section_continuity) != len(section_times) - 2:
            raise ValueError(f"Expected {len(section_times) - 2} section continuity flags, "
                             f"got {len(section_continuity)}")
        self._section_times = section_times

    def notify_discontinuous_section_transition(self, t: float, sec_idx: int) -> None:
        """
        Switch to section sec_idx.

        Updates the section-dependent parameters and the flow direction of
        every channel, and marks the factorization stale.
        """
        self._section_idx = sec_idx
        if self._section_times is not None and sec_idx < len(self._section_times):
            self._section_start = float(self._section_times[sec_idx])
        else:
            self._section_start = float(t)

        velocity = self._params.for_section(sec_idx).velocity
        previous = self._transport.direction.copy()
        self._transport.set_flow_direction(velocity)
        if np.any(previous != self._transport.direction):
            logger.info("Unit %d: flow direction changed at t = %g (section %d): %s",
                        self.unit_op_idx, t, sec_idx, self._transport.direction)
        self._factorize = True

    def expand_error_tol(self, error_tols: Sequence[float]) -> np.ndarray:
        """Per-DOF tolerances from per-component tolerances."""
        error_tols = np.asarray(error_tols, dtype=float)
        if error_tols.shape != (self.disc.n_comp,):
            raise ValueError(f"Expected {self.disc.n_comp} tolerances, got {error_tols.shape}")
        return np.tile(error_tols, self.num_dofs // self.disc.n_comp)

    # --- Accessors ---

    @property
    def indexer(self) -> Indexer:
        return self._indexer

    @property
    def parameters(self) -> ModelParameters:
        return self._params

    @property
    def col_length(self) -> float:
        return float(self._params.col_length)

    @property
    def section_index(self) -> int:
        return self._section_idx

    def current_parameters(self) -> TransportParameters:
        return self._params.for_section(self._section_idx)

    def forward_flow(self, port: int) -> bool:
        return self._transport.forward_flow(port)

    @property
    def jacobian(self):
        """Jacobian dF/dy of the last residual_with_jacobian() call (CSR)."""
        return self._pattern.matrix(self._jac_data)

    @property
    def jacobian_pattern(self) -> JacobianPattern:
        return self._pattern

    @property
    def mass_matrix(self):
        """dF/dy' (CSR)."""
        return self._mass

    @property
    def algebraic_dofs(self) -> slice:
        return slice(0, self.disc.n_inlet_dofs)

    @property
    def differential_dofs(self) -> slice:
        return slice(self.disc.n_inlet_dofs, self.disc.n_dofs)

    def use_analytic_jacobian(self, analytic: bool) -> None:
        self._analytic_jacobian = bool(analytic)
        self._factorize = True

    @property
    def analytic_jacobian(self) -> bool:
        return self._analytic_jacobian

    # --- Residual and Jacobian ---

    def _residual_kernel(self, xp, y, y_dot, tau, params: TransportParameters, upwind_order, direction):
        """Residual written once for numpy and jax.numpy."""
        idx = self._indexer
        c = idx.c(y)
        c_in = idx.inlet(y)

        bulk = (idx.c(y_dot)
                + self._transport.residual(xp, c, c_in, params, upwind_order, direction)
                + self._exchange.residual(xp, c, params))
        inlet = c_in - evaluate_polynomial(params.inlet_coeffs, tau)
        return xp.concatenate([inlet.reshape(-1), bulk.reshape(-1)])

    def _tau(self, t: float) -> float:
        return t - self._section_start

    def residual(self, t: float, y: np.ndarray, y_dot: np.ndarray,
                 workspace: Workspace = None) -> np.ndarray:
        """
        Evaluate F(t, y, y').

        Non-finite values are returned as computed. With a workspace the
        result is written to (and returned as) workspace.res.
        """
        self._indexer.check_buffer(y, 'state')
        self._indexer.check_buffer(y_dot, 'state derivative')
        upwind_order, direction = self._transport.flow_arrays()
        res = self._residual_kernel(np, y, y_dot, self._tau(t), self.current_parameters(),
                                    upwind_order, direction)
        if workspace is not None:
            workspace.res[:] = res
            return workspace.res
        return res

    def residual_with_jacobian(self, t: float, y: np.ndarray, y_dot: np.ndarray,
                               workspace: Workspace = None,
                               refactorize: bool = True) -> Tuple[np.ndarray, Status]:
        """
        Evaluate F(t, y, y') and refresh the Jacobian dF/dy.

        With refactorize=False, linear_solve() keeps using the factorization
        of the previous Jacobian.

        Returns:
            (residual, status); RECOVERABLE if the Jacobian has non-finite entries
        """
        res = self.residual(t, y, y_dot, workspace)
        params = self.current_parameters()

        if self._analytic_jacobian:
            data = self._analytic_jacobian_data(y, params)
        else:
            upwind_order, direction = self._transport.flow_arrays()
            products = jacobian_products(self._kernel_ad, y, self._seeds, y_dot, self._tau(t), params,
                                         upwind_order, direction)
            data = self._pattern.extract(products)

        self._jac_data = data
        if refactorize:
            self._factorize = True

        if not np.all(np.isfinite(data)):
            logger.warning("Unit %d: non-finite Jacobian entries at t = %g", self.unit_op_idx, t)
            return res, Status.RECOVERABLE
        return res, Status.OK

    def _analytic_jacobian_data(self, y: np.ndarray, params: TransportParameters) -> np.ndarray:
        c = self._indexer.c(y)
        inlet_dofs = np.arange(self.disc.n_inlet_dofs)
        triplets = [
            (inlet_dofs, inlet_dofs, np.ones(len(inlet_dofs))),
            self._transport.jacobian_entries(c, params),
            self._exchange.jacobian_entries(params),
        ]
        rows = np.concatenate([r for r, _, _ in triplets])
        cols = np.concatenate([cl for _, cl, _ in triplets])
        vals = np.concatenate([v for _, _, v in triplets])
        return self._pattern.assemble(rows, cols, vals)

    def linear_solve(self, t: float, alpha: float, tol: float, rhs: np.ndarray,
                     weight: np.ndarray = None) -> Tuple[np.ndarray, Status]:
        """
        Solve (dF/dy + alpha * dF/dy') x = rhs.

        The LU factorization is reused until the Jacobian is refreshed or
        alpha changes.

        Args:
            t: Simulation time
            alpha: Factor of the time derivative Jacobian (BDF leading coefficient)
            tol: Relative tolerance of the weighted residual check
            rhs: Right hand side (num_dofs,)
            weight: Error weights of the residual check, defaults to ones

        Returns:
            (x, status); FAILURE if the matrix is singular
        """
        if self._factorize or self._lu is None or alpha != self._lu_alpha:
            matrix = (self.jacobian + alpha * self._mass).tocsc()
            try:
                self._lu = splu(matrix)
            except RuntimeError as e:
                logger.warning("Unit %d: factorization failed at t = %g: %s", self.unit_op_idx, t, e)
                self._lu = None
                return np.full_like(rhs, np.nan, dtype=float), Status.FAILURE
            self._iteration_matrix = matrix
            self._lu_alpha = alpha
            self._factorize = False

        x = self._lu.solve(np.asarray(rhs, dtype=float))
        if not np.all(np.isfinite(x)):
            return x, Status.FAILURE

        weight = np.ones_like(x) if weight is None else weight
        defect = self._iteration_matrix @ x - rhs
        if _wrms(defect, weight) > tol * (1.0 + _wrms(rhs, weight)):
            logger.debug("Unit %d: linear solve residual above tolerance at t = %g", self.unit_op_idx, t)
            return x, Status.RECOVERABLE
        return x, Status.OK

    def algebraic_solve(self, rhs: np.ndarray) -> np.ndarray:
        """Solve with the algebraic (inlet) diagonal block of the current Jacobian."""
        alg = self.algebraic_dofs
        block = self.jacobian[alg, alg].tocsc()
        return np.atleast_1d(spsolve(block, rhs))

    def multiply_with_jacobian(self, y_s: np.ndarray, alpha: float, beta: float,
                               out: np.ndarray) -> np.ndarray:
        """out = alpha * (dF/dy) y_s + beta * out"""
        out *= beta
        out += alpha * (self.jacobian @ y_s)
        return out

    def multiply_with_derivative_jacobian(self, s_dot: np.ndarray) -> np.ndarray:
        """(dF/dy') s_dot"""
        return self._mass @ s_dot

    # --- Initial conditions ---

    def apply_initial_condition(self, y: np.ndarray, y_dot: np.ndarray) -> None:
        """Fill state and derivative from INIT_STATE, or from INIT_C with a zero derivative."""
        n = self.num_dofs
        if self._init_state is not None:
            y[:] = self._init_state[:n]
            y_dot[:] = self._init_state[n:] if len(self._init_state) == 2 * n else 0.0
            return
        y[:] = 0.0
        y_dot[:] = 0.0
        self._indexer.c(y)[:] = self._params.init_c[None]

    def inlet_derivative(self, t: float, coeffs: np.ndarray = None) -> np.ndarray:
        """Time derivative of the inlet profile, flattened like the inlet block."""
        if coeffs is None:
            coeffs = self.current_parameters().inlet_coeffs
        return polynomial_derivative(coeffs, self._tau(t)).reshape(-1)

    def consistent_initial_state(self, t: float, y: np.ndarray, error_tol: float,
                                 workspace: Workspace = None, max_iter: int = 50) -> Status:
        return consistent_init.consistent_initial_state(self, t, y, error_tol, workspace, max_iter)

    def consistent_initial_time_derivative(self, t: float, y: np.ndarray, y_dot: np.ndarray,
                                           workspace: Workspace = None) -> Status:
        return consistent_init.consistent_initial_time_derivative(self, t, y, y_dot, workspace)

    def lean_consistent_initial_state(self, t: float, y: np.ndarray, error_tol: float,
                                      workspace: Workspace = None) -> Status:
        return consistent_init.lean_consistent_initial_state(self, t, y, error_tol, workspace)

    def lean_consistent_initial_time_derivative(self, t: float, y: np.ndarray, y_dot: np.ndarray,
                                                workspace: Workspace = None) -> Status:
        return consistent_init.lean_consistent_initial_time_derivative(self, t, y, y_dot, workspace)

    # --- Sensitivities ---

    def set_sensitive_parameter(self, pid: ParameterId, direction: int, ad_value: float = 1.0) -> bool:
        """Register pid in a sensitivity direction; raises ConfigurationError for unknown parameters."""
        n_before = self._sens.n_directions
        self._sens.add(self._params, pid, direction, ad_value)
        if self._sens.n_directions != n_before:
            self._factorize = True
        return True

    def clear_sensitive_parameters(self) -> None:
        if self._sens.n_directions:
            self._factorize = True
        self._sens.clear()

    @property
    def num_sens_directions(self) -> int:
        return self._sens.n_directions

    def get_parameter(self, pid: ParameterId):
        field, index = parameter_slot(self._params, pid)
        value = np.array(getattr(self._params, field)[index])
        return float(value) if value.ndim == 0 else value

    def set_parameter(self, pid: ParameterId, value) -> None:
        """Change a parameter value; flow directions follow velocity changes."""
        field, index = parameter_slot(self._params, pid)
        getattr(self._params, field)[index] = value
        if field == 'velocity':
            self._transport.set_flow_direction(self.current_parameters().velocity)
        self._factorize = True

    def parameter_tangents(self) -> List[ModelParameters]:
        """Tangent vector of every sensitivity direction in parameter space."""
        return self._sens.tangents(self._params)

    def initialize_sensitivity_states(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Initial sensitivities (n_sens, num_dofs).

        Bulk DOFs controlled by INIT_C parameters start at the seed value of
        their direction, everything else at zero.
        """
        n_sens = self.num_sens_directions
        s = np.zeros((n_sens, self.num_dofs))
        s_dot = np.zeros((n_sens, self.num_dofs))
        for d, tangent in enumerate(self.parameter_tangents()):
            self._indexer.c(s[d])[:] = tangent.init_c[None]
        return s, s_dot

    def residual_sens_fwd_ad_only(self, t: float, y: np.ndarray, y_dot: np.ndarray) -> np.ndarray:
        """
        Parameter derivatives dF/dp of every sensitivity direction.

        Returns:
            Array (n_sens, num_dofs)
        """
        tangents = self.parameter_tangents()
        if not tangents:
            return np.zeros((0, self.num_dofs))

        stacked = stack_tangents([tan.for_section(self._section_idx) for tan in tangents])
        upwind_order, direction = self._transport.flow_arrays()

        def kernel(params, y, y_dot, tau, upwind_order, direction):
            return self._kernel_ad(y, y_dot, tau, params, upwind_order, direction)

        return parameter_products(kernel, self.current_parameters(), stacked,
                                  y, y_dot, self._tau(t), upwind_order, direction)

    def residual_sens_fwd_combine(self, y_s: np.ndarray, y_s_dot: np.ndarray, dfdp: np.ndarray) -> np.ndarray:
        """
        Sensitivity residuals J s + M s' + dF/dp with the current Jacobian.

        Args:
            y_s: Sensitivities (n_sens, num_dofs)
            y_s_dot: Their time derivatives (n_sens, num_dofs)
            dfdp: Output of residual_sens_fwd_ad_only()
        """
        jac = self.jacobian
        return np.array([jac @ y_s[d] + self._mass @ y_s_dot[d] + dfdp[d] for d in range(len(dfdp))])

    def consistent_initial_sensitivity(self, t: float, y: np.ndarray, y_dot: np.ndarray,
                                       y_s: np.ndarray, y_s_dot: np.ndarray) -> Status:
        return consistent_init.consistent_initial_sensitivity(self, t, y, y_dot, y_s, y_s_dot)

    def lean_consistent_initial_sensitivity(self, t: float, y: np.ndarray, y_dot: np.ndarray,
                                            y_s: np.ndarray, y_s_dot: np.ndarray) -> Status:
        return consistent_init.consistent_initial_sensitivity(self, t, y, y_dot, y_s, y_s_dot, lean=True)

    # --- Reporting ---

    def solution_structure(self) -> Dict:
        disc = self.disc
        return {
            'unit': self.unit_op_idx,
            'n_comp': disc.n_comp,
            'n_col': disc.n_col,
            'n_channel': disc.n_channel,
            'dof_groups': {
                'inlet': (0, disc.n_inlet_dofs),
                'bulk': (self._indexer.offset_c, disc.n_dofs),
            },
            'ordering': ORDERING,
            'axial_coordinates': disc.cell_centers(self.col_length),
        }

    def report_solution(self, recorder, y: np.ndarray) -> None:
        recorder.record(SolutionExporter(self, y))

    def report_solution_structure(self, recorder) -> None:
        recorder.record_structure(self.solution_structure())
