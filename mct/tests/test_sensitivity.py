"""
Pytest tests for forward parameter sensitivities.

Tests verify:
1. Parameter registration and validation
2. dF/dp against finite differences of the residual
3. Consistent initial sensitivities
4. Simulated outlet sensitivities against central finite differences
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from mct.src import (
    ConfigurationError, MultiChannelTransportModel, ParameterId, Simulator, SimulatorConfig, Status
)
from mct.tests.two_channel import create_model_config


def create_model(weno_order: int = 1):
    """Two exchanging channels of different size, linear for WENO order 1."""
    config = create_model_config(
        cross_sections=[1.0, 2.0],
        exchange=[0.0, 0.3, 0.1, 0.0],
        n_col=8,
        weno_order=weno_order,
        col_length=1.0,
        dispersion=1e-2,
        velocity=[0.5, 0.8],
        init_c=[0.2, 0.1],
        inlet={'sec_000': {'CONST_COEFF': [1.0, 0.5], 'LIN_COEFF': [0.1, 0.0]},
               'sec_001': {'CONST_COEFF': [0.0, 0.0]}},
    )
    return MultiChannelTransportModel.from_config(config)


SENSITIVE_PARAMETERS = [
    ParameterId('VELOCITY', channel=0, section=0),
    ParameterId('EXCHANGE_MATRIX', component=0, channel=0, channel_dest=1),
    ParameterId('COL_DISPERSION'),
    ParameterId('COL_LENGTH'),
    ParameterId('CONST_COEFF', component=0, channel=1, section=0),
    ParameterId('INIT_C', component=0, channel=1),
]

SIM_CONFIG = dict(
    section_times=[0.0, 1.0, 3.0],
    solution_times=np.linspace(0.0, 3.0, 16),
    substeps=2,
    print_interval=10000,
)


def simulate(model, config=None):
    simulator = Simulator(model, SimulatorConfig(**(config or SIM_CONFIG)))
    return simulator.solve()


class TestRegistration:
    def test_directions(self):
        model = create_model()
        assert model.num_sens_directions == 0
        model.set_sensitive_parameter(ParameterId('VELOCITY', channel=0), 0)
        model.set_sensitive_parameter(ParameterId('COL_LENGTH'), 2)
        assert model.num_sens_directions == 3
        model.clear_sensitive_parameters()
        assert model.num_sens_directions == 0

    def test_unknown_parameter(self):
        model = create_model()
        with pytest.raises(ConfigurationError):
            model.set_sensitive_parameter(ParameterId('FILM_DIFFUSION'), 0)
        with pytest.raises(ConfigurationError):
            model.set_sensitive_parameter(ParameterId('EXCHANGE_MATRIX', channel=0, channel_dest=2), 0)

    def test_init_c_seeds(self):
        model = create_model()
        model.set_sensitive_parameter(ParameterId('INIT_C', component=0, channel=1), 0, ad_value=2.0)
        s, s_dot = model.initialize_sensitivity_states()
        c = model.indexer.c(s[0])
        np.testing.assert_array_equal(c[:, 1, 0], 2.0)
        np.testing.assert_array_equal(c[:, 0, 0], 0.0)
        np.testing.assert_array_equal(s[0, model.algebraic_dofs], 0.0)
        np.testing.assert_array_equal(s_dot, 0.0)


class TestParameterDerivatives:
    @pytest.mark.parametrize("pid", SENSITIVE_PARAMETERS[:5], ids=lambda p: p.name)
    @pytest.mark.parametrize("weno_order", [1, 3])
    def test_against_finite_differences(self, pid, weno_order):
        model = create_model(weno_order)
        model.set_sensitive_parameter(pid, 0)
        rng = np.random.default_rng(12)
        y = rng.uniform(0.1, 1.0, model.num_dofs)
        y_dot = rng.random(model.num_dofs)
        t = 0.4

        dfdp = model.residual_sens_fwd_ad_only(t, y, y_dot)
        assert dfdp.shape == (1, model.num_dofs)

        value = model.get_parameter(pid)
        delta = 1e-6
        model.set_parameter(pid, value + delta)
        plus = model.residual(t, y, y_dot)
        model.set_parameter(pid, value - delta)
        minus = model.residual(t, y, y_dot)
        model.set_parameter(pid, value)

        np.testing.assert_allclose(dfdp[0], (plus - minus) / (2 * delta), rtol=1e-5, atol=1e-7)

    def test_combined_direction(self):
        """Parameters sharing a direction add up."""
        model = create_model()
        a = ParameterId('VELOCITY', channel=0, section=0)
        b = ParameterId('COL_DISPERSION', component=0, channel=1)
        model.set_sensitive_parameter(a, 0)
        model.set_sensitive_parameter(b, 1)
        model.set_sensitive_parameter(a, 2, ad_value=2.0)
        model.set_sensitive_parameter(b, 2)
        y = np.random.default_rng(13).random(model.num_dofs)
        dfdp = model.residual_sens_fwd_ad_only(0.0, y, np.zeros_like(y))
        np.testing.assert_allclose(dfdp[2], 2.0 * dfdp[0] + dfdp[1], atol=1e-12)

    def test_flow_rates_keep_later_section_velocities(self):
        config = create_model_config(cross_sections=[1.0, 2.0], n_col=6, weno_order=1,
                                     velocity=[1.0, 1.0, -1.0, -1.0])
        model = MultiChannelTransportModel.from_config(config)
        pid = ParameterId('VELOCITY', channel=0, section=1)
        model.set_sensitive_parameter(pid, 0)
        model.set_flow_rates([2.0, 2.0])
        np.testing.assert_allclose(model.current_parameters().velocity, [2.0, 1.0])
        assert model.get_parameter(pid) == -1.0

        y = np.random.default_rng(15).random(model.num_dofs)
        y_dot = np.zeros_like(y)
        # Section 1 is not active yet
        np.testing.assert_array_equal(model.residual_sens_fwd_ad_only(0.0, y, y_dot), 0.0)

        model.notify_discontinuous_section_transition(1.0, 1)
        assert not model.forward_flow(0)
        dfdp = model.residual_sens_fwd_ad_only(1.0, y, y_dot)
        assert np.any(dfdp[0, model.differential_dofs] != 0.0)

    def test_combine(self):
        model = create_model()
        model.set_sensitive_parameter(ParameterId('COL_LENGTH'), 0)
        rng = np.random.default_rng(14)
        y = rng.random(model.num_dofs)
        model.residual_with_jacobian(0.0, y, np.zeros_like(y))
        dfdp = model.residual_sens_fwd_ad_only(0.0, y, np.zeros_like(y))
        s, s_dot = rng.random((1, model.num_dofs)), rng.random((1, model.num_dofs))
        res_s = model.residual_sens_fwd_combine(s, s_dot, dfdp)
        expected = model.jacobian @ s[0] + model.mass_matrix @ s_dot[0] + dfdp[0]
        np.testing.assert_allclose(res_s[0], expected)


class TestConsistentSensitivity:
    @pytest.mark.parametrize("lean", [False, True])
    def test_sensitivity_residual_vanishes(self, lean):
        model = create_model()
        for d, pid in enumerate(SENSITIVE_PARAMETERS):
            model.set_sensitive_parameter(pid, d)

        t = 0.3
        y = np.random.default_rng(15).random(model.num_dofs)
        y_dot = np.zeros_like(y)
        model.consistent_initial_state(t, y, 1e-12)
        model.consistent_initial_time_derivative(t, y, y_dot)
        model.residual_with_jacobian(t, y, y_dot)

        s, s_dot = model.initialize_sensitivity_states()
        if lean:
            status = model.lean_consistent_initial_sensitivity(t, y, y_dot, s, s_dot)
        else:
            status = model.consistent_initial_sensitivity(t, y, y_dot, s, s_dot)
        assert status == Status.OK

        dfdp = model.residual_sens_fwd_ad_only(t, y, y_dot)
        res_s = model.residual_sens_fwd_combine(s, s_dot, dfdp)
        np.testing.assert_allclose(res_s, 0.0, atol=1e-10)

        if not lean:
            # CONST_COEFF of channel 1 moves the inlet DOF of channel 1 one to one
            inlet = model.indexer.inlet(s[4])
            np.testing.assert_allclose(inlet[:, 0], [0.0, 1.0])


@pytest.fixture(scope='module')
def sensitivities():
    model = create_model()
    for d, pid in enumerate(SENSITIVE_PARAMETERS):
        model.set_sensitive_parameter(pid, d)
    result = simulate(model)
    return np.array([rec.outlet for rec in result['sensitivities']])


class TestSimulatedSensitivities:
    """Outlet sensitivities of the integrated system against central finite differences."""

    @pytest.mark.parametrize("direction", range(len(SENSITIVE_PARAMETERS)),
                             ids=[p.name for p in SENSITIVE_PARAMETERS])
    def test_against_finite_differences(self, sensitivities, direction):
        pid = SENSITIVE_PARAMETERS[direction]
        model = create_model()
        value = model.get_parameter(pid)
        delta = 1e-5 * max(1.0, float(np.max(np.abs(value))))

        model.set_parameter(pid, value + delta)
        plus = simulate(model)['solution'].outlet
        model.set_parameter(pid, value - delta)
        minus = simulate(model)['solution'].outlet

        numeric = (plus - minus) / (2 * delta)
        np.testing.assert_allclose(sensitivities[direction], numeric, rtol=1e-4, atol=1e-6)

    def test_one_factorization_per_step(self, monkeypatch):
        """Sensitivities reuse the factorization of the state step."""
        from mct.src import model as model_module

        factorizations = []
        splu = model_module.splu

        def counting_splu(matrix):
            factorizations.append(matrix.shape)
            return splu(matrix)

        monkeypatch.setattr(model_module, 'splu', counting_splu)
        model = create_model()
        for d, pid in enumerate(SENSITIVE_PARAMETERS):
            model.set_sensitive_parameter(pid, d)
        result = simulate(model)

        assert result['steps'] > 0
        assert len(factorizations) <= result['steps'] + result['rejected_steps']

    def test_ad_jacobian_gives_same_result(self, sensitivities):
        model = create_model()
        model.use_analytic_jacobian(False)
        for d, pid in enumerate(SENSITIVE_PARAMETERS):
            model.set_sensitive_parameter(pid, d)
        result = simulate(model)
        ad = np.array([rec.outlet for rec in result['sensitivities']])
        np.testing.assert_allclose(ad, sensitivities, rtol=1e-8, atol=1e-10)
