"""
Multi-channel transport test cases.
"""

import numpy as np

from mct.src import MultiChannelTransportModel, Simulator, SimulatorConfig


def create_model_config(cross_sections=(1.0, 1.0), exchange=None, n_comp: int = 1, n_col: int = 16,
                        weno_order: int = 3, col_length: float = 200.0, dispersion=5.75e-8,
                        velocity=None, init_c=None, inlet=None, analytic_jacobian: bool = True) -> dict:
    """
    Unit operation scope of a multi-channel transport model.

    Args:
        cross_sections: Channel cross-section areas, one per channel
        exchange: Flat exchange matrix [orig][dest][comp], zero if omitted
        n_comp: Number of components
        n_col: Number of axial cells
        weno_order: WENO order (1-3)
        col_length: Column length
        dispersion: COL_DISPERSION value(s)
        velocity: VELOCITY values, omitted if None (flow rates set later)
        init_c: INIT_C values, zero if omitted
        inlet: Inlet scope with sec_XXX sections, omitted if None
        analytic_jacobian: USE_ANALYTIC_JACOBIAN
    """
    n_channel = len(cross_sections)
    if exchange is None:
        exchange = np.zeros(n_channel * n_channel * n_comp)
    if init_c is None:
        init_c = np.zeros(n_comp)

    config = {
        'UNIT_TYPE': 'MULTI_CHANNEL_TRANSPORT',
        'NCOMP': n_comp,
        'COL_LENGTH': col_length,
        'COL_DISPERSION': np.atleast_1d(dispersion).tolist(),
        'EXCHANGE_MATRIX': np.asarray(exchange, dtype=float).tolist(),
        'CHANNEL_CROSS_SECTION_AREAS': list(cross_sections),
        'INIT_C': np.asarray(init_c, dtype=float).tolist(),
        'discretization': {
            'NCOL': n_col,
            'NCHANNEL': n_channel,
            'USE_ANALYTIC_JACOBIAN': analytic_jacobian,
            'weno': {
                'WENO_ORDER': weno_order,
                'BOUNDARY_MODEL': 0,
                'WENO_EPS': 1e-10,
            },
        },
    }
    if velocity is not None:
        config['VELOCITY'] = np.asarray(velocity, dtype=float).tolist()
    if inlet is not None:
        config['inlet'] = inlet
    return config


def step_inlet(*section_values) -> dict:
    """Inlet scope with a constant inlet concentration per section."""
    return {f'sec_{i:03d}': {'CONST_COEFF': np.asarray(values, dtype=float).tolist()}
            for i, values in enumerate(section_values)}


def run_two_channel_pulse(flow_rates=(1.0, 1.0), cross_sections=(1.0, 1.0), exchange=None,
                          concentration_in=(1.0, 1.0), pulse_end: float = 10.0, end_time: float = 400.0,
                          analytic_jacobian: bool = True):
    """
    Inject a rectangular pulse into every channel and follow it to the outlets.

    Mirrors a system with one inlet unit per channel: the inlet concentration
    is concentration_in until pulse_end and zero afterwards.

    Returns:
        (model, simulator, result)
    """
    n_channel = len(cross_sections)
    config = create_model_config(
        cross_sections=cross_sections,
        exchange=exchange,
        inlet=step_inlet(concentration_in, np.zeros(n_channel)),
        analytic_jacobian=analytic_jacobian,
    )
    model = MultiChannelTransportModel.from_config(config)
    model.set_flow_rates(flow_rates, flow_rates)

    sim_config = SimulatorConfig(
        section_times=[0.0, pulse_end, end_time],
        solution_times=np.arange(0.0, end_time + 1.0, 2.0),
        substeps=2,
        print_interval=10000,
    )
    simulator = Simulator(model, sim_config)
    result = simulator.solve()
    return model, simulator, result
