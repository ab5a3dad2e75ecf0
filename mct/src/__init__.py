"""
Multi-Channel Transport Model Package
=====================================

Discretized convection-dispersion-exchange transport in parallel channels,
written as a DAE residual for implicit time integrators.

Features:
- Any number of components and channels on a shared axial grid
- WENO upwind reconstruction (orders 1-3) with per-channel flow reversal
- Axial dispersion and asymmetric inter-channel exchange
- Analytic Jacobian or Jacobian by automatic differentiation (JAX)
- Consistent initialization (full and lean variants)
- Forward parameter sensitivities

State layout (flat vector):
    [ inlet block | bulk block ]
    inlet - n_channel * n_comp values, channel-major
    bulk  - n_col * n_channel * n_comp values, ordered cell, channel, component

Example:
    model = MultiChannelTransportModel.from_config(config)
    sim = Simulator(model, SimulatorConfig(section_times=[0.0, 100.0]))
    result = sim.solve()
    outlet = result['solution'].outlet
"""

from .errors import ConfigurationError, IntegrationError, Status
from .logging_utils import configure_logging
from .parameter_provider import ParameterProvider
from .discretization import Discretization
from .indexer import Indexer
from .reconstruction import WenoConfig, WenoReconstruction
from .parameters import ModelParameters, ParameterId, TransportParameters
from .convection_dispersion import ConvectionDispersionOperator
from .exchange import ChannelExchange
from .jacobian import JacobianPattern
from .unit_operation import UnitOperation, Workspace
from .model import MultiChannelTransportModel
from .exporter import InMemoryRecorder, SolutionExporter, SolutionRecorder
from .simulator import Simulator, SimulatorConfig

__all__ = [
    # Errors
    'ConfigurationError',
    'IntegrationError',
    'Status',

    # Configuration
    'configure_logging',
    'ParameterProvider',

    # Discretization
    'Discretization',
    'Indexer',
    'WenoConfig',
    'WenoReconstruction',

    # Parameters
    'ModelParameters',
    'ParameterId',
    'TransportParameters',

    # Operators
    'ConvectionDispersionOperator',
    'ChannelExchange',
    'JacobianPattern',

    # Model
    'UnitOperation',
    'Workspace',
    'MultiChannelTransportModel',

    # Output
    'InMemoryRecorder',
    'SolutionExporter',
    'SolutionRecorder',

    # Simulator
    'Simulator',
    'SimulatorConfig',
]

__version__ = '1.0.0'
