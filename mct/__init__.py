"""
MCT Package - Multi-Channel Transport Model
===========================================

Re-exports all public components from mct.src
"""

from mct.src import (
    # Errors
    ConfigurationError,
    IntegrationError,
    Status,
    # Configuration
    configure_logging,
    ParameterProvider,
    # Discretization
    Discretization,
    Indexer,
    WenoConfig,
    WenoReconstruction,
    # Parameters
    ModelParameters,
    ParameterId,
    TransportParameters,
    # Operators
    ConvectionDispersionOperator,
    ChannelExchange,
    JacobianPattern,
    # Model
    UnitOperation,
    Workspace,
    MultiChannelTransportModel,
    # Output
    InMemoryRecorder,
    SolutionExporter,
    SolutionRecorder,
    # Simulator
    Simulator,
    SimulatorConfig,
)

__all__ = [
    'ConfigurationError',
    'IntegrationError',
    'Status',
    'configure_logging',
    'ParameterProvider',
    'Discretization',
    'Indexer',
    'WenoConfig',
    'WenoReconstruction',
    'ModelParameters',
    'ParameterId',
    'TransportParameters',
    'ConvectionDispersionOperator',
    'ChannelExchange',
    'JacobianPattern',
    'UnitOperation',
    'Workspace',
    'MultiChannelTransportModel',
    'InMemoryRecorder',
    'SolutionExporter',
    'SolutionRecorder',
    'Simulator',
    'SimulatorConfig',
]

__version__ = '1.0.0'
