"""
Discretization descriptor for the multi-channel transport model.
"""

import numpy as np
from dataclasses import dataclass

from .errors import ConfigurationError
from .parameter_provider import ParameterProvider


@dataclass(frozen=True)
class Discretization:
    """
    Shape of the discretized problem.

    - n_comp: Number of components
    - n_col: Number of axial cells
    - n_channel: Number of channels (one inlet and one outlet port each)
    """
    n_comp: int
    n_col: int
    n_channel: int

    def __post_init__(self):
        for name in ('n_comp', 'n_col', 'n_channel'):
            value = getattr(self, name)
            if int(value) != value or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

    @property
    def n_inlet_dofs(self) -> int:
        return self.n_comp * self.n_channel

    @property
    def n_bulk_dofs(self) -> int:
        return self.n_comp * self.n_col * self.n_channel

    @property
    def n_dofs(self) -> int:
        """Total number of DOFs: inlet block followed by bulk block."""
        return self.n_inlet_dofs + self.n_bulk_dofs

    def cell_width(self, col_length: float) -> float:
        return col_length / self.n_col

    def cell_centers(self, col_length: float) -> np.ndarray:
        """Axial positions of the cell centers [m]."""
        return (np.arange(self.n_col) + 0.5) * self.cell_width(col_length)

    def cell_faces(self, col_length: float) -> np.ndarray:
        return np.linspace(0.0, col_length, self.n_col + 1)

    @classmethod
    def from_provider(cls, provider: ParameterProvider) -> 'Discretization':
        """
        Read the descriptor from the unit operation scope.

        NCHANNEL defaults to the number of channel cross-section areas.
        """
        n_comp = provider.get_int('NCOMP')
        with provider.scope('discretization'):
            n_col = provider.get_int('NCOL')
            n_channel = provider.get_int('NCHANNEL') if provider.exists('NCHANNEL') else None

        if n_channel is None:
            if not provider.exists('CHANNEL_CROSS_SECTION_AREAS'):
                raise ConfigurationError(
                    "Either discretization/NCHANNEL or CHANNEL_CROSS_SECTION_AREAS is required")
            n_channel = len(provider.get_double_array('CHANNEL_CROSS_SECTION_AREAS'))

        return cls(n_comp=n_comp, n_col=n_col, n_channel=n_channel)
