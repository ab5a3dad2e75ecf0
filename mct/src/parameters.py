"""
Transport parameters and parameter identifiers.

ModelParameters holds every configured value, including section-dependent
ones. TransportParameters is the slice used by the residual in the current
section. Both are NamedTuples, hence JAX pytrees, so the residual can be
differentiated with respect to them directly.
"""

import numpy as np
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

from .errors import ConfigurationError


class TransportParameters(NamedTuple):
    """Parameters entering the residual in the current section."""
    velocity: np.ndarray        # Signed interstitial velocity per channel (n_channel,)
    dispersion: np.ndarray      # Axial dispersion (n_channel, n_comp)
    exchange: np.ndarray        # Exchange rates e[orig, dest, comp]
    cross_sections: np.ndarray  # Channel cross-section areas (n_channel,)
    col_length: np.ndarray      # Column length, 0-d
    inlet_coeffs: np.ndarray    # Inlet polynomial coefficients (4, n_channel, n_comp)


class ModelParameters(NamedTuple):
    """All configured parameter values."""
    velocity: np.ndarray        # (n_velocity_sections, n_channel)
    dispersion: np.ndarray      # (n_channel, n_comp)
    exchange: np.ndarray        # (n_channel, n_channel, n_comp)
    cross_sections: np.ndarray  # (n_channel,)
    col_length: np.ndarray      # 0-d
    inlet_coeffs: np.ndarray    # (n_inlet_sections, 4, n_channel, n_comp)
    init_c: np.ndarray          # (n_channel, n_comp)

    def for_section(self, sec_idx: int) -> TransportParameters:
        """
        Parameters active in section sec_idx.

        Sections beyond the configured section-dependent values reuse the last
        configured set.
        """
        vel_idx = min(sec_idx, self.velocity.shape[0] - 1)
        inlet_idx = min(sec_idx, self.inlet_coeffs.shape[0] - 1)
        return TransportParameters(
            velocity=self.velocity[vel_idx],
            dispersion=self.dispersion,
            exchange=self.exchange,
            cross_sections=self.cross_sections,
            col_length=self.col_length,
            inlet_coeffs=self.inlet_coeffs[inlet_idx],
        )

    def zeros_like(self) -> 'ModelParameters':
        return ModelParameters(*[np.zeros_like(a) for a in self])

    def copy(self) -> 'ModelParameters':
        return ModelParameters(*[np.array(a, copy=True) for a in self])


@dataclass(frozen=True)
class ParameterId:
    """
    Identifies a (group of) model parameter(s).

    None in any index field selects all entries along that axis. For
    EXCHANGE_MATRIX, channel is the origin and channel_dest the destination
    channel. For the inlet coefficients, section selects the inlet section.
    """
    name: str
    component: Optional[int] = None
    channel: Optional[int] = None
    section: Optional[int] = None
    channel_dest: Optional[int] = None


INLET_COEFF_NAMES = ('CONST_COEFF', 'LIN_COEFF', 'QUAD_COEFF', 'CUBE_COEFF')

PARAMETER_NAMES = ('VELOCITY', 'COL_DISPERSION', 'EXCHANGE_MATRIX', 'COL_LENGTH', 'INIT_C') \
    + INLET_COEFF_NAMES


def _select(index: Optional[int], size: int, what: str, pid: ParameterId):
    if index is None:
        return slice(None)
    if not 0 <= index < size:
        raise ConfigurationError(f"{what} index {index} out of range for parameter {pid}")
    return index


def parameter_slot(params: ModelParameters, pid: ParameterId) -> Tuple[str, tuple]:
    """
    Locate a parameter in the stored arrays.

    Returns:
        (field name of ModelParameters, index tuple into that field)
    """
    n_channel, n_comp = params.dispersion.shape

    def channel():
        return _select(pid.channel, n_channel, 'Channel', pid)

    def comp():
        return _select(pid.component, n_comp, 'Component', pid)

    if pid.name == 'VELOCITY':
        return 'velocity', (_select(pid.section, params.velocity.shape[0], 'Section', pid), channel())
    if pid.name == 'COL_DISPERSION':
        return 'dispersion', (channel(), comp())
    if pid.name == 'EXCHANGE_MATRIX':
        return 'exchange', (channel(), _select(pid.channel_dest, n_channel, 'Channel', pid), comp())
    if pid.name == 'COL_LENGTH':
        return 'col_length', ()
    if pid.name == 'INIT_C':
        return 'init_c', (channel(), comp())
    if pid.name in INLET_COEFF_NAMES:
        sec = _select(pid.section, params.inlet_coeffs.shape[0], 'Section', pid)
        return 'inlet_coeffs', (sec, INLET_COEFF_NAMES.index(pid.name), channel(), comp())

    raise ConfigurationError(f"Unknown parameter '{pid.name}', expected one of {PARAMETER_NAMES}")
