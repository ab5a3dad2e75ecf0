"""
Inlet concentration profiles.

Each channel is fed by a piecewise cubic polynomial in time, one polynomial
per section:

    c_in(t) = c0 + c1 * tau + c2 * tau**2 + c3 * tau**3,   tau = t - t_section_start

The profile only supplies coefficients; the residual evaluates the polynomial
itself so that coefficients can carry sensitivity seeds.
"""

import numpy as np

from .errors import ConfigurationError
from .parameter_provider import ParameterProvider
from .parameters import INLET_COEFF_NAMES


def evaluate_polynomial(coeffs, tau):
    """
    Evaluate the inlet polynomial (Horner scheme). Works on numpy and JAX arrays.

    Args:
        coeffs: Coefficients (4, n_channel, n_comp), constant term first
        tau: Time since section start
    """
    return coeffs[0] + tau * (coeffs[1] + tau * (coeffs[2] + tau * coeffs[3]))


def polynomial_derivative(coeffs: np.ndarray, tau: float) -> np.ndarray:
    """Time derivative of the inlet polynomial."""
    return coeffs[1] + tau * (2.0 * coeffs[2] + 3.0 * tau * coeffs[3])


def read_inlet_coefficients(provider: ParameterProvider, n_channel: int, n_comp: int) -> np.ndarray:
    """
    Read inlet coefficients from an optional 'inlet' scope.

    The scope holds sections sec_000, sec_001, ... each with CONST_COEFF,
    LIN_COEFF, QUAD_COEFF and CUBE_COEFF given per component (shared by all
    channels) or per channel and component. Missing coefficients are zero.
    Without an inlet scope the profile is zero, so the inlet residual reduces
    to the inlet DOFs themselves and an outer system supplies the coupling.

    Returns:
        Coefficients of shape (n_sections, 4, n_channel, n_comp)
    """
    if not provider.exists('inlet'):
        return np.zeros((1, 4, n_channel, n_comp))

    sections = []
    with provider.scope('inlet'):
        while provider.exists(f'sec_{len(sections):03d}'):
            with provider.scope(f'sec_{len(sections):03d}'):
                coeffs = np.zeros((4, n_channel, n_comp))
                for i, name in enumerate(INLET_COEFF_NAMES):
                    if not provider.exists(name):
                        continue
                    values = provider.get_double_array(name)
                    if len(values) == n_comp:
                        coeffs[i] = values[None, :]
                    elif len(values) == n_channel * n_comp:
                        coeffs[i] = values.reshape(n_channel, n_comp)
                    else:
                        raise ConfigurationError(
                            f"{name} in {provider.current_scope} has {len(values)} entries, "
                            f"expected {n_comp} or {n_channel * n_comp}")
                sections.append(coeffs)

    if not sections:
        raise ConfigurationError("Inlet scope must contain at least section sec_000")
    return np.stack(sections)
