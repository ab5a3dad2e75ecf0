"""
WENO reconstruction of face values for upwind convection.

Cells are given in upwind order, so face k+1/2 lies downstream of cell k.
Order 1 is the classical first-order upwind scheme, orders 2 and 3 are WENO3
and WENO5 with Jiang-Shu smoothness indicators.

Every candidate stencil is expressed on a window W of 2r - 1 cell values
centered on cell k:

    q_j   = C[j] . W              candidate reconstructions
    IS_j  = W . A[j] . W          smoothness indicators
    alpha = d / (eps + IS)**2
    v     = sum(alpha * q) / sum(alpha)

which lets the face value be evaluated with any array namespace (numpy or
jax.numpy) and differentiated in closed form.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Tuple

from .errors import ConfigurationError
from .parameter_provider import ParameterProvider

MAX_ORDER = 3


def _quadratic_form(terms, size: int) -> np.ndarray:
    """Symmetric matrix of sum(beta * (l . W)**2)."""
    A = np.zeros((size, size))
    for beta, l in terms:
        l = np.asarray(l, dtype=float)
        A += beta * np.outer(l, l)
    return A


# order -> (C, A, d)
_TABLES = {
    1: (np.array([[1.0]]),
        np.zeros((1, 1, 1)),
        np.array([1.0])),
    2: (np.array([[-0.5, 1.5, 0.0],
                  [0.0, 0.5, 0.5]]),
        np.stack([_quadratic_form([(1.0, [-1, 1, 0])], 3),
                  _quadratic_form([(1.0, [0, -1, 1])], 3)]),
        np.array([1.0 / 3.0, 2.0 / 3.0])),
    3: (np.array([[1.0 / 3.0, -7.0 / 6.0, 11.0 / 6.0, 0.0, 0.0],
                  [0.0, -1.0 / 6.0, 5.0 / 6.0, 1.0 / 3.0, 0.0],
                  [0.0, 0.0, 1.0 / 3.0, 5.0 / 6.0, -1.0 / 6.0]]),
        np.stack([_quadratic_form([(13.0 / 12.0, [1, -2, 1, 0, 0]), (0.25, [1, -4, 3, 0, 0])], 5),
                  _quadratic_form([(13.0 / 12.0, [0, 1, -2, 1, 0]), (0.25, [0, 1, 0, -1, 0])], 5),
                  _quadratic_form([(13.0 / 12.0, [0, 0, 1, -2, 1]), (0.25, [0, 0, 3, -4, 1])], 5)]),
        np.array([0.1, 0.6, 0.3])),
}


@dataclass(frozen=True)
class WenoConfig:
    """WENO settings (discretization/weno scope)."""
    order: int = 3
    eps: float = 1e-10
    boundary_model: int = 0     # 0: lower the order where the stencil does not fit

    def __post_init__(self):
        if self.order not in _TABLES:
            raise ConfigurationError(f"WENO_ORDER must be between 1 and {MAX_ORDER}, got {self.order}")
        if not self.eps > 0:
            raise ConfigurationError(f"WENO_EPS must be positive, got {self.eps}")
        if self.boundary_model != 0:
            raise ConfigurationError(
                f"Only BOUNDARY_MODEL 0 (reduced order at boundaries) is supported, got {self.boundary_model}")

    @property
    def stencil_width(self) -> int:
        """Number of cells a residual row reaches on either side."""
        return self.order

    @classmethod
    def from_provider(cls, provider: ParameterProvider) -> 'WenoConfig':
        if not provider.exists('weno'):
            return cls()
        with provider.scope('weno'):
            order = provider.get_int('WENO_ORDER') if provider.exists('WENO_ORDER') else cls.order
            eps = provider.get_double('WENO_EPS') if provider.exists('WENO_EPS') else cls.eps
            model = provider.get_int('BOUNDARY_MODEL') if provider.exists('BOUNDARY_MODEL') else cls.boundary_model
        return cls(order=order, eps=eps, boundary_model=model)


def _weno(xp, W, order: int, eps: float):
    """Face value from windows W of shape (..., 2 * order - 1)."""
    if order == 1:
        return W[..., 0]
    C, A, d = _TABLES[order]
    q = W @ C.T
    IS = xp.einsum('...i,jik,...k->...j', W, A, W)
    alpha = d / (eps + IS) ** 2
    return xp.sum(alpha * q, axis=-1) / xp.sum(alpha, axis=-1)


def _weno_derivative(W: np.ndarray, order: int, eps: float) -> np.ndarray:
    """
    Derivative of the face value with respect to each window entry.

        dv/dW = sum_j w_j C_j + sum_j (q_j - v) / S * dalpha_j/dW
        dalpha_j/dW = -4 alpha_j / (eps + IS_j) * A_j W

    Returns:
        Array of the same shape as W
    """
    if order == 1:
        return np.ones_like(W)
    C, A, d = _TABLES[order]
    q = W @ C.T
    AW = np.einsum('jik,...k->...ji', A, W)
    s = eps + np.sum(W[..., None, :] * AW, axis=-1)
    alpha = d / s ** 2
    S = np.sum(alpha, axis=-1)
    w = alpha / S[..., None]
    v = np.sum(w * q, axis=-1)

    dalpha = -4.0 * (alpha / s)[..., None] * AW
    return (np.einsum('...j,ji->...i', w, C)
            + np.einsum('...j,...ji->...i', (q - v[..., None]) / S[..., None], dalpha))


class WenoReconstruction:
    """
    Face values of a column in upwind order.

    Cell k uses order min(order, k + 1, n_col - k), so every stencil stays
    inside the column and the last face takes the value of the last cell
    (zero-gradient outlet).
    """

    def __init__(self, config: WenoConfig, n_col: int):
        self.config = config
        self.n_col = n_col

        k = np.arange(n_col)
        self.cell_order = np.minimum(config.order, np.minimum(k + 1, n_col - k))

        # Cells sharing an order are evaluated together
        self.groups: List[Tuple[int, np.ndarray, np.ndarray]] = []
        for r in np.unique(self.cell_order):
            r = int(r)
            cells = np.flatnonzero(self.cell_order == r)
            offsets = np.arange(-(r - 1), r)
            self.groups.append((r, cells, offsets))

        grouped = np.concatenate([cells for _, cells, _ in self.groups])
        self._unsort = np.argsort(grouped)

    def face_values(self, xp, c_up):
        """
        Reconstruct values at faces k+1/2 for all cells k.

        Args:
            xp: Array namespace (numpy or jax.numpy)
            c_up: Cell values in upwind order, shape (n_col, ...)

        Returns:
            Face values, shape (n_col, ...)
        """
        parts = []
        for r, cells, offsets in self.groups:
            W = xp.moveaxis(c_up[cells[:, None] + offsets[None, :]], 1, -1)
            parts.append(_weno(xp, W, r, self.config.eps))
        return xp.concatenate(parts, axis=0)[self._unsort]

    def face_derivatives(self, c_up: np.ndarray):
        """
        Analytic derivatives of the face values.

        Yields:
            (cells, offsets, dv): face k+1/2 for k in cells depends on cell
            k + offsets[m] with derivative dv[..., m]; dv has shape
            (len(cells), ..., len(offsets))
        """
        for r, cells, offsets in self.groups:
            W = np.moveaxis(c_up[cells[:, None] + offsets[None, :]], 1, -1)
            yield cells, offsets, _weno_derivative(W, r, self.config.eps)
