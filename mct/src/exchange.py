"""
Mass exchange between channels at the same axial position.

For channel i and every component:

    res_i += c_i * sum_{j != i} e_ij - sum_{j != i} e_ji * (A_j / A_i) * c_j

e[orig, dest, comp] is the transfer rate from channel orig to channel dest.
The cross-section ratio keeps the exchanged mass balanced between channels
of different size. Diagonal entries are ignored and asymmetric matrices are
allowed.
"""

import numpy as np
from typing import Tuple

from .discretization import Discretization
from .indexer import Indexer
from .parameters import TransportParameters


class ChannelExchange:
    """Linear exchange term coupling all channels within an axial cell."""

    def __init__(self, disc: Discretization, indexer: Indexer):
        self.disc = disc
        self.indexer = indexer
        self._off_diagonal = (1.0 - np.eye(disc.n_channel))[:, :, None]

    def rates(self, xp, params: TransportParameters):
        """
        Returns:
            out_rate: Total rate leaving each channel (n_channel, n_comp)
            gain: gain[j, i] = e_ji * A_j / A_i (n_channel, n_channel, n_comp)
        """
        e = params.exchange * self._off_diagonal
        out_rate = xp.sum(e, axis=1)
        area = params.cross_sections
        gain = e * (area[:, None, None] / area[None, :, None])
        return out_rate, gain

    def residual(self, xp, c, params: TransportParameters):
        """Exchange contribution to the bulk residual, shape (n_col, n_channel, n_comp)."""
        out_rate, gain = self.rates(xp, params)
        return c * out_rate[None] - xp.einsum('jic,kjc->kic', gain, c)

    def jacobian_entries(self, params: TransportParameters) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        disc, idx = self.disc, self.indexer
        out_rate, gain = self.rates(np, params)

        k = np.arange(disc.n_col)[:, None, None, None]
        i = np.arange(disc.n_channel)[None, :, None, None]
        j = np.arange(disc.n_channel)[None, None, :, None]
        comp = np.arange(disc.n_comp)[None, None, None, :]

        # d res[k, i, c] / d c[k, j, c]
        vals = np.where(i == j, out_rate[:, None, :][None], 0.0) - np.transpose(gain, (1, 0, 2))[None]
        rows = idx.bulk_offsets(k, i, comp)
        cols = idx.bulk_offsets(k, j, comp)
        rows, cols, vals = np.broadcast_arrays(rows, cols, vals)
        return rows.ravel(), cols.ravel(), vals.ravel()

    def pattern_entries(self) -> Tuple[np.ndarray, np.ndarray]:
        """Dense channel block per axial cell and component."""
        disc, idx = self.disc, self.indexer
        k = np.arange(disc.n_col)[:, None, None, None]
        i = np.arange(disc.n_channel)[None, :, None, None]
        j = np.arange(disc.n_channel)[None, None, :, None]
        comp = np.arange(disc.n_comp)[None, None, None, :]
        rows, cols = np.broadcast_arrays(idx.bulk_offsets(k, i, comp), idx.bulk_offsets(k, j, comp))
        return rows.ravel(), cols.ravel()
