"""
Convection-dispersion operator of the multi-channel transport model.

For every channel and component (cell width h, speed |u|):

    res_k = |u|/h * (F_{k+1/2} - F_{k-1/2}) - D/h**2 * (c_{k+1} - 2 c_k + c_{k-1})

in upwind order. F_{-1/2} is the inlet concentration (Danckwerts: the
dispersive flux across the inlet face vanishes), interior face values are
WENO reconstructions, and the dispersive flux across the outlet face is zero.

Channels with negative velocity are evaluated with their axial cell order
reversed. The reversal is its own inverse, so the same gather maps physical
to upwind order and back. It only changes at section transitions, which keeps
the residual free of branches on state values.
"""

import numpy as np
from typing import Tuple

from .discretization import Discretization
from .indexer import Indexer
from .parameters import TransportParameters
from .reconstruction import WenoConfig, WenoReconstruction


class ConvectionDispersionOperator:
    """Axial convection and dispersion for all channels of a column."""

    def __init__(self, disc: Discretization, indexer: Indexer, weno_config: WenoConfig):
        self.disc = disc
        self.indexer = indexer
        self.weno = WenoReconstruction(weno_config, disc.n_col)
        self._channels = np.arange(disc.n_channel)[None, :]

        # Flow state, changed only at section transitions
        self.direction = np.ones(disc.n_channel)
        self.upwind_order = np.tile(np.arange(disc.n_col)[:, None], (1, disc.n_channel))

    @property
    def stencil_width(self) -> int:
        return self.weno.config.stencil_width

    def set_flow_direction(self, velocity: np.ndarray) -> None:
        """Select the upwind side of every channel; zero velocity counts as forward flow."""
        self.direction = np.where(np.asarray(velocity) >= 0.0, 1.0, -1.0)
        cells = np.arange(self.disc.n_col)[:, None]
        self.upwind_order = np.where(self.direction[None, :] > 0, cells, self.disc.n_col - 1 - cells)

    def forward_flow(self, channel: int) -> bool:
        return bool(self.direction[channel] > 0)

    def flow_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.upwind_order, self.direction

    def residual(self, xp, c, c_in, params: TransportParameters, upwind_order, direction):
        """
        Convection-dispersion contribution to the bulk residual.

        Args:
            xp: Array namespace (numpy or jax.numpy)
            c: Bulk concentrations (n_col, n_channel, n_comp)
            c_in: Inlet concentrations (n_channel, n_comp)
            params: Transport parameters of the current section
            upwind_order, direction: Flow state from flow_arrays()

        Returns:
            Residual contribution (n_col, n_channel, n_comp)
        """
        h = params.col_length / self.disc.n_col
        c_up = c[upwind_order, self._channels]

        face = self.weno.face_values(xp, c_up)
        flux = xp.concatenate([c_in[None], face], axis=0)
        speed = (params.velocity * direction)[None, :, None]
        conv = speed / h * (flux[1:] - flux[:-1])

        disp_flux = params.dispersion[None] / h ** 2 * (c_up[1:] - c_up[:-1])
        zero = xp.zeros_like(c_up[:1])
        disp_flux = xp.concatenate([zero, disp_flux, zero], axis=0)

        res_up = conv - (disp_flux[1:] - disp_flux[:-1])
        return res_up[upwind_order, self._channels]

    def jacobian_entries(self, c: np.ndarray, params: TransportParameters) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Analytic derivatives of residual() with respect to bulk and inlet DOFs.

        Returns:
            (rows, cols, vals) triplets in flat DOF offsets; duplicates add up
        """
        disc, idx = self.disc, self.indexer
        n_col = disc.n_col
        h = float(params.col_length) / n_col
        ch = np.arange(disc.n_channel)[None, :, None]
        comp = np.arange(disc.n_comp)[None, None, :]
        order = self.upwind_order

        def dof(k_up):
            k_up = np.asarray(k_up)[:, None, None]
            return idx.bulk_offsets(order[k_up, ch], ch, comp)

        rows, cols, vals = [], [], []

        def add(r, cl, v):
            r, cl, v = np.broadcast_arrays(r, cl, v)
            rows.append(r.ravel())
            cols.append(cl.ravel())
            vals.append(v.ravel())

        # Convection: face k+1/2 enters row k with + and row k+1 with -
        c_up = c[order, self._channels]
        speed = (params.velocity * self.direction)[None, :, None] / h
        for cells, offsets, dv in self.weno.face_derivatives(c_up):
            downstream = cells < n_col - 1
            for m, offset in enumerate(offsets):
                col_dofs = dof(cells + offset)
                value = speed * dv[..., m]
                add(dof(cells), col_dofs, value)
                add(dof(cells[downstream] + 1), col_dofs[downstream], -value[downstream])

        # Inlet face feeds the first upwind cell
        add(dof([0]), idx.inlet_offsets(ch, comp), -speed)

        # Dispersion, symmetric in the flow direction
        k = np.arange(n_col)[:, None, None]
        D = params.dispersion[None] / h ** 2
        n_neighbours = (k > 0).astype(float) + (k < n_col - 1)
        add(idx.bulk_offsets(k, ch, comp), idx.bulk_offsets(k, ch, comp), D * n_neighbours)
        add(idx.bulk_offsets(k[1:], ch, comp), idx.bulk_offsets(k[:-1], ch, comp), -D)
        add(idx.bulk_offsets(k[:-1], ch, comp), idx.bulk_offsets(k[1:], ch, comp), -D)

        return np.concatenate(rows), np.concatenate(cols), np.concatenate(vals)

    def pattern_entries(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Structural nonzeros for either flow direction.

        Band of stencil_width cells on both sides of the diagonal, plus the
        inlet DOFs coupled to both column ends.
        """
        disc, idx = self.disc, self.indexer
        w = self.stencil_width
        k = np.arange(disc.n_col)[:, None, None, None]
        o = np.arange(-w, w + 1)[None, :, None, None]
        ch = np.arange(disc.n_channel)[None, None, :, None]
        comp = np.arange(disc.n_comp)[None, None, None, :]

        target = k + o
        valid = np.broadcast_to((target >= 0) & (target < disc.n_col),
                                (disc.n_col, 2 * w + 1, disc.n_channel, disc.n_comp))
        band_rows = np.broadcast_to(idx.bulk_offsets(k, ch, comp), valid.shape)[valid]
        band_cols = np.broadcast_to(idx.bulk_offsets(np.clip(target, 0, disc.n_col - 1), ch, comp),
                                    valid.shape)[valid]

        ch2 = ch[0]
        comp2 = comp[0]
        ends = np.array([0, disc.n_col - 1])[:, None, None]
        inlet_rows = idx.bulk_offsets(ends, ch2, comp2)
        inlet_cols = np.broadcast_to(idx.inlet_offsets(ch2, comp2), inlet_rows.shape)

        return (np.concatenate([band_rows, inlet_rows.ravel()]),
                np.concatenate([band_cols, inlet_cols.ravel()]))
