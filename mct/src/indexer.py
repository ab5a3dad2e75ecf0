"""
Degree-of-freedom layout of the state vector.

    [ inlet block | bulk block ]

    inlet block: n_channel * n_comp values, channel-major (port p occupies
                 [p * n_comp, (p + 1) * n_comp))
    bulk block:  n_col * n_channel * n_comp values, ordered axial cell,
                 channel, component (component varies fastest)

All other modules go through the Indexer for offsets and views; none of them
recomputes strides.
"""

import numpy as np
from typing import Tuple

from .discretization import Discretization


class Indexer:
    """Maps (axial cell, channel, component) coordinates to flat offsets."""

    def __init__(self, disc: Discretization):
        self.disc = disc

    # --- Strides ---

    @property
    def stride_axial_cell(self) -> int:
        return self.disc.n_comp * self.disc.n_channel

    @property
    def stride_channel(self) -> int:
        return self.disc.n_comp

    @property
    def stride_comp(self) -> int:
        return 1

    # --- Offsets ---

    @property
    def offset_c(self) -> int:
        """Offset of the first bulk DOF."""
        return self.disc.n_comp * self.disc.n_channel

    def _check(self, col: int, channel: int, comp: int) -> None:
        disc = self.disc
        if not (0 <= col < disc.n_col and 0 <= channel < disc.n_channel and 0 <= comp < disc.n_comp):
            raise IndexError(
                f"Coordinate (cell={col}, channel={channel}, comp={comp}) out of range for "
                f"{disc.n_col} cells, {disc.n_channel} channels, {disc.n_comp} components")

    def bulk_offset(self, col: int, channel: int, comp: int) -> int:
        self._check(col, channel, comp)
        return self.offset_c + col * self.stride_axial_cell + channel * self.stride_channel + comp

    def inlet_offset(self, channel: int, comp: int) -> int:
        self._check(0, channel, comp)
        return channel * self.stride_channel + comp

    def bulk_offsets(self, col, channel, comp) -> np.ndarray:
        """Vectorized bulk offsets; arguments broadcast against each other. Not bounds-checked."""
        return (self.offset_c + np.asarray(col) * self.stride_axial_cell
                + np.asarray(channel) * self.stride_channel + np.asarray(comp))

    def inlet_offsets(self, channel, comp) -> np.ndarray:
        return np.asarray(channel) * self.stride_channel + np.asarray(comp)

    def decompose(self, offset: int) -> Tuple[int, int, int]:
        """Recover (axial cell, channel, component) from a bulk offset."""
        if not self.offset_c <= offset < self.disc.n_dofs:
            raise IndexError(f"Offset {offset} is not a bulk DOF")
        local = offset - self.offset_c
        col, rest = divmod(local, self.stride_axial_cell)
        channel, comp = divmod(rest, self.stride_channel)
        return col, channel, comp

    def is_inlet(self, offset: int) -> bool:
        return 0 <= offset < self.offset_c

    # --- Views ---

    def c(self, data):
        """Bulk block of a state vector shaped (n_col, n_channel, n_comp)."""
        disc = self.disc
        return data[self.offset_c:].reshape(disc.n_col, disc.n_channel, disc.n_comp)

    def inlet(self, data):
        """Inlet block of a state vector shaped (n_channel, n_comp)."""
        return data[:self.offset_c].reshape(self.disc.n_channel, self.disc.n_comp)

    def check_buffer(self, data: np.ndarray, name: str = 'state') -> None:
        if len(data) != self.disc.n_dofs:
            raise ValueError(f"{name} vector has {len(data)} entries, expected {self.disc.n_dofs}")
