"""
Read-only access to a state buffer and in-memory solution recording.
"""

import numpy as np
from typing import Dict, List, Protocol

ORDERING = ('AXIAL_CELL', 'CHANNEL', 'COMPONENT')


def _read_only(a: np.ndarray) -> np.ndarray:
    view = a.view()
    view.flags.writeable = False
    return view


class SolutionExporter:
    """
    View over the state (or sensitivity) vector of a multi-channel transport model.

    All returned arrays are read-only views; the wrapped buffer is never
    modified.
    """

    concentration_ordering = ORDERING

    def __init__(self, model, data: np.ndarray):
        model.indexer.check_buffer(data, 'solution')
        self._model = model
        self._disc = model.disc
        self._idx = model.indexer
        self._data = data

    @property
    def n_components(self) -> int:
        return self._disc.n_comp

    @property
    def n_axial_cells(self) -> int:
        return self._disc.n_col

    @property
    def n_channels(self) -> int:
        return self._disc.n_channel

    @property
    def n_inlet_ports(self) -> int:
        return self._disc.n_channel

    @property
    def n_outlet_ports(self) -> int:
        return self._disc.n_channel

    def bulk(self) -> np.ndarray:
        """Bulk concentrations (n_col, n_channel, n_comp)."""
        return _read_only(self._idx.c(self._data))

    def inlet(self, port: int) -> np.ndarray:
        """Inlet concentrations of a port (n_comp,)."""
        return _read_only(self._idx.inlet(self._data)[port])

    def outlet(self, port: int) -> np.ndarray:
        """Concentrations leaving a port: last cell for forward flow, first cell otherwise."""
        cell = -1 if self._model.forward_flow(port) else 0
        return _read_only(self._idx.c(self._data)[cell, port])

    def axial_coordinates(self) -> np.ndarray:
        return self._disc.cell_centers(self._model.col_length)

    def channel_coordinates(self) -> np.ndarray:
        return np.arange(self._disc.n_channel, dtype=float)


class SolutionRecorder(Protocol):
    """Receives solutions from report_solution() and report_solution_structure()."""

    def begin_timestep(self, t: float) -> None:
        ...

    def record(self, exporter: SolutionExporter) -> None:
        ...

    def record_structure(self, structure: Dict) -> None:
        ...


class InMemoryRecorder:
    """Keeps inlet and outlet (and optionally bulk) concentrations of every reported time."""

    def __init__(self, store_bulk: bool = False):
        self.store_bulk = store_bulk
        self.structure: Dict = {}
        self._time: List[float] = []
        self._inlet: List[np.ndarray] = []
        self._outlet: List[np.ndarray] = []
        self._bulk: List[np.ndarray] = []
        self._pending_time = None

    def begin_timestep(self, t: float) -> None:
        self._pending_time = t

    def record_structure(self, structure: Dict) -> None:
        self.structure = dict(structure)

    def record(self, exporter: SolutionExporter) -> None:
        if self._pending_time is None:
            raise RuntimeError("begin_timestep() must be called before record()")
        self._time.append(self._pending_time)
        self._inlet.append(np.array([exporter.inlet(p) for p in range(exporter.n_inlet_ports)]))
        self._outlet.append(np.array([exporter.outlet(p) for p in range(exporter.n_outlet_ports)]))
        if self.store_bulk:
            self._bulk.append(np.array(exporter.bulk()))
        self._pending_time = None

    def __len__(self) -> int:
        return len(self._time)

    @property
    def time(self) -> np.ndarray:
        return np.array(self._time)

    @property
    def inlet(self) -> np.ndarray:
        """Inlet concentrations (n_times, n_ports, n_comp)."""
        return np.array(self._inlet)

    @property
    def outlet(self) -> np.ndarray:
        """Outlet concentrations (n_times, n_ports, n_comp)."""
        return np.array(self._outlet)

    @property
    def bulk(self) -> np.ndarray:
        return np.array(self._bulk)
