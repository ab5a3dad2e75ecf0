"""
Unit operation contract expected by the time integrator and the system layer.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import FrozenSet, Tuple

from .errors import Status


class Workspace:
    """
    Scratch buffers for one caller of the evaluation entry points.

    Passed explicitly so that concurrent callers never share temporaries.
    """

    def __init__(self, n_dofs: int):
        self.n_dofs = n_dofs
        self.res = np.zeros(n_dofs)
        self.zeros = np.zeros(n_dofs)

    def zero_derivative(self) -> np.ndarray:
        """All-zero state derivative; reset on every call."""
        self.zeros.fill(0.0)
        return self.zeros


class UnitOperation(ABC):
    """
    Abstract base class for unit operations.

    Optional features are advertised through `capabilities`; the defaults
    below are no-ops for unit operations that do not provide them.
    """

    capabilities: FrozenSet[str] = frozenset()

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities

    @property
    @abstractmethod
    def num_dofs(self) -> int:
        pass

    @abstractmethod
    def residual(self, t: float, y: np.ndarray, y_dot: np.ndarray,
                 workspace: Workspace = None) -> np.ndarray:
        """
        Evaluate the DAE residual F(t, y, y').

        Args:
            t: Simulation time
            y: State vector (num_dofs,)
            y_dot: Time derivative of the state (num_dofs,)
            workspace: Optional scratch buffers

        Returns:
            Residual vector (num_dofs,)
        """
        pass

    @abstractmethod
    def residual_with_jacobian(self, t: float, y: np.ndarray, y_dot: np.ndarray,
                               workspace: Workspace = None,
                               refactorize: bool = True) -> Tuple[np.ndarray, Status]:
        """Evaluate the residual and refresh the stored Jacobian dF/dy."""
        pass

    @abstractmethod
    def linear_solve(self, t: float, alpha: float, tol: float, rhs: np.ndarray,
                     weight: np.ndarray = None) -> Tuple[np.ndarray, Status]:
        """Solve (dF/dy + alpha * dF/dy') x = rhs with the stored Jacobian."""
        pass

    def create_workspace(self) -> Workspace:
        return Workspace(self.num_dofs)

    def set_section_times(self, section_times, section_continuity=None) -> None:
        pass

    def notify_discontinuous_section_transition(self, t: float, sec_idx: int) -> None:
        pass

    def expand_error_tol(self, error_tols: np.ndarray) -> np.ndarray:
        """Per-DOF tolerance from per-component tolerances."""
        return np.full(self.num_dofs, float(np.min(error_tols)))
