"""
Registry of sensitive parameters for forward sensitivity analysis.

Every sensitivity direction is a weighted combination of parameters. The
registry turns its directions into tangent vectors in parameter space, which
seed the JVPs of the residual kernel (dF/dp) and the initial sensitivities of
INIT_C parameters.
"""

import logging
import numpy as np
from collections import defaultdict
from typing import Dict, List, Tuple

from .parameters import ModelParameters, ParameterId, parameter_slot

logger = logging.getLogger(__name__)


class SensitivityRegistry:
    """Sensitive parameters grouped by direction index."""

    def __init__(self):
        self._directions: Dict[int, List[Tuple[ParameterId, float]]] = defaultdict(list)

    @property
    def n_directions(self) -> int:
        return max(self._directions) + 1 if self._directions else 0

    def add(self, params: ModelParameters, pid: ParameterId, direction: int, ad_value: float = 1.0) -> None:
        """
        Register a parameter in a sensitivity direction.

        Args:
            params: Current parameter values, used to validate the identifier
            pid: Parameter identifier
            direction: Sensitivity direction; several parameters may share one
            ad_value: Seed weight of this parameter within the direction
        """
        if direction < 0:
            raise ValueError(f"Sensitivity direction must be non-negative, got {direction}")
        parameter_slot(params, pid)
        self._directions[direction].append((pid, float(ad_value)))
        logger.debug("Registered %s in sensitivity direction %d (seed %g)", pid, direction, ad_value)

    def clear(self) -> None:
        self._directions.clear()

    def tangents(self, params: ModelParameters) -> List[ModelParameters]:
        """Tangent vector of every direction; directions without parameters are zero."""
        result = []
        for d in range(self.n_directions):
            tangent = params.zeros_like()
            for pid, ad_value in self._directions.get(d, []):
                field, index = parameter_slot(params, pid)
                getattr(tangent, field)[index] = ad_value
            result.append(tangent)
        return result
