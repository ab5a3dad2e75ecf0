"""
Error types and status codes for the multi-channel transport model.
"""

from enum import IntEnum


class ConfigurationError(ValueError):
    """Raised when model parameters are missing, malformed or inconsistent."""


class IntegrationError(RuntimeError):
    """Raised by the simulator when a time step or an initialization cannot be completed."""


class Status(IntEnum):
    """
    Result codes of the numerical entry points.

    Numerical difficulties are reported through these codes instead of
    exceptions, so the calling integrator decides whether to retry with a
    smaller step or to abort.
    """
    OK = 0
    RECOVERABLE = 1     # Retry with a smaller step may help
    FAILURE = -1        # Unrecoverable
