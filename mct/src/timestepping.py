"""
Implicit time integration schemes for the DAE F(t, y, y') = 0.

Backward differentiation formulas write the derivative at the new time as

    y' = alpha * y + y_hist

so every step reduces to a nonlinear system in y that Newton's method solves
with the model's iteration matrix dF/dy + alpha * dF/dy'.
"""

import numpy as np
from typing import Optional, Tuple

from .errors import Status

NEWTON_TOL = 0.1    # Weighted RMS norm of the Newton update


def weighted_rms(v: np.ndarray, weights: np.ndarray) -> float:
    return float(np.sqrt(np.mean((v * weights) ** 2)))


def error_weights(y: np.ndarray, reltol: float, abstol: float) -> np.ndarray:
    return 1.0 / (reltol * np.abs(y) + abstol)


def bdf_coefficients(h: float, h_prev: Optional[float] = None) -> Tuple[float, float, float]:
    """
    Coefficients of y'_{n+1} = alpha * y_{n+1} + c_n * y_n + c_nm1 * y_{n-1}.

    Variable step BDF2 with step ratio w = h / h_prev; backward Euler when
    h_prev is None.

    Returns:
        alpha, c_n, c_nm1
    """
    if h_prev is None:
        return 1.0 / h, -1.0 / h, 0.0

    w = h / h_prev
    alpha = (1.0 + 2.0 * w) / ((1.0 + w) * h)
    c_n = -(1.0 + w) / h
    c_nm1 = w ** 2 / ((1.0 + w) * h)
    return alpha, c_n, c_nm1


def newton_solve(model, t: float, y: np.ndarray, alpha: float, y_hist: np.ndarray,
                 weights: np.ndarray, max_iter: int, workspace=None) -> Tuple[Status, int]:
    """
    Solve F(t, y, alpha * y + y_hist) = 0 in place.

    Modified Newton: the Jacobian is evaluated at the first iterate and its
    factorization reused for the remaining iterations.

    Args:
        model: Unit operation
        t: Time at the end of the step
        y: Initial guess, overwritten with the solution
        alpha: Leading BDF coefficient
        y_hist: History part of the derivative
        weights: Error weights of the convergence test
        max_iter: Maximum number of Newton iterations
        workspace: Optional scratch buffers

    Returns:
        (status, iterations); RECOVERABLE when a smaller step may succeed
    """
    for it in range(1, max_iter + 1):
        y_dot = alpha * y + y_hist
        if it == 1:
            res, status = model.residual_with_jacobian(t, y, y_dot, workspace)
            if status != Status.OK:
                return Status.RECOVERABLE, it
        else:
            res = model.residual(t, y, y_dot, workspace)

        if not np.all(np.isfinite(res)):
            return Status.RECOVERABLE, it

        delta, status = model.linear_solve(t, alpha, 1e-8, res, weights)
        if status == Status.FAILURE:
            return Status.FAILURE, it
        y -= delta

        if weighted_rms(delta, weights) <= NEWTON_TOL:
            return Status.OK, it

    return Status.RECOVERABLE, max_iter
