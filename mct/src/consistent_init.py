"""
Consistent initialization of state, time derivative and sensitivities.

The inlet DOFs are algebraic, the bulk DOFs differential with an identity
mass matrix. A consistent point satisfies the algebraic equations for the
given bulk state, and carries the time derivative that makes the
differential equations hold.
"""

import logging
import numpy as np

from .errors import Status

logger = logging.getLogger(__name__)


def _zero_derivative(y: np.ndarray, workspace):
    return workspace.zero_derivative() if workspace is not None else np.zeros_like(y)


def consistent_initial_state(model, t: float, y: np.ndarray, error_tol: float,
                             workspace=None, max_iter: int = 50) -> Status:
    """
    Newton iteration on the algebraic DOFs with the bulk held fixed.

    Uses the algebraic diagonal block of the freshly evaluated Jacobian as
    iteration matrix. Converged when the max-norm of the algebraic residual
    is at most error_tol.

    Returns:
        OK on convergence, FAILURE otherwise (no internal retry)
    """
    alg = model.algebraic_dofs
    y_dot = _zero_derivative(y, workspace)

    for it in range(max_iter + 1):
        res, status = model.residual_with_jacobian(t, y, y_dot, workspace)
        if status == Status.FAILURE:
            return status

        res_alg = res[alg]
        error = float(np.max(np.abs(res_alg))) if res_alg.size else 0.0
        if not np.isfinite(error):
            logger.warning("Consistent initialization: non-finite algebraic residual at t = %g", t)
            return Status.FAILURE
        if error <= error_tol:
            logger.debug("Consistent initialization converged in %d iterations (residual %.3e)", it, error)
            return Status.OK
        if it == max_iter:
            break

        delta = model.algebraic_solve(res_alg)
        if not np.all(np.isfinite(delta)):
            return Status.FAILURE
        y[alg] -= delta

    logger.warning("Consistent initialization did not converge in %d iterations at t = %g", max_iter, t)
    return Status.FAILURE


def lean_consistent_initial_state(model, t: float, y: np.ndarray, error_tol: float,
                                  workspace=None) -> Status:
    """
    Single direct solve of the algebraic equations.

    Exact for the affine inlet equations; no convergence loop.
    """
    alg = model.algebraic_dofs
    res, status = model.residual_with_jacobian(t, y, _zero_derivative(y, workspace), workspace)
    if status == Status.FAILURE:
        return status

    delta = model.algebraic_solve(res[alg])
    if not np.all(np.isfinite(delta)):
        return Status.FAILURE
    y[alg] -= delta
    return Status.OK


def consistent_initial_time_derivative(model, t: float, y: np.ndarray, y_dot: np.ndarray,
                                       workspace=None) -> Status:
    """
    Bulk derivative from the residual, inlet derivative from the inlet profile.

    With y' = 0 the bulk rows of F hold the transport terms, so y'_bulk = -F_bulk.
    """
    y_dot[:] = 0.0
    res = model.residual(t, y, y_dot, workspace)

    bulk = model.differential_dofs
    y_dot[bulk] = -res[bulk]
    y_dot[model.algebraic_dofs] = model.inlet_derivative(t)

    if not np.all(np.isfinite(y_dot)):
        return Status.FAILURE
    return Status.OK


def lean_consistent_initial_time_derivative(model, t: float, y: np.ndarray, y_dot: np.ndarray,
                                            workspace=None) -> Status:
    """Bulk derivative only; the inlet derivative is left untouched."""
    bulk = model.differential_dofs
    y_dot[bulk] = 0.0
    res = model.residual(t, y, y_dot, workspace)
    y_dot[bulk] = -res[bulk]

    if not np.all(np.isfinite(y_dot[bulk])):
        return Status.FAILURE
    return Status.OK


def consistent_initial_sensitivity(model, t: float, y: np.ndarray, y_dot: np.ndarray,
                                   y_s: np.ndarray, y_s_dot: np.ndarray, lean: bool = False) -> Status:
    """
    Make the sensitivities consistent with the current Jacobian.

    For every direction:
        J_aa s_a = -(dF/dp_a + J_ad s_d)
        s'_d = -(J s + dF/dp)_d
        s'_a = d/dt (dc_in/dp)          (skipped by the lean variant)

    The Jacobian must have been evaluated at (t, y, y') before.
    """
    if len(y_s) == 0:
        return Status.OK

    alg, bulk = model.algebraic_dofs, model.differential_dofs
    dfdp = model.residual_sens_fwd_ad_only(t, y, y_dot)
    jac = model.jacobian
    jac_ad = jac[alg, bulk]
    tangents = model.parameter_tangents()

    for d in range(len(y_s)):
        rhs = dfdp[d, alg] + jac_ad @ y_s[d, bulk]
        y_s[d, alg] = model.algebraic_solve(-rhs)

        res = jac @ y_s[d] + dfdp[d]
        y_s_dot[d, bulk] = -res[bulk]
        if not lean:
            coeffs = tangents[d].for_section(model.section_index).inlet_coeffs
            y_s_dot[d, alg] = model.inlet_derivative(t, coeffs)

    if not (np.all(np.isfinite(y_s)) and np.all(np.isfinite(y_s_dot))):
        return Status.FAILURE
    return Status.OK
