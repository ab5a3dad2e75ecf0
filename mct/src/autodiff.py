"""
Forward-mode automatic differentiation of the residual kernel with JAX.

The residual kernel is written against an array namespace; binding it to
jax.numpy and jitting it gives a function that JAX can linearize. Jacobian
columns come from compressed JVPs (one per column color), parameter
sensitivities from JVPs seeded in parameter space.
"""

import functools

import jax
jax.config.update("jax_enable_x64", True)
import jax.numpy as jnp
import numpy as np


def jit_kernel(kernel):
    """Bind kernel(xp, ...) to jax.numpy and compile it."""
    return jax.jit(functools.partial(kernel, jnp))


def jacobian_products(f, y: np.ndarray, seeds: np.ndarray, *args) -> np.ndarray:
    """
    Products of the Jacobian df/dy with every seed vector.

    Args:
        f: Function f(y, *args) -> residual
        y: Linearization point
        seeds: Seed vectors (n_seeds, n_dofs)

    Returns:
        Array (n_seeds, n_dofs) with row k equal to J @ seeds[k]
    """
    _, f_lin = jax.linearize(lambda x: f(x, *args), jnp.asarray(y))
    return np.asarray(jax.vmap(f_lin)(jnp.asarray(seeds)))


def parameter_products(f, params, tangents, *args) -> np.ndarray:
    """
    Directional derivatives of f with respect to its parameter pytree.

    Args:
        f: Function f(params, *args) -> residual
        params: Parameter pytree (linearization point)
        tangents: Pytree shaped like params with a leading direction axis

    Returns:
        Array (n_directions, n_dofs)
    """
    def directional(tangent):
        return jax.jvp(lambda p: f(p, *args), (params,), (tangent,))[1]

    return np.asarray(jax.vmap(directional)(tangents))


def stack_tangents(tangents):
    """Stack a list of parameter pytrees along a new leading axis."""
    return jax.tree_util.tree_map(lambda *leaves: np.stack(leaves), *tangents)
