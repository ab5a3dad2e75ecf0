"""
Pytest tests for the model Jacobian.

Tests verify:
1. Analytic and AD Jacobians agree for every WENO order and flow direction
2. Analytic Jacobian matches finite differences of the residual
3. Column coloring and compressed extraction of the sparsity pattern
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from mct.src import JacobianPattern, MultiChannelTransportModel, Status
from mct.tests.two_channel import create_model_config


def create_model(weno_order: int, flow_rates, n_comp: int = 2, n_col: int = 9, seed: int = 0):
    """Three channels of different size with asymmetric exchange."""
    rng = np.random.default_rng(seed)
    n_channel = len(flow_rates)
    config = create_model_config(
        cross_sections=[1.0, 2.0, 0.5][:n_channel],
        exchange=rng.uniform(0.0, 0.2, n_channel * n_channel * n_comp),
        n_comp=n_comp,
        n_col=n_col,
        weno_order=weno_order,
        col_length=3.0,
        dispersion=rng.uniform(1e-3, 1e-2, n_channel * n_comp),
        init_c=np.zeros(n_comp),
        inlet={'sec_000': {'CONST_COEFF': rng.random(n_channel * n_comp).tolist(),
                           'LIN_COEFF': [0.1] * n_comp}},
    )
    model = MultiChannelTransportModel.from_config(config)
    model.set_flow_rates(flow_rates, flow_rates)
    return model


def smooth_state(model, seed: int = 1) -> np.ndarray:
    rng = np.random.default_rng(seed)
    y = rng.uniform(0.1, 1.0, model.num_dofs)
    z = model.disc.cell_centers(model.col_length)
    model.indexer.c(y)[:] += np.sin(z)[:, None, None]
    return y


FLOW_CASES = {
    'forward': [1.0, 0.5, 0.2],
    'reversed': [-1.0, -0.5, -0.2],
    'mixed': [1.0, -0.5, 0.2],
}


class TestAnalyticVersusAD:
    """The analytic Jacobian and the AD Jacobian must coincide."""

    @pytest.mark.parametrize("weno_order", [1, 2, 3])
    @pytest.mark.parametrize("flow", list(FLOW_CASES))
    def test_agreement(self, weno_order, flow):
        model = create_model(weno_order, FLOW_CASES[flow])
        y = smooth_state(model)
        y_dot = np.zeros_like(y)

        res_analytic, status = model.residual_with_jacobian(0.5, y, y_dot)
        assert status == Status.OK
        jac_analytic = model.jacobian.toarray()

        model.use_analytic_jacobian(False)
        res_ad, status = model.residual_with_jacobian(0.5, y, y_dot)
        assert status == Status.OK
        jac_ad = model.jacobian.toarray()

        np.testing.assert_array_equal(res_analytic, res_ad)
        np.testing.assert_allclose(jac_analytic, jac_ad, rtol=1e-6, atol=1e-10)

    def test_ad_residual_matches_numpy(self):
        """The jitted kernel evaluates the same residual as the numpy path."""
        model = create_model(3, FLOW_CASES['mixed'])
        y = smooth_state(model)
        y_dot = np.random.default_rng(2).random(model.num_dofs)
        upwind_order, direction = model._transport.flow_arrays()
        res_jax = np.asarray(model._kernel_ad(y, y_dot, 0.5, model.current_parameters(),
                                              upwind_order, direction))
        np.testing.assert_allclose(res_jax, model.residual(0.5, y, y_dot), rtol=1e-12, atol=1e-14)


class TestFiniteDifferences:
    @pytest.mark.parametrize("weno_order", [1, 2, 3])
    @pytest.mark.parametrize("flow", ['forward', 'mixed'])
    def test_columns(self, weno_order, flow):
        model = create_model(weno_order, FLOW_CASES[flow])
        y = smooth_state(model)
        y_dot = np.zeros_like(y)
        model.residual_with_jacobian(0.0, y, y_dot)
        jac = model.jacobian.toarray()

        delta = 1e-6
        numeric = np.zeros_like(jac)
        for j in range(model.num_dofs):
            plus, minus = y.copy(), y.copy()
            plus[j] += delta
            minus[j] -= delta
            numeric[:, j] = (model.residual(0.0, plus, y_dot) - model.residual(0.0, minus, y_dot)) / (2 * delta)

        scale = np.max(np.abs(jac))
        np.testing.assert_allclose(jac, numeric, rtol=1e-4, atol=1e-6 * scale)

    def test_mass_matrix(self):
        model = create_model(2, FLOW_CASES['forward'])
        y = smooth_state(model)
        s_dot = np.random.default_rng(3).random(model.num_dofs)
        base = model.residual(0.0, y, np.zeros_like(y))
        np.testing.assert_allclose(model.residual(0.0, y, s_dot) - base,
                                   model.multiply_with_derivative_jacobian(s_dot), atol=1e-12)


class TestPattern:
    def test_pattern_independent_of_flow_direction(self):
        forward = create_model(3, FLOW_CASES['forward']).jacobian_pattern
        reversed_ = create_model(3, FLOW_CASES['reversed']).jacobian_pattern
        np.testing.assert_array_equal(forward.rows, reversed_.rows)
        np.testing.assert_array_equal(forward.cols, reversed_.cols)

    def test_coloring_is_valid(self):
        pattern = create_model(3, FLOW_CASES['mixed']).jacobian_pattern
        # Columns of the same color never share a row
        for row in range(pattern.n_dofs):
            cols = pattern.cols[pattern.rows == row]
            colors = pattern.colors[cols]
            assert len(np.unique(colors)) == len(colors)
        assert pattern.n_colors < pattern.n_dofs

    def test_compressed_extraction(self):
        rng = np.random.default_rng(4)
        n = 12
        rows = np.concatenate([np.arange(n), np.arange(1, n), np.arange(n - 1)])
        cols = np.concatenate([np.arange(n), np.arange(n - 1), np.arange(1, n)])
        pattern = JacobianPattern(n, [(rows, cols)])
        dense = pattern.matrix(rng.random(pattern.nnz)).toarray()

        products = pattern.seed_matrix() @ dense.T
        np.testing.assert_allclose(pattern.matrix(pattern.extract(products)).toarray(), dense)
        assert pattern.n_colors == 3

    def test_assemble_sums_duplicates(self):
        pattern = JacobianPattern(3, [(np.arange(3), np.arange(3))])
        data = pattern.assemble(np.array([0, 0, 2]), np.array([0, 0, 2]), np.array([1.0, 2.0, 5.0]))
        np.testing.assert_allclose(pattern.matrix(data).toarray(), np.diag([3.0, 0.0, 5.0]))

    def test_entry_outside_pattern(self):
        pattern = JacobianPattern(3, [(np.arange(3), np.arange(3))])
        with pytest.raises(IndexError):
            pattern.positions(np.array([0]), np.array([2]))
