"""
Pytest tests for the parameter provider.
"""

import json

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from mct.src import ConfigurationError, ParameterProvider
from mct.src.inlet import read_inlet_coefficients


@pytest.fixture
def provider():
    return ParameterProvider({
        'NCOMP': 2,
        'COL_LENGTH': 1.5,
        'NAME': 'column',
        'FLAG': 'true',
        'VALUES': [1.0, 2.0, 3.0],
        'SINGLE': [4.0],
        'discretization': {'NCOL': 10, 'weno': {'WENO_ORDER': 2}},
    })


class TestLookups:
    def test_scalars(self, provider):
        assert provider.get_int('NCOMP') == 2
        assert provider.get_double('COL_LENGTH') == 1.5
        assert provider.get_string('NAME') == 'column'
        assert provider.get_bool('FLAG') is True
        assert provider.get_double('SINGLE') == 4.0

    def test_arrays(self, provider):
        np.testing.assert_array_equal(provider.get_double_array('VALUES'), [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(provider.get_double_array('COL_LENGTH'), [1.5])
        np.testing.assert_array_equal(provider.get_int_array('VALUES'), [1, 2, 3])
        assert provider.is_array('VALUES')
        assert not provider.is_array('NCOMP')

    def test_missing(self, provider):
        assert not provider.exists('VELOCITY')
        with pytest.raises(ConfigurationError):
            provider.get_double('VELOCITY')

    @pytest.mark.parametrize("getter,name", [
        ('get_int', 'COL_LENGTH'),
        ('get_double', 'NAME'),
        ('get_double', 'VALUES'),
        ('get_string', 'NCOMP'),
    ])
    def test_wrong_type(self, provider, getter, name):
        with pytest.raises(ConfigurationError):
            getattr(provider, getter)(name)


class TestScopes:
    def test_nested(self, provider):
        with provider.scope('discretization'):
            assert provider.get_int('NCOL') == 10
            with provider.scope('weno'):
                assert provider.current_scope == '/discretization/weno'
                assert provider.get_int('WENO_ORDER') == 2
            assert not provider.exists('NCOMP')
        assert provider.current_scope == '/'
        assert provider.exists('NCOMP')

    def test_push_pop(self, provider):
        provider.push_scope('discretization')
        assert provider.exists('NCOL')
        provider.pop_scope()
        with pytest.raises(RuntimeError):
            provider.pop_scope()

    def test_not_a_scope(self, provider):
        with pytest.raises(ConfigurationError):
            provider.push_scope('NCOMP')

    def test_from_json(self, tmp_path):
        path = tmp_path / 'model.json'
        path.write_text(json.dumps({'NCOMP': 3, 'inlet': {'sec_000': {'CONST_COEFF': [1.0]}}}))
        provider = ParameterProvider.from_json(path)
        assert provider.get_int('NCOMP') == 3


class TestInletCoefficients:
    def test_sections(self):
        provider = ParameterProvider({'inlet': {
            'sec_000': {'CONST_COEFF': [1.0, 2.0], 'CUBE_COEFF': [0.5, 0.0]},
            'sec_001': {'LIN_COEFF': [1.0, 2.0, 3.0, 4.0]},
        }})
        coeffs = read_inlet_coefficients(provider, n_channel=2, n_comp=2)
        assert coeffs.shape == (2, 4, 2, 2)
        np.testing.assert_array_equal(coeffs[0, 0], [[1.0, 2.0], [1.0, 2.0]])
        np.testing.assert_array_equal(coeffs[0, 3], [[0.5, 0.0], [0.5, 0.0]])
        np.testing.assert_array_equal(coeffs[1, 1], [[1.0, 2.0], [3.0, 4.0]])

    def test_no_inlet(self):
        coeffs = read_inlet_coefficients(ParameterProvider({}), n_channel=3, n_comp=1)
        np.testing.assert_array_equal(coeffs, np.zeros((1, 4, 3, 1)))

    def test_wrong_size(self):
        provider = ParameterProvider({'inlet': {'sec_000': {'CONST_COEFF': [1.0, 2.0, 3.0]}}})
        with pytest.raises(ConfigurationError):
            read_inlet_coefficients(provider, n_channel=2, n_comp=2)
