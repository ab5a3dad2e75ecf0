"""
Test cases for the multi-channel transport model.

Run tests with pytest:
    pytest mct/tests/ -v

Or run individual test files:
    pytest mct/tests/test_jacobian.py -v
    pytest mct/tests/test_model.py -v
"""

from .two_channel import create_model_config, step_inlet, run_two_channel_pulse

__all__ = [
    'create_model_config',
    'step_inlet',
    'run_two_channel_pulse',
]
