"""
Pytest tests for the logging setup.
"""

import logging

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from mct.src import MultiChannelTransportModel, configure_logging
from mct.tests.two_channel import create_model_config


def test_package_logger_to_file(tmp_path):
    log_file = tmp_path / 'mct.log'
    logger = configure_logging(logging.DEBUG, filename=str(log_file))
    try:
        assert logger.name == 'mct'
        assert logger.level == logging.DEBUG

        MultiChannelTransportModel.from_config(create_model_config(n_col=4))
        for handler in logger.handlers:
            handler.flush()
        assert 'mct.src.model' in log_file.read_text()
    finally:
        configure_logging(logging.WARNING)


def test_reconfigure_replaces_handler():
    logger = configure_logging(logging.INFO)
    n_handlers = len(logger.handlers)
    configure_logging(logging.WARNING)
    assert len(logger.handlers) == n_handlers
    assert logger.level == logging.WARNING
