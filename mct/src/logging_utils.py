"""
Logging setup for scripts.

Library modules only create loggers under the 'mct' namespace; nothing is
printed through logging until a script calls configure_logging().
"""

import logging

PACKAGE_LOGGER = 'mct'
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_handler = None


def configure_logging(level: int = logging.INFO, format: str = DEFAULT_FORMAT,
                      filename: str = None) -> logging.Logger:
    """
    Route the records of the mct package to stderr or to a file.

    Calling it again replaces the handler of the previous call, so scripts
    can switch level or target without duplicating output.

    Args:
        level: Level of the package logger
        format: Format string of the records
        filename: Log file; stderr if None

    Returns:
        The package logger
    """
    global _handler
    logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler.close()

    _handler = logging.FileHandler(filename) if filename else logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(format))
    logger.addHandler(_handler)
    logger.setLevel(level)
    return logger
