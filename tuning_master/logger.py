"""Lazy logger lookup for Tuning Master modules.

The package root gets a NullHandler so that embedding applications see no
output until they configure logging (the CLI does so via
``logging_config.setup_logging``).
"""
import logging
from typing import Dict

PACKAGE_LOGGER = "tuning_master"

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())

# Module-level cache for loggers
_logger_cache: Dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """Return the cached logger for a module name such as 'tuning_master.session'.

    Names outside the package (e.g. '__main__' when a module is run as a
    script) are placed under the package logger so they share its handlers.
    """
    if name not in _logger_cache:
        qualified = name if name.startswith(PACKAGE_LOGGER) else f"{PACKAGE_LOGGER}.{name}"
        _logger_cache[name] = logging.getLogger(qualified)
    return _logger_cache[name]
