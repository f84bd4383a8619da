"""Logging setup for the Tuning Master command line.

Library code only obtains loggers through ``tuning_master.logger.get_logger``;
handlers and levels are installed here, once per process, by the CLI.
"""

import logging
import sys
from typing import List, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Default level per logger name
MODULE_LOG_LEVELS = {
    "tuning_master": logging.INFO,
    "tuning_master.session": logging.INFO,
    "tuning_master.scheduler": logging.INFO,
    # Runs on every tick
    "tuning_master.detection": logging.WARNING,
    "tuning_master.core": logging.INFO,
    "tuning_master.audio": logging.INFO,
    "tuning_master.ui": logging.WARNING,
    "tuning_master.cli": logging.INFO,
    "sounddevice": logging.ERROR,
    "": logging.ERROR,
}

_handlers: List[logging.Handler] = []


def _resolve_level(level: Optional[str]) -> Optional[int]:
    if not level:
        return None
    numeric_level = logging.getLevelName(level.upper())
    if isinstance(numeric_level, int):
        return numeric_level
    logging.getLogger(__name__).error(f"Invalid log level: {level}")
    return None


def _build_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT)
    # The live display owns stdout, so console logging goes to stderr
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def reset_logging() -> None:
    """Detach and close the handlers installed by ``setup_logging``."""
    for module_name in MODULE_LOG_LEVELS:
        logger = logging.getLogger(module_name)
        for handler in _handlers:
            logger.removeHandler(handler)
    for handler in _handlers:
        handler.close()
    _handlers.clear()


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Install handlers and per-module levels.

    Calling it again replaces the previous configuration, so the console
    handler always writes to the current ``sys.stderr``.

    Args:
        level: Overrides every 'tuning_master' level when given (e.g. "DEBUG").
        log_file: Also append log records to this file.
    """
    reset_logging()
    _handlers.extend(_build_handlers(log_file))

    override = _resolve_level(level)
    for module_name, module_level in MODULE_LOG_LEVELS.items():
        if override is not None and module_name.startswith("tuning_master"):
            module_level = override
        logger = logging.getLogger(module_name)
        logger.setLevel(module_level)
        for handler in _handlers:
            logger.addHandler(handler)
        logger.propagate = False

    logging.getLogger("tuning_master").debug("Logging configured (level=%s, file=%s)", level, log_file)
