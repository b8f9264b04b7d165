"""Logging helpers. Library code only emits records; the CLI installs handlers."""

import logging
from typing import Optional

LOGGER_NAME = "picquant"


def get_logger(logger: Optional[logging.Logger] = None) -> logging.Logger:
    """Return the caller-supplied logger, or the package logger."""
    return logger if logger is not None else logging.getLogger(LOGGER_NAME)


def configure_logging(verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(name)s: %(levelname).4s : %(message)s"))
        logger.addHandler(handler)
    return logger
