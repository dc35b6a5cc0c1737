"""
Logging configuration for the arithc command line.

The library modules only create loggers (logging.getLogger(__name__));
handlers are installed here, once, by the CLI.
"""

from __future__ import annotations
import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "arith_compiler"


def level_for(verbose: int = 0, quiet: bool = False) -> int:
    """Map -v / -q flags to a logging level."""
    if quiet:
        return logging.ERROR
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(verbose: int = 0, quiet: bool = False,
                  console: Optional[Console] = None) -> logging.Logger:
    """Configure and return the package logger.

    Records go to stderr through a RichHandler. Calling this again only
    adjusts the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    level = level_for(verbose, quiet)
    logger.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_time=False,
            show_path=verbose >= 2,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)
    return logger
