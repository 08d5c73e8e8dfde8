"""
Logging configuration for smart-push.

Logs go to stderr through rich so they never mix with the JSON output
written to stdout. Handlers hang off the ``smart_push`` logger, not the
root, and are replaced on every call: the CLI configures logging once from
the global flags and again when the project config is known.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "smart_push"

_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def level_for(verbose: bool = False, quiet: bool = False) -> int:
    """quiet wins over verbose."""
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Route smart_push logs to stderr, and to *log_file* when given.

    Args:
        verbose: DEBUG level, with timestamps and source paths
        quiet: ERROR level only
        log_file: Append plain-text records to this file

    Returns:
        The ``smart_push`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            markup=False,
            show_time=verbose,
            show_path=verbose,
        )
    )
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    logger.setLevel(level_for(verbose, quiet))
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return ``smart_push`` or a ``smart_push.*`` child logger."""
    if name is None:
        return logging.getLogger(ROOT_LOGGER)

    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"

    return logging.getLogger(name)
