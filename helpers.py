"""Helper functions."""
import logging

import coloredlogs
import verboselogs
from verboselogs import VerboseLogger

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# -v count -> level
LEVELS: list[int] = [logging.INFO, verboselogs.VERBOSE, logging.DEBUG, verboselogs.SPAM]


def get_logger(name: str) -> VerboseLogger:
    """Return a named logger with the verbose() and spam() methods.

    Parameters
    ----------
    name : str
        The logger's dotted name, e.g. ``jarchive.exploded``.

    Returns
    -------
    verboselogs.VerboseLogger
        The logger, attached to the standard logging hierarchy.

    """
    verboselogs.install()
    return logging.getLogger(name)


def init_logger(
    name: str,
    verbosity: int,
    formatting: str = DEFAULT_LOG_FORMAT,
) -> VerboseLogger:
    """Initialize the program's logger.

    Parameters
    ----------
    name : str
        The logger's name.
    verbosity : int
        Number of -v flags given (0: info, 1: verbose, 2: debug, 3+: spam).
    formatting : str, optional
        The log format.

    Returns
    -------
    verboselogs.VerboseLogger
        The logger.

    """
    level = LEVELS[max(0, min(verbosity, len(LEVELS) - 1))]
    logger = get_logger(name)

    coloredlogs.install(
        logger=logger,
        level=level,
        fmt=formatting,
    )

    return logger
