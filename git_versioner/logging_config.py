"""
Logging configuration for Git Versioner.

All diagnostics go to stderr so that stdout stays clean for the version
string and CI service messages that build scripts capture.
"""

import sys

from loguru import logger
from rich.console import Console

LOG_FORMAT = '<green>{time:HH:mm:ss}</green> | {level.icon}  - <level>{message}</level>'


def create_console(no_color: bool = False) -> Console:
    """Create the shared stderr console used by the log sink."""
    return Console(stderr=True, no_color=no_color, highlight=False)


def setup_logging(log_level: str = 'INFO', console: Console = None) -> None:
    """
    Set up the loguru sink.

    Args:
        log_level: Logging level (DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)
        console: Rich Console instance to print through (optional)
    """
    # VERBOSE sits between DEBUG=10 and INFO=20
    try:
        logger.level("VERBOSE", no=15, color="<cyan>", icon="ℹ️")
    except (TypeError, ValueError):
        pass

    logger.remove()

    if console:
        logger.add(
            lambda msg: console.print(msg, end='', markup=False),
            level=log_level,
            format=LOG_FORMAT,
        )
    else:
        logger.add(
            sys.stderr,
            level=log_level,
            format=LOG_FORMAT,
            colorize=True,
        )
