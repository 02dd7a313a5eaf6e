"""
Logging configuration.

Sets up console logging for the service and the scene format library.
"""

import logging
import sys
from typing import Union

LOGGER_NAMES = ("app", "texel_scene")


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Configure the 'app' and 'texel_scene' loggers.

    Args:
        level: Logging level (e.g. logging.DEBUG or "DEBUG")
    """
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(level)

        # avoid duplicate handlers on reload
        if logger.hasHandlers():
            logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
