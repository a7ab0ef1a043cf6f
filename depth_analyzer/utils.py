# depth_analyzer/utils.py
import logging
import sys


def setup_logger(name, level=logging.INFO, stream=None):
    """
    Sets up a simple logger that prints to stderr.
    stdout is reserved for instruction lines.
    """
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)-5.5s] [%(name)-12.12s]  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate logs if already configured
    if not logger.hasHandlers():
        logger.addHandler(handler)

    logger.propagate = False

    return logger


def set_level(level):
    """Applies `level` to every logger created through setup_logger."""
    for name, logger in logging.Logger.manager.loggerDict.items():
        if isinstance(logger, logging.Logger) and name.startswith("depth_analyzer"):
            logger.setLevel(level)
