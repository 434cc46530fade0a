"""
Logging setup.

Routes loguru output to stderr at the configured level.
"""

import sys

from loguru import logger


LOG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)


def setup_logging(level: str = "INFO", colorize: bool = True) -> None:
    """
    Replace loguru's default sink with a single stderr sink.

    Args:
        level: Minimum level to emit (DEBUG shows per-frame diagnostics)
        colorize: Emit ANSI colours
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT, colorize=colorize)
    logger.debug(f"Logging configured at {level.upper()}")
