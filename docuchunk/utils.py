"""
Logging helpers shared by scripts and tests.
"""

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name: str, level: Union[str, int] = "INFO") -> logging.Logger:
    """
    Configure a named logger with a single stdout handler.

    Args:
        name: Logger name (usually "docuchunk" or "document_processing")
        level: Logging level name or number

    Returns:
        logging.Logger: The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    # Replace handlers from an earlier call instead of stacking them
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger
