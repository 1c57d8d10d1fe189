"""
Logging setup for the daemon process.

Every module logs through logging.getLogger(__name__); this configures the
"mediaindexer" parent logger once at startup.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "mediaindexer"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "info", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Level name (debug, info, warning, error, critical)
        log_file: Optional file that receives the same records as stderr.
            Its parent directory is created if needed.

    Returns:
        The configured "mediaindexer" logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    # Re-running setup (tests, repeated main()) must not duplicate output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
