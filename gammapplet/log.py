"""Logging setup for gammapplet.

Logging Policy:
    One rotating log file per user. Messages use the
    ``component: event key=value`` style and never contain more than
    parameter names, values and error descriptions.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    level: str = "INFO",
    log_file: Path | None = None,
    debug: bool = False,
) -> logging.Logger:
    """Set up the gammapplet logger with rotation.

    Args:
        level: Level name for the file handler.
        log_file: Log file path, or None to skip file logging.
        debug: Also log everything to stderr.

    Returns:
        Configured "gammapplet" logger.
    """
    logger = logging.getLogger("gammapplet")

    # Only set up handlers if not already configured
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            # 1MB max, keep 2 backups
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=1024 * 1024,
                backupCount=2,
                encoding="utf-8",
            )
        except OSError as e:
            print(f"gammapplet: cannot open log file {log_file}: {e}", file=sys.stderr)
        else:
            file_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    if debug:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(logging.DEBUG)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger
