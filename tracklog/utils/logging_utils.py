"""Logging setup shared by all modules."""

import logging
import sys
from pathlib import Path
from typing import Optional

from tracklog.conf.settings import settings

_configured = False


def setup_logger(
    name: str = "tracklog",
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
) -> logging.Logger:
    """Configure a logger with a console handler and an optional file handler.

    Args:
        name: Logger name
        log_level: Level name (defaults to settings.log_level)
        log_file: File name for a file handler (None = console only,
                  unless settings.log_to_file is set)
        log_dir: Directory for the log file (defaults to settings.logs_path)

    Returns:
        Configured logger
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    formatter = logging.Formatter(settings.log_format)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        # Diagnostics go to stderr; stdout may carry the recording echo
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file is None and settings.log_to_file:
            log_file = f"{name}.log"

        if log_file is not None:
            log_path = Path(log_dir or settings.logs_path)
            log_path.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path / log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a module logger under the package root logger.

    The root ``tracklog`` logger is configured on first use.
    """
    global _configured
    if not _configured:
        setup_logger("tracklog")
        _configured = True

    if name == "tracklog" or name.startswith("tracklog."):
        return logging.getLogger(name)
    return logging.getLogger(f"tracklog.{name}")
