"""Centralized logging configuration for github2trello."""

from __future__ import annotations

import logging
import sys

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def setup_logging(level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """Configure the ``github2trello`` logger.

    Progress goes to stderr so it never mixes with anything a caller pipes
    from stdout. At DEBUG the console lines also name the emitting module,
    which makes it easy to tell GitHub fetches from Trello writes.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR). Unknown names fall back to INFO.
        log_file: Optional path to log file. If provided, logs will be written to both
                  console and file.

    Returns:
        The configured package logger

    Example:
        >>> setup_logging("DEBUG")  # Also show skipped issues
        >>> setup_logging("INFO", "sync.log")  # Console + timestamped file
    """
    resolved = LEVELS.get(level.upper(), logging.INFO)

    logger = logging.getLogger("github2trello")
    logger.setLevel(resolved)

    # Repeat calls (tests, re-entrant CLI) must not stack handlers
    logger.handlers.clear()

    console_format = "%(levelname)s: %(message)s"
    if resolved == logging.DEBUG:
        console_format = "%(levelname)s [%(name)s]: %(message)s"

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(console_format))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
