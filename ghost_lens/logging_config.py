import logging
import sys
import os
from logging import Handler
from typing import Optional

from tqdm import tqdm

LOGGER_NAME = "ghost_lens"


class TqdmLoggingHandler(Handler):
    """Writes records through ``tqdm.write`` so they never tear a progress bar."""

    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=sys.stderr)
            self.flush()
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception:
            self.handleError(record)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger, or one of its children when a name is given."""
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def setup_logger(log_level_str: str, log_file_path: Optional[str], log_to_console: bool) -> logging.Logger:
    """
    Configure the ``ghost_lens`` logger.

    Args:
        log_level_str: Level name such as 'INFO' or 'DEBUG'; unknown names fall back to INFO.
        log_file_path: Log file to append to, or None for no file output.
        log_to_console: Whether to echo records to stderr via tqdm.

    Returns:
        The configured logger. Calling this again replaces its handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level_str.upper(), logging.INFO))
    if logger.hasHandlers():
        logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

    if log_file_path:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = TqdmLoggingHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # Otherwise logging.lastResort would print warnings to stderr.
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger
