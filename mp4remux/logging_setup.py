# mp4remux/logging_setup.py
"""Logging configuration and setup for the MP4 remux tool."""

import datetime
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from mp4remux.config import APP_DIR
from mp4remux.privacy import PathPrivacyFilter, set_anonymization_enabled

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(log_directory: str | None = None, anonymize: bool = True, verbose: bool = False) -> str | None:
    """Set up logging to a rotating file and the console.

    Args:
        log_directory: Optional path to log directory. If None, uses APP_DIR/logs
        anonymize: Whether to anonymize video file names in logs
        verbose: Show DEBUG messages on the console

    Returns:
        The log file path, or None if only console logging could be set up
    """
    set_anonymization_enabled(anonymize)
    logs_dir = os.path.abspath(log_directory) if log_directory else str(APP_DIR / "logs")
    try:
        os.makedirs(logs_dir, exist_ok=True)
    except OSError as e:
        print(f"ERROR: Cannot create/access log directory '{logs_dir}': {e}", file=sys.stderr)
        logs_dir = None

    log_formatter = logging.Formatter(LOG_FORMAT)

    file_handler = None
    log_file = None
    if logs_dir:
        timestamp = datetime.datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        log_file = os.path.join(logs_dir, f"mp4remux_{timestamp}.log")
        try:
            file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
            file_handler.setFormatter(log_formatter)
            file_handler.setLevel(logging.DEBUG)
            if anonymize:
                file_handler.addFilter(PathPrivacyFilter())
        except OSError as e:
            print(f"ERROR: Cannot create log file handler: {e}", file=sys.stderr)
            file_handler = None
            log_file = None

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if anonymize:
        console_handler.addFilter(PathPrivacyFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    if file_handler:
        root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    root_logger.info(f"Filename anonymization in logs is {'ENABLED' if anonymize else 'DISABLED'}.")
    return log_file
