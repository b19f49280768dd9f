"""Logging setup for mpdlink."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import LoggingConfig

FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(config: LoggingConfig, level: str | None = None) -> logging.Logger:
    """Set up logging to stderr and, if configured, to a file."""
    name = (level or config.level).upper()
    numeric = getattr(logging, name, logging.WARNING)

    formatter = logging.Formatter(FORMAT)

    root_logger = logging.getLogger("mpdlink")
    root_logger.setLevel(numeric)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.file:
        log_file = Path(config.file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger
