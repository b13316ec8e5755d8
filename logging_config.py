"""Logging setup: rich console output, optional plain-text log file."""

import logging
from typing import Optional

from rich.logging import RichHandler

import config


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure the root logger once at startup."""
    level = (level or config.LOG_LEVEL).upper()
    log_file = log_file if log_file is not None else config.LOG_FILE

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))

    # Remove default handlers
    root.handlers.clear()

    console_handler = RichHandler(show_path=False, rich_tracebacks=True, markup=False)
    console_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        root.addHandler(file_handler)
