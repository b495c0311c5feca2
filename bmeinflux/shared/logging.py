"""Logging setup for the sampling service."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# aiohttp logs every pooled connection, asyncio every slow callback
NOISY_LOGGERS = ("asyncio", "aiohttp")

_handlers: List[logging.Handler] = []


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    max_bytes: int = 2_000_000,
    backup_count: int = 5,
) -> None:
    """Send log records to stderr and, optionally, a rotating file.

    The file rotates at max_bytes so it stays bounded on the SD card.
    Calling this again replaces the handlers installed by the previous call.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path of the log file, None for console only.
        max_bytes: Size at which the log file is rotated.
        backup_count: Number of rotated files to keep.
    """
    root = logging.getLogger()
    for handler in _handlers:
        root.removeHandler(handler)
        handler.close()
    _handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    _handlers.append(console)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count)
        file_handler.setFormatter(formatter)
        _handlers.append(file_handler)

    for handler in _handlers:
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
