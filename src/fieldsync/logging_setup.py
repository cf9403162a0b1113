"""
Logging setup for fieldsync processes.
"""

import logging
from logging.handlers import RotatingFileHandler

from .config import LoggingConfig


def setup_logging(config: LoggingConfig, debug: bool = False) -> logging.Logger:
    """Configure the ``fieldsync`` logger from ``config``. Safe to call twice."""
    log = logging.getLogger("fieldsync")
    log.setLevel(logging.DEBUG if debug else config.level)

    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    log.addHandler(stream_handler)

    if config.file:
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)

    return log
