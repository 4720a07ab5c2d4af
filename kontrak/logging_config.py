# FILE: kontrak/logging_config.py
# DESCRIPTION: Shared logger factory. Every module calls configure_logging() once at
# import time with its dotted name and log file; the level falls back to LOG_LEVEL.

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(name: str, logfile: str = None, level=None) -> logging.Logger:
    """Return a configured logger, adding handlers only on first call per name."""
    logger = logging.getLogger(name)

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    logger.setLevel(level)

    if getattr(logger, "_kontrak_configured", False):
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if logfile:
        log_dir = os.getenv("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, logfile),
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Handlers live on the named logger; don't duplicate through the root
    logger.propagate = False
    logger._kontrak_configured = True
    return logger
