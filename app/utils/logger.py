# app/utils/logger.py
"""
Logging setup shared by the API, the services and the maintenance scripts.

Every module grabs its logger with get_logger(__name__). The root logger is
configured lazily on the first call: console output always, plus a rotating
file under LOG_DIR unless LOG_TO_FILE is switched off (tests do that).
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from app.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that drown out booking events at DEBUG
_NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "multipart")

_configured = False


def _log_dir() -> str:
    if settings.LOG_DIR:
        return settings.LOG_DIR
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
    return os.path.join(project_root, "logs")


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    level = settings.LOG_LEVEL.upper()
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    root = logging.getLogger()
    root.setLevel(level)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)
    root.addHandler(console)

    if settings.LOG_TO_FILE:
        log_dir = _log_dir()
        os.makedirs(log_dir, exist_ok=True)
        # 10 × 5MB rotation
        file_handler = RotatingFileHandler(
            filename=os.path.join(log_dir, settings.LOG_FILE),
            maxBytes=5 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger()
    return logging.getLogger(name)
