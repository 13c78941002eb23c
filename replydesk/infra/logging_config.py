"""Logging setup shared by the API process and Celery workers."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from replydesk.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "replydesk"


class LoggingConfig:
    """Configure the root logger once; later instantiations are no-ops."""

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        if LoggingConfig._configured:
            return
        level_name = (level or get_settings().log_level or "INFO").upper()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root = logging.getLogger()
        root.handlers = [handler]
        root.setLevel(level_name)
        # Quiet chatty libraries
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
        LoggingConfig._configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger namespaced under replydesk (e.g. replydesk.webhooks)."""
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
