"""Logging configuration for Promemoria Alerts."""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime

from config import LOG_DIR

# Alert being handled by the current task, set by AlertRouter
current_alert: ContextVar[str] = ContextVar("current_alert", default="-")


class AlertContextFilter(logging.Filter):
    """Stamp each record with the alert handle in scope."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.alert = current_alert.get()
        return True


def setup_logging() -> logging.Logger:
    """Set up logging to a dated file, plus the console when interactive."""
    logger = logging.getLogger("promemoria_alerts")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    context = AlertContextFilter()

    log_file = LOG_DIR / f"alerts-{datetime.now().strftime('%Y-%m-%d')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.addFilter(context)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | alert=%(alert)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    logger.addHandler(file_handler)

    # Background runs (service manager, no TTY) only get the file
    if sys.stdout is not None and sys.stdout.isatty():
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.addFilter(context)
        console_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | [%(alert)s] %(message)s",
            datefmt="%H:%M:%S"
        ))
        logger.addHandler(console_handler)

    return logger


# Global logger instance
logger = setup_logging()
