"""
Logging configuration for the Screen Recorder API.
Console output only; the serverless host collects stdout.
"""

import logging
import sys
from typing import Optional

from .config import Settings, settings

LOGGER_NAME = "recorder_api"
REDACTED = "***"
HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")


class SecretRedactingFilter(logging.Filter):
    """Replace the provider access key in every record passing through."""

    def __init__(self, secret: Optional[str] = None, source: Optional[Settings] = None):
        super().__init__()
        self.secret = secret
        self.source = source or settings

    def filter(self, record: logging.LogRecord) -> bool:
        secret = self.secret if self.secret is not None else self.source.SCREENSHOTONE_API_KEY
        if not secret:
            return True

        message = record.getMessage()
        if secret in message:
            record.msg = message.replace(secret, REDACTED)
            record.args = None
        if record.exc_info and not record.exc_text:
            # formatters reuse exc_text, so the traceback is scrubbed once here
            record.exc_text = logging.Formatter().formatException(record.exc_info).replace(secret, REDACTED)
        return True


def setup_logging(log_level: Optional[str] = None, app_settings: Optional[Settings] = None) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        log_level: Override log level from settings
        app_settings: Settings whose provider key gets redacted

    Returns:
        Configured logger instance
    """
    level = (log_level or settings.LOG_LEVEL).upper()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level))
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level))
    console_handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    console_handler.addFilter(SecretRedactingFilter(source=app_settings))
    logger.addHandler(console_handler)

    # httpx logs each request URL at INFO, and the access key is in the query string
    for name in HTTP_CLIENT_LOGGERS:
        client_logger = logging.getLogger(name)
        for existing in [f for f in client_logger.filters if isinstance(f, SecretRedactingFilter)]:
            client_logger.removeFilter(existing)
        client_logger.addFilter(SecretRedactingFilter(source=app_settings))

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger prefixed with 'recorder_api.'"""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
