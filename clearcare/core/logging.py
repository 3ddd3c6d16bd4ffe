"""Application logger shared by every feature service."""

import logging
import sys

from clearcare.config import settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Driver chatter drowns out request logs at DEBUG
QUIET_LOGGERS = ("pymongo", "passlib", "aiosmtplib")


def setup_logging(name: str = "clearcare") -> logging.Logger:
    """Attach a stdout handler to the ``clearcare`` logger once, at LOG_LEVEL."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    app_logger = logging.getLogger(name)
    app_logger.setLevel(level)
    app_logger.propagate = False

    if not app_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        app_logger.addHandler(handler)

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    app_logger.debug(f"Logging configured with level: {logging.getLevelName(level)}")
    return app_logger


logger = setup_logging()
