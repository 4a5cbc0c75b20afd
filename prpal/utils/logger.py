import logging
import sys
from logging.handlers import RotatingFileHandler, SysLogHandler

from prpal.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DRIVERS = ["console", "file", "syslog"]

# Chatty dependencies that would otherwise log every HTTP round trip.
QUIET_LOGGERS = ["LiteLLM", "httpx", "httpcore", "urllib3", "rq.worker"]


class LevelFilter(logging.Filter):
    """Pass records whose level lies within [min_level, max_level]."""

    def __init__(self, min_level, max_level):
        super().__init__()
        self.min_level = min_level
        self.max_level = max_level

    def filter(self, record):
        return self.min_level <= record.levelno <= self.max_level


formatter = logging.Formatter(LOG_FORMAT)
logger = logging.getLogger()


def _build_handlers(log_driver: str) -> list[logging.Handler]:
    if log_driver == "file":
        return [
            RotatingFileHandler(
                settings.LOG_FILE,
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
                delay=True,
            )
        ]
    if log_driver == "syslog":
        return [SysLogHandler()]
    if log_driver == "console":
        stdout_handler = logging.StreamHandler(stream=sys.stdout)
        stdout_handler.addFilter(LevelFilter(logging.DEBUG, logging.INFO))
        stderr_handler = logging.StreamHandler(stream=sys.stderr)
        stderr_handler.addFilter(LevelFilter(logging.WARNING, logging.CRITICAL))
        return [stdout_handler, stderr_handler]
    raise ValueError(f"Invalid LOG_DRIVER: {log_driver}. Must be one of {LOG_DRIVERS}")


def setup_logger():
    """(Re)configure the root logger from settings.LOG_DRIVER and settings.LOG_LEVEL.

    Safe to call more than once: the web app and the rq worker both call it at
    startup, and tests call it again after patching settings.
    """
    handlers = _build_handlers(settings.LOG_DRIVER)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(settings.LOG_LEVEL)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
