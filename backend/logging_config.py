"""Centralized logging configuration."""

import logging

from config import settings

# Loggers owned by this service; platform calls log from "provider-fetch" threads
APP_LOGGERS = ("api", "services", "integrations", "requests")

NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "httpx",
    "httpcore",
    "urllib3",
    # main.py logs every request itself
    "uvicorn.access",
)


def setup_logging() -> None:
    """Configure logging for the application.

    Sets the root logger and the service's own loggers from
    settings.LOG_LEVEL, and suppresses noisy third-party loggers to
    WARNING. The thread name is part of each line so the concurrent
    platform calls of one aggregation can be told apart.
    """
    level = getattr(logging, settings.LOG_LEVEL)
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s  %(message)s",
        datefmt="%H:%M:%S",
        level=level,
        force=True,
    )

    for name in APP_LOGGERS:
        logging.getLogger(name).setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
