"""Root logger setup for the API process."""

import logging
import sys

from fincache.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers and the level they are capped at
QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "uvicorn": logging.INFO,
}


def setup_logging() -> None:
    """Log to stdout at settings.log_level; also to <data_dir>/logs/fincache.log if log_to_file."""
    settings = get_settings()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_to_file:
        log_file = settings.get_log_dir() / "fincache.log"
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format=LOG_FORMAT,
        handlers=handlers,
    )
    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
