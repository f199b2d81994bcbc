"""Logging for the privilege cache service.

Everything goes through the ``privcache`` logger: INFO and up to stdout and
``app.log``, failed reloads and load errors additionally to ``errors.log``.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from privcache.core.config import LOG_DIR

LOG_PATH = Path(LOG_DIR)
LOG_PATH.mkdir(parents=True, exist_ok=True)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def _rotating_handler(filename: str, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(LOG_PATH / filename, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(formatter)

logger = logging.getLogger("privcache")
logger.setLevel(logging.INFO)
logger.addHandler(console_handler)
logger.addHandler(_rotating_handler("app.log", logging.INFO))
logger.addHandler(_rotating_handler("errors.log", logging.ERROR))
