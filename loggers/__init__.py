import logging
from logging import FileHandler, Handler, Logger, StreamHandler
import os
import re
from typing import Any

from src.main.config import get_settings

LOG_DIR = os.path.join(os.path.dirname(__file__), "..", "logs")
LOG_FILE = os.path.join(LOG_DIR, "sessions.log")

logging_format = "%(asctime)s [%(levelname)s]|[%(process)d]| %(name)s: %(message)s"
plain_logging_format = "%(asctime)s [%(process)d]| %(message)s"
time_logging_format = "%Y-%m-%d %H:%M:%S"

# header.payload.signature, each part base64url; header and payload of a JWT
# always start with "eyJ" ('{"' encoded)
JWT_PATTERN = re.compile(r"eyJ[\w-]+\.eyJ[\w-]+\.[\w-]*")
REDACTED_TOKEN = "<redacted-jwt>"


class TokenRedactingFilter(logging.Filter):
    """Replaces anything shaped like a JWT in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if JWT_PATTERN.search(message):
            record.msg = JWT_PATTERN.sub(REDACTED_TOKEN, message)
            record.args = None
        return True


def _level(name: str, default: int) -> int:
    return getattr(logging, name.upper(), default)


def _prepare(handler: Handler, level: int, fmt: str) -> Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, time_logging_format))
    handler.addFilter(TokenRedactingFilter())
    return handler


def get_file_handler() -> FileHandler:
    os.makedirs(LOG_DIR, exist_ok=True)
    level = _level(get_settings().app.LOG_LEVEL_FILE, logging.WARNING)
    handler = FileHandler(LOG_FILE, "a", "utf-8")
    _prepare(handler, level, logging_format)
    return handler


def get_stream_handler(*, plain_format: bool = False) -> StreamHandler:  # type: ignore[type-arg]
    level = _level(get_settings().app.LOG_LEVEL, logging.INFO)
    handler = StreamHandler()
    _prepare(handler, level, plain_logging_format if plain_format else logging_format)
    return handler


def get_logger(name: Any, *, plain_format: bool = False) -> Logger:
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    app_config = get_settings().app
    logger.setLevel(_level(app_config.LOG_LEVEL, logging.INFO))

    logger.addHandler(get_stream_handler(plain_format=plain_format))
    if not plain_format and not app_config.TESTING:
        logger.addHandler(get_file_handler())

    logger.propagate = False
    return logger
