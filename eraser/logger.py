"""Process-wide logging setup."""

import json
import logging
from typing import Optional

DEFAULT_LEVEL = "info"

_LEVELS = {
    "": logging.INFO,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "dpanic": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}

_handler: Optional[logging.Handler] = None


def parse_level(level: str) -> int:
    """Turn a level name (all lower or all upper case) into a logging level."""
    if level in (level.lower(), level.upper()) and level.lower() in _LEVELS:
        return _LEVELS[level.lower()]
    raise ValueError(f'unable to parse log level: unrecognized level: "{level}": {level}')


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "level": _LEVEL_NAMES.get(record.levelno, record.levelname.lower()),
            "ts": record.created,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure(level: str = DEFAULT_LEVEL) -> logging.Logger:
    """Set up the root logger: console output at debug, JSON lines otherwise."""
    global _handler
    numeric = parse_level(level)

    handler = logging.StreamHandler()
    if numeric == logging.DEBUG:
        handler.setFormatter(
            logging.Formatter("%(asctime)s\t%(levelname)s\t%(name)s\t%(message)s")
        )
    else:
        handler.setFormatter(_JsonFormatter())

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    root.addHandler(handler)
    root.setLevel(numeric)
    _handler = handler
    return root