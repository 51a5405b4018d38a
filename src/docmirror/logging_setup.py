from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys


LOGGER_NAME = "docmirror"

LEVELS = {
    "full": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def default_log_file() -> Path:
    return Path.home() / ".docmirror" / "docmirror.log"


def resolve_level(name: str) -> int:
    try:
        return LEVELS[name]
    except KeyError:
        raise ValueError(f"Unknown log level '{name}', expected one of: {', '.join(LEVELS)}") from None


def configure_logging(log_file: Path | None = None, level: str = "info") -> logging.Logger:
    """Route the ``docmirror`` logger to a rotating file, echoing errors to stderr.

    Reconfiguring replaces the handlers installed by a previous call, so the
    CLI can apply command-line overrides after the config file is read.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_level(level))
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")

    target = log_file or default_log_file()
    target.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(target, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.ERROR)
    console_handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    logger.addHandler(console_handler)

    return logger
