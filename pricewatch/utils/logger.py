"""Logging setup for pricewatch.

Everything ends up in loguru: our own modules log through it directly and
the stdlib loggers of the libraries we run (APScheduler job errors,
uvicorn, httpx) are forwarded into it by ``InterceptHandler``.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from .config import Config, get_config

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

INTERCEPTED_LOGGERS = ("apscheduler", "uvicorn", "uvicorn.error", "uvicorn.access", "httpx")


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru."""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside the logging module so loguru reports it
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def intercept_stdlib(names: Iterable[str], level: str):
    """Route the named stdlib loggers into loguru only."""
    handler = InterceptHandler()
    for name in names:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.setLevel(level)
        std_logger.propagate = False


def setup_logging(config: Optional[Config] = None, log_file: Optional[str] = None):
    """Install the loguru sinks described by ``config.logging``.

    Args:
        config: Configuration model, defaults to the global config
        log_file: Overrides ``config.logging.file``; an empty string
            disables file logging
    """
    if config is None:
        config = get_config()

    level = config.logging.level.upper()
    if log_file is None:
        log_file = config.logging.file

    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level=level,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
        )

    intercept_stdlib(INTERCEPTED_LOGGERS, level)

    logger.info(f"Logging initialized at {level} level" + (f", file {log_file}" if log_file else ""))
