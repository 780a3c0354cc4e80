"""
Logging setup and configuration utilities.

This module configures loguru sinks for console and rotating file output and
routes records from the standard ``logging`` module into loguru, so kernel
modules can keep using ``logging.getLogger(__name__)``.
"""

import logging
import sys
from pathlib import Path
from types import FrameType
from typing import Optional, Union

from loguru import logger as loguru_logger

from ..config.models import LoggingConfig

CONSOLE_FORMAT = ("<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
                  "<level>{level: <8}</level> | "
                  "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                  "<level>{message}</level>")


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Union[str, int] = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside the logging module so loguru reports it
        frame: Optional[FrameType] = logging.currentframe()
        depth = 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage())


def setup_logging(config: LoggingConfig) -> None:
    """
    Setup application logging with the given configuration.

    Args:
        config: Logging configuration
    """
    # Remove default handler
    loguru_logger.remove()

    if config.console_enabled:
        loguru_logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=config.level,
            colorize=True,
            backtrace=True,
            diagnose=False
        )

    if config.file_enabled:
        log_dir = Path(config.log_directory)
        log_dir.mkdir(parents=True, exist_ok=True)

        loguru_logger.add(
            log_dir / "app.log",
            format=config.format,
            level=config.level,
            rotation=config.max_file_size,
            retention=config.backup_count,
            compression="zip",
            backtrace=True,
            diagnose=False
        )

    intercept_standard_logging(config.level)


def intercept_standard_logging(level: str = "INFO") -> None:
    """Replace root logger handlers with a single loguru interceptor."""
    root_logger = logging.getLogger()
    root_logger.handlers = [InterceptHandler()]
    root_logger.setLevel(_standard_level(level))


def _standard_level(level: str) -> int:
    """Map a loguru level name onto the closest standard logging level."""
    mapping = {
        "TRACE": logging.DEBUG,
        "SUCCESS": logging.INFO,
    }
    return mapping.get(level.upper(), getattr(logging, level.upper(), logging.INFO))
