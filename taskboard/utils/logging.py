"""Logging setup: coloured console, rotating log files, request and store timing."""

import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Optional, Union

from ..config import Settings

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# Loggers under the package, set to the configured level
APP_LOGGERS = ('taskboard',)

THIRD_PARTY_LEVELS = {
    'uvicorn': logging.INFO,
    'uvicorn.access': logging.WARNING,
    'fastapi': logging.INFO,
    'aiohttp': logging.WARNING,
}

# Silenced further outside development
NOISY_IN_PRODUCTION = ('uvicorn.access', 'aiohttp.access', 'aiohttp.client')


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours the level name."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        color = self.COLORS.get(levelname)
        if color:
            record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # The file handlers see the same record
            record.levelname = levelname


def _rotating_handler(filename: Union[str, Path], level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=filename,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding='utf-8',
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(settings: Settings) -> None:
    """Configure the root logger from settings.

    Writes everything to ``app.log`` (or ``settings.log_file``) and errors to
    ``error.log`` under ``settings.log_dir``, both rotated at 10MB. The console
    gets the configured level with coloured level names.

    Args:
        settings: Application settings containing logging configuration
    """
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, settings.log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    root_logger.addHandler(_rotating_handler(settings.log_file or log_dir / "app.log", logging.DEBUG))
    root_logger.addHandler(_rotating_handler(log_dir / "error.log", logging.ERROR))

    configure_module_loggers(settings)

    logging.getLogger(__name__).info(
        f"Logging configured at {settings.log_level.upper()}, files in {log_dir.absolute()}"
    )


def configure_module_loggers(settings: Settings) -> None:
    """Set package and third-party logger levels."""
    level = getattr(logging, settings.log_level.upper())
    for logger_name in APP_LOGGERS:
        logging.getLogger(logger_name).setLevel(level)

    for logger_name, third_party_level in THIRD_PARTY_LEVELS.items():
        logging.getLogger(logger_name).setLevel(third_party_level)

    if settings.environment == "production":
        for logger_name in NOISY_IN_PRODUCTION:
            logging.getLogger(logger_name).setLevel(logging.ERROR)


def configure_request_logging():
    """Build the HTTP middleware that logs each request with its status and duration.

    Server errors are logged at ERROR so they reach ``error.log``.
    """
    from fastapi import Request

    logger = logging.getLogger("taskboard.middleware.requests")

    async def log_requests(request: Request, call_next):
        client = request.client.host if request.client else 'unknown'
        started = time.perf_counter()
        logger.debug(f"{request.method} {request.url.path} from {client}")

        response = await call_next(request)

        elapsed = time.perf_counter() - started
        log = logger.error if response.status_code >= 500 else logger.info
        log(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.3f}s)")
        return response

    return log_requests


def log_startup_info(settings: Settings) -> None:
    """Log the settings the server starts with."""
    logger = logging.getLogger("taskboard.startup")

    lines = [
        "Taskboard starting",
        f"Environment: {settings.environment}",
        f"Log level: {settings.log_level.upper()}",
        f"Store backend: {settings.store_backend}",
    ]
    if settings.store_backend == "rest":
        lines.append(f"Store: {settings.rest_base_url} (table {settings.store_table})")
    lines.append(f"Notification timeout: {settings.notification_timeout_seconds}s")

    logger.info("=" * 60)
    for line in lines:
        logger.info(line)
    logger.info("=" * 60)


def log_shutdown_info() -> None:
    logging.getLogger("taskboard.shutdown").info("Taskboard shutting down")


class TimedOperation:
    """Context manager timing one store round trip.

    Logs the duration at DEBUG, failures at ERROR, and a warning when the call
    took longer than ``slow_after`` seconds.
    """

    def __init__(self, operation_name: str, logger_name: str = __name__,
                 slow_after: Optional[float] = 1.0):
        self.operation_name = operation_name
        self.logger = logging.getLogger(logger_name)
        self.slow_after = slow_after
        self.start_time: Optional[float] = None
        self.duration: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self.start_time

        if exc_type is not None:
            self.logger.error(
                f"{self.operation_name} failed after {self.duration:.3f}s: {exc_type.__name__}"
            )
        elif self.slow_after is not None and self.duration > self.slow_after:
            self.logger.warning(f"{self.operation_name} slow: {self.duration:.3f}s")
        else:
            self.logger.debug(f"{self.operation_name} completed in {self.duration:.3f}s")


__all__ = [
    'setup_logging',
    'configure_request_logging',
    'log_startup_info',
    'log_shutdown_info',
    'TimedOperation',
]
