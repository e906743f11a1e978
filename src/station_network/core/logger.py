"""
Logging setup for the station network collector.

Console output for operators, a detailed file log for debugging, and a
context manager that times each phase of a collection cycle.
"""

import logging
import os
import time
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str = "station_network",
    log_file: Optional[str] = None,
    log_level: Optional[str] = None
) -> logging.Logger:
    """
    Configure the application logger.

    Args:
        name: Logger name
        log_file: Log file path. Falls back to the LOG_FILE env var, then
            logs/station_network.log. An empty string disables file logging.
        log_level: Level name. Falls back to the LOG_LEVEL env var, then INFO.

    Returns:
        Configured logger instance
    """
    if log_file is None:
        log_file = os.getenv("LOG_FILE", "logs/station_network.log")
    level_name = (log_level or os.getenv("LOG_LEVEL") or "INFO").upper()

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    # Reconfiguring must not stack handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logger.level)
    console_handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)
        # The file handler wants DEBUG records even when the console does not
        logger.setLevel(logging.DEBUG)

    logger.propagate = False
    return logger


class LoggerContext:
    """
    Time one phase of a collection cycle.

    Logs the start and the duration of the phase. Errors are logged with
    their traceback and re-raised.
    """

    def __init__(self, logger: logging.Logger, operation: str):
        """
        Initialize logger context.

        Args:
            logger: Logger instance
            operation: Phase name used in the log lines
        """
        self.logger = logger
        self.operation = operation
        self.duration: float = 0.0
        self._started: Optional[float] = None

    def __enter__(self):
        self._started = time.monotonic()
        self.logger.info(f"Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.monotonic() - self._started

        if exc_type is not None:
            self.logger.error(
                f"Failed {self.operation} after {self.duration:.2f}s: {exc_val}",
                exc_info=True
            )
            return False

        self.logger.info(f"Completed {self.operation} in {self.duration:.2f}s")
        return False
