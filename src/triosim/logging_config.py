"""
Logging for triosim.

All package loggers hang off the ``triosim`` logger; ``setup_logging``
attaches its handlers once per run. Long stages (simulating probability
tables, EM fits) are wrapped in ``time_it`` so their wall time is logged.
"""

import functools
import logging
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional

LOGGER_NAME = "triosim"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class StageTimer:
    """Context manager logging the wall time of one run stage."""

    def __init__(self, logger: logging.Logger, stage: str):
        self.logger = logger
        self.stage = stage
        self.elapsed: Optional[float] = None
        self._start = 0.0

    def __enter__(self) -> "StageTimer":
        self._start = time.perf_counter()
        self.logger.debug("Starting %s", self.stage)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.elapsed = time.perf_counter() - self._start
        if exc_type is None:
            self.logger.info("Completed %s in %.3fs", self.stage, self.elapsed)
        else:
            self.logger.error(
                "%s failed after %.3fs: %s: %s",
                self.stage, self.elapsed, exc_type.__name__, exc_val,
            )
        return False


def time_it(stage: str) -> Callable[[Callable], Callable]:
    """Log the duration of every call to the decorated function under ``stage``."""
    def decorator(func: Callable) -> Callable:
        logger = logging.getLogger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with StageTimer(logger, stage):
                return func(*args, **kwargs)
        return wrapper
    return decorator


def _reset_handlers(logger: logging.Logger) -> None:
    # close file handlers left over from a previous run in the same process
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """Configure the ``triosim`` logger for one run.

    Records go to stderr, keeping stdout free for command output, and
    additionally to ``log_file`` when given.

    Args:
        level: One of ``LOG_LEVELS`` (case-insensitive).
        log_file: Optional log file; parent directories are created.

    Returns:
        The configured package logger.
    """
    level_name = level.upper()
    if level_name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {level!r}; expected one of {', '.join(LOG_LEVELS)}")

    logger = logging.getLogger(LOGGER_NAME)
    _reset_handlers(logger)
    logger.setLevel(level_name)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
    return logger
