"""
Centralized logging configuration for block3d.

Provides debug logging to file for all solver operations.
Log file: <log_dir>/debug.log (with rotation)

Usage:
    from block3d.logging_config import setup_logging
    setup_logging(log_dir)  # Call once at startup

All block3d.* loggers will write DEBUG to file, WARNING+ to console.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime

from block3d import __version__


# Global configuration
LOG_FILE_NAME = "debug.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB per file
BACKUP_COUNT = 5  # Keep 5 backup files
ROOT_LOGGER_NAME = "block3d"

_logging_initialized = False


def setup_logging(
    log_dir: Path | str,
    log_level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
) -> Path:
    """
    Configure the logging system for block3d.

    Args:
        log_dir: Directory for the log file (created if missing)
        log_level: Level for file logging (default: DEBUG)
        console_level: Level for console output (default: WARNING)

    Returns:
        Path to the log file
    """
    global _logging_initialized

    log_path_dir = Path(log_dir)
    log_path_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_path_dir / LOG_FILE_NAME

    solver_logger = logging.getLogger(ROOT_LOGGER_NAME)
    solver_logger.setLevel(logging.DEBUG)

    # Re-initialization replaces handlers instead of stacking them
    for handler in list(solver_logger.handlers):
        solver_logger.removeHandler(handler)
        handler.close()

    solver_logger.addHandler(_file_handler(log_path, log_level))
    solver_logger.addHandler(_console_handler(console_level))

    if not _logging_initialized:
        solver_logger.info("-" * 72)
        solver_logger.info(f"block3d {__version__} logging started {datetime.now().isoformat()}")
        solver_logger.info(f"Writing to {log_path.absolute()}")
        solver_logger.info("-" * 72)
        _logging_initialized = True

    return log_path


def _file_handler(log_path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        log_path,
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)-26s | %(funcName)-20s | %(message)s",
        datefmt="%H:%M:%S",
    ))
    return handler


def _console_handler(level: int) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt="%(levelname)s %(name)s: %(message)s"))
    return handler


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger configured as child of the block3d logger
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# =============================================================================
# Structured Logging Helpers
# =============================================================================


def log_collapse(
    logger: logging.Logger,
    step: int,
    position: tuple[int, int, int],
    choice: str,
    options: int,
    forced: bool = False,
) -> None:
    """Log a node collapse."""
    forced_str = " | forced" if forced else ""
    logger.debug(f"STEP {step:06d} | COLLAPSE | {tuple(position)} -> {choice} | of {options}{forced_str}")


def log_propagation(
    logger: logging.Logger,
    step: int,
    origin: tuple[int, int, int],
    visited: int,
    changed: int,
) -> None:
    """Log a finished propagation pass."""
    logger.debug(f"STEP {step:06d} | PROPAGATE | from {tuple(origin)} | visited={visited} changed={changed}")


def log_backtrack(
    logger: logging.Logger,
    step: int,
    position: tuple[int, int, int],
    choice: str,
    depth: int,
    details: str | None = None,
) -> None:
    """Log a backtrack to an earlier collapse."""
    details_str = f" | {details}" if details else ""
    logger.debug(f"STEP {step:06d} | BACKTRACK | {tuple(position)} excluded {choice} | depth={depth}{details_str}")


def log_solve(
    logger: logging.Logger,
    status: str,
    nodes: int,
    duration_ms: int | None = None,
    details: str | None = None,
) -> None:
    """Log the outcome of a solve."""
    duration_str = f" | {duration_ms}ms" if duration_ms is not None else ""
    details_str = f" | {details}" if details else ""
    logger.info(f"SOLVE | {status} | nodes={nodes}{duration_str}{details_str}")
