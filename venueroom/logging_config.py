"""
Centralized logging configuration for venueroom.

Writes protocol activity (dispatches, rejections, timers, session resets)
to a rotating debug log. Nothing about a conversation's content is meant
to outlive the session, so the log records action kinds and phases only.

Usage:
    from venueroom.logging_config import setup_logging
    setup_logging(data_root)  # Call once at startup

All venueroom.* loggers will write DEBUG to file, WARNING+ to console.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime


# Global configuration
LOG_FILE_NAME = "debug.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB per file
BACKUP_COUNT = 5

ROOT_LOGGER_NAME = "venueroom"

_logging_initialized = False


def setup_logging(
    data_root: Path | str,
    log_level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
) -> Path:
    """
    Configure the logging system for venueroom.

    Args:
        data_root: Directory the log file goes into (created if missing)
        log_level: Level for file logging (default: DEBUG)
        console_level: Level for console output (default: WARNING)

    Returns:
        Path to the log file
    """
    global _logging_initialized

    data_path = Path(data_root)
    data_path.mkdir(parents=True, exist_ok=True)
    log_path = data_path / LOG_FILE_NAME

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)

    # Re-initialization replaces handlers instead of stacking them
    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers.clear()

    file_formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)-35s | %(funcName)-25s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    console_formatter = logging.Formatter(
        fmt="%(levelname)-8s | %(name)-25s | %(message)s"
    )
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if not _logging_initialized:
        root_logger.info("=" * 80)
        root_logger.info(f"venueroom logging initialized at {datetime.now().isoformat()}")
        root_logger.info(f"Log file: {log_path.absolute()}")
        root_logger.info("=" * 80)
        _logging_initialized = True

    return log_path


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger configured as child of the venueroom logger
    """
    if name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    else:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# =============================================================================
# Structured Logging Helpers
# =============================================================================


def log_dispatch(
    logger: logging.Logger,
    peer_id: str,
    action: str,
    accepted: bool,
    phase: str | None = None,
    details: str | None = None,
    level: int = logging.DEBUG,
) -> None:
    """Log an action dispatched against a peer's conversation."""
    status = "ACCEPTED" if accepted else "REJECTED"
    phase_str = f" | phase={phase}" if phase else ""
    details_str = f" | {details}" if details else ""
    logger.log(level, f"DISPATCH | {peer_id} | {action} | {status}{phase_str}{details_str}")


def log_timer(
    logger: logging.Logger,
    peer_id: str,
    operation: str,
    delay: float | None = None,
    details: str | None = None,
) -> None:
    """Log simulated-response and expiry timer activity."""
    delay_str = f" | {delay:.2f}s" if delay is not None else ""
    details_str = f" | {details}" if details else ""
    logger.debug(f"TIMER | {peer_id} | {operation}{delay_str}{details_str}")


def log_session(
    logger: logging.Logger,
    operation: str,
    details: str | None = None,
) -> None:
    """Log session-level changes (peer selection, venue change, reset)."""
    details_str = f" | {details}" if details else ""
    logger.info(f"SESSION | {operation}{details_str}")
