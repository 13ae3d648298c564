"""
Logging configuration for playlist-backup.

This module sets up the logging system with multiple outputs:
    - Console: Colored, tqdm-compatible output of INFO and above
    - log_full_<ts>.log: Complete log of all events (DEBUG and above)
    - log_errors_<ts>.log: Only ERROR and CRITICAL level messages
    - export_failures_<ts>.log: Playlists whose export failed, with the reason

Log File Locations:
    All log files are created in a 'logs' subdirectory of the directory
    passed to setup_logging(). Each process start gets its own timestamp.

Usage:
    from playlist_backup.core.logger import setup_logging, get_logger

    setup_logging(log_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Starting backup")
    log_export_failure(logger, "Favorites\\\\Top", "Cannot create directory")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


LOG_FULL_FILENAME = "log_full"
LOG_ERRORS_FILENAME = "log_errors"
EXPORT_FAILURES_FILENAME = "export_failures"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that prefixes the level name with an ANSI color.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        return f"{color}{record.levelname}{Colors.RESET}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Console handler that writes through tqdm.write().

    A manual backup shows a progress bar over the playlists being exported.
    Writing log lines with tqdm.write() keeps them above the bar instead of
    tearing it apart.
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class ExportFailureHandler(logging.Handler):
    """
    Handler that collects failed playlist exports into a report file.

    Only records carrying an 'export_failed_playlist' extra field are
    written, in a simple human-readable format:

        Favorites\\Top
        Cannot create export directory: Q:\\Backup

        Road Trip
        Permission denied: /mnt/usb/Road Trip.m3u8

    Attributes:
        report_path: Path to the export_failures log file.
        report_file: Open file handle (None until open() is called).

    Usage:
        logger.error(
            "Export failed",
            extra={
                'export_failed_playlist': 'Favorites\\\\Top',
                'export_failed_reason': 'Cannot create export directory'
            }
        )
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "export_failed_playlist"):
            return

        if self.report_file is None:
            return

        try:
            playlist = getattr(record, "export_failed_playlist", "Unknown")
            reason = getattr(record, "export_failed_reason", "")
            self.report_file.write(f"{playlist}\n")
            self.report_file.write(f"{reason}\n\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """Filter that only allows ERROR and CRITICAL level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path, console_level: int = logging.INFO) -> None:
    """
    Configure the logging system for the application.

    Call this ONCE at startup, after the settings path is known and before
    the scheduler or any backup run starts.

    Args:
        log_dir: Directory where log files will be created.
                 Logs are stored in a 'logs' subdirectory.
        console_level: Minimum level shown on the console. Default INFO.

    Behavior:
        1. Create log_dir/logs if it doesn't exist
        2. Configure root logger level to DEBUG and drop existing handlers
        3. Console handler (TqdmLoggingHandler, colored)
        4. Full log file handler (DEBUG)
        5. Error-only log file handler (ErrorOnlyFilter)
        6. Export failure report handler

    Thread Safety:
        NOT thread-safe. Call from the main thread before starting the
        scheduler.
    """
    logs_dir = log_dir / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    full_log_path = logs_dir / f"{LOG_FULL_FILENAME}_{timestamp}.log"
    full_handler = logging.FileHandler(full_log_path, mode="w", encoding="utf-8")
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_log_path = logs_dir / f"{LOG_ERRORS_FILENAME}_{timestamp}.log"
    error_handler = logging.FileHandler(error_log_path, mode="w", encoding="utf-8")
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    failures_path = logs_dir / f"{EXPORT_FAILURES_FILENAME}_{timestamp}.log"
    failures_handler = ExportFailureHandler(failures_path)
    failures_handler.open()
    root_logger.addHandler(failures_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        logging.Logger configured by setup_logging().

    Note:
        Loggers obtained before setup_logging() is called have no handlers
        and produce no output.
    """
    return logging.getLogger(name)


def log_export_failure(logger: logging.Logger, playlist: str, reason: str) -> None:
    """
    Log a failed playlist export with the extra fields ExportFailureHandler reads.

    Args:
        logger: Logger to emit on.
        playlist: Fully-qualified playlist name.
        reason: Short description of what went wrong.
    """
    logger.error(
        f"Export failed for '{playlist}': {reason}",
        extra={
            "export_failed_playlist": playlist,
            "export_failed_reason": reason,
        }
    )


def shutdown_logging() -> None:
    """
    Flush and close all handlers on the root logger.

    Typically called in a finally block at the end of a CLI command.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except Exception:
            pass
        root_logger.removeHandler(handler)
