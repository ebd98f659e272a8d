"""
Logging configuration for ongaku.

This module sets up the logging system with multiple outputs:
    - Console: Real-time messages with tqdm-compatible formatting
    - log_full.log: Complete log of all events (DEBUG and above)
    - log_errors.log: Only WARNING, ERROR and CRITICAL messages
    - sync_failures.log: Entries and tracks that failed during a sync

Everything printed to screen is also saved to file, then filtered into
specialized files.

Log File Locations:
    All log files are created in the logs directory from ongaku.yaml
    (default: .ongaku-logs). Each run creates new files with a timestamp.

Usage:
    from ongaku.core.logger import setup_logging, get_logger

    setup_logging(logs_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Starting sync")
    log_download_failure(logger, entry_name, track_url, "Video unavailable")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log file name prefixes (created in logs directory)
LOG_FULL_FILENAME = "log_full"
LOG_ERRORS_FILENAME = "log_errors"
SYNC_FAILURES_FILENAME = "sync_failures"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log format for console output (compact, tqdm-friendly)
CONSOLE_LOG_FORMAT = "%(levelname)s: %(message)s"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Custom formatter that adds colors to console output.

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
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking progress bars.

    Uses tqdm.write(), which prints above any active bar instead of
    interleaving with its carriage-return updates.

    Attributes:
        stream: The output stream (defaults to sys.stderr).
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self.stream = stream or sys.stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class SyncFailureHandler(logging.Handler):
    """
    Handler that captures sync failures for the sync_failures report file.

    Listens for log records carrying failure information and writes them
    to sync_failures.log in a simple, human-readable format:

        [ENTRY] Artist Name
        https://www.youtube.com/channel/UCxxxx
        yt-dlp error: This channel does not exist.

        [TRACK] Playlist Name
        https://www.youtube.com/watch?v=yyyy
        yt-dlp error: Video unavailable

    The handler looks for these extra fields in log records:
        - 'sync_failed_kind': "ENTRY" or "TRACK"
        - 'sync_failed_entry': Name of the entry involved
        - 'sync_failed_url': Entry URL or track URL
        - 'sync_failed_reason': Underlying cause

    Only records containing these fields are written to the report.

    Thread Safety:
        logging.Handler.handle() holds the handler lock around emit(),
        so concurrent workers never interleave blocks.
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "sync_failed_kind"):
            return

        if self.report_file is None:
            return

        try:
            kind = getattr(record, "sync_failed_kind", "UNKNOWN")
            entry = getattr(record, "sync_failed_entry", "Unknown")
            url = getattr(record, "sync_failed_url", "")
            reason = getattr(record, "sync_failed_reason", "")

            self.report_file.write(f"[{kind}] {entry}\n")
            self.report_file.write(f"{url}\n")
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


class WarningOrAboveFilter(logging.Filter):
    """
    Filter that only allows WARNING, ERROR and CRITICAL records.

    Recoverable sync failures are logged as warnings, so they belong in
    the errors file along with real errors.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.WARNING


def setup_logging(logs_dir: Path, verbose: bool = False) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any worker threads start.

    Args:
        logs_dir: Directory where log files will be created.
        verbose: If True, the console shows DEBUG messages too.

    Behavior:
        1. Create logs_dir if it doesn't exist
        2. Generate timestamp for this run's log files
        3. Configure root logger level to DEBUG
        4. Console handler (TqdmLoggingHandler), level INFO (DEBUG if verbose)
        5. Full log file handler, level DEBUG
        6. Errors log file handler, WARNING and above
        7. Sync failures handler
    """
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Remove any existing handlers
    root_logger.handlers.clear()

    # Console handler (tqdm-compatible) with colors
    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    # Full log file handler
    full_log_path = logs_dir / f"{LOG_FULL_FILENAME}_{timestamp}.log"
    full_handler = logging.FileHandler(full_log_path, mode="w", encoding="utf-8")
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    # Warnings and errors log file handler
    error_log_path = logs_dir / f"{LOG_ERRORS_FILENAME}_{timestamp}.log"
    error_handler = logging.FileHandler(error_log_path, mode="w", encoding="utf-8")
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(WarningOrAboveFilter())
    root_logger.addHandler(error_handler)

    # Sync failures handler
    failures_path = logs_dir / f"{SYNC_FAILURES_FILENAME}_{timestamp}.log"
    failures_handler = SyncFailureHandler(failures_path)
    failures_handler.open()
    root_logger.addHandler(failures_handler)

    # yt-dlp and urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().

    Note:
        Loggers obtained before setup_logging() is called will have no
        handlers and will not produce output.
    """
    return logging.getLogger(name)


def log_entry_failure(
    logger: logging.Logger,
    entry_name: str,
    entry_url: str,
    error_message: str
) -> None:
    """
    Log an entry whose remote track listing failed.

    Logs one WARNING line and attaches the extra fields that
    SyncFailureHandler writes to sync_failures.log.

    Example:
        log_entry_failure(
            logger,
            entry_name="Artist Name",
            entry_url="https://www.youtube.com/channel/UCxxxx",
            error_message="yt-dlp error: This channel does not exist."
        )
    """
    logger.warning(
        f"Failed to fetch tracks for {entry_name} ({entry_url}): {error_message}",
        extra={
            "sync_failed_kind": "ENTRY",
            "sync_failed_entry": entry_name,
            "sync_failed_url": entry_url,
            "sync_failed_reason": error_message,
        }
    )


def log_download_failure(
    logger: logging.Logger,
    entry_name: str,
    track_url: str,
    error_message: str
) -> None:
    """
    Log a track whose download failed.

    Logs one WARNING line and attaches the extra fields that
    SyncFailureHandler writes to sync_failures.log. The track will be
    tried again on the next sync.
    """
    logger.warning(
        f"Failed to download track at {track_url} ({entry_name}): {error_message}",
        extra={
            "sync_failed_kind": "TRACK",
            "sync_failed_entry": entry_name,
            "sync_failed_url": track_url,
            "sync_failed_reason": error_message,
        }
    )


def shutdown_logging() -> None:
    """
    Flush, close and remove all root handlers.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except OSError:
            pass
        root_logger.removeHandler(handler)
