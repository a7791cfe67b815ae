"""
Logging configuration for playlist-archiver.

One process start produces one set of files under <archive root>/logs:

    log_full_<ts>.log       everything, DEBUG and above
    log_errors_<ts>.log     ERROR and CRITICAL only
    transitions_<ts>.log    one line per track lifecycle transition

The console gets the same records at the configured level, colored by
level and written through tqdm so they stay readable next to yt-dlp's
own output.

Usage:
    from playlist_archiver.core.logger import setup_logging, get_logger

    setup_logging(file_manager.logs_dir, config.logging.level)
    logger = get_logger(__name__)

    logger.info("Refreshing sources")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


LOG_LINE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
FILENAME_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

# Third-party loggers that are noisy below WARNING
QUIET_LOGGERS = ("apscheduler", "PIL")


class Colors:
    RESET = "\033[0m"
    DIM = "\033[2m"
    BOLD = "\033[1m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"


LEVEL_STYLES = {
    logging.DEBUG: Colors.DIM,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.BOLD + Colors.MAGENTA,
}


class ColoredConsoleFormatter(logging.Formatter):
    """
    Short console lines: "HH:MM:SS LEVEL message", with the level colored.
    Exceptions are appended the way logging.Formatter renders them.
    """

    def format(self, record: logging.LogRecord) -> str:
        style = LEVEL_STYLES.get(record.levelno, "")
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{Colors.DIM}{clock}{Colors.RESET} {style}{record.levelname:<7}{Colors.RESET} {record.getMessage()}"

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class TqdmLoggingHandler(logging.Handler):
    """
    Console handler writing through tqdm.write().

    Attributes:
        stream: Target stream. None means whatever sys.stderr is at emit
                time, so redirected or captured stderr is honored.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream or sys.stderr)
        except Exception:
            self.handleError(record)


class TransitionReportHandler(logging.Handler):
    """
    Handler that records track lifecycle transitions in a report file.

    Listens for log records carrying transition information and writes
    them to transitions_<ts>.log, one line each:

        2024-03-01 04:00:12  Removed      Some Song - Some Uploader  [12345]  Favorites (678)

    The handler looks for these extra fields (set by log_transition()):
        - 'transition_action': Action name (e.g., "Removed")
        - 'transition_track_id', 'transition_track_title', 'transition_uploader'
        - 'transition_playlist_title', 'transition_playlist_id'

    Records without 'transition_action' are ignored.

    Attributes:
        report_path: Path to the report file.
        report_file: Open file handle, set by open().
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        action = getattr(record, "transition_action", None)
        if action is None or self.report_file is None:
            return

        try:
            when = datetime.fromtimestamp(record.created).strftime(TIMESTAMP_FORMAT)
            self.report_file.write(
                f"{when}  {action:<12} "
                f"{getattr(record, 'transition_track_title', 'Unknown')} - "
                f"{getattr(record, 'transition_uploader', 'Unknown')}  "
                f"[{getattr(record, 'transition_track_id', '')}]  "
                f"{getattr(record, 'transition_playlist_title', '')} "
                f"({getattr(record, 'transition_playlist_id', '')})\n"
            )
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file. Safe to call more than once."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """Passes ERROR and CRITICAL records only."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def _file_handler(path: Path, *filters: logging.Filter) -> logging.FileHandler:
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, TIMESTAMP_FORMAT))
    for log_filter in filters:
        handler.addFilter(log_filter)
    return handler


def setup_logging(logs_dir: Path, console_level: str = "INFO") -> None:
    """
    Install the console, file and report handlers on the root logger.

    Call once at startup, after the configuration is loaded and before
    the first refresh cycle. Existing root handlers are replaced.

    Args:
        logs_dir: Directory for the log files. Created if missing.
        console_level: Level name for console output. Files always get DEBUG.
    """
    logs_dir.mkdir(parents=True, exist_ok=True)
    started = datetime.now().strftime(FILENAME_TIMESTAMP_FORMAT)

    console = TqdmLoggingHandler()
    console.setLevel(getattr(logging, console_level.upper(), logging.INFO))
    console.setFormatter(ColoredConsoleFormatter())

    transitions = TransitionReportHandler(logs_dir / f"transitions_{started}.log")
    transitions.open()

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()
    for handler in (
        console,
        _file_handler(logs_dir / f"log_full_{started}.log"),
        _file_handler(logs_dir / f"log_errors_{started}.log", ErrorOnlyFilter()),
        transitions,
    ):
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, usually get_logger(__name__).

    Loggers obtained before setup_logging() work; their records just have
    nowhere to go until it runs.
    """
    return logging.getLogger(name)


def log_transition(
    logger: logging.Logger,
    action: str,
    description: str,
    track_id: str,
    track_title: str,
    uploader: str,
    playlist_title: str,
    playlist_id: str,
) -> None:
    """
    Log a track lifecycle transition.

    Logs an INFO message and attaches the extra fields that
    TransitionReportHandler writes to the transitions report.

    Example:
        log_transition(
            logger,
            action="Removed",
            description="removed from the playlist",
            track_id="12345",
            track_title="Some Song",
            uploader="Some Uploader",
            playlist_title="Favorites",
            playlist_id="678",
        )
    """
    logger.info(
        f"{Colors.CYAN}{action}{Colors.RESET}: {uploader} - {track_title} "
        f"({description})",
        extra={
            "transition_action": action,
            "transition_track_id": track_id,
            "transition_track_title": track_title,
            "transition_uploader": uploader,
            "transition_playlist_title": playlist_title,
            "transition_playlist_id": playlist_id,
        }
    )


def shutdown_logging() -> None:
    """Flush, close and detach every root handler. Call from a finally block."""
    root = logging.getLogger()

    for handler in list(root.handlers):
        try:
            handler.flush()
            handler.close()
        except OSError:
            pass
        root.removeHandler(handler)
