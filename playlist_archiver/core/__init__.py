"""
Core module for playlist-archiver.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - index: The persisted archive index (index.json)
    - file_manager: Archive layout and playlist files
    - logger: Logging system with multiple outputs
    - retry: Retry policies and the generic retry loop
    - schedule: Cron-based wake time computation

Usage:
    from playlist_archiver.core import (
        Config, load_config,
        ArchiveIndex,
        setup_logging, get_logger,
        ArchiverError, ConfigError, StorageError
    )
"""

from playlist_archiver.core.config import (
    ArchiveConfig,
    Config,
    LoggingConfig,
    PathsConfig,
    ScheduleConfig,
    SourceConfig,
    load_config,
    parse_config,
)
from playlist_archiver.core.exceptions import (
    ArchiverError,
    ConfigError,
    MetadataError,
    ParseError,
    ReconciliationError,
    StorageError,
    TransportError,
)
from playlist_archiver.core.file_manager import FileManager
from playlist_archiver.core.index import ArchiveIndex, SourceState
from playlist_archiver.core.logger import (
    get_logger,
    log_transition,
    setup_logging,
    shutdown_logging,
)
from playlist_archiver.core.retry import RetryOptions, RetryPolicy, retry_call
from playlist_archiver.core.schedule import build_trigger, next_wake_time

__all__ = [
    # Config
    "Config",
    "PathsConfig",
    "SourceConfig",
    "ArchiveConfig",
    "ScheduleConfig",
    "LoggingConfig",
    "load_config",
    "parse_config",
    # Index and files
    "ArchiveIndex",
    "SourceState",
    "FileManager",
    # Exceptions
    "ArchiverError",
    "ConfigError",
    "TransportError",
    "ParseError",
    "StorageError",
    "MetadataError",
    "ReconciliationError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_transition",
    "shutdown_logging",
    # Retry and schedule
    "RetryOptions",
    "RetryPolicy",
    "retry_call",
    "build_trigger",
    "next_wake_time",
]
