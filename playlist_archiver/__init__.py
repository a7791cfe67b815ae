"""
playlist-archiver: Mirror remote streaming playlists to local storage.

This package keeps SoundCloud and YouTube playlists archived across
unattended, periodic runs. Each cycle it downloads new tracks, notices
tracks that were removed from a playlist, deleted by their owner or
restricted, and records every transition in the audio files' tags.

Architecture:
    Scheduler wakes up (cron schedule, or every 24h)
        -> for each active source:
               Fetcher retrieves the current manifest (yt-dlp)
               Reconciliation compares it with the persisted index
               Classification orders the resulting actions
               Executor downloads tracks / writes tag markers
               Index is updated and saved
        -> playlist files are rewritten from the final entries
        -> Scheduler sleeps until the next wake time

Modules:
    core/       - Configuration, index, files, logging, retry, schedule
    sources/    - Per-service fetchers (SoundCloud, YouTube)
    download/   - Audio download and ID3 lifecycle markers
    sync/       - Reconciliation, actions, executor, refresh engine, scheduler
    models.py   - Track, Playlist and status types
    cli.py      - Command-line interface

Usage:
    Command Line:
        playlist-archiver run
        playlist-archiver refresh
        playlist-archiver status

    Python API:
        from playlist_archiver.core import load_config, ArchiveIndex, setup_logging
        from playlist_archiver.sync import ArchiveContext, refresh

        config = load_config()
        context = ArchiveContext.from_config(config)
        setup_logging(context.file_manager.logs_dir)
        index = ArchiveIndex.load(context.file_manager.index_path)
        refresh(context, index)

Dependencies:
    - yt-dlp: playlist manifests, track status, downloads
    - mutagen: ID3 lifecycle markers
    - Pillow: thumbnail conversion
    - APScheduler: cron trigger arithmetic
    - click / rich-click: CLI
    - tqdm: console output
    - pyyaml: configuration file parsing
    - python-dotenv: .env loading
"""

__version__ = "0.1.0"
__author__ = "playlist-archiver"
__license__ = "MIT"

# Convenience imports for common usage
from playlist_archiver.core import (
    ArchiveIndex,
    ArchiverError,
    Config,
    ConfigError,
    MetadataError,
    ParseError,
    ReconciliationError,
    StorageError,
    TransportError,
    get_logger,
    load_config,
    setup_logging,
)
from playlist_archiver.models import Playlist, SourceKind, Track

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "ArchiveIndex",
    "setup_logging",
    "get_logger",
    # Exceptions
    "ArchiverError",
    "ConfigError",
    "TransportError",
    "ParseError",
    "StorageError",
    "MetadataError",
    "ReconciliationError",
    # Models
    "SourceKind",
    "Track",
    "Playlist",
]
