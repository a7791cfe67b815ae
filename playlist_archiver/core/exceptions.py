"""
Exception classes for playlist-archiver.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message plus an optional details
dictionary, so failures can be logged with enough context to act on.

Exception Hierarchy:
    ArchiverError (base)
        ConfigError - Configuration file issues
        TransportError - yt-dlp / network failures
        ParseError - Malformed manifest or track responses
        StorageError - Local filesystem failures (index, playlists, audio)
            MetadataError - ID3 tag read/write failures
        ReconciliationError - A track landed in two lifecycle categories

Every error except ConfigError is raised from inside a refresh cycle and is
fatal to that cycle: it propagates to the retry wrapper, which decides
whether the cycle is attempted again.
"""


class ArchiverError(Exception):
    """
    Base exception for all playlist-archiver errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch every archiver failure with a single
    except clause.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., track id, URL).

    Example:
        try:
            refresh(context, index)
        except ArchiverError as e:
            logger.error(f"Refresh failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'url': Source or track URL involved in the error
                     - 'track_id': Track id involved in the error
                     - 'path': Local file path involved in the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(ArchiverError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that stops program execution before the
    first refresh cycle.

    Common causes:
        - config.yaml not found or not valid YAML
        - No sources configured, or a source with an unknown type
        - Invalid cron expression or unknown timezone
        - Invalid retry policy values

    Example:
        raise ConfigError(
            "Unknown source type 'bandcamp'",
            details={'field': 'sources[2].type', 'value': 'bandcamp'}
        )
    """
    pass


class TransportError(ArchiverError):
    """
    Raised when yt-dlp fails in a way that is not a recognized benign warning.

    Fatal to the refresh cycle. The cycle is retried according to the
    configured retry policy.

    Common causes:
        - Network connectivity issues
        - Extractor failures after a site change
        - Per-track errors in a playlist manifest that are not geo
          restrictions (or unavailable videos, for YouTube)
        - Audio extraction failed (FFmpeg missing, disk full)

    Example:
        raise TransportError(
            "yt-dlp failed to fetch playlist",
            details={'url': source.url, 'errors': ['HTTP Error 500']}
        )
    """
    pass


class ParseError(ArchiverError):
    """
    Raised when a manifest or track response has an unexpected shape.

    Fatal to the refresh cycle.

    Example:
        raise ParseError(
            "Playlist manifest has no id",
            details={'url': source.url}
        )
    """
    pass


class StorageError(ArchiverError):
    """
    Raised when a local filesystem operation fails.

    Fatal to the refresh cycle. Covers reading or writing the index,
    rewriting playlist files, and finding downloaded audio on disk.

    Common causes:
        - index.json is corrupted (invalid JSON)
        - Permission denied or disk full

    Example:
        raise StorageError(
            "Index file corrupted: invalid JSON syntax",
            details={'path': '/music/index.json', 'line': 42}
        )
    """
    pass


class MetadataError(StorageError):
    """
    Raised when an audio file's ID3 tag cannot be read or written.

    The lifecycle marker operation requires the track to have been
    downloaded in an earlier cycle, so a missing file is reported here too.

    Example:
        raise MetadataError(
            "Audio file not found for metadata marker",
            details={'path': '/music/audio/123/track.mp3', 'track_id': '123'}
        )
    """
    pass


class ReconciliationError(ArchiverError):
    """
    Raised when one track id qualifies for two lifecycle categories in a cycle.

    The status check is tri-state, so this only happens when the persisted
    index already violates bucket exclusivity. It is surfaced instead of
    being silently resolved.

    Attributes (in details):
        conflicts: Mapping of track id to the categories it was found in.
    """
    pass
