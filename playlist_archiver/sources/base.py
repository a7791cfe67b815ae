"""
Fetcher base class shared by every source kind.

A fetcher talks to one streaming service through the yt-dlp Python API.
It offers three operations:

    fetch_playlist(url)        -> Playlist
    fetch_track_status(track)  -> TrackStatus (available/restricted/not found)
    ensure_downloaded(track)   -> DownloadStatus

yt-dlp reports per-entry failures through its logger rather than by
raising, so each call runs with a YtDlpCaptureLogger that collects the
error lines. Subclasses decide which of those lines are benign for their
service (a geo restriction, an unavailable video) and which are real
failures.

Downloading is identical for every service and is delegated to the shared
Downloader.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from yt_dlp import YoutubeDL
from yt_dlp.utils import YoutubeDLError

from playlist_archiver.core.exceptions import ParseError, TransportError
from playlist_archiver.core.logger import get_logger
from playlist_archiver.download.downloader import Downloader
from playlist_archiver.models import (
    DownloadStatus,
    Playlist,
    SourceKind,
    Track,
    TrackStatus,
)

logger = get_logger(__name__)


class YtDlpCaptureLogger:
    """
    Logger handed to yt-dlp that keeps its error lines for inspection.

    yt-dlp prints errors for individual playlist entries and keeps going
    when `ignoreerrors` is set. Those lines are the only signal that some
    entries are missing, so they are collected instead of printed.

    Attributes:
        errors: Error messages in the order yt-dlp reported them.
    """

    def __init__(self) -> None:
        self.errors: list[str] = []

    def debug(self, msg: str) -> None:
        # yt-dlp routes info-level output through debug() too
        pass

    def info(self, msg: str) -> None:
        pass

    def warning(self, msg: str) -> None:
        logger.debug(f"yt-dlp: {msg}")

    def error(self, msg: str) -> None:
        self.errors.append(msg)

    @property
    def text(self) -> str:
        return "\n".join(self.errors)


class Fetcher(ABC):
    """
    Service-specific access to playlists and tracks.

    Subclasses implement the two error classifiers; everything else is
    shared.

    Attributes:
        kind: The SourceKind this fetcher serves.
        downloader: Shared downloader used by ensure_downloaded().
        cookie_file: Optional cookies.txt handed to yt-dlp.
    """

    kind: SourceKind

    def __init__(self, downloader: Downloader, cookie_file: Path | None = None) -> None:
        self.downloader = downloader
        self.cookie_file = cookie_file

    def fetch_playlist(self, url: str) -> Playlist:
        """
        Fetch the current manifest of the playlist at `url`.

        Entries yt-dlp could not resolve are dropped. If the errors it
        reported for them are recognized as benign, they are logged as a
        warning with their count; otherwise the fetch fails.

        Raises:
            TransportError: On unrecognized yt-dlp errors or no response.
            ParseError: If the manifest is malformed.
        """
        logger.debug(f"Fetching playlist manifest: {url}")

        yt_logger = YtDlpCaptureLogger()
        options = self._get_yt_dlp_options(yt_logger, ignoreerrors=True)

        try:
            with YoutubeDL(options) as ydl:
                info = ydl.extract_info(url, download=False)
                info = ydl.sanitize_info(info) if info is not None else None
        except YoutubeDLError as e:
            raise TransportError(
                f"yt-dlp failed to fetch playlist: {e}",
                details={"url": url, "errors": yt_logger.errors}
            ) from e

        if yt_logger.errors:
            skipped = self.count_benign_playlist_errors(yt_logger.errors)
            if skipped is None:
                raise TransportError(
                    "yt-dlp reported errors while fetching playlist",
                    details={"url": url, "errors": yt_logger.errors}
                )
            self.log_recognized_warning(url, skipped)

        if info is None:
            raise TransportError(
                "yt-dlp returned no playlist manifest",
                details={"url": url, "errors": yt_logger.errors}
            )

        playlist = Playlist.from_info(info)
        logger.debug(
            f"Fetched '{playlist.title}' ({playlist.id}): "
            f"{len(playlist.entries)}/{playlist.track_count} entries"
        )
        return playlist

    def fetch_track_status(self, track: Track) -> TrackStatus:
        """
        Query the live status of a single track.

        Returns:
            TrackStatus.available(track) with the freshly fetched track,
            TrackStatus.restricted(), or TrackStatus.not_found(). A response
            that can't be parsed into a track counts as not found.

        Raises:
            TransportError: On yt-dlp errors the fetcher doesn't recognize.
        """
        logger.debug(f"Checking status of {track.id}: {track.url}")

        yt_logger = YtDlpCaptureLogger()
        options = self._get_yt_dlp_options(yt_logger, noplaylist=True)

        try:
            with YoutubeDL(options) as ydl:
                info = ydl.extract_info(track.url, download=False)
                info = ydl.sanitize_info(info) if info is not None else None
        except YoutubeDLError as e:
            error_text = yt_logger.text or str(e)
            status = self.classify_track_error(error_text)
            if status is None:
                raise TransportError(
                    f"yt-dlp failed to fetch track: {e}",
                    details={"track_id": track.id, "url": track.url, "errors": yt_logger.errors}
                ) from e
            logger.debug(f"Track {track.id} is {status.kind.value}")
            return status

        if info is None:
            logger.warning(f"No manifest returned for track {track.id}, treating it as not found")
            return TrackStatus.not_found()

        try:
            fetched = Track.from_info(info)
        except ParseError as e:
            logger.warning(
                f"Failed to parse manifest for track {track.id}, treating it as not found: {e}"
            )
            return TrackStatus.not_found()

        return TrackStatus.available(fetched)

    def ensure_downloaded(self, track: Track) -> DownloadStatus:
        return self.downloader.ensure_downloaded(track)

    @abstractmethod
    def count_benign_playlist_errors(self, errors: list[str]) -> int | None:
        """
        Check per-entry playlist errors against the service's benign patterns.

        Returns:
            Number of skipped entries if every error is recognized,
            otherwise None.
        """

    @abstractmethod
    def classify_track_error(self, error_text: str) -> TrackStatus | None:
        """
        Map a single-track error to a status.

        Returns:
            restricted or not found, or None for an unrecognized error.
        """

    def log_recognized_warning(self, url: str, count: int) -> None:
        logger.warning(f"{count} tracks of {url} are unavailable and will be ignored")

    def _get_yt_dlp_options(
        self,
        yt_logger: YtDlpCaptureLogger,
        **overrides: Any,
    ) -> dict[str, Any]:
        """
        Build the yt-dlp options for a metadata-only request.

        Args:
            yt_logger: Logger that captures error lines.
            **overrides: Extra yt-dlp options for this request.
        """
        options: dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "noprogress": True,
            "encoding": "UTF-8",
            "skip_download": True,
            "logger": yt_logger,
        }

        if self.cookie_file is not None:
            options["cookiefile"] = str(self.cookie_file)

        options.update(overrides)
        return options
