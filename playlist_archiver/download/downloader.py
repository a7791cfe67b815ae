"""
Audio downloader for playlist-archiver.

Downloads one track into its own directory under audio/:

    audio/<track id>/
    ├── track.mp3        # best-quality MP3 with embedded metadata
    └── cover.jpg        # thumbnail, converted to JPEG with Pillow

Downloading is idempotent: a track whose track.mp3 already exists is
never fetched again. The same code serves every source kind; yt-dlp picks
the extractor from the URL.

Dependencies:
    - yt-dlp: extraction and download
    - FFmpeg: audio conversion (must be installed)
    - Pillow: thumbnail conversion

Usage:
    downloader = Downloader(file_manager, save_thumbnails=True)
    status = downloader.ensure_downloaded(track)
"""

from pathlib import Path
from typing import Any

from PIL import Image
from yt_dlp import YoutubeDL
from yt_dlp.utils import YoutubeDLError

from playlist_archiver.core.exceptions import StorageError, TransportError
from playlist_archiver.core.file_manager import (
    COVER_STEM,
    FileManager,
)
from playlist_archiver.core.logger import get_logger
from playlist_archiver.models import DownloadStatus, Track

logger = get_logger(__name__)


class YtDlpSilentLogger:
    """
    Custom logger for yt-dlp that keeps its output off the console.

    yt-dlp ignores quiet=True for certain errors and prints directly to
    stderr. This logger intercepts those messages and keeps the last error
    so it can be attached to the raised TransportError.
    """

    def __init__(self) -> None:
        self.last_error: str | None = None

    def debug(self, msg: str) -> None:
        pass

    def info(self, msg: str) -> None:
        pass

    def warning(self, msg: str) -> None:
        logger.debug(f"yt-dlp: {msg}")

    def error(self, msg: str) -> None:
        self.last_error = msg


class Downloader:
    """
    Downloads tracks into the archive's audio/ directory.

    Attributes:
        _file_manager: Resolves track directories and file names.
        _save_thumbnails: Whether to write cover.jpg.
        _cookie_file: Optional cookies.txt handed to yt-dlp.
    """

    def __init__(
        self,
        file_manager: FileManager,
        save_thumbnails: bool = True,
        cookie_file: Path | None = None,
    ) -> None:
        self._file_manager = file_manager
        self._save_thumbnails = save_thumbnails
        self._cookie_file = cookie_file

    def ensure_downloaded(self, track: Track) -> DownloadStatus:
        """
        Make sure audio/<id>/track.mp3 exists for `track`.

        Returns:
            ALREADY_DOWNLOADED if the file was already there, DOWNLOADED
            after a successful download.

        Raises:
            TransportError: If yt-dlp fails or produces no track.mp3.
            StorageError: If the track directory can't be created.

        Behavior:
            1. Return early if track.mp3 exists
            2. Create the track directory
            3. Download and convert to MP3 (plus thumbnail if enabled)
            4. Convert the thumbnail to cover.jpg; failure is only a warning
        """
        track_path = self._file_manager.track_path(track)
        if track_path.exists():
            logger.debug(f"Already downloaded: {track.uploader} - {track.title}")
            return DownloadStatus.ALREADY_DOWNLOADED

        track_dir = self._file_manager.track_dir(track)
        try:
            track_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Failed to create track directory: {e}",
                details={"track_id": track.id, "path": str(track_dir)}
            ) from e

        logger.info(f"Downloading: {track.uploader} - {track.title}")

        yt_logger = YtDlpSilentLogger()
        options = self._get_yt_dlp_options(track_dir, yt_logger)

        try:
            with YoutubeDL(options) as ydl:
                ydl.download([track.url])
        except YoutubeDLError as e:
            raise TransportError(
                f"yt-dlp failed to download track: {e}",
                details={"track_id": track.id, "url": track.url, "error": yt_logger.last_error}
            ) from e

        if not track_path.exists():
            raise TransportError(
                f"Downloaded file not found: {track_path}",
                details={"track_id": track.id, "url": track.url, "error": yt_logger.last_error}
            )

        if self._save_thumbnails:
            try:
                convert_thumbnail(track_dir, self._file_manager.cover_path(track))
            except OSError as e:
                logger.warning(f"Failed to convert thumbnail for {track.id} to JPG: {e}")

        logger.debug(f"Downloaded: {track.uploader} - {track.title} -> {track_path}")
        return DownloadStatus.DOWNLOADED

    def _get_yt_dlp_options(
        self,
        track_dir: Path,
        yt_logger: YtDlpSilentLogger,
    ) -> dict[str, Any]:
        """
        Build yt-dlp options for one track download.

        - Best audio, extracted to MP3 at the best VBR quality
        - Metadata embedded by FFmpeg
        - A playlist reference in the URL is ignored
        - Thumbnail written as cover.<ext> next to the audio
        """
        options: dict[str, Any] = {
            "format": "bestaudio/best",

            # Output: track.<ext> becomes track.mp3 after extraction
            "outtmpl": {
                "default": str(track_dir / "track.%(ext)s"),
                "thumbnail": str(track_dir / f"{COVER_STEM}.%(ext)s"),
            },

            "quiet": True,
            "no_warnings": True,
            "noprogress": True,
            "encoding": "UTF-8",

            "noplaylist": True,
            "writethumbnail": self._save_thumbnails,

            "retries": 3,
            "fragment_retries": 3,

            "postprocessors": [
                {
                    "key": "FFmpegExtractAudio",
                    "preferredcodec": "mp3",
                    "preferredquality": "0",
                },
                {
                    "key": "FFmpegMetadata",
                    "add_metadata": True,
                },
            ],

            "keepvideo": False,
            "logger": yt_logger,
        }

        if self._cookie_file is not None:
            options["cookiefile"] = str(self._cookie_file)

        return options


def find_thumbnail(track_dir: Path) -> Path:
    """
    Locate the thumbnail yt-dlp wrote into `track_dir`.

    Raises:
        FileNotFoundError: If there is no cover.* file.
    """
    for candidate in sorted(track_dir.iterdir()):
        if candidate.is_file() and candidate.stem == COVER_STEM:
            return candidate

    raise FileNotFoundError(f"No thumbnail found in {track_dir}")


def convert_thumbnail(track_dir: Path, cover_path: Path) -> Path:
    """
    Convert the downloaded thumbnail to a JPEG at cover_path and remove the original.

    A thumbnail that is already a JPEG is only renamed.

    Returns:
        cover_path.
    """
    thumbnail = find_thumbnail(track_dir)

    if thumbnail.suffix.lower() in (".jpg", ".jpeg"):
        if thumbnail != cover_path:
            thumbnail.rename(cover_path)
        return cover_path

    with Image.open(thumbnail) as img:
        img.convert("RGB").save(cover_path, "JPEG", quality=95)

    thumbnail.unlink()
    logger.debug(f"Converted {thumbnail.name} to {cover_path.name}")
    return cover_path


__all__ = [
    "Downloader",
    "convert_thumbnail",
    "find_thumbnail",
]
