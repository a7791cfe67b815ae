"""
File layout and playlist file writing for playlist-archiver.

Every path the archiver touches is derived here from the archive root.

Architecture:
    root/
    ├── index.json                     # Persisted index
    ├── audio/                         # One directory per track id
    │   └── 1425789301/
    │       ├── track.mp3
    │       └── cover.jpg
    ├── playlists/                     # One playlist file per playlist id
    │   └── 1702374512.m3u             # ../audio/1425789301/track.mp3
    └── logs/

Playlist Entries:
    By default each line is relative to the playlists/ directory
    (../audio/<id>/track.mp3). With a path remap configured, each line is
    <remap>/audio/<id>/track.mp3 instead, for players that mount the
    archive somewhere else.
"""

from pathlib import Path, PurePosixPath

from playlist_archiver.core.exceptions import StorageError
from playlist_archiver.core.logger import get_logger
from playlist_archiver.models import Playlist, Track, sort_by_position

logger = get_logger(__name__)


INDEX_FILENAME = "index.json"
AUDIO_DIRNAME = "audio"
PLAYLISTS_DIRNAME = "playlists"
LOGS_DIRNAME = "logs"
TRACK_FILENAME = "track.mp3"
COVER_STEM = "cover"
COVER_FILENAME = "cover.jpg"
PLAYLIST_EXTENSION = ".m3u"


class FileManager:
    """
    Resolves archive paths and writes playlist files.

    Attributes:
        root: Archive root directory.
        playlist_path_remap: Optional base path for playlist entries.
    """

    def __init__(self, root: Path, playlist_path_remap: str | None = None) -> None:
        self.root = root
        self.playlist_path_remap = playlist_path_remap

    @property
    def index_path(self) -> Path:
        return self.root / INDEX_FILENAME

    @property
    def audio_dir(self) -> Path:
        return self.root / AUDIO_DIRNAME

    @property
    def playlists_dir(self) -> Path:
        return self.root / PLAYLISTS_DIRNAME

    @property
    def logs_dir(self) -> Path:
        return self.root / LOGS_DIRNAME

    def ensure_layout(self) -> None:
        """
        Create the root, audio/ and playlists/ directories if missing.

        Raises:
            StorageError: If a directory cannot be created.
        """
        for directory in (self.root, self.audio_dir, self.playlists_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageError(
                    f"Failed to create directory {directory}: {e}",
                    details={"path": str(directory)}
                ) from e

    def track_dir(self, track: Track) -> Path:
        return self.audio_dir / track.id

    def track_path(self, track: Track) -> Path:
        return self.track_dir(track) / TRACK_FILENAME

    def cover_path(self, track: Track) -> Path:
        return self.track_dir(track) / COVER_FILENAME

    def playlist_path(self, playlist: Playlist) -> Path:
        return self.playlists_dir / f"{playlist.id}{PLAYLIST_EXTENSION}"

    def playlist_entry(self, track: Track) -> str:
        """
        The line written for `track` in a playlist file.

        Example:
            playlist_entry(track)                      # "../audio/123/track.mp3"
            # with playlist_path_remap="/media/archive":
            playlist_entry(track)                      # "/media/archive/audio/123/track.mp3"
        """
        relative = PurePosixPath(AUDIO_DIRNAME, track.id, TRACK_FILENAME)

        if self.playlist_path_remap is not None:
            return str(PurePosixPath(self.playlist_path_remap) / relative)

        return str(PurePosixPath("..") / relative)

    def write_playlist(self, playlist: Playlist) -> Path:
        """
        Rewrite the playlist file for `playlist` from its entries.

        The old file is removed and a new one written, one entry per line
        in ascending position order.

        Returns:
            Path of the written playlist file.

        Raises:
            StorageError: If the file cannot be removed or written.
        """
        path = self.playlist_path(playlist)
        logger.debug(f"Writing playlist {playlist.title!r} ({playlist.id}) to {path}")

        contents = "".join(
            f"{self.playlist_entry(track)}\n"
            for track in sort_by_position(playlist.entries)
        )

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if path.exists():
                path.unlink()
            with open(path, "w", encoding="utf-8") as f:
                f.write(contents)
        except OSError as e:
            raise StorageError(
                f"Failed to write playlist file {path}: {e}",
                details={"path": str(path), "playlist_id": playlist.id}
            ) from e

        return path
