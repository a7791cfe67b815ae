"""
Persisted archive index for playlist-archiver.

The index is the only durable state. It records, per source URL, the last
fetched manifest and three buckets of tracks that left it:

    playlists:   url -> Playlist      last fetched manifest
    deleted:     url -> [Track]       deleted from the service by their owner
    removed:     url -> [Track]       removed from the playlist, still online
    restricted:  url -> [Track]       geo-restricted or private for now

For one source, a track id appears in at most one of the manifest entries
and the three buckets. Deleted tracks are kept forever as history.

Persistence:
    index.json is rewritten after every source whose actions all succeeded.
    The JSON is written to a sibling temporary file and moved into place
    with os.replace(), so a crash mid-write leaves the previous index intact.

Usage:
    index = ArchiveIndex.load(file_manager.index_path)
    state = index.state_for(source.url)
    ...
    index.apply(source.url, manifest, deleted=[...], removed=[...], restricted=[...])
    index.save(file_manager.index_path)
"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from playlist_archiver.core.exceptions import StorageError
from playlist_archiver.core.logger import get_logger
from playlist_archiver.models import Playlist, Track

logger = get_logger(__name__)


BUCKET_NAMES = ("deleted", "removed", "restricted")


@dataclass
class SourceState:
    """
    Snapshot of one source's persisted state, as the reconciler sees it.

    Attributes:
        playlist: Last persisted manifest, or None on the first cycle.
        deleted: Tracks deleted by their owner.
        removed: Tracks removed from the playlist but still available.
        restricted: Tracks currently restricted.
    """
    playlist: Playlist | None = None
    deleted: list[Track] = field(default_factory=list)
    removed: list[Track] = field(default_factory=list)
    restricted: list[Track] = field(default_factory=list)

    @property
    def entries(self) -> list[Track]:
        return self.playlist.entries if self.playlist is not None else []

    def bucket(self, name: str) -> list[Track]:
        return getattr(self, name)


@dataclass
class ArchiveIndex:
    """
    In-memory index, owned by the refresh loop for the process lifetime.

    Attributes:
        playlists: Source URL -> last fetched manifest.
        deleted: Source URL -> tracks deleted by their owner.
        removed: Source URL -> tracks removed from the playlist.
        restricted: Source URL -> tracks currently restricted.
    """
    playlists: dict[str, Playlist] = field(default_factory=dict)
    deleted: dict[str, list[Track]] = field(default_factory=dict)
    removed: dict[str, list[Track]] = field(default_factory=dict)
    restricted: dict[str, list[Track]] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "ArchiveIndex":
        """
        Load the index from `path`, or return an empty one if it doesn't exist.

        Raises:
            StorageError: If the file can't be read or isn't a valid index.
        """
        if not path.exists():
            logger.debug(f"No index at {path}, starting empty")
            return cls()

        logger.debug(f"Loading index from {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(
                f"Index file corrupted: {e}",
                details={"path": str(path), "line": e.lineno}
            ) from e
        except OSError as e:
            raise StorageError(
                f"Failed to read index file: {e}",
                details={"path": str(path)}
            ) from e

        try:
            return cls.from_dict(raw)
        except Exception as e:
            raise StorageError(
                f"Index file has an unexpected structure: {e}",
                details={"path": str(path)}
            ) from e

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ArchiveIndex":
        if not isinstance(raw, dict):
            raise ValueError("top level must be an object")

        return cls(
            playlists={
                url: Playlist.from_info(playlist)
                for url, playlist in (raw.get("playlists") or {}).items()
            },
            **{
                name: {
                    url: [Track.from_info(track) for track in tracks]
                    for url, tracks in (raw.get(name) or {}).items()
                }
                for name in BUCKET_NAMES
            },
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "playlists": {url: playlist.to_dict() for url, playlist in self.playlists.items()},
        }
        for name in BUCKET_NAMES:
            data[name] = {
                url: [track.to_dict() for track in tracks]
                for url, tracks in getattr(self, name).items()
            }
        return data

    def save(self, path: Path) -> None:
        """
        Write the index to `path` atomically.

        Raises:
            StorageError: If the file can't be written.
        """
        logger.debug(f"Saving index to {path}")
        payload = json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(
                f"Failed to write index file: {e}",
                details={"path": str(path)}
            ) from e

    def state_for(self, url: str) -> SourceState:
        """Persisted state of one source. Lists are copies."""
        return SourceState(
            playlist=self.playlists.get(url),
            deleted=list(self.deleted.get(url, [])),
            removed=list(self.removed.get(url, [])),
            restricted=list(self.restricted.get(url, [])),
        )

    def apply(
        self,
        url: str,
        manifest: Playlist,
        deleted: list[Track],
        removed: list[Track],
        restricted: list[Track],
    ) -> None:
        """
        Replace one source's manifest and buckets after its actions succeeded.
        """
        self.playlists[url] = manifest
        self.deleted[url] = list(deleted)
        self.removed[url] = list(removed)
        self.restricted[url] = list(restricted)

    def track_ids(self, url: str) -> dict[str, list[str]]:
        """
        Where each track id of a source lives.

        Returns:
            Track id -> names of the places it appears in ("entries",
            "deleted", "removed", "restricted"). Exclusivity holds when every
            list has exactly one element.
        """
        locations: dict[str, list[str]] = {}
        playlist = self.playlists.get(url)
        if playlist is not None:
            for track in playlist.entries:
                locations.setdefault(track.id, []).append("entries")
        for name in BUCKET_NAMES:
            for track in getattr(self, name).get(url, []):
                locations.setdefault(track.id, []).append(name)
        return locations

    def summary(self, url: str) -> dict[str, int]:
        """Counts of entries and bucket sizes for one source."""
        playlist = self.playlists.get(url)
        counts = {"entries": len(playlist.entries) if playlist is not None else 0}
        for name in BUCKET_NAMES:
            counts[name] = len(getattr(self, name).get(url, []))
        return counts
