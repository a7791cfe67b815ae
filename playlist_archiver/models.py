"""
Data models for tracks and playlists.

This module defines the dataclasses passed between the fetchers, the
reconciliation engine and the index. Field names follow what yt-dlp
reports, so manifests are stored in the index without translation:

    Model field     JSON / yt-dlp key
    -----------     -----------------
    Track.url       original_url
    Track.position  playlist_index
    Playlist.url    original_url
    Playlist.track_count  playlist_count

Design Decisions:
    - Track is frozen; identity is its `id` alone
    - Playlist.entries is always sorted by position
    - Unresolvable manifest entries (null in yt-dlp output) are skipped
    - A track id listed twice keeps only its first (lowest position) entry

Usage:
    from playlist_archiver.models import Playlist, Track

    playlist = Playlist.from_info(ydl.sanitize_info(info))
    for track in playlist.entries:
        print(track.position, track.title)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from playlist_archiver.core.exceptions import ParseError
from playlist_archiver.core.logger import get_logger

logger = get_logger(__name__)


class SourceKind(Enum):
    """Services a source can live on. Values are the config `type` strings."""
    SOUNDCLOUD = "soundcloud"
    YOUTUBE = "youtube"


@dataclass(frozen=True)
class Track:
    """
    Immutable representation of one remote track.

    Attributes:
        id: Id assigned by the remote service. Stable across cycles and the
            only field used for identity.
            Example: "1425789301"
        uploader: Account that uploaded the track.
        title: Track title as shown on the service.
        url: Canonical track URL, used for status checks and downloads.
        position: Position in the playlist manifest it came from (yt-dlp's
                  playlist_index). None for a track fetched on its own.
    """

    id: str
    uploader: str
    title: str
    url: str
    position: int | None = None

    @classmethod
    def from_info(cls, info: dict[str, Any]) -> "Track":
        """
        Create a Track from a yt-dlp info dict (or an index entry).

        Raises:
            ParseError: If the id or URL is missing.
        """
        track_id = info.get("id")
        url = info.get("original_url") or info.get("webpage_url") or info.get("url")

        if not track_id or not url:
            raise ParseError(
                "Track entry is missing its id or URL",
                details={"track_id": track_id, "url": url}
            )

        position = info.get("playlist_index")
        if position is not None:
            try:
                position = int(position)
            except (TypeError, ValueError) as e:
                raise ParseError(
                    f"Track has a non-integer position: {position!r}",
                    details={"track_id": track_id}
                ) from e
            if position < 0:
                raise ParseError(
                    f"Track has a negative position: {position}",
                    details={"track_id": track_id}
                )

        return cls(
            id=str(track_id),
            uploader=info.get("uploader") or "",
            title=info.get("title") or "",
            url=url,
            position=position,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "uploader": self.uploader,
            "title": self.title,
            "original_url": self.url,
            "playlist_index": self.position,
        }


@dataclass
class Playlist:
    """
    One fetched playlist manifest.

    Attributes:
        id: Playlist id assigned by the service. Names the playlist file.
        title: Human-readable title. Written into metadata markers.
        url: Playlist URL as reported by yt-dlp.
        entries: Tracks in playback order (ascending position).
        track_count: Count reported by the service. Can exceed len(entries)
                     when some entries could not be resolved.
    """

    id: str
    title: str
    url: str
    entries: list[Track] = field(default_factory=list)
    track_count: int = 0

    def __post_init__(self) -> None:
        self.entries = unique_by_id(sort_by_position(self.entries), self.id)

    @classmethod
    def from_info(cls, info: dict[str, Any]) -> "Playlist":
        """
        Create a Playlist from a yt-dlp playlist info dict (or an index entry).

        Null entries are skipped. Entries without a position get one from
        their order in the list, starting at 1 like yt-dlp.

        Raises:
            ParseError: If the id is missing or entries is not a list.
        """
        playlist_id = info.get("id")
        if not playlist_id:
            raise ParseError(
                "Playlist manifest has no id",
                details={"url": info.get("original_url") or info.get("webpage_url")}
            )

        raw_entries = info.get("entries") or []
        if not isinstance(raw_entries, list):
            raise ParseError(
                "Playlist manifest entries must be a list",
                details={"playlist_id": playlist_id}
            )

        entries = []
        for index, raw in enumerate(raw_entries, start=1):
            if raw is None:
                continue
            if raw.get("playlist_index") is None:
                raw = {**raw, "playlist_index": index}
            entries.append(Track.from_info(raw))

        track_count = info.get("playlist_count")
        if track_count is None:
            track_count = len(entries)

        return cls(
            id=str(playlist_id),
            title=info.get("title") or str(playlist_id),
            url=info.get("original_url") or info.get("webpage_url") or "",
            entries=entries,
            track_count=int(track_count),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "original_url": self.url,
            "playlist_count": self.track_count,
            "entries": [track.to_dict() for track in self.entries],
        }


def unique_by_id(tracks: list[Track], playlist_id: str = "") -> list[Track]:
    """
    Drop repeated track ids, keeping the first occurrence.

    A playlist may list the same track more than once; the archive keeps
    one record per id.
    """
    seen: set[str] = set()
    unique = []
    for track in tracks:
        if track.id in seen:
            logger.warning(
                f"Playlist {playlist_id} lists track {track.id} more than once, "
                f"ignoring the copy at position {track.position}"
            )
            continue
        seen.add(track.id)
        unique.append(track)
    return unique


def sort_by_position(tracks: list[Track]) -> list[Track]:
    """Stable sort by position; tracks without one keep their order at the end."""
    return sorted(
        tracks,
        key=lambda t: (t.position is None, t.position if t.position is not None else 0),
    )


class StatusKind(Enum):
    """Live status of a single track, as reported by its fetcher."""
    AVAILABLE = "available"
    RESTRICTED = "restricted"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class TrackStatus:
    """
    Result of a single-track status check.

    Attributes:
        kind: Available, restricted (geo/private) or not found (deleted).
        track: The single-track manifest, only present when available.
    """
    kind: StatusKind
    track: Track | None = None

    @classmethod
    def available(cls, track: Track) -> "TrackStatus":
        return cls(StatusKind.AVAILABLE, track)

    @classmethod
    def restricted(cls) -> "TrackStatus":
        return cls(StatusKind.RESTRICTED)

    @classmethod
    def not_found(cls) -> "TrackStatus":
        return cls(StatusKind.NOT_FOUND)


class DownloadStatus(Enum):
    """Outcome of ensure_downloaded()."""
    DOWNLOADED = "downloaded"
    ALREADY_DOWNLOADED = "already_downloaded"
