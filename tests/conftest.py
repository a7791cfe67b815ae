"""Test configuration and fixtures"""

import tempfile
from pathlib import Path

import pytest

from playlist_archiver.core.config import Config, PathsConfig, ScheduleConfig, SourceConfig
from playlist_archiver.core.file_manager import FileManager
from playlist_archiver.core.retry import RetryOptions
from playlist_archiver.models import DownloadStatus, Playlist, SourceKind, Track, TrackStatus
from playlist_archiver.sync.context import ArchiveContext
from playlist_archiver.sync.executor import OperationExecutor

SOURCE_URL = "https://soundcloud.com/someone/sets/favorites"

# Bytes that are not an ID3 tag; mutagen treats the file as untagged
FAKE_AUDIO = b"\x00" * 2048


def make_track(track_id: str, position: int | None = None) -> Track:
    return Track(
        id=track_id,
        uploader=f"Uploader {track_id}",
        title=f"Song {track_id}",
        url=f"https://soundcloud.com/someone/{track_id}",
        position=position,
    )


def make_playlist(*track_ids: str, playlist_id: str = "pl1", title: str = "Favorites") -> Playlist:
    return Playlist(
        id=playlist_id,
        title=title,
        url=SOURCE_URL,
        entries=[make_track(track_id, position) for position, track_id in enumerate(track_ids)],
        track_count=len(track_ids),
    )


class FakeFetcher:
    """
    In-memory stand-in for a service fetcher.

    Attributes:
        manifests: Playlists returned by successive fetch_playlist() calls;
                   the last one repeats.
        statuses: Track id -> TrackStatus for status queries. Unknown ids
                  are reported available.
        status_calls: Track ids queried, in order.
        downloads: Track ids passed to ensure_downloaded, in order.
    """

    kind = SourceKind.SOUNDCLOUD

    def __init__(self, file_manager: FileManager | None = None) -> None:
        self.file_manager = file_manager
        self.manifests: list[Playlist] = []
        self.statuses: dict[str, TrackStatus] = {}
        self.status_calls: list[str] = []
        self.downloads: list[str] = []
        self.fail_fetch: Exception | None = None

    def fetch_playlist(self, url: str) -> Playlist:
        if self.fail_fetch is not None:
            raise self.fail_fetch
        if len(self.manifests) > 1:
            return self.manifests.pop(0)
        return self.manifests[0]

    def fetch_track_status(self, track: Track) -> TrackStatus:
        self.status_calls.append(track.id)
        return self.statuses.get(track.id, TrackStatus.available(track))

    def ensure_downloaded(self, track: Track) -> DownloadStatus:
        self.downloads.append(track.id)
        if self.file_manager is None:
            return DownloadStatus.DOWNLOADED

        path = self.file_manager.track_path(track)
        if path.exists():
            return DownloadStatus.ALREADY_DOWNLOADED
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(FAKE_AUDIO)
        return DownloadStatus.DOWNLOADED


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def file_manager(temp_dir):
    """FileManager rooted in a temporary archive"""
    manager = FileManager(temp_dir / "archive")
    manager.ensure_layout()
    return manager


@pytest.fixture
def config(file_manager):
    """Config with one active SoundCloud source and no retries"""
    return Config(
        paths=PathsConfig(root=file_manager.root),
        sources=(SourceConfig(kind=SourceKind.SOUNDCLOUD, url=SOURCE_URL),),
        schedule=ScheduleConfig(cron=None, timezone="UTC", run_on_start=True),
        retry=RetryOptions(max_retries=0),
    )


@pytest.fixture
def fake_fetcher(file_manager):
    """FakeFetcher that writes placeholder audio files on download"""
    return FakeFetcher(file_manager)


@pytest.fixture
def context(config, file_manager, fake_fetcher):
    """ArchiveContext wired to the fake fetcher"""
    return ArchiveContext(
        config=config,
        file_manager=file_manager,
        fetchers={SourceKind.SOUNDCLOUD: fake_fetcher},
        executor=OperationExecutor(file_manager),
    )
