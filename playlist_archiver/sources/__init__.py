"""
Remote sources for playlist-archiver.

Each configured source has a kind (soundcloud, youtube). The kind selects
a Fetcher class through the FETCHERS dispatch table; adding a service
means adding a SourceKind member and one entry here.

Usage:
    from playlist_archiver.sources import build_fetchers

    fetchers = build_fetchers(downloader, cookie_file=None)
    playlist = fetchers[source.kind].fetch_playlist(source.url)
"""

from pathlib import Path

from playlist_archiver.download.downloader import Downloader
from playlist_archiver.models import SourceKind
from playlist_archiver.sources.base import Fetcher, YtDlpCaptureLogger
from playlist_archiver.sources.soundcloud import SoundCloudFetcher
from playlist_archiver.sources.youtube import YouTubeFetcher

FETCHERS: dict[SourceKind, type[Fetcher]] = {
    SourceKind.SOUNDCLOUD: SoundCloudFetcher,
    SourceKind.YOUTUBE: YouTubeFetcher,
}


def build_fetchers(
    downloader: Downloader,
    cookie_file: Path | None = None,
) -> dict[SourceKind, Fetcher]:
    """Instantiate one fetcher per source kind, sharing a single downloader."""
    return {
        kind: fetcher_class(downloader, cookie_file=cookie_file)
        for kind, fetcher_class in FETCHERS.items()
    }


__all__ = [
    "FETCHERS",
    "build_fetchers",
    "Fetcher",
    "YtDlpCaptureLogger",
    "SoundCloudFetcher",
    "YouTubeFetcher",
]
