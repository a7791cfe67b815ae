"""
Download module for playlist-archiver.

This module provides the two operations the executor performs on disk:
    - Downloader: fetch a track into audio/<id>/ (track.mp3 + cover.jpg)
    - add_metadata_marker: record a lifecycle transition in the ID3 tag

Usage:
    from playlist_archiver.download import Downloader, add_metadata_marker, marker_text

    downloader.ensure_downloaded(track)
    add_metadata_marker(path, marker_text("deleted", "Favorites", "42"))
"""

from playlist_archiver.download.downloader import (
    Downloader,
    convert_thumbnail,
    find_thumbnail,
)
from playlist_archiver.download.metadata import (
    add_metadata_marker,
    marker_text,
    read_markers,
)

__all__ = [
    "Downloader",
    "convert_thumbnail",
    "find_thumbnail",
    "add_metadata_marker",
    "marker_text",
    "read_markers",
]
