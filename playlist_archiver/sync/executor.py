"""
Operation executor.

Performs the operations of each action against the archive on disk and
records the transition in the logs. Operations dispatch through a table
keyed by operation type; every type in OPERATION_TYPES must have a
handler.

Any failure propagates immediately, aborting the cycle before the
source's index update.
"""

from typing import Any, Callable

from playlist_archiver.core.file_manager import FileManager
from playlist_archiver.core.logger import get_logger, log_transition
from playlist_archiver.download.metadata import add_metadata_marker, marker_text
from playlist_archiver.models import DownloadStatus, Playlist, Track
from playlist_archiver.sources.base import Fetcher
from playlist_archiver.sync.actions import (
    AddMetadataMarker,
    Download,
    Operation,
    TrackAction,
    necessary_operations,
)

logger = get_logger(__name__)


# Each handler takes the operation type it is registered for
Handler = Callable[[Any, Track, Playlist, Fetcher], None]


class OperationExecutor:
    """
    Runs actions for one source at a time.

    Attributes:
        _file_manager: Resolves audio file paths for markers.
        handlers: Operation type -> handler.
    """

    def __init__(self, file_manager: FileManager) -> None:
        self._file_manager = file_manager
        self.handlers: dict[type, Handler] = {
            Download: self._download,
            AddMetadataMarker: self._add_metadata_marker,
        }

    def execute(self, actions: list[TrackAction], playlist: Playlist, fetcher: Fetcher) -> None:
        """
        Perform every operation of every action, in order.

        Raises:
            ArchiverError: From the first failing operation.
        """
        logger.info(f"{playlist.title}: {len(actions)} actions to handle")

        for track_action in actions:
            track = track_action.track
            action = track_action.action
            logger.debug(f"Handling {action.value} on {track.title} ({track.id})")

            for operation in necessary_operations(action):
                self.perform(operation, track, playlist, fetcher)

            log_transition(
                logger,
                action=action.value,
                description=action.description,
                track_id=track.id,
                track_title=track.title,
                uploader=track.uploader,
                playlist_title=playlist.title,
                playlist_id=playlist.id,
            )

    def perform(self, operation: Operation, track: Track, playlist: Playlist, fetcher: Fetcher) -> None:
        handler = self.handlers[type(operation)]
        handler(operation, track, playlist, fetcher)

    def _download(self, operation: Download, track: Track, playlist: Playlist, fetcher: Fetcher) -> None:
        status = fetcher.ensure_downloaded(track)
        if status is DownloadStatus.ALREADY_DOWNLOADED:
            logger.debug(f"{track.id} was already downloaded, skipped")

    def _add_metadata_marker(
        self,
        operation: AddMetadataMarker,
        track: Track,
        playlist: Playlist,
        fetcher: Fetcher,
    ) -> None:
        message = marker_text(operation.action.description, playlist.title, playlist.id)
        add_metadata_marker(self._file_manager.track_path(track), message)
