"""
YouTube fetcher.

Unavailable videos in a playlist (taken down, private, blocked) all show
up as "Video unavailable" errors. A single track check also recognizes
"Private video" as a restriction.
"""

from playlist_archiver.core.logger import get_logger
from playlist_archiver.models import SourceKind, TrackStatus
from playlist_archiver.sources.base import Fetcher

logger = get_logger(__name__)


UNAVAILABLE_ERROR = "Video unavailable"
PRIVATE_ERROR = "Private video"
NOT_FOUND_ERROR = "HTTP Error 404"


class YouTubeFetcher(Fetcher):
    kind = SourceKind.YOUTUBE

    def count_benign_playlist_errors(self, errors: list[str]) -> int | None:
        if all(UNAVAILABLE_ERROR in line for line in errors):
            return len(errors)
        return None

    def classify_track_error(self, error_text: str) -> TrackStatus | None:
        lines = [line for line in error_text.splitlines() if line.strip()]

        if len(lines) == 1 and (UNAVAILABLE_ERROR in lines[0] or PRIVATE_ERROR in lines[0]):
            return TrackStatus.restricted()

        # An invalid URL currently yields "Video unavailable", not a 404
        if NOT_FOUND_ERROR in error_text:
            return TrackStatus.not_found()

        return None

    def log_recognized_warning(self, url: str, count: int) -> None:
        logger.warning(f"{count} tracks of {url} are unavailable and will be ignored")
