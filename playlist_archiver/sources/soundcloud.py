"""
SoundCloud fetcher.

SoundCloud hides region-locked tracks from other regions. yt-dlp reports
each of them with the geo-restriction message followed by a proxy hint,
on the same line or on the next one. Those are the only per-entry errors
tolerated in a playlist manifest.
"""

from playlist_archiver.core.logger import get_logger
from playlist_archiver.models import SourceKind, TrackStatus
from playlist_archiver.sources.base import Fetcher

logger = get_logger(__name__)


GEO_ERROR = "This video is not available from your location due to geo restriction"
GEO_HINT = "You might want to use a VPN or a proxy server"
NOT_FOUND_ERROR = "HTTP Error 404"


def count_geo_errors(errors: list[str]) -> int | None:
    """
    Count geo-restriction reports in `errors`.

    Returns:
        Number of reports, or None if any line is something else.

    Example:
        count_geo_errors([f"ERROR: {GEO_ERROR}. {GEO_HINT} (with --proxy)"])  # 1
        count_geo_errors([GEO_ERROR, GEO_HINT, GEO_ERROR, GEO_HINT])           # 2
        count_geo_errors(["ERROR: HTTP Error 500"])                           # None
    """
    count = 0
    i = 0

    while i < len(errors):
        line = errors[i]
        if GEO_ERROR not in line:
            return None

        if GEO_HINT in line:
            i += 1
        elif i + 1 < len(errors) and GEO_HINT in errors[i + 1]:
            i += 2
        else:
            return None

        count += 1

    return count


class SoundCloudFetcher(Fetcher):
    kind = SourceKind.SOUNDCLOUD

    def count_benign_playlist_errors(self, errors: list[str]) -> int | None:
        return count_geo_errors(errors)

    def classify_track_error(self, error_text: str) -> TrackStatus | None:
        lines = [line for line in error_text.splitlines() if line.strip()]

        if lines and count_geo_errors(lines) == 1:
            return TrackStatus.restricted()

        if NOT_FOUND_ERROR in error_text:
            return TrackStatus.not_found()

        return None

    def log_recognized_warning(self, url: str, count: int) -> None:
        logger.warning(
            f"{count} tracks of {url} are not available due to geo restrictions "
            "and will be ignored"
        )
