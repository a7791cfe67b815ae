"""
Lifecycle markers in audio file tags.

When a track changes lifecycle state (removed, deleted, restricted, and
their reversals), a comment is added to its ID3 tag so the history travels
with the file:

    COMM (lang "eng")
        "This track was removed from the playlist. Favorites (1702374512)"

The comment text doubles as the frame description. ID3 frames are keyed
by description and language, so writing the same marker twice (a retried
cycle) replaces the frame instead of stacking a duplicate, while distinct
transitions accumulate as separate frames.

Dependencies:
    - mutagen: ID3 tag reading and writing
"""

from pathlib import Path

from mutagen import MutagenError
from mutagen.id3 import COMM, ID3, ID3NoHeaderError

from playlist_archiver.core.exceptions import MetadataError
from playlist_archiver.core.logger import get_logger

logger = get_logger(__name__)


MARKER_LANGUAGE = "eng"
ID3_VERSION = 4


def marker_text(description: str, playlist_title: str, playlist_id: str) -> str:
    """
    Example:
        marker_text("deleted", "Favorites", "42")
        # "This track was deleted. Favorites (42)"
    """
    return f"This track was {description}. {playlist_title} ({playlist_id})"


def add_metadata_marker(path: Path, message: str) -> None:
    """
    Append a lifecycle comment to the ID3 tag of the file at `path`.

    A file without an ID3 header gets a fresh tag. The tag is saved as
    ID3v2.4.

    Raises:
        MetadataError: If the file doesn't exist or the tag can't be
                       read or written.
    """
    if not path.exists():
        raise MetadataError(
            f"Audio file not found for metadata marker: {path}",
            details={"path": str(path)}
        )

    try:
        try:
            tags = ID3(str(path))
        except ID3NoHeaderError:
            tags = ID3()

        tags.add(COMM(encoding=3, lang=MARKER_LANGUAGE, desc=message, text=[message]))
        tags.save(str(path), v2_version=ID3_VERSION)
    except (MutagenError, OSError) as e:
        raise MetadataError(
            f"Failed to write metadata marker: {e}",
            details={"path": str(path), "message": message}
        ) from e

    logger.debug(f"Marker added to {path}: {message}")


def read_markers(path: Path) -> list[str]:
    """
    All lifecycle comments currently in the file's tag, in frame order.

    Returns an empty list for a file without a tag.
    """
    try:
        tags = ID3(str(path))
    except ID3NoHeaderError:
        return []
    except (MutagenError, OSError) as e:
        raise MetadataError(
            f"Failed to read tag: {e}",
            details={"path": str(path)}
        ) from e

    return [
        str(frame.text[0])
        for frame in tags.getall("COMM")
        if frame.lang == MARKER_LANGUAGE and frame.text
        and str(frame.text[0]).startswith("This track was ")
    ]
