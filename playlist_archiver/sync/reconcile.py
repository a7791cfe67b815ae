"""
Reconciliation engine.

Compares a freshly fetched manifest with the persisted state of its source
and decides where every track now belongs.

Algorithm (per source, per cycle):
    1. new, missing = diff_by_id(previous entries, fetched entries)
    2. Each missing track gets one status query, in order:
           available  -> removed candidate
           restricted -> restricted candidate
           not found  -> deleted candidate
    3. For each bucket (deleted, removed, restricted):
           carried  = persisted tracks still absent from the manifest
           entered  = candidates not already in the bucket
           left     = persisted tracks that reappeared in the manifest
           current  = carried + entered
    4. A new track that reappeared from a bucket is reported by its
       reversal only, never as added.
    5. Every track id must land in a single category. A collision means
       the persisted index was already inconsistent and is reported as a
       ReconciliationError.

Status queries are issued one at a time; their order follows the previous
manifest.
"""

from dataclasses import dataclass, field

from playlist_archiver.core.exceptions import ReconciliationError
from playlist_archiver.core.index import BUCKET_NAMES, SourceState
from playlist_archiver.core.logger import get_logger
from playlist_archiver.models import Playlist, StatusKind, Track
from playlist_archiver.sources.base import Fetcher

logger = get_logger(__name__)


STATUS_BUCKETS = {
    StatusKind.AVAILABLE: "removed",
    StatusKind.RESTRICTED: "restricted",
    StatusKind.NOT_FOUND: "deleted",
}


def diff_by_id(
    previous: list[Track],
    fetched: list[Track],
) -> tuple[list[Track], list[Track]]:
    """
    Id-based set difference between two track lists.

    Returns:
        (new, missing): tracks of `fetched` whose id is not in `previous`,
        and tracks of `previous` whose id is not in `fetched`. Each keeps
        the order of the list it came from.

    Example:
        new, missing = diff_by_id([a, b, c], [a, c, d])
        # new == [d], missing == [b]
    """
    previous_ids = {track.id for track in previous}
    fetched_ids = {track.id for track in fetched}

    new = [track for track in fetched if track.id not in previous_ids]
    missing = [track for track in previous if track.id not in fetched_ids]
    return new, missing


@dataclass
class BucketChange:
    """
    What happened to one bucket during a cycle.

    Attributes:
        entered: Tracks that moved into the bucket (forward transitions).
        left: Tracks that moved out because they reappeared in the
              manifest (reversals). These are the freshly fetched tracks,
              with their new positions.
        current: The bucket's contents after the cycle.
    """
    entered: list[Track] = field(default_factory=list)
    left: list[Track] = field(default_factory=list)
    current: list[Track] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """
    Outcome of reconciling one source.

    Attributes:
        manifest: The fetched manifest, stored as the new entries.
        added: Tracks new to the source.
        deleted: Changes to the deleted bucket.
        removed: Changes to the removed bucket.
        restricted: Changes to the restricted bucket.
    """
    manifest: Playlist
    added: list[Track] = field(default_factory=list)
    deleted: BucketChange = field(default_factory=BucketChange)
    removed: BucketChange = field(default_factory=BucketChange)
    restricted: BucketChange = field(default_factory=BucketChange)

    def bucket(self, name: str) -> BucketChange:
        return getattr(self, name)

    @property
    def has_changes(self) -> bool:
        if self.added:
            return True
        return any(
            self.bucket(name).entered or self.bucket(name).left
            for name in BUCKET_NAMES
        )


def reconcile(state: SourceState, manifest: Playlist, fetcher: Fetcher) -> ReconcileResult:
    """
    Categorize every track of one source for this cycle.

    Args:
        state: Persisted state of the source.
        manifest: Freshly fetched manifest.
        fetcher: Fetcher used for the status query of each missing track.

    Returns:
        ReconcileResult describing additions, forward transitions,
        reversals and the new bucket contents.

    Raises:
        ReconciliationError: If a track id qualifies for two categories.
        TransportError: If a status query fails.
    """
    new_tracks, missing_tracks = diff_by_id(state.entries, manifest.entries)

    logger.info(
        f"{manifest.title}: {len(new_tracks)} new tracks, "
        f"{len(missing_tracks)} tracks unaccounted for"
    )

    candidates: dict[str, list[Track]] = {name: [] for name in BUCKET_NAMES}
    for track in missing_tracks:
        status = fetcher.fetch_track_status(track)
        candidates[STATUS_BUCKETS[status.kind]].append(track)

    logger.debug(
        f"{manifest.title}: " + ", ".join(
            f"{len(candidates[name])} {name}" for name in BUCKET_NAMES
        )
    )

    fetched_by_id = {track.id: track for track in manifest.entries}

    changes: dict[str, BucketChange] = {}
    for name in BUCKET_NAMES:
        persisted = state.bucket(name)
        persisted_ids = {track.id for track in persisted}

        carried = [track for track in persisted if track.id not in fetched_by_id]
        entered = [track for track in candidates[name] if track.id not in persisted_ids]
        left = [fetched_by_id[track.id] for track in persisted if track.id in fetched_by_id]

        changes[name] = BucketChange(entered=entered, left=left, current=carried + entered)

    reappeared = {track.id for change in changes.values() for track in change.left}
    added = [track for track in new_tracks if track.id not in reappeared]

    result = ReconcileResult(manifest=manifest, added=added, **changes)
    check_exclusive(result)
    return result


def check_exclusive(result: ReconcileResult) -> None:
    """
    Make sure no track id landed in two categories.

    Categories are checked in the order deleted, removed, restricted; the
    error names the first one as the category that would have won.

    Raises:
        ReconciliationError: Listing every conflicting id.
    """
    categories: dict[str, list[str]] = {}

    for name in BUCKET_NAMES:
        change = result.bucket(name)
        ids = {track.id for track in change.current} | {track.id for track in change.left}
        for track_id in ids:
            categories.setdefault(track_id, []).append(name)

    for track in result.added:
        categories.setdefault(track.id, []).append("added")

    conflicts = {
        track_id: names
        for track_id, names in categories.items()
        if len(names) > 1
    }

    if conflicts:
        summary = "; ".join(
            f"{track_id} in {', '.join(names)} ('{names[0]}' would win)"
            for track_id, names in sorted(conflicts.items())
        )
        raise ReconciliationError(
            f"Tracks found in more than one category: {summary}",
            details={"playlist_id": result.manifest.id, "conflicts": conflicts}
        )
