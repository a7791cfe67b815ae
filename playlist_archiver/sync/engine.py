"""
One refresh cycle across every active source.

Workflow:
    For each active source, in configured order:
        1. Fetch the current manifest
        2. Reconcile it against the persisted index
        3. Classify the result into an ordered action list
        4. Execute every action
        5. Replace the source's index entries and persist the index
    Then rewrite every playlist file in the index from its entries.

The first failure aborts the cycle. Sources processed before the failure
keep their persisted update; the failing source is left as it was.
"""

from collections import Counter
from dataclasses import dataclass, field

from playlist_archiver.core.index import ArchiveIndex
from playlist_archiver.core.logger import get_logger
from playlist_archiver.sync.actions import Action, classify
from playlist_archiver.sync.context import ArchiveContext
from playlist_archiver.sync.reconcile import reconcile

logger = get_logger(__name__)


@dataclass
class SourceReport:
    """
    Summary of one processed source.

    Attributes:
        url: Source URL.
        playlist_title: Title of the fetched playlist.
        track_count: Entries in the new manifest.
        actions: Number of tracks per action.
    """
    url: str
    playlist_title: str
    track_count: int
    actions: Counter = field(default_factory=Counter)

    def count(self, action: Action) -> int:
        return self.actions.get(action, 0)


def refresh(context: ArchiveContext, index: ArchiveIndex) -> list[SourceReport]:
    """
    Run one refresh cycle.

    Args:
        context: Process context (config, fetchers, executor, file layout).
        index: The in-memory index, updated and persisted per source.

    Returns:
        One SourceReport per processed source.

    Raises:
        ArchiverError: From the first failing fetch, reconciliation,
                       operation, or write.
    """
    file_manager = context.file_manager
    file_manager.ensure_layout()

    reports: list[SourceReport] = []

    for source in context.config.active_sources:
        logger.info(f"Updating source: {source.url}")

        fetcher = context.fetcher_for(source.kind)
        manifest = fetcher.fetch_playlist(source.url)

        result = reconcile(index.state_for(source.url), manifest, fetcher)
        actions = classify(result)

        if result.has_changes:
            context.executor.execute(actions, manifest, fetcher)
        else:
            logger.info(f"{manifest.title}: up to date")

        index.apply(
            source.url,
            manifest,
            deleted=result.deleted.current,
            removed=result.removed.current,
            restricted=result.restricted.current,
        )
        index.save(file_manager.index_path)

        reports.append(SourceReport(
            url=source.url,
            playlist_title=manifest.title,
            track_count=len(manifest.entries),
            actions=Counter(track_action.action for track_action in actions),
        ))

    logger.debug("Writing playlist files")
    for playlist in index.playlists.values():
        file_manager.write_playlist(playlist)

    for report in reports:
        changes = ", ".join(
            f"{report.count(action)} {action.value.lower()}"
            for action in Action
            if report.count(action)
        )
        logger.info(f"{report.playlist_title}: {report.track_count} tracks ({changes or 'no changes'})")

    return reports
