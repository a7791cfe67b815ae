"""
Synchronization module for playlist-archiver.

One refresh cycle, per source:
    reconcile -> classify -> execute -> index update

Components:
    - reconcile: diff_by_id, reconcile, ReconcileResult
    - actions: Action, operations, classify
    - executor: OperationExecutor
    - context: ArchiveContext built once at startup
    - engine: refresh() across every active source
    - scheduler: Scheduler loop with retries

Usage:
    from playlist_archiver.sync import ArchiveContext, Scheduler

    context = ArchiveContext.from_config(config)
    Scheduler.from_context(context, index).run()
"""

from playlist_archiver.sync.reconcile import (
    BucketChange,
    ReconcileResult,
    diff_by_id,
    reconcile,
)
from playlist_archiver.sync.actions import (
    Action,
    AddMetadataMarker,
    Download,
    TrackAction,
    classify,
    necessary_operations,
)
from playlist_archiver.sync.executor import OperationExecutor
from playlist_archiver.sync.context import ArchiveContext
from playlist_archiver.sync.engine import SourceReport, refresh
from playlist_archiver.sync.scheduler import Scheduler, SchedulerState

__all__ = [
    "diff_by_id",
    "reconcile",
    "ReconcileResult",
    "BucketChange",
    "Action",
    "Download",
    "AddMetadataMarker",
    "TrackAction",
    "classify",
    "necessary_operations",
    "OperationExecutor",
    "ArchiveContext",
    "refresh",
    "SourceReport",
    "Scheduler",
    "SchedulerState",
]
