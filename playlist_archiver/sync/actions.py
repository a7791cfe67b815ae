"""
Action classification and the operations each action requires.

An action is a lifecycle transition of one track within one source. Each
action maps to a list of operations:

    Added                   -> [Download]
    any other action        -> [AddMetadataMarker(action)]

Per source, actions run in a fixed order with additions last, so a defect
in transition handling surfaces before a long batch of downloads:

    Deleted, Undeleted, Removed, Unremoved, Restricted, Unrestricted, Added
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from playlist_archiver.models import Track
from playlist_archiver.sync.reconcile import ReconcileResult


class Action(Enum):
    """Lifecycle transitions. Values are the names shown in logs and reports."""
    ADDED = "Added"
    REMOVED = "Removed"
    UNREMOVED = "Unremoved"
    DELETED = "Deleted"
    UNDELETED = "Undeleted"
    RESTRICTED = "Restricted"
    UNRESTRICTED = "Unrestricted"

    @property
    def description(self) -> str:
        """Text completing "This track was ..."."""
        return DESCRIPTIONS[self]


DESCRIPTIONS = {
    Action.ADDED: "added to the playlist",
    Action.REMOVED: "removed from the playlist",
    Action.UNREMOVED: "added back to the playlist",
    Action.DELETED: "deleted",
    Action.UNDELETED: "added back",
    Action.RESTRICTED: "restricted (private, geo-restricted, etc.)",
    Action.UNRESTRICTED: "no longer restricted",
}

ACTION_ORDER = (
    Action.DELETED,
    Action.UNDELETED,
    Action.REMOVED,
    Action.UNREMOVED,
    Action.RESTRICTED,
    Action.UNRESTRICTED,
    Action.ADDED,
)

# Bucket name -> (forward action, reversal action)
BUCKET_ACTIONS = {
    "deleted": (Action.DELETED, Action.UNDELETED),
    "removed": (Action.REMOVED, Action.UNREMOVED),
    "restricted": (Action.RESTRICTED, Action.UNRESTRICTED),
}


@dataclass(frozen=True)
class Download:
    """Make sure the track's audio is on disk."""


@dataclass(frozen=True)
class AddMetadataMarker:
    """Record `action` in the track's tag."""
    action: Action


Operation = Union[Download, AddMetadataMarker]

OPERATION_TYPES: tuple[type, ...] = (Download, AddMetadataMarker)


def necessary_operations(action: Action) -> list[Operation]:
    """Operations needed to carry out `action`, in order."""
    if action is Action.ADDED:
        return [Download()]
    return [AddMetadataMarker(action)]


@dataclass(frozen=True)
class TrackAction:
    track: Track
    action: Action


def classify(result: ReconcileResult) -> list[TrackAction]:
    """
    Turn a reconciliation result into the ordered action list of a source.

    Within one action, tracks keep the order the reconciler produced.
    """
    by_action: dict[Action, list[Track]] = {action: [] for action in Action}

    for name, (forward, reverse) in BUCKET_ACTIONS.items():
        change = result.bucket(name)
        by_action[forward].extend(change.entered)
        by_action[reverse].extend(change.left)

    by_action[Action.ADDED].extend(result.added)

    return [
        TrackAction(track=track, action=action)
        for action in ACTION_ORDER
        for track in by_action[action]
    ]
