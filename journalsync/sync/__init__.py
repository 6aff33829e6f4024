# JournalSync Sync Module
# Changeset selection, dependency gating and transmission building

from journalsync.sync.changeset import get_changeset, get_state_based_changeset, get_state_based_changesets
from journalsync.sync.dependency import DependencyTracker
from journalsync.sync.document import EntityReference, RecordDocument, RootKind
from journalsync.sync.notify import FailureNotice, FailureNotifier, LoggingFailureNotifier
from journalsync.sync.record import (
    SENDABLE_STATES,
    EntityTypes,
    SyncItem,
    SyncItemState,
    SyncPoint,
    SyncRecord,
    SyncRecordState,
    SyncServerRecord,
)
from journalsync.sync.server import (
    RecordStateLocation,
    RemoteServer,
    ServerRecordStateLocation,
    ServerRole,
    StateLocation,
    state_location_for,
)
from journalsync.sync.source import JournalSyncSource, SyncRecordStore, SyncSource
from journalsync.sync.strategy import Classification, RecordDecision, SelectionResult, TransmissionBuilder
from journalsync.sync.transmission import SyncTransmission

__all__ = [
    # Records
    "SyncRecord",
    "SyncItem",
    "SyncServerRecord",
    "SyncPoint",
    "SyncRecordState",
    "SyncItemState",
    "SENDABLE_STATES",
    "EntityTypes",
    # Servers
    "RemoteServer",
    "ServerRole",
    "StateLocation",
    "RecordStateLocation",
    "ServerRecordStateLocation",
    "state_location_for",
    # Documents
    "RecordDocument",
    "EntityReference",
    "RootKind",
    # Source
    "SyncSource",
    "SyncRecordStore",
    "JournalSyncSource",
    # Changesets
    "get_changeset",
    "get_state_based_changeset",
    "get_state_based_changesets",
    # Dependencies
    "DependencyTracker",
    # Notices
    "FailureNotifier",
    "FailureNotice",
    "LoggingFailureNotifier",
    # Transmission
    "SyncTransmission",
    "TransmissionBuilder",
    "SelectionResult",
    "RecordDecision",
    "Classification",
]
