"""journalsync - disconnected, journal-based one-way replication.

Selects locally journaled change records for a remote peer, holds back
records that depend on permanently failed ones, and packages the rest into
an ordered transmission.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "SyncRecord",
    "SyncItem",
    "SyncPoint",
    "SyncRecordState",
    "SyncItemState",
    "RemoteServer",
    "ServerRole",
    "JournalSyncSource",
    "DependencyTracker",
    "SyncTransmission",
    "TransmissionBuilder",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("SyncRecord", "SyncItem", "SyncPoint", "SyncRecordState", "SyncItemState"):
        from journalsync.sync import record

        return getattr(record, name)
    if name in ("RemoteServer", "ServerRole"):
        from journalsync.sync import server

        return getattr(server, name)
    if name == "JournalSyncSource":
        from journalsync.sync.source import JournalSyncSource

        return JournalSyncSource
    if name == "DependencyTracker":
        from journalsync.sync.dependency import DependencyTracker

        return DependencyTracker
    if name == "SyncTransmission":
        from journalsync.sync.transmission import SyncTransmission

        return SyncTransmission
    if name == "TransmissionBuilder":
        from journalsync.sync.strategy import TransmissionBuilder

        return TransmissionBuilder
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
