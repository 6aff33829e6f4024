# JournalSync Changesets
# Retrieval and ordering of journal records; deletions always come first

from typing import Optional

from journalsync.sync.record import SyncPoint, SyncRecord
from journalsync.sync.server import RemoteServer
from journalsync.sync.source import SyncSource


def get_changeset(source: SyncSource, start: SyncPoint, end: SyncPoint) -> list[SyncRecord]:
    """
    Get every local delete, insert and update between two sync points.

    Args:
        source: Journal to read from.
        start: Exclusive lower bound.
        end: Inclusive upper bound.

    Returns:
        Deletions followed by other changes.
    """
    deleted = source.get_deleted(start, end)
    changed = source.get_changed(start, end)
    return [*deleted, *changed]


def get_state_based_changesets(source: SyncSource, max_records: Optional[int] = None) -> list[SyncRecord]:
    """Get records in a sendable state regardless of destination."""
    deleted = source.get_deleted()
    changed = source.get_changed(max_count=max_records)
    return [*deleted, *changed]


def get_state_based_changeset(
    source: SyncSource,
    server: RemoteServer,
    max_records: Optional[int] = None,
) -> list[SyncRecord]:
    """
    Get records in a sendable state for one destination.

    Both reads use the destination-scoped state. ``max_records`` bounds only
    the changed records; deletions are always included in full.
    """
    deleted = source.get_deleted_for_server(server)
    changed = source.get_changed_for_server(server, max_records)
    return [*deleted, *changed]
