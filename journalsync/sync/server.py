# JournalSync Servers
# Remote destinations, their send policy and where their record state lives

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from journalsync.sync.record import SyncRecord, SyncRecordState


class ServerRole(str, Enum):
    """Role of a server relative to the local one."""

    PARENT = "parent"
    CHILD = "child"
    SERVER = "server"


@dataclass
class RemoteServer:
    """
    A peer that transmissions are addressed to.

    ``classes_not_sent`` holds type name prefixes that must never leave this
    server towards the peer.
    """

    uuid: str
    nickname: str
    role: ServerRole = ServerRole.PARENT
    classes_not_sent: list[str] = field(default_factory=list)

    @property
    def is_parent(self) -> bool:
        """Check if this server is the local server's parent."""
        return self.role == ServerRole.PARENT

    def should_send_class(self, type_name: str) -> bool:
        """Check a single type name against the not-sent prefixes."""
        return not any(type_name.startswith(prefix) for prefix in self.classes_not_sent)

    def should_be_sent_sync_record(self, record: Optional[SyncRecord]) -> bool:
        """
        Decide whether a record may be sent to this server.

        A record is sendable only if it contains at least one class and every
        contained class passes the not-sent filter.
        """
        if record is None:
            return False

        contained = record.contained_classes
        if not contained:
            return False

        return all(self.should_send_class(type_name) for type_name in contained)


class StateLocation(ABC):
    """Where a record's state for one destination is read from and written to."""

    def __init__(self, record: SyncRecord):
        self.record = record

    @property
    @abstractmethod
    def state(self) -> Optional[SyncRecordState]:
        """Current destination-scoped state, or None if there is none."""

    @abstractmethod
    def set_state(self, state: SyncRecordState) -> bool:
        """
        Re-state the record for this destination.

        Returns:
            True if a state was written and the record needs persisting.
        """


class RecordStateLocation(StateLocation):
    """The record-level state, authoritative towards a parent server."""

    @property
    def state(self) -> Optional[SyncRecordState]:
        return self.record.state

    def set_state(self, state: SyncRecordState) -> bool:
        self.record.state = state
        return True


class ServerRecordStateLocation(StateLocation):
    """The per-server override of a record."""

    def __init__(self, record: SyncRecord, server_uuid: str):
        super().__init__(record)
        self.server_uuid = server_uuid

    @property
    def state(self) -> Optional[SyncRecordState]:
        server_record = self.record.get_server_record(self.server_uuid)
        return server_record.state if server_record else None

    def set_state(self, state: SyncRecordState) -> bool:
        server_record = self.record.get_server_record(self.server_uuid)
        if server_record is None:
            return False
        server_record.state = state
        return True


def state_location_for(record: SyncRecord, server: RemoteServer) -> StateLocation:
    """Select the state location for a record as seen by a destination."""
    if server.is_parent:
        return RecordStateLocation(record)
    return ServerRecordStateLocation(record, server.uuid)
