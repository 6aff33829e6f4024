# JournalSync Records
# Journal record model: records, items, per-server overrides and sync points

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

DEFAULT_ENTITY_PREFIX = "org.openmrs."
DEFAULT_COLLECTION_PREFIX = "org.hibernate.collection."


class SyncRecordState(str, Enum):
    """Lifecycle state of a sync record, globally or for one destination."""

    NEW = "new"
    PENDING_SEND = "pending_send"
    SENT = "sent"
    SENT_AGAIN = "sent_again"
    SEND_FAILED = "send_failed"
    FAILED = "failed"
    # Retries exhausted; set by the transport layer, never by selection
    FAILED_AND_STOPPED = "failed_and_stopped"
    ALREADY_COMMITTED = "already_committed"
    COMMITTED = "committed"
    COMMITTED_AND_CONFIRMATION_SENT = "committed_and_confirmation_sent"
    NOT_SUPPOSED_TO_SYNC = "not_supposed_to_sync"
    REJECTED = "rejected"
    DEPENDS_ON_FAILED_AND_STOPPED = "depends_on_failed_and_stopped"


# States returned by a state-based journal read
SENDABLE_STATES: frozenset[SyncRecordState] = frozenset(
    {
        SyncRecordState.NEW,
        SyncRecordState.PENDING_SEND,
        SyncRecordState.SENT,
        SyncRecordState.SENT_AGAIN,
        SyncRecordState.SEND_FAILED,
        SyncRecordState.FAILED,
        SyncRecordState.FAILED_AND_STOPPED,
        SyncRecordState.DEPENDS_ON_FAILED_AND_STOPPED,
    }
)


class SyncItemState(str, Enum):
    """Change kind of a single entity within a record."""

    NEW = "new"
    UPDATED = "updated"
    DELETED = "deleted"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class EntityTypes:
    """
    Classifies fully qualified type names.

    Application entities are the types that carry a stable identity. Collection
    wrappers are persistence-layer containers around those entities.
    """

    entity_prefix: str = DEFAULT_ENTITY_PREFIX
    collection_prefix: str = DEFAULT_COLLECTION_PREFIX

    def is_entity(self, type_name: Optional[str]) -> bool:
        """Check if a type name denotes an application entity."""
        if not type_name or not type_name.strip():
            return False
        return type_name.startswith(self.entity_prefix)

    def is_collection(self, type_name: Optional[str]) -> bool:
        """Check if a type name denotes a collection wrapper."""
        if not type_name:
            return False
        return type_name.startswith(self.collection_prefix)


@dataclass(frozen=True, order=True)
class SyncPoint:
    """Position in the journal up to which changes have been consumed."""

    position: int = 0

    def __str__(self) -> str:
        return f"@{self.position}"


@dataclass
class SyncItem:
    """One entity-level change within a sync record."""

    key: str
    contained_type: str
    state: SyncItemState = SyncItemState.NEW
    content: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "contained_type": self.contained_type,
            "state": self.state.value,
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncItem":
        """Create from dictionary."""
        return cls(
            key=str(data.get("key", "")),
            contained_type=data.get("contained_type", ""),
            state=SyncItemState(data.get("state", SyncItemState.UNKNOWN.value)),
            content="" if data.get("content") is None else str(data["content"]),
        )


@dataclass
class SyncServerRecord:
    """Per-destination state override for a record."""

    server_uuid: str
    state: SyncRecordState = SyncRecordState.NEW
    retry_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"server_uuid": self.server_uuid, "state": self.state.value, "retry_count": self.retry_count}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncServerRecord":
        """Create from dictionary."""
        return cls(
            server_uuid=data["server_uuid"],
            state=SyncRecordState(data.get("state", SyncRecordState.NEW.value)),
            retry_count=int(data.get("retry_count", 0)),
        )


@dataclass
class SyncRecord:
    """
    One unit of replicable change.

    The record-level state is authoritative towards a parent server; child
    servers are tracked through ``server_records`` overrides.
    """

    uuid: str
    items: list[SyncItem] = field(default_factory=list)
    state: SyncRecordState = SyncRecordState.NEW
    retry_count: int = 0
    timestamp: Optional[str] = None  # ISO format datetime
    journal_position: Optional[int] = None
    original_uuid: Optional[str] = None
    server_records: dict[str, SyncServerRecord] = field(default_factory=dict)

    @property
    def has_items(self) -> bool:
        """Check if the record carries any items."""
        return len(self.items) > 0

    @property
    def contained_classes(self) -> set[str]:
        """Set of entity type names touched by this record."""
        return {item.contained_type for item in self.items}

    @property
    def is_deletion(self) -> bool:
        """Check if every item in the record is a delete."""
        return self.has_items and all(item.state == SyncItemState.DELETED for item in self.items)

    def get_server_record(self, server_uuid: str) -> Optional[SyncServerRecord]:
        """Get the override for a destination, if one exists."""
        return self.server_records.get(server_uuid)

    def add_server_record(
        self, server_uuid: str, state: SyncRecordState = SyncRecordState.NEW
    ) -> SyncServerRecord:
        """Create (or replace) the override for a destination."""
        server_record = SyncServerRecord(server_uuid=server_uuid, state=state)
        self.server_records[server_uuid] = server_record
        return server_record

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "uuid": self.uuid,
            "state": self.state.value,
            "retry_count": self.retry_count,
            "timestamp": self.timestamp,
            "journal_position": self.journal_position,
            "original_uuid": self.original_uuid,
            "items": [item.to_dict() for item in self.items],
        }
        if self.server_records:
            data["server_records"] = [sr.to_dict() for sr in self.server_records.values()]
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncRecord":
        """Create from dictionary."""
        server_records = {}
        for sr_data in data.get("server_records", []) or []:
            server_record = SyncServerRecord.from_dict(sr_data)
            server_records[server_record.server_uuid] = server_record

        return cls(
            uuid=data["uuid"],
            items=[SyncItem.from_dict(item) for item in data.get("items", []) or []],
            state=SyncRecordState(data.get("state", SyncRecordState.NEW.value)),
            retry_count=int(data.get("retry_count", 0)),
            timestamp=data.get("timestamp"),
            journal_position=data.get("journal_position"),
            original_uuid=data.get("original_uuid"),
            server_records=server_records,
        )
