# JournalSync Sync Source
# Journal access: the abstract source contract and a YAML-backed journal

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Protocol

import yaml

from journalsync.errors import SyncSourceError
from journalsync.sync.record import SENDABLE_STATES, SyncPoint, SyncRecord
from journalsync.sync.server import RemoteServer, state_location_for
from journalsync.utils.paths import atomic_write


class SyncSource(ABC):
    """
    Abstraction over the local journal.

    Answers "what changed" either for a window between two sync points or by
    record state. Implementations raise on retrieval failures; callers do not
    retry.
    """

    @abstractmethod
    def get_deleted(self, start: Optional[SyncPoint] = None, end: Optional[SyncPoint] = None) -> list[SyncRecord]:
        """Deletion records, in a window or (without points) by state."""

    @abstractmethod
    def get_changed(
        self,
        start: Optional[SyncPoint] = None,
        end: Optional[SyncPoint] = None,
        *,
        max_count: Optional[int] = None,
    ) -> list[SyncRecord]:
        """Non-deletion records, in a window or (without points) by state."""

    @abstractmethod
    def get_deleted_for_server(self, server: RemoteServer) -> list[SyncRecord]:
        """Deletion records in a sendable state for one destination."""

    @abstractmethod
    def get_changed_for_server(self, server: RemoteServer, max_count: Optional[int] = None) -> list[SyncRecord]:
        """Non-deletion records in a sendable state for one destination."""

    @abstractmethod
    def get_last_sync_point(self) -> SyncPoint:
        """Sync point up to which changes have been exported."""

    @abstractmethod
    def move_sync_point(self) -> SyncPoint:
        """Compute the next sync point without committing it."""

    @abstractmethod
    def set_last_sync_point(self, point: SyncPoint) -> None:
        """Commit a sync point."""

    @abstractmethod
    def get_source_uuid(self) -> str:
        """Identifier of the local server."""


class SyncRecordStore(Protocol):
    """Persists re-stated records."""

    def update_sync_record(self, record: SyncRecord) -> None: ...


@dataclass
class Journal:
    """Serialized contents of a journal file."""

    version: str = "1.0"
    source_uuid: str = ""
    last_sync_point: int = 0
    next_position: int = 1
    records: list[SyncRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "version": self.version,
            "source_uuid": self.source_uuid,
            "last_sync_point": self.last_sync_point,
            "next_position": self.next_position,
            "records": [record.to_dict() for record in self.records],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Journal":
        """Create from dictionary."""
        return cls(
            version=data.get("version", "1.0"),
            source_uuid=data.get("source_uuid", ""),
            last_sync_point=int(data.get("last_sync_point", 0)),
            next_position=int(data.get("next_position", 1)),
            records=[SyncRecord.from_dict(r) for r in data.get("records", []) or []],
        )


def _bounded(records: list[SyncRecord], max_count: Optional[int]) -> list[SyncRecord]:
    if max_count is None or max_count < 0:
        return records
    return records[:max_count]


class JournalSyncSource(SyncSource):
    """
    Sync source backed by a YAML journal file.

    Records keep the order they were appended in. Each record gets a journal
    position, and sync points refer to those positions.
    """

    def __init__(self, journal_path: Path, source_uuid: Optional[str] = None):
        """
        Initialize journal source.

        Args:
            journal_path: Path to the journal file (created on first save).
            source_uuid: Local server identifier. Overrides the stored one.
        """
        self.journal_path = journal_path
        self._source_uuid = source_uuid
        self._journal: Optional[Journal] = None

    @property
    def journal(self) -> Journal:
        """Get current journal, loading if necessary."""
        if self._journal is None:
            self._journal = self.load()
        return self._journal

    @property
    def records(self) -> list[SyncRecord]:
        """All records in journal order."""
        return list(self.journal.records)

    def load(self) -> Journal:
        """
        Load journal from file.

        Raises:
            SyncSourceError: If the file exists but cannot be parsed.
        """
        if not self.journal_path.exists():
            return Journal(source_uuid=self._source_uuid or "")

        try:
            with open(self.journal_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise SyncSourceError(f"Cannot read journal: {e}", path=str(self.journal_path)) from e

        if data is None:
            return Journal(source_uuid=self._source_uuid or "")
        if not isinstance(data, dict):
            raise SyncSourceError("Journal file is not a mapping", path=str(self.journal_path))

        try:
            journal = Journal.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise SyncSourceError(f"Invalid journal entry: {e}", path=str(self.journal_path)) from e

        if self._source_uuid:
            journal.source_uuid = self._source_uuid
        return journal

    def save(self) -> None:
        """Save journal to file."""
        content = yaml.dump(self.journal.to_dict(), default_flow_style=False, sort_keys=False, allow_unicode=True)
        atomic_write(self.journal_path, content)

    def append(self, record: SyncRecord) -> SyncRecord:
        """Add a record at the end of the journal and save."""
        journal = self.journal
        record.journal_position = journal.next_position
        journal.next_position += 1
        if record.timestamp is None:
            record.timestamp = datetime.now().isoformat()
        journal.records.append(record)
        self.save()
        return record

    def get_record(self, uuid: str) -> Optional[SyncRecord]:
        """Find a record by uuid."""
        for record in self.journal.records:
            if record.uuid == uuid:
                return record
        return None

    def update_sync_record(self, record: SyncRecord) -> None:
        """
        Replace a stored record and save.

        Raises:
            SyncSourceError: If the record is not in the journal.
        """
        records = self.journal.records
        for index, existing in enumerate(records):
            if existing.uuid == record.uuid:
                records[index] = record
                self.save()
                return
        raise SyncSourceError(f"Sync record '{record.uuid}' not found in journal", path=str(self.journal_path))

    def _in_window(self, record: SyncRecord, start: Optional[SyncPoint], end: Optional[SyncPoint]) -> bool:
        position = record.journal_position or 0
        if start is not None and position <= start.position:
            return False
        if end is not None and position > end.position:
            return False
        return True

    def get_deleted(self, start: Optional[SyncPoint] = None, end: Optional[SyncPoint] = None) -> list[SyncRecord]:
        deleted = [record for record in self.journal.records if record.is_deletion]
        if start is None and end is None:
            return [record for record in deleted if record.state in SENDABLE_STATES]
        return [record for record in deleted if self._in_window(record, start, end)]

    def get_changed(
        self,
        start: Optional[SyncPoint] = None,
        end: Optional[SyncPoint] = None,
        *,
        max_count: Optional[int] = None,
    ) -> list[SyncRecord]:
        changed = [record for record in self.journal.records if not record.is_deletion]
        if start is None and end is None:
            changed = [record for record in changed if record.state in SENDABLE_STATES]
        else:
            changed = [record for record in changed if self._in_window(record, start, end)]
        return _bounded(changed, max_count)

    def get_deleted_for_server(self, server: RemoteServer) -> list[SyncRecord]:
        return [
            record
            for record in self.journal.records
            if record.is_deletion and state_location_for(record, server).state in SENDABLE_STATES
        ]

    def get_changed_for_server(self, server: RemoteServer, max_count: Optional[int] = None) -> list[SyncRecord]:
        changed = [
            record
            for record in self.journal.records
            if not record.is_deletion and state_location_for(record, server).state in SENDABLE_STATES
        ]
        return _bounded(changed, max_count)

    def get_last_sync_point(self) -> SyncPoint:
        return SyncPoint(self.journal.last_sync_point)

    def move_sync_point(self) -> SyncPoint:
        return SyncPoint(self.journal.next_position - 1)

    def set_last_sync_point(self, point: SyncPoint) -> None:
        self.journal.last_sync_point = point.position
        self.save()

    def get_source_uuid(self) -> str:
        return self._source_uuid or self.journal.source_uuid
