# JournalSync Transmissions
# The packaged, addressed set of records sent to one destination

import uuid as uuid_lib
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import yaml

from journalsync.sync.record import SyncRecord
from journalsync.utils.paths import atomic_write

FILE_PREFIX = "sync_tx_"
FILE_SUFFIX = ".yaml"


def get_default_output_dir() -> Path:
    """Get the default directory for materialized transmissions."""
    return Path.home() / ".config" / "journalsync" / "transmissions"


@dataclass
class SyncTransmission:
    """
    An ordered transmission of records from one source.

    ``create`` stamps the transmission and can write it to disk.
    """

    source_uuid: str
    records: list[SyncRecord] = field(default_factory=list)
    target_uuid: Optional[str] = None
    uuid: str = field(default_factory=lambda: str(uuid_lib.uuid4()))
    is_requesting_transmission: bool = False
    timestamp: Optional[str] = None  # ISO format datetime
    file_name: Optional[str] = None
    file_output: Optional[Path] = None

    @property
    def record_count(self) -> int:
        """Number of records in the transmission."""
        return len(self.records)

    @property
    def record_uuids(self) -> list[str]:
        """Uuids of the included records, in order."""
        return [record.uuid for record in self.records]

    def create(self, write_file: bool = False, output_dir: Optional[Path] = None) -> Optional[Path]:
        """
        Finalize the transmission.

        Args:
            write_file: If True, write the transmission to ``output_dir``.
            output_dir: Target directory. Defaults to ~/.config/journalsync/transmissions

        Returns:
            Path of the written file, or None if nothing was written.
        """
        now = datetime.now()
        self.timestamp = now.isoformat()
        self.file_name = f"{FILE_PREFIX}{now.strftime('%Y_%m_%d_%H_%M_%S')}_{self.uuid[:8]}"

        if not write_file:
            return None

        target_dir = output_dir or get_default_output_dir()
        path = target_dir / f"{self.file_name}{FILE_SUFFIX}"
        atomic_write(
            path,
            yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False, allow_unicode=True),
        )
        self.file_output = path
        return path

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "uuid": self.uuid,
            "source_uuid": self.source_uuid,
            "target_uuid": self.target_uuid,
            "is_requesting_transmission": self.is_requesting_transmission,
            "timestamp": self.timestamp,
            "file_name": self.file_name,
            "records": [record.to_dict() for record in self.records],
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncTransmission":
        """Create from dictionary."""
        return cls(
            source_uuid=data.get("source_uuid", ""),
            records=[SyncRecord.from_dict(r) for r in data.get("records", []) or []],
            target_uuid=data.get("target_uuid"),
            uuid=data.get("uuid") or str(uuid_lib.uuid4()),
            is_requesting_transmission=bool(data.get("is_requesting_transmission", False)),
            timestamp=data.get("timestamp"),
            file_name=data.get("file_name"),
        )

    @classmethod
    def load(cls, path: Path) -> "SyncTransmission":
        """Read a materialized transmission."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        transmission = cls.from_dict(data)
        transmission.file_output = path
        return transmission
