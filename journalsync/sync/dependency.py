# JournalSync Dependency Tracker
# Index of identities created by failed-and-stopped records within one pass

import logging
from typing import Optional

from journalsync.errors import MalformedContentError
from journalsync.sync.document import RecordDocument
from journalsync.sync.record import EntityTypes, SyncItemState, SyncRecord

logger = logging.getLogger(__name__)


class DependencyTracker:
    """
    Tracks identities that belong to failed-and-stopped records.

    A tracker belongs to exactly one selection pass. Records must be offered in
    journal order: ``record`` is called for stopped records as they are met and
    ``depends_on_stopped`` only sees stops recorded earlier in the same pass.
    """

    def __init__(self, types: Optional[EntityTypes] = None, *, first_match_decides: bool = False):
        """
        Initialize tracker.

        Args:
            types: Type classification for entity and collection names.
            first_match_decides: If True, the first node whose type is tracked
                                 decides the outcome even when its identity
                                 does not match.
        """
        self.types = types or EntityTypes()
        self.first_match_decides = first_match_decides
        self._stopped: dict[str, set[str]] = {}

    def __len__(self) -> int:
        return sum(len(uuids) for uuids in self._stopped.values())

    def __contains__(self, type_name: object) -> bool:
        return isinstance(type_name, str) and bool(self._stopped.get(type_name))

    def uuids_for(self, type_name: str) -> frozenset[str]:
        """Identities recorded for an entity type."""
        return frozenset(self._stopped.get(type_name, ()))

    def reset(self) -> None:
        """Forget every recorded identity."""
        self._stopped.clear()

    def record(self, stopped_record: Optional[SyncRecord]) -> None:
        """
        Record the identities created by a failed-and-stopped record.

        Only newly created entity items become anchors; collection wrappers and
        updates or deletes of known identities are ignored.
        """
        if stopped_record is None or not stopped_record.has_items:
            return

        for item in stopped_record.items:
            if self.types.is_collection(item.contained_type):
                continue
            if self.types.is_entity(item.contained_type) and item.state == SyncItemState.NEW:
                self._stopped.setdefault(item.contained_type, set()).add(str(item.key))

    def depends_on_stopped(self, record: SyncRecord) -> bool:
        """
        Check whether any item of a record references a stopped identity.

        Items whose content cannot be parsed are logged and skipped.
        """
        if not record.has_items or not self._stopped:
            return False

        for item in record.items:
            try:
                document = RecordDocument.parse(item.content, self.types)
            except MalformedContentError as e:
                logger.error("Could not parse content of sync item %s: %s", item.key, e)
                continue

            for node in document.entity_references(self.types):
                stopped = self._stopped.get(node.type_name or "")
                if not stopped:
                    continue

                matched = node.reference_value in stopped
                if matched or self.first_match_decides:
                    logger.debug(
                        "Record %s item %s references %s %s (stopped=%s)",
                        record.uuid,
                        item.key,
                        node.type_name,
                        node.reference_value,
                        matched,
                    )
                    return matched

        return False
