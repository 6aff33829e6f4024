# JournalSync Transmission Builder
# Selects, classifies and packages journal records for one destination

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from journalsync.errors import MaxRetryReachedError
from journalsync.sync.changeset import get_changeset, get_state_based_changeset
from journalsync.sync.dependency import DependencyTracker
from journalsync.sync.notify import FailureNotifier, LoggingFailureNotifier
from journalsync.sync.record import EntityTypes, SyncRecord, SyncRecordState
from journalsync.sync.server import RemoteServer, StateLocation, state_location_for
from journalsync.sync.source import SyncRecordStore, SyncSource
from journalsync.sync.transmission import SyncTransmission

if TYPE_CHECKING:
    from journalsync.config.schema import JournalSyncConfig

logger = logging.getLogger(__name__)


class Classification(str, Enum):
    """Outcome of evaluating one record during a selection pass."""

    INCLUDED = "included"
    FAILED_AND_STOPPED = "failed_and_stopped"
    NOT_SUPPOSED_TO_SYNC = "not_supposed_to_sync"
    DEPENDS_ON_FAILED_AND_STOPPED = "depends_on_failed_and_stopped"
    ALREADY_DEPENDENT = "already_dependent"


@dataclass
class RecordDecision:
    """How a single record was classified."""

    record: SyncRecord
    classification: Classification
    reason: str = ""
    state_changed: bool = False

    @property
    def is_included(self) -> bool:
        """Check if the record went into the transmission."""
        return self.classification == Classification.INCLUDED


@dataclass
class SelectionResult:
    """Result of one state-based selection pass."""

    server: RemoteServer
    transmission: SyncTransmission
    decisions: list[RecordDecision] = field(default_factory=list)
    first_stopped: Optional[SyncRecord] = None
    notice_sent: bool = False

    @property
    def included(self) -> list[SyncRecord]:
        """Records that went into the transmission, in order."""
        return [d.record for d in self.decisions if d.is_included]

    @property
    def excluded(self) -> list[RecordDecision]:
        """Decisions for records left out of the transmission."""
        return [d for d in self.decisions if not d.is_included]

    @property
    def restated(self) -> int:
        """Number of records whose state was changed and persisted."""
        return sum(1 for d in self.decisions if d.state_changed)

    def count(self, classification: Classification) -> int:
        """Number of records with a given classification."""
        return sum(1 for d in self.decisions if d.classification == classification)


class TransmissionBuilder:
    """
    Builds transmissions from a sync source.

    Each state-based pass owns a fresh DependencyTracker, and records are
    classified strictly in the order the source returned them: a record can
    only be held back by failures met earlier in the same pass. Callers must
    not run two passes for the same source and destination concurrently.
    """

    def __init__(
        self,
        *,
        store: Optional[SyncRecordStore] = None,
        notifier: Optional[FailureNotifier] = None,
        types: Optional[EntityTypes] = None,
        first_match_decides: bool = False,
        output_dir: Optional[Path] = None,
    ):
        """
        Initialize transmission builder.

        Args:
            store: Persists re-stated records. Defaults to the source itself.
            notifier: Receives the per-pass failure notice.
            types: Entity and collection type classification.
            first_match_decides: Dependency check parity mode, see DependencyTracker.
            output_dir: Where materialized transmissions are written.
        """
        self.store = store
        self.notifier = notifier or LoggingFailureNotifier()
        self.types = types or EntityTypes()
        self.first_match_decides = first_match_decides
        self.output_dir = output_dir

    @classmethod
    def from_config(
        cls,
        config: JournalSyncConfig,
        *,
        store: Optional[SyncRecordStore] = None,
        notifier: Optional[FailureNotifier] = None,
    ) -> TransmissionBuilder:
        """Create a builder from configuration."""
        return cls(
            store=store,
            notifier=notifier,
            types=EntityTypes(
                entity_prefix=config.dependency.entity_prefix,
                collection_prefix=config.dependency.collection_prefix,
            ),
            first_match_decides=config.dependency.first_match_decides,
            output_dir=Path(config.transmission.output_dir),
        )

    def new_tracker(self) -> DependencyTracker:
        """Create the dependency tracker for a new pass."""
        return DependencyTracker(self.types, first_match_decides=self.first_match_decides)

    def build_time_window_transmission(self, source: SyncSource) -> SyncTransmission:
        """
        Package everything journaled since the last sync point.

        No filtering or dependency gating is applied. The new sync point is
        computed before reading and committed only after the changeset was
        read, so changes journaled in between are picked up next time.
        """
        last_sync_local = source.get_last_sync_point()
        new_sync_local = source.move_sync_point()

        changeset = get_changeset(source, last_sync_local, new_sync_local)

        transmission = SyncTransmission(source.get_source_uuid(), changeset)
        transmission.create(False)

        source.set_last_sync_point(new_sync_local)
        logger.info(
            "Created time-window transmission %s with %d records (%s -> %s)",
            transmission.uuid,
            transmission.record_count,
            last_sync_local,
            new_sync_local,
        )
        return transmission

    def build_state_based_transmission(
        self,
        source: SyncSource,
        server: Optional[RemoteServer],
        *,
        persist_locally: bool = False,
        request_response: bool = False,
        max_records: Optional[int] = None,
    ) -> Optional[SyncTransmission]:
        """
        Prepare a transmission of the records to be sent to a server.

        Returns:
            The transmission, or None if no server was given.
        """
        result = self.select(
            source,
            server,
            persist_locally=persist_locally,
            request_response=request_response,
            max_records=max_records,
        )
        return result.transmission if result else None

    def select(
        self,
        source: SyncSource,
        server: Optional[RemoteServer],
        *,
        persist_locally: bool = False,
        request_response: bool = False,
        max_records: Optional[int] = None,
    ) -> Optional[SelectionResult]:
        """
        Run one state-based selection pass.

        Records are read in the source's order and classified:

        - failed-and-stopped records are left out and their new identities
          recorded as dependency anchors
        - records the server does not accept become NOT_SUPPOSED_TO_SYNC
        - records already marked DEPENDS_ON_FAILED_AND_STOPPED stay left out
        - records referencing an identity of an earlier stopped record become
          DEPENDS_ON_FAILED_AND_STOPPED
        - everything else is included unchanged

        Args:
            source: Journal to select from.
            server: Destination. Nothing happens if None.
            persist_locally: Also write the transmission to the output directory.
            request_response: Ask the destination to answer with its own transmission.
            max_records: Upper bound on changed (non-deletion) records read.

        Returns:
            SelectionResult, or None if no server was given.
        """
        if server is None:
            return None

        store = self.store if self.store is not None else source
        tracker = self.new_tracker()
        changeset = get_state_based_changeset(source, server, max_records)

        decisions: list[RecordDecision] = []
        first_stopped: Optional[SyncRecord] = None

        for record in changeset:
            location = state_location_for(record, server)
            state = location.state

            if state == SyncRecordState.FAILED_AND_STOPPED:
                if first_stopped is None:
                    first_stopped = record
                tracker.record(record)
                decisions.append(
                    RecordDecision(record, Classification.FAILED_AND_STOPPED, reason="Reached maximum retry count")
                )
                continue

            if not server.should_be_sent_sync_record(record):
                changed = self._restate(store, location, SyncRecordState.NOT_SUPPOSED_TO_SYNC)
                logger.warning(
                    "Not adding record %s to transmission, server is not set to send all of %s to server %s",
                    record.uuid,
                    sorted(record.contained_classes),
                    server.nickname,
                )
                decisions.append(
                    RecordDecision(
                        record,
                        Classification.NOT_SUPPOSED_TO_SYNC,
                        reason=f"Server {server.nickname} does not accept contained classes",
                        state_changed=changed,
                    )
                )
                continue

            if state == SyncRecordState.DEPENDS_ON_FAILED_AND_STOPPED:
                decisions.append(
                    RecordDecision(record, Classification.ALREADY_DEPENDENT, reason="Waiting on a stopped record")
                )
                continue

            if first_stopped is not None and tracker.depends_on_stopped(record):
                changed = self._restate(store, location, SyncRecordState.DEPENDS_ON_FAILED_AND_STOPPED)
                logger.warning(
                    "Not adding record %s to transmission, it depends on items of a failed and stopped record",
                    record.uuid,
                )
                decisions.append(
                    RecordDecision(
                        record,
                        Classification.DEPENDS_ON_FAILED_AND_STOPPED,
                        reason="References an item of a failed and stopped record",
                        state_changed=changed,
                    )
                )
                continue

            decisions.append(RecordDecision(record, Classification.INCLUDED))

        notice_sent = False
        if first_stopped is not None:
            # One notice per pass, about the first stopped record only
            self.notifier.send_failure_notice(
                first_stopped,
                server,
                MaxRetryReachedError(retry_count=first_stopped.retry_count),
            )
            notice_sent = True

        transmission = SyncTransmission(
            source.get_source_uuid(),
            [d.record for d in decisions if d.is_included],
            server.uuid,
        )
        transmission.is_requesting_transmission = request_response
        transmission.create(persist_locally, self.output_dir)

        logger.info(
            "Created transmission %s for %s with %d of %d records",
            transmission.uuid,
            server.nickname,
            transmission.record_count,
            len(changeset),
        )
        return SelectionResult(
            server=server,
            transmission=transmission,
            decisions=decisions,
            first_stopped=first_stopped,
            notice_sent=notice_sent,
        )

    def _restate(self, store: SyncRecordStore, location: StateLocation, state: SyncRecordState) -> bool:
        """Write a destination-scoped state and persist the record if it changed."""
        if not location.set_state(state):
            logger.debug("Record %s has no state for this server, not re-stated", location.record.uuid)
            return False
        store.update_sync_record(location.record)
        return True
