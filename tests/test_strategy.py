# journalsync Strategy Tests
# Tests for building time-window and state-based transmissions

from unittest.mock import MagicMock

import pytest
from helpers import ENCOUNTER, PATIENT, PERSISTENT_SET, encounter_xml, names_set_xml, patient_xml

from journalsync.config.schema import JournalSyncConfig
from journalsync.errors import MaxRetryReachedError
from journalsync.sync.notify import LoggingFailureNotifier
from journalsync.sync.record import SyncItemState, SyncPoint, SyncRecordState
from journalsync.sync.source import JournalSyncSource, SyncSource
from journalsync.sync.strategy import Classification, TransmissionBuilder

STOPPED = SyncRecordState.FAILED_AND_STOPPED
DEPENDS = SyncRecordState.DEPENDS_ON_FAILED_AND_STOPPED


@pytest.fixture
def notifier():
    return LoggingFailureNotifier()


@pytest.fixture
def builder(notifier, temp_dir):
    return TransmissionBuilder(notifier=notifier, output_dir=temp_dir / "transmissions")


@pytest.fixture
def scenario(journal, make_record):
    """R1 stopped while creating patient u1, R2 references u1, R3 is unrelated."""
    journal.append(make_record("R1", ("u1", PATIENT, patient_xml("u1")), state=STOPPED))
    journal.append(make_record("R2", ("e1", ENCOUNTER, encounter_xml("e1", "u1"))))
    journal.append(make_record("R3", ("u9", PATIENT, patient_xml("u9"))))
    return journal


class TestStateBasedSelection:
    """Tests for TransmissionBuilder.select."""

    def test_dependent_record_is_held_back(self, builder, scenario, parent_server, notifier):
        result = builder.select(scenario, parent_server)

        assert result.transmission.record_uuids == ["R3"]
        assert result.transmission.target_uuid == "parent-uuid"
        assert result.transmission.source_uuid == "local-uuid"
        assert scenario.get_record("R2").state == DEPENDS
        assert scenario.get_record("R1").state == STOPPED

        assert [(n.record_uuid, n.server_nickname) for n in notifier.notices] == [("R1", "parent")]
        assert result.notice_sent
        assert result.first_stopped.uuid == "R1"

    def test_decisions_follow_journal_order(self, builder, scenario, parent_server):
        result = builder.select(scenario, parent_server)

        assert [(d.record.uuid, d.classification) for d in result.decisions] == [
            ("R1", Classification.FAILED_AND_STOPPED),
            ("R2", Classification.DEPENDS_ON_FAILED_AND_STOPPED),
            ("R3", Classification.INCLUDED),
        ]
        assert result.restated == 1
        assert [r.uuid for r in result.included] == ["R3"]
        assert len(result.excluded) == 2

    def test_restated_record_is_persisted(self, builder, scenario, parent_server, journal_path):
        builder.select(scenario, parent_server)

        reloaded = JournalSyncSource(journal_path)
        assert reloaded.get_record("R2").state == DEPENDS

    def test_second_pass_is_idempotent(self, builder, scenario, parent_server, notifier):
        builder.select(scenario, parent_server)
        result = builder.select(scenario, parent_server)

        assert result.transmission.record_uuids == ["R3"]
        assert result.count(Classification.ALREADY_DEPENDENT) == 1
        assert result.restated == 0
        assert scenario.get_record("R2").state == DEPENDS
        assert len(notifier.notices) == 2

    def test_reference_before_stop_is_included(self, builder, journal, make_record, parent_server):
        journal.append(make_record("R2", ("e1", ENCOUNTER, encounter_xml("e1", "u1"))))
        journal.append(make_record("R1", ("u1", PATIENT, patient_xml("u1")), state=STOPPED))

        result = builder.select(journal, parent_server)

        assert result.transmission.record_uuids == ["R2"]
        assert journal.get_record("R2").state == SyncRecordState.NEW

    def test_collection_reference(self, builder, journal, make_record, parent_server):
        journal.append(make_record("R1", ("u1", PATIENT, patient_xml("u1")), state=STOPPED))
        journal.append(make_record("R2", ("s1", PERSISTENT_SET, names_set_xml("u1", "n1"))))

        result = builder.select(journal, parent_server)

        assert result.transmission.record_uuids == []
        assert journal.get_record("R2").state == DEPENDS

    def test_non_text_item_does_not_end_pass(self, builder, journal, make_record, parent_server):
        journal.append(make_record("R1", ("u1", PATIENT, patient_xml("u1")), state=STOPPED))
        dependent = make_record(
            "R2",
            ("x1", ENCOUNTER, "placeholder"),
            ("e1", ENCOUNTER, encounter_xml("e1", "u1")),
        )
        dependent.items[0].content = 12345
        journal.append(dependent)
        journal.append(make_record("R3", ("u9", PATIENT, patient_xml("u9"))))

        result = builder.select(journal, parent_server)

        assert result.transmission.record_uuids == ["R3"]
        assert journal.get_record("R2").state == DEPENDS

        reloaded = JournalSyncSource(journal.journal_path)
        assert reloaded.get_record("R2").items[0].content == "12345"

    def test_no_stopped_records(self, builder, journal, make_record, parent_server, notifier):
        journal.append(make_record("R1", ("u1", PATIENT, patient_xml("u1"))))
        journal.append(make_record("R2", ("e1", ENCOUNTER, encounter_xml("e1", "u1")), state=SyncRecordState.FAILED))

        result = builder.select(journal, parent_server)

        assert result.transmission.record_uuids == ["R1", "R2"]
        assert notifier.notices == []
        assert not result.notice_sent

    def test_one_notice_for_many_stopped(self, builder, journal, make_record, parent_server, notifier):
        first = make_record("R1", ("u1", PATIENT, patient_xml("u1")), state=STOPPED)
        first.retry_count = 5
        journal.append(first)
        journal.append(make_record("R2", ("u2", PATIENT, patient_xml("u2")), state=STOPPED))

        result = builder.select(journal, parent_server)

        assert len(notifier.notices) == 1
        assert notifier.notices[0].record_uuid == "R1"
        assert notifier.notices[0].reason == "Reached maximum retry count"
        assert result.count(Classification.FAILED_AND_STOPPED) == 2

    def test_notice_reason(self, scenario, parent_server):
        notifier = MagicMock()
        first = scenario.get_record("R1")
        first.retry_count = 7

        TransmissionBuilder(notifier=notifier).select(scenario, parent_server)

        notifier.send_failure_notice.assert_called_once()
        record, server, reason = notifier.send_failure_notice.call_args.args
        assert record is first
        assert server is parent_server
        assert isinstance(reason, MaxRetryReachedError)
        assert reason.retry_count == 7

    def test_policy_reject(self, builder, journal, make_record, parent_server):
        journal.append(
            make_record(
                "R1",
                ("u1", PATIENT, patient_xml("u1")),
                ("t1", "org.openmrs.scheduler.TaskDefinition", "<x/>"),
            )
        )
        journal.append(make_record("R2", ("u2", PATIENT, patient_xml("u2"))))

        result = builder.select(journal, parent_server)

        assert result.transmission.record_uuids == ["R2"]
        assert journal.get_record("R1").state == SyncRecordState.NOT_SUPPOSED_TO_SYNC
        assert result.decisions[0].state_changed

        # Not sendable anymore, so the next pass does not see it at all
        again = builder.select(journal, parent_server)
        assert [d.record.uuid for d in again.decisions] == ["R2"]

    def test_policy_reject_logs_warning(self, builder, journal, make_record, parent_server, caplog):
        journal.append(make_record("R1", ("t1", "org.openmrs.scheduler.TaskDefinition", "<x/>")))

        builder.select(journal, parent_server)

        assert "R1" in caplog.text
        assert "org.openmrs.scheduler.TaskDefinition" in caplog.text

    def test_policy_checked_before_dependency(self, builder, journal, make_record, parent_server):
        journal.append(make_record("R1", ("u1", PATIENT, patient_xml("u1")), state=STOPPED))
        journal.append(
            make_record(
                "R2",
                ("e1", ENCOUNTER, encounter_xml("e1", "u1")),
                ("t1", "org.openmrs.scheduler.TaskDefinition", "<x/>"),
            )
        )

        result = builder.select(journal, parent_server)

        assert result.decisions[1].classification == Classification.NOT_SUPPOSED_TO_SYNC
        assert journal.get_record("R2").state == SyncRecordState.NOT_SUPPOSED_TO_SYNC

    def test_stopped_record_rejected_by_policy_stays_stopped(self, builder, journal, make_record, parent_server):
        journal.append(
            make_record("R1", ("t1", "org.openmrs.scheduler.TaskDefinition", "<x/>"), state=STOPPED)
        )

        result = builder.select(journal, parent_server)

        assert result.decisions[0].classification == Classification.FAILED_AND_STOPPED
        assert journal.get_record("R1").state == STOPPED

    def test_already_dependent_without_stop_in_pass(self, builder, journal, make_record, parent_server):
        journal.append(make_record("R1", ("u1", PATIENT, patient_xml("u1")), state=DEPENDS))

        result = builder.select(journal, parent_server)

        assert result.transmission.record_uuids == []
        assert result.decisions[0].classification == Classification.ALREADY_DEPENDENT
        assert not result.decisions[0].state_changed

    def test_deletions_come_first(self, builder, journal, make_record, parent_server):
        journal.append(make_record("R1", ("u1", PATIENT, patient_xml("u1"))))
        journal.append(make_record("R2", ("u0", PATIENT, "", SyncItemState.DELETED)))

        result = builder.select(journal, parent_server)

        assert result.transmission.record_uuids == ["R2", "R1"]

    def test_max_records(self, builder, journal, make_record, parent_server):
        for index in range(5):
            journal.append(make_record(f"R{index}", (f"u{index}", PATIENT, patient_xml(f"u{index}"))))

        result = builder.select(journal, parent_server, max_records=2)

        assert result.transmission.record_uuids == ["R0", "R1"]

    def test_empty_journal(self, builder, journal, parent_server, notifier):
        result = builder.select(journal, parent_server)

        assert result.transmission.record_count == 0
        assert result.transmission.target_uuid == "parent-uuid"
        assert result.decisions == []
        assert notifier.notices == []

    def test_request_response(self, builder, scenario, parent_server):
        result = builder.select(scenario, parent_server, request_response=True)
        assert result.transmission.is_requesting_transmission

    def test_persist_locally(self, builder, scenario, parent_server, temp_dir):
        result = builder.select(scenario, parent_server, persist_locally=True)

        path = result.transmission.file_output
        assert path is not None
        assert path.parent == temp_dir / "transmissions"
        assert path.exists()

    def test_not_persisted_by_default(self, builder, scenario, parent_server, temp_dir):
        result = builder.select(scenario, parent_server)

        assert result.transmission.file_output is None
        assert not (temp_dir / "transmissions").exists()


class TestChildServer:
    """Tests for selection towards a child server."""

    def test_uses_server_record_state(self, builder, journal, make_record, child_server):
        stopped = make_record("R1", ("u1", PATIENT, patient_xml("u1")))
        stopped.add_server_record(child_server.uuid, STOPPED)
        dependent = make_record("R2", ("e1", ENCOUNTER, encounter_xml("e1", "u1")))
        dependent.add_server_record(child_server.uuid, SyncRecordState.NEW)
        journal.append(stopped)
        journal.append(dependent)

        result = builder.select(journal, child_server)

        assert result.transmission.record_uuids == []
        assert dependent.get_server_record(child_server.uuid).state == DEPENDS
        assert dependent.state == SyncRecordState.NEW
        assert stopped.state == SyncRecordState.NEW

    def test_records_committed_for_child_are_not_resent(self, builder, journal, make_record, child_server):
        deletion = make_record("D1", ("u0", PATIENT, "", SyncItemState.DELETED))
        deletion.add_server_record(child_server.uuid, SyncRecordState.COMMITTED)
        changed = make_record("C1", ("u1", PATIENT, patient_xml("u1")))
        changed.add_server_record(child_server.uuid, SyncRecordState.COMMITTED)
        journal.append(deletion)
        journal.append(changed)

        result = builder.select(journal, child_server)

        assert result.transmission.record_uuids == []
        assert result.decisions == []

    def test_records_without_override_are_not_sent(self, builder, journal, make_record, child_server):
        journal.append(make_record("D1", ("u0", PATIENT, "", SyncItemState.DELETED)))
        journal.append(make_record("C1", ("u1", PATIENT, patient_xml("u1"))))

        result = builder.select(journal, child_server)

        assert result.transmission.record_uuids == []

    def test_missing_override_is_not_restated(self, builder, child_server, make_record):
        record = make_record("R1", ("t1", "org.openmrs.scheduler.TaskDefinition", "<x/>"))
        source = MagicMock(spec=SyncSource)
        source.get_deleted_for_server.return_value = []
        source.get_changed_for_server.return_value = [record]
        source.get_source_uuid.return_value = "local-uuid"
        child_server.classes_not_sent = ["org.openmrs.scheduler."]
        store = MagicMock()

        result = TransmissionBuilder(store=store).select(source, child_server)

        assert result.decisions[0].classification == Classification.NOT_SUPPOSED_TO_SYNC
        assert not result.decisions[0].state_changed
        assert record.state == SyncRecordState.NEW
        store.update_sync_record.assert_not_called()


class TestMissingServer:
    """Tests for selection without a destination."""

    def test_returns_none_without_side_effects(self):
        source = MagicMock(spec=SyncSource)
        store = MagicMock()
        notifier = MagicMock()
        builder = TransmissionBuilder(store=store, notifier=notifier)

        assert builder.select(source, None) is None
        assert builder.build_state_based_transmission(source, None) is None

        source.get_deleted.assert_not_called()
        source.get_deleted_for_server.assert_not_called()
        source.get_changed_for_server.assert_not_called()
        store.update_sync_record.assert_not_called()
        notifier.send_failure_notice.assert_not_called()


class TestExternalStore:
    """Tests for persisting re-stated records through a separate store."""

    def test_store_receives_restated_records(self, scenario, parent_server):
        store = MagicMock()
        builder = TransmissionBuilder(store=store)

        builder.select(scenario, parent_server)

        store.update_sync_record.assert_called_once()
        assert store.update_sync_record.call_args.args[0].uuid == "R2"


class TestBuildStateBasedTransmission:
    """Tests for the transmission-only entry point."""

    def test_returns_transmission(self, builder, scenario, parent_server):
        transmission = builder.build_state_based_transmission(scenario, parent_server, max_records=10)

        assert transmission.record_uuids == ["R3"]


class TestTimeWindowTransmission:
    """Tests for TransmissionBuilder.build_time_window_transmission."""

    def test_exports_everything_since_last_point(self, builder, journal, make_record, parent_server):
        journal.append(make_record("R1", ("u1", PATIENT, patient_xml("u1")), state=STOPPED))
        journal.append(make_record("R2", ("e1", ENCOUNTER, encounter_xml("e1", "u1"))))
        journal.append(make_record("R3", ("u0", PATIENT, "", SyncItemState.DELETED)))

        transmission = builder.build_time_window_transmission(journal)

        assert transmission.record_uuids == ["R3", "R1", "R2"]
        assert transmission.target_uuid is None
        assert transmission.file_output is None
        assert journal.get_last_sync_point() == SyncPoint(3)

    def test_second_window_is_empty(self, builder, journal, make_record):
        journal.append(make_record("R1", ("u1", PATIENT, patient_xml("u1"))))
        builder.build_time_window_transmission(journal)

        transmission = builder.build_time_window_transmission(journal)

        assert transmission.record_count == 0
        assert journal.get_last_sync_point() == SyncPoint(1)

    def test_sync_point_committed_after_read(self, builder, make_record):
        source = MagicMock(spec=SyncSource)
        source.get_last_sync_point.return_value = SyncPoint(2)
        source.move_sync_point.return_value = SyncPoint(5)
        source.get_deleted.return_value = []
        source.get_changed.return_value = [make_record("R3", ("u3", PATIENT, patient_xml("u3")))]
        source.get_source_uuid.return_value = "local-uuid"

        transmission = builder.build_time_window_transmission(source)

        assert transmission.record_uuids == ["R3"]
        source.get_changed.assert_called_once_with(SyncPoint(2), SyncPoint(5))
        source.set_last_sync_point.assert_called_once_with(SyncPoint(5))

        names = [call[0] for call in source.method_calls]
        assert names.index("move_sync_point") < names.index("get_changed") < names.index("set_last_sync_point")

    def test_sync_point_not_committed_on_error(self, builder):
        source = MagicMock(spec=SyncSource)
        source.get_last_sync_point.return_value = SyncPoint(0)
        source.move_sync_point.return_value = SyncPoint(1)
        source.get_deleted.side_effect = RuntimeError("journal unavailable")

        with pytest.raises(RuntimeError):
            builder.build_time_window_transmission(source)

        source.set_last_sync_point.assert_not_called()


class TestFromConfig:
    """Tests for TransmissionBuilder.from_config."""

    def test_uses_dependency_settings(self, temp_dir):
        config = JournalSyncConfig.model_validate(
            {
                "source": {"uuid": "local", "journal_path": str(temp_dir / "journal.yaml")},
                "transmission": {"output_dir": str(temp_dir / "out")},
                "dependency": {"entity_prefix": "com.example.", "first_match_decides": True},
            }
        )

        builder = TransmissionBuilder.from_config(config)
        tracker = builder.new_tracker()

        assert builder.output_dir == (temp_dir / "out").resolve()
        assert tracker.types.entity_prefix == "com.example."
        assert tracker.first_match_decides

    def test_new_tracker_per_pass(self, builder):
        assert builder.new_tracker() is not builder.new_tracker()
