# journalsync Test Fixtures
# Pytest fixtures for journalsync tests

import logging
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import yaml

from journalsync.sync.record import SyncItem, SyncItemState, SyncRecord, SyncRecordState
from journalsync.sync.server import RemoteServer, ServerRole
from journalsync.sync.source import JournalSyncSource


@pytest.fixture(autouse=True)
def reset_journalsync_logger() -> Generator[None, None, None]:
    """Undo handlers installed by configure_logging so caplog sees records."""
    yield
    logger = logging.getLogger("journalsync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("JOURNALSYNC_CONFIG", raising=False)
    return home


@pytest.fixture
def make_record() -> Callable[..., SyncRecord]:
    """Factory for records with (key, type, content, item state) items."""

    def _make(
        uuid: str,
        *items: tuple[str, str, str] | tuple[str, str, str, SyncItemState],
        state: SyncRecordState = SyncRecordState.NEW,
    ) -> SyncRecord:
        sync_items = []
        for item in items:
            key, contained_type, content = item[:3]
            item_state = item[3] if len(item) > 3 else SyncItemState.NEW
            sync_items.append(SyncItem(key=key, contained_type=contained_type, state=item_state, content=content))
        return SyncRecord(uuid=uuid, items=sync_items, state=state)

    return _make


@pytest.fixture
def parent_server() -> RemoteServer:
    """A parent server that does not accept scheduler classes."""
    return RemoteServer(
        uuid="parent-uuid",
        nickname="parent",
        role=ServerRole.PARENT,
        classes_not_sent=["org.openmrs.scheduler."],
    )


@pytest.fixture
def child_server() -> RemoteServer:
    """A child server; its record state lives in server overrides."""
    return RemoteServer(uuid="child-uuid", nickname="child", role=ServerRole.CHILD)


@pytest.fixture
def journal_path(temp_dir: Path) -> Path:
    """Path of a journal file that does not exist yet."""
    return temp_dir / "journal.yaml"


@pytest.fixture
def journal(journal_path: Path) -> JournalSyncSource:
    """An empty journal."""
    return JournalSyncSource(journal_path, source_uuid="local-uuid")


@pytest.fixture
def sample_config(temp_home: Path, temp_dir: Path) -> dict:
    """Create sample configuration dict."""
    return {
        "source": {
            "uuid": "local-uuid",
            "journal_path": str(temp_dir / "journal.yaml"),
        },
        "servers": {
            "parent": {
                "uuid": "parent-uuid",
                "nickname": "parent",
                "role": "parent",
                "classes_not_sent": ["org.openmrs.scheduler."],
            },
            "clinic": {
                "uuid": "clinic-uuid",
                "nickname": "clinic",
                "role": "child",
                "enabled": False,
            },
        },
        "transmission": {
            "output_dir": str(temp_dir / "transmissions"),
            "max_records": 50,
            "write_file": True,
        },
        "output": {"verbose": False, "colored": False, "log_level": "WARNING"},
    }


@pytest.fixture
def config_file(temp_home: Path, sample_config: dict) -> Path:
    """Create a configuration file."""
    config_dir = temp_home / ".config" / "journalsync"
    config_dir.mkdir(parents=True)
    config_path = config_dir / "config.yaml"

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config, f, default_flow_style=False)

    return config_path
