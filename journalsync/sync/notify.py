# JournalSync Failure Notices
# Diagnostic sink for records that have stopped retrying

import logging
from dataclasses import dataclass, field
from typing import Protocol

from journalsync.sync.record import SyncRecord
from journalsync.sync.server import RemoteServer

logger = logging.getLogger(__name__)


class FailureNotifier(Protocol):
    """Receives one notice per selection pass that met a stopped record."""

    def send_failure_notice(self, record: SyncRecord, server: RemoteServer, reason: Exception) -> None: ...


@dataclass
class FailureNotice:
    """A notice that was sent."""

    record_uuid: str
    server_nickname: str
    reason: str


@dataclass
class LoggingFailureNotifier:
    """Logs failure notices and keeps the most recent ``max_notices`` for inspection."""

    notices: list[FailureNotice] = field(default_factory=list)
    max_notices: int = 100

    def send_failure_notice(self, record: SyncRecord, server: RemoteServer, reason: Exception) -> None:
        notice = FailureNotice(record_uuid=record.uuid, server_nickname=server.nickname, reason=str(reason))
        self.notices.append(notice)
        if len(self.notices) > self.max_notices:
            del self.notices[: len(self.notices) - self.max_notices]
        logger.error(
            "Sync record %s to server %s stopped: %s (retries: %d)",
            record.uuid,
            server.nickname,
            reason,
            record.retry_count,
        )
