# JournalSync Errors
# Exception hierarchy shared by the selection core and its collaborators


class JournalSyncError(Exception):
    """Base exception for journalsync errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SyncSourceError(JournalSyncError):
    """Exception raised when the journal cannot be read or written."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class MalformedContentError(JournalSyncError):
    """Exception raised when a sync item's serialized content cannot be parsed."""

    def __init__(self, message: str, content: str = ""):
        self.content = content
        super().__init__(message)


class MaxRetryReachedError(JournalSyncError):
    """Reason attached to failure notices for records that stopped retrying."""

    def __init__(self, message: str = "Reached maximum retry count", retry_count: int | None = None):
        self.retry_count = retry_count
        super().__init__(message)
