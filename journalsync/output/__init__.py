# JournalSync Output Module
# Rich console output

from journalsync.output.console import Console, ConsoleFailureNotifier, create_console

__all__ = [
    "Console",
    "ConsoleFailureNotifier",
    "create_console",
]
