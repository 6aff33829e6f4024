# JournalSync Console Output
# Rich-based console output for selection passes and journal status

from collections import Counter
from dataclasses import dataclass
from typing import Optional

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

from journalsync.sync.notify import LoggingFailureNotifier
from journalsync.sync.record import SyncRecord, SyncRecordState
from journalsync.sync.server import RemoteServer, state_location_for
from journalsync.sync.strategy import Classification, SelectionResult
from journalsync.sync.transmission import SyncTransmission


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for transmissions and journal state.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True, console: Optional[RichConsole] = None):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
            console: Existing Rich console to write to.
        """
        self.verbose = verbose
        self._console = console or RichConsole(force_terminal=colored, no_color=not colored)

    @property
    def rich(self) -> RichConsole:
        """Underlying Rich console."""
        return self._console

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(f"[yellow]Warning:[/yellow] {message}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{message}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{message}[/blue]")

    def _get_classification_icon(self, classification: Classification) -> str:
        """Get icon for a classification."""
        icons = {
            Classification.INCLUDED: "[green]✓[/green]",
            Classification.FAILED_AND_STOPPED: "[red]✗[/red]",
            Classification.NOT_SUPPOSED_TO_SYNC: "[dim]○[/dim]",
            Classification.DEPENDS_ON_FAILED_AND_STOPPED: "[yellow]![/yellow]",
            Classification.ALREADY_DEPENDENT: "[yellow]…[/yellow]",
        }
        return icons.get(classification, "?")

    def print_selection(self, result: SelectionResult) -> None:
        """
        Print the classification of every record in a selection pass.

        Included records are listed only in verbose mode.
        """
        table = Table(title=f"Records for {result.server.nickname}", show_header=True, header_style="bold")
        table.add_column("", justify="center")
        table.add_column("Record", style="cyan")
        table.add_column("Classes", style="magenta")
        table.add_column("Decision")
        table.add_column("Reason", style="dim")

        rows = 0
        for decision in result.decisions:
            if decision.is_included and not self.verbose:
                continue
            classes = ", ".join(sorted(decision.record.contained_classes)) or "-"
            decision_text = decision.classification.value.replace("_", " ")
            if decision.state_changed:
                decision_text += " [dim](re-stated)[/dim]"
            table.add_row(
                self._get_classification_icon(decision.classification),
                decision.record.uuid,
                classes,
                decision_text,
                decision.reason,
            )
            rows += 1

        if rows:
            self._console.print()
            self._console.print(table)

        self.print_selection_summary(result)

    def print_selection_summary(self, result: SelectionResult) -> None:
        """Print summary panel for a selection pass."""
        transmission = result.transmission
        stopped = result.count(Classification.FAILED_AND_STOPPED)
        dependent = result.count(Classification.DEPENDS_ON_FAILED_AND_STOPPED) + result.count(
            Classification.ALREADY_DEPENDENT
        )
        lines = [
            f"Transmission: {transmission.uuid}",
            f"Records: {transmission.record_count} included, {len(result.excluded)} excluded",
            f"  failed and stopped: {stopped}",
            f"  not supposed to sync: {result.count(Classification.NOT_SUPPOSED_TO_SYNC)}",
            f"  depends on failed and stopped: {dependent}",
        ]
        if transmission.file_output:
            lines.append(f"File: {transmission.file_output}")
        if result.first_stopped is not None:
            lines.append(f"[red]Failure notice sent for {result.first_stopped.uuid}[/red]")

        self._console.print()
        self._console.print(
            Panel(
                "\n".join(lines),
                title=f"Export to {result.server.nickname}",
                border_style="yellow" if stopped else "green",
            )
        )

    def print_transmission(self, transmission: SyncTransmission) -> None:
        """Print a transmission summary."""
        lines = [
            f"Transmission: {transmission.uuid}",
            f"Source: {transmission.source_uuid}",
            f"Records: {transmission.record_count}",
        ]
        if transmission.target_uuid:
            lines.insert(2, f"Target: {transmission.target_uuid}")
        if transmission.file_output:
            lines.append(f"File: {transmission.file_output}")
        if self.verbose:
            for record in transmission.records:
                lines.append(f"  • {record.uuid}")

        self._console.print(Panel("\n".join(lines), title="Transmission", border_style="green"))

    def print_journal_status(self, records: list[SyncRecord], server: Optional[RemoteServer] = None) -> None:
        """
        Print record counts per state.

        Args:
            records: Journal records.
            server: If given, count the state as seen by this server.
        """
        if not records:
            self._console.print("[dim]Journal is empty[/dim]")
            return

        counts: Counter[str] = Counter()
        for record in records:
            state = state_location_for(record, server).state if server else record.state
            counts[state.value if state else "no state"] += 1

        title = f"Journal status for {server.nickname}" if server else "Journal status"
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("State")
        table.add_column("Records", justify="right")

        for state in SyncRecordState:
            if counts.get(state.value):
                style = "red" if state == SyncRecordState.FAILED_AND_STOPPED else ""
                table.add_row(f"[{style}]{state.value}[/{style}]" if style else state.value, str(counts[state.value]))
        if counts.get("no state"):
            table.add_row("[dim]no state[/dim]", str(counts["no state"]))

        self._console.print()
        self._console.print(table)

    def print_servers(self, servers: dict[str, dict]) -> None:
        """
        Print configured servers.

        Args:
            servers: Dict of server key to info dict with keys:
                     uuid, nickname, role, enabled.
        """
        table = Table(show_header=True, header_style="bold")
        table.add_column("Server")
        table.add_column("Nickname", style="cyan")
        table.add_column("Role")
        table.add_column("Status")
        table.add_column("UUID", style="dim")

        for name, info in sorted(servers.items()):
            status = "[green]enabled[/green]" if info.get("enabled", True) else "[dim]disabled[/dim]"
            table.add_row(name, info.get("nickname", ""), info.get("role", ""), status, info.get("uuid", ""))

        self._console.print(table)


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)


@dataclass
class ConsoleFailureNotifier(LoggingFailureNotifier):
    """Logs failure notices and also shows them on the console."""

    console: Optional[Console] = None

    def send_failure_notice(self, record: SyncRecord, server: RemoteServer, reason: Exception) -> None:
        super().send_failure_notice(record, server, reason)
        if self.console is not None:
            self.console.print_error(f"Record {record.uuid} stopped for {server.nickname}: {reason}")
