"""Click-based CLI for journalsync - journal-based one-way replication."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console as RichConsole
from rich.syntax import Syntax

from journalsync import __version__
from journalsync.config import (
    JournalSyncConfig,
    ensure_config_exists,
    get_config_path,
    load_config,
    validate_config_file,
)
from journalsync.errors import JournalSyncError
from journalsync.log import configure_logging
from journalsync.output import Console, ConsoleFailureNotifier, create_console
from journalsync.sync.source import JournalSyncSource
from journalsync.sync.strategy import TransmissionBuilder


def _load_config_or_exit(console: Console) -> JournalSyncConfig:
    """Load configuration, printing the error and exiting on failure."""
    try:
        config = load_config()
    except FileNotFoundError as e:
        console.print_error(str(e))
        sys.exit(1)
    except ValidationError as e:
        console.print_error(f"Invalid configuration: {e}")
        sys.exit(1)

    log_file = Path(config.output.log_file) if config.output.log_file else None
    configure_logging(config.output.log_level.value, log_file=log_file, console=RichConsole(stderr=True))
    return config


def _open_source(config: JournalSyncConfig) -> JournalSyncSource:
    return JournalSyncSource(Path(config.source.journal_path), config.source.uuid)


@click.group()
@click.version_option(version=__version__, prog_name="journalsync")
def cli() -> None:
    """journalsync - one-way replication of journaled changes.

    Builds transmissions of local change records for remote servers. Records
    that failed permanently are held back together with every record that
    depends on them.

    \b
    Workflows:
      export         Build a transmission for one server (state based)
      export-window  Export everything since the last sync point
      status         Show journal records per state
    """
    pass


@cli.command()
@click.option("--server", "-s", "server_name", required=True, help="Server key or nickname")
@click.option("--max-records", "-m", type=click.IntRange(min=0), default=None, help="Limit changed records")
@click.option("--write-file/--no-write-file", default=None, help="Write the transmission to the output directory")
@click.option("--request-response/--no-request-response", default=None, help="Ask the server to answer")
@click.option("--verbose", "-v", is_flag=True, help="List included records too")
def export(
    server_name: str,
    max_records: Optional[int],
    write_file: Optional[bool],
    request_response: Optional[bool],
    verbose: bool,
) -> None:
    """Build a transmission of pending records for a server.

    Failed-and-stopped records are never sent. Records the server does not
    accept are marked not_supposed_to_sync, and records referencing an item
    of a stopped record are marked depends_on_failed_and_stopped.

    \b
    Examples:
        journalsync export -s parent
        journalsync export -s parent -m 10 --no-write-file
    """
    console = create_console(verbose=verbose)
    config = _load_config_or_exit(console)
    console = create_console(verbose=verbose or config.output.verbose, colored=config.output.colored)

    server = config.to_remote_server(server_name)
    if server is None:
        console.print_error(f"Server '{server_name}' not found in configuration")
        sys.exit(1)

    server_config = config.get_server(server_name)
    if server_config is not None and not server_config.enabled:
        console.print_warning(f"Server '{server_name}' is disabled")
        sys.exit(1)

    settings = config.transmission
    builder = TransmissionBuilder.from_config(config, notifier=ConsoleFailureNotifier(console=console))

    try:
        result = builder.select(
            _open_source(config),
            server,
            persist_locally=settings.write_file if write_file is None else write_file,
            request_response=settings.request_response if request_response is None else request_response,
            max_records=settings.max_records if max_records is None else max_records,
        )
    except JournalSyncError as e:
        console.print_error(e.message)
        sys.exit(1)

    console.print_selection(result)


@cli.command("export-window")
@click.option("--verbose", "-v", is_flag=True, help="List included records")
def export_window(verbose: bool) -> None:
    """Export every record journaled since the last sync point.

    No filtering is applied. The sync point moves forward afterwards.
    """
    console = create_console(verbose=verbose)
    config = _load_config_or_exit(console)
    console = create_console(verbose=verbose or config.output.verbose, colored=config.output.colored)

    builder = TransmissionBuilder.from_config(config)
    try:
        transmission = builder.build_time_window_transmission(_open_source(config))
    except JournalSyncError as e:
        console.print_error(e.message)
        sys.exit(1)

    console.print_transmission(transmission)


@cli.command()
@click.option("--server", "-s", "server_name", default=None, help="Show states as seen by this server")
def status(server_name: Optional[str]) -> None:
    """Show journal records per state.

    \b
    Examples:
        journalsync status
        journalsync status -s parent
    """
    console = create_console()
    config = _load_config_or_exit(console)
    console = create_console(verbose=config.output.verbose, colored=config.output.colored)

    server = None
    if server_name:
        server = config.to_remote_server(server_name)
        if server is None:
            console.print_error(f"Server '{server_name}' not found in configuration")
            sys.exit(1)

    try:
        records = _open_source(config).records
    except JournalSyncError as e:
        console.print_error(e.message)
        sys.exit(1)

    console.print_journal_status(records, server)


@cli.command()
def servers() -> None:
    """List configured servers."""
    console = create_console()
    config = _load_config_or_exit(console)
    console = create_console(colored=config.output.colored)

    if not config.servers:
        console.print_warning("No servers configured")
        return

    console.print_servers(
        {
            name: {
                "uuid": server.uuid,
                "nickname": server.nickname or name,
                "role": server.role.value,
                "enabled": server.enabled,
            }
            for name, server in config.servers.items()
        }
    )


@cli.group()
def config() -> None:
    """Configuration management.

    \b
    Config file: ~/.config/journalsync/config.yaml (override with JOURNALSYNC_CONFIG)
    Key settings: source.uuid, source.journal_path, servers, transmission.max_records
    """
    pass


@config.command("init")
def config_init() -> None:
    """Create a default configuration file."""
    console = create_console()
    config_path, created = ensure_config_exists()
    if created:
        console.print_success(f"Created configuration: {config_path}")
    else:
        console.print_info(f"Configuration already exists: {config_path}")


@config.command("show")
def config_show() -> None:
    """Show the configuration file."""
    console = create_console()
    config_path = get_config_path()
    if not config_path.exists():
        console.print_warning(f"Configuration file not found: {config_path}")
        return

    content = config_path.read_text(encoding="utf-8")
    console.print(Syntax(content, "yaml", theme="ansi_dark"))


@config.command("validate")
def config_validate() -> None:
    """Validate the configuration file."""
    console = create_console()
    is_valid, errors = validate_config_file()
    if is_valid:
        console.print_success("Configuration is valid")
        return

    console.print_error(f"Configuration has {len(errors)} errors:")
    for error in errors:
        console.print(f"  • {error}")
    sys.exit(1)


@config.command("path")
def config_path() -> None:
    """Print the configuration file path."""
    click.echo(str(get_config_path()))


if __name__ == "__main__":
    cli()
