# JournalSync Configuration Schema
# Pydantic models for YAML configuration validation

from enum import Enum
from pydantic import BaseModel, Field, field_validator

from journalsync.sync.record import DEFAULT_COLLECTION_PREFIX, DEFAULT_ENTITY_PREFIX
from journalsync.sync.server import RemoteServer, ServerRole
from journalsync.utils.paths import expand_path


class LogLevel(str, Enum):
    """Log level for the journalsync logger."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class SourceConfig(BaseModel):
    """Local server and journal settings."""

    uuid: str = Field(description="Identifier of the local server")
    journal_path: str = Field(description="Path to the YAML journal file")

    @field_validator("journal_path")
    @classmethod
    def expand_journal_path(cls, v: str) -> str:
        """Expand ~ and environment variables in path."""
        return str(expand_path(v))


class ServerConfig(BaseModel):
    """Configuration for a single remote destination."""

    uuid: str = Field(description="Identifier of the remote server")
    nickname: str = Field(default="", description="Human-readable server name")
    role: ServerRole = Field(default=ServerRole.PARENT, description="Role relative to the local server")
    enabled: bool = Field(default=True, description="Whether transmissions may be built for this server")
    classes_not_sent: list[str] = Field(
        default_factory=list, description="Type name prefixes never sent to this server"
    )


class TransmissionConfig(BaseModel):
    """Transmission building settings."""

    output_dir: str = Field(
        default="~/.config/journalsync/transmissions", description="Directory for materialized transmissions"
    )
    max_records: int | None = Field(default=50, ge=0, description="Maximum changed records per transmission")
    request_response: bool = Field(default=False, description="Ask the peer to answer with its own transmission")
    write_file: bool = Field(default=True, description="Write transmissions to output_dir")

    @field_validator("output_dir")
    @classmethod
    def expand_output_dir(cls, v: str) -> str:
        """Expand ~ and environment variables in path."""
        return str(expand_path(v))


class DependencyConfig(BaseModel):
    """Dependency gating settings."""

    entity_prefix: str = Field(default=DEFAULT_ENTITY_PREFIX, description="Prefix of application entity types")
    collection_prefix: str = Field(
        default=DEFAULT_COLLECTION_PREFIX, description="Prefix of collection wrapper types"
    )
    first_match_decides: bool = Field(
        default=False,
        description="Let the first tracked entity type in an item decide, even when its identity differs",
    )


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")
    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Log level")
    log_file: str | None = Field(default=None, description="Path to log file")

    @field_validator("log_file")
    @classmethod
    def expand_optional_path(cls, v: str | None) -> str | None:
        """Expand ~ and environment variables in optional path."""
        if v is None:
            return None
        return str(expand_path(v))


class JournalSyncConfig(BaseModel):
    """Root configuration model for journalsync."""

    source: SourceConfig = Field(description="Local server settings")
    servers: dict[str, ServerConfig] = Field(default_factory=dict, description="Remote destinations")
    transmission: TransmissionConfig = Field(default_factory=TransmissionConfig, description="Transmission settings")
    dependency: DependencyConfig = Field(default_factory=DependencyConfig, description="Dependency gating settings")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")

    def get_enabled_servers(self) -> dict[str, ServerConfig]:
        """Return only enabled servers."""
        return {name: server for name, server in self.servers.items() if server.enabled}

    def get_server(self, name: str) -> ServerConfig | None:
        """Get a server by key or nickname."""
        if name in self.servers:
            return self.servers[name]
        for server in self.servers.values():
            if server.nickname == name:
                return server
        return None

    def to_remote_server(self, name: str) -> RemoteServer | None:
        """Build the RemoteServer for a configured destination."""
        server = self.get_server(name)
        if server is None:
            return None
        return RemoteServer(
            uuid=server.uuid,
            nickname=server.nickname or name,
            role=server.role,
            classes_not_sent=list(server.classes_not_sent),
        )
