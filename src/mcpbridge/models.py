# Core data models for mcpbridge
import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from mcpbridge.detect import NormalizeReport

# ABOUTME: The four client ecosystems a server can be enabled for
AppName = Literal["claude", "codex", "gemini", "opencode"]
APP_NAMES: tuple[AppName, ...] = ("claude", "codex", "gemini", "opencode")

# ABOUTME: Canonical transport types
SERVER_TYPES = ("stdio", "http", "sse")


@dataclass
class McpApps:
    """Per-ecosystem enablement flags.

    ABOUTME: Each flag is toggled independently; absent means disabled
    """
    claude: bool = False
    codex: bool = False
    gemini: bool = False
    opencode: bool = False

    def is_enabled_for(self, app: str) -> bool:
        if app not in APP_NAMES:
            raise ValueError(f"Unknown app '{app}'. Must be one of: {', '.join(APP_NAMES)}")
        return bool(getattr(self, app))

    def set_enabled_for(self, app: str, enabled: bool) -> None:
        if app not in APP_NAMES:
            raise ValueError(f"Unknown app '{app}'. Must be one of: {', '.join(APP_NAMES)}")
        setattr(self, app, enabled)

    def enabled_apps(self) -> list[str]:
        return [app for app in APP_NAMES if getattr(self, app)]

    def to_dict(self) -> dict[str, bool]:
        return {app: getattr(self, app) for app in APP_NAMES}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "McpApps":
        """Build flags from a mapping; unknown keys are ignored."""
        data = data or {}
        return cls(**{app: bool(data.get(app, False)) for app in APP_NAMES})


@dataclass
class McpServer:
    """Canonical, dialect-neutral MCP server record.

    ABOUTME: server holds type plus command/args/env or url/headers
    ABOUTME: server is schema-free so unknown vendor fields ride along
    ABOUTME: tags behave as a set but keep first-seen order
    """
    id: str
    name: str
    server: dict[str, Any]
    apps: McpApps = field(default_factory=McpApps)
    description: str | None = None
    homepage: str | None = None
    docs: str | None = None
    tags: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.tags = list(dict.fromkeys(self.tags))

    @property
    def server_type(self) -> str:
        return str(self.server.get("type", "stdio"))

    def to_dict(self) -> dict[str, Any]:
        """Convert to the canonical wire shape."""
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "server": copy.deepcopy(self.server),
            "apps": self.apps.to_dict(),
        }
        for key in ("description", "homepage", "docs"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        result["tags"] = list(self.tags)
        return result

    @classmethod
    def from_dict(cls, server_id: str, data: dict[str, Any]) -> "McpServer":
        """Parse the canonical wire shape.

        ABOUTME: name defaults to the id when missing

        Raises:
            ValueError: If the server sub-object is missing or not an object
        """
        server = data.get("server")
        if not isinstance(server, dict):
            raise ValueError(f"Server '{server_id}' missing required 'server' object")

        return cls(
            id=server_id,
            name=data.get("name") or server_id,
            server=copy.deepcopy(server),
            apps=McpApps.from_dict(data.get("apps")),
            description=data.get("description"),
            homepage=data.get("homepage"),
            docs=data.get("docs"),
            tags=[str(tag) for tag in data.get("tags") or []],
        )


@dataclass(frozen=True)
class ParsedEntry:
    """One server found by the dialect detector.

    ABOUTME: id is the dialect's own key; name falls back to it
    ABOUTME: Entries from a canonical export also carry their apps and metadata
    """
    id: str
    name: str
    server: dict[str, Any]
    apps: McpApps | None = None
    record: McpServer | None = None

    def to_server(self, apps: McpApps | None = None) -> McpServer:
        """Build a canonical record (no apps enabled, no tags by default).

        ABOUTME: The entry's own apps win; apps passed in only fill a gap
        ABOUTME: description/homepage/docs/tags come through unchanged
        """
        chosen = self.apps if self.apps is not None else apps
        chosen = copy.deepcopy(chosen) if chosen is not None else McpApps()

        if self.record is None:
            return McpServer(
                id=self.id,
                name=self.name,
                server=copy.deepcopy(self.server),
                apps=chosen,
            )

        return McpServer(
            id=self.id,
            name=self.name,
            server=copy.deepcopy(self.server),
            apps=chosen,
            description=self.record.description,
            homepage=self.record.homepage,
            docs=self.record.docs,
            tags=list(self.record.tags),
        )


@runtime_checkable
class PlatformAdapter(Protocol):
    """Protocol for ecosystem-specific config adapters.

    ABOUTME: Defines interface all platform adapters must implement
    ABOUTME: Uses @runtime_checkable for isinstance() support
    """

    @property
    def name(self) -> str:
        """Human-readable platform name."""
        ...

    @property
    def app(self) -> AppName:
        """Ecosystem key used in McpApps."""
        ...

    @property
    def config_path(self) -> Path | None:
        """Path to platform config file, or None if not found."""
        ...

    def load(self) -> "NormalizeReport":
        """Load MCP servers from the platform config as canonical entries."""
        ...

    def save(self, servers: dict[str, McpServer]) -> None:
        """Upsert canonical servers into the platform config."""
        ...

    def remove(self, server_id: str) -> bool:
        """Remove one server from the platform config."""
        ...
