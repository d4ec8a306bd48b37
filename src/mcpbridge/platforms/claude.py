# Claude Code platform adapter
import logging
from pathlib import Path

from mcpbridge.detect import NormalizeReport, get_dialect
from mcpbridge.editor import remove_property
from mcpbridge.models import AppName, McpServer, PlatformAdapter
from mcpbridge.platforms.base import TRANSPORT_FIELDS, load_section, server_to_dict, upsert_entries

logger = logging.getLogger(__name__)


class ClaudeAdapter(PlatformAdapter):
    """Adapter for Claude Code (~/.claude.json).

    ABOUTME: Implements PlatformAdapter protocol for Claude Code
    ABOUTME: Canonical specs are stored as-is under 'mcpServers'
    """

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize adapter with optional custom config path.

        ABOUTME: Defaults to ~/.claude.json if not provided
        """
        self._config_path = config_path if config_path else Path.home() / ".claude.json"

    @property
    def name(self) -> str:
        """Human-readable platform name."""
        return "Claude Code"

    @property
    def app(self) -> AppName:
        return "claude"

    @property
    def config_path(self) -> Path | None:
        """Path to platform config file."""
        return self._config_path if self._config_path.exists() else None

    def load(self) -> NormalizeReport:
        """Load existing MCP servers from platform config.

        ABOUTME: Returns an empty report if config doesn't exist
        ABOUTME: Parses 'mcpServers' key (url without type means http)
        """
        return load_section(self._config_path, "mcpServers", get_dialect("mcpServers"))

    def save(self, servers: dict[str, McpServer]) -> None:
        """Upsert MCP servers into platform config.

        ABOUTME: Other settings, other servers and comments are left alone
        """
        entries = {server_id: server_to_dict(server) for server_id, server in servers.items()}
        upsert_entries(self._config_path, "mcpServers", entries, TRANSPORT_FIELDS)
        logger.debug(f"Saved {len(entries)} server(s) to {self._config_path}")

    def remove(self, server_id: str) -> bool:
        return remove_property(self._config_path, "mcpServers", server_id)
