# Gemini CLI platform adapter
import copy
import logging
from pathlib import Path
from typing import Any

from mcpbridge.detect import Dialect, NormalizeReport, convert_standard_entry
from mcpbridge.editor import remove_property
from mcpbridge.models import AppName, McpServer, PlatformAdapter
from mcpbridge.platforms.base import load_section, upsert_entries

logger = logging.getLogger(__name__)

# ABOUTME: Gemini has no 'type' field; the URL key carries the transport
GEMINI_TRANSPORT_FIELDS = ("type", "command", "args", "env", "url", "httpUrl", "headers")


def convert_gemini_entry(spec: dict[str, Any]) -> dict[str, Any]:
    """Convert a Gemini entry to a canonical spec.

    ABOUTME: httpUrl means streamable http, a plain url means sse
    """
    server = copy.deepcopy(spec)
    if "type" not in server:
        if "httpUrl" in server:
            server["type"] = "http"
            server["url"] = server.pop("httpUrl")
        elif "url" in server:
            server["type"] = "sse"
    return convert_standard_entry(server)


GEMINI_DIALECT = Dialect("gemini", lambda document: document, convert_gemini_entry)


def server_to_gemini_dict(server: McpServer) -> dict[str, Any]:
    """Convert McpServer to Gemini settings format.

    ABOUTME: http is written as httpUrl, sse as url
    ABOUTME: Unknown types are written as-is (type included)
    """
    result = copy.deepcopy(server.server)
    server_type = result.pop("type", "stdio")

    if server_type == "http":
        result["httpUrl"] = result.pop("url", "")
    elif server_type not in ("stdio", "sse"):
        result["type"] = server_type

    for key in ("args", "env", "headers"):
        if key in result and not result[key]:
            del result[key]
    return result


class GeminiAdapter(PlatformAdapter):
    """Adapter for Gemini CLI (~/.gemini/settings.json).

    ABOUTME: Implements PlatformAdapter protocol for Gemini CLI
    ABOUTME: Preserves other settings like selectedAuthType, theme
    """

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize adapter with optional custom config path.

        ABOUTME: Defaults to ~/.gemini/settings.json if not provided
        """
        if config_path:
            self._config_path = config_path
        else:
            self._config_path = Path.home() / ".gemini" / "settings.json"

    @property
    def name(self) -> str:
        """Human-readable platform name."""
        return "Gemini CLI"

    @property
    def app(self) -> AppName:
        return "gemini"

    @property
    def config_path(self) -> Path | None:
        """Path to platform config file."""
        return self._config_path if self._config_path.exists() else None

    def load(self) -> NormalizeReport:
        """Load existing MCP servers from platform config.

        ABOUTME: Returns an empty report if config doesn't exist
        ABOUTME: Parses 'mcpServers' key from JSON
        """
        return load_section(self._config_path, "mcpServers", GEMINI_DIALECT)

    def save(self, servers: dict[str, McpServer]) -> None:
        """Upsert MCP servers into platform config.

        ABOUTME: Preserves other settings (selectedAuthType, theme, etc.)
        """
        entries = {server_id: server_to_gemini_dict(server) for server_id, server in servers.items()}
        upsert_entries(self._config_path, "mcpServers", entries, GEMINI_TRANSPORT_FIELDS)
        logger.debug(f"Saved {len(entries)} server(s) to {self._config_path}")

    def remove(self, server_id: str) -> bool:
        return remove_property(self._config_path, "mcpServers", server_id)
