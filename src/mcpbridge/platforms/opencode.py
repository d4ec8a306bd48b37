# OpenCode platform adapter
import copy
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from mcpbridge import plugins
from mcpbridge.cst import CstRoot
from mcpbridge.detect import NormalizeReport, get_dialect, normalize_entries
from mcpbridge.editor import edit_document
from mcpbridge.models import AppName, McpServer, PlatformAdapter
from mcpbridge.platforms.base import merge_entries
from mcpbridge.utils.jsonc import read_jsonc_file

logger = logging.getLogger(__name__)

# ABOUTME: Environment variable overriding the OpenCode config directory
OPENCODE_DIR_ENV_VAR = "MCPBRIDGE_OPENCODE_DIR"

OPENCODE_SCHEMA_URL = "https://opencode.ai/config.json"

OPENCODE_TRANSPORT_FIELDS = ("type", "command", "environment", "url", "headers")


def get_opencode_dir() -> Path:
    """Return the OpenCode config directory.

    ABOUTME: Honors $MCPBRIDGE_OPENCODE_DIR, falls back to ~/.config/opencode
    """
    override = os.environ.get(OPENCODE_DIR_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "opencode"


def get_opencode_config_path(config_dir: Path | None = None) -> Path:
    """Return opencode.jsonc if it exists, else opencode.json."""
    config_dir = config_dir if config_dir else get_opencode_dir()
    jsonc_path = config_dir / "opencode.jsonc"
    return jsonc_path if jsonc_path.exists() else config_dir / "opencode.json"


def server_to_opencode_dict(server: McpServer) -> dict[str, Any]:
    """Convert McpServer to an OpenCode mcp entry.

    ABOUTME: stdio -> local with command as one list, env -> environment
    ABOUTME: http and sse -> remote
    ABOUTME: Written entries are always enabled
    """
    spec = server.server
    server_type = server.server_type

    if server_type == "stdio":
        result: dict[str, Any] = {
            "type": "local",
            "command": [spec.get("command", "")] + list(spec.get("args", [])),
        }
        if spec.get("env"):
            result["environment"] = copy.deepcopy(spec["env"])
    elif server_type in ("http", "sse"):
        result = {"type": "remote", "url": spec.get("url", "")}
        if spec.get("headers"):
            result["headers"] = copy.deepcopy(spec["headers"])
    else:
        result = copy.deepcopy(spec)

    result["enabled"] = True
    return result


class OpenCodeAdapter(PlatformAdapter):
    """Adapter for OpenCode (~/.config/opencode/opencode.jsonc or opencode.json).

    ABOUTME: Implements PlatformAdapter protocol for OpenCode
    ABOUTME: Also edits the provider map and plugin list of the same file
    ABOUTME: Every edit goes through the CST so user comments survive
    """

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize adapter with optional custom config path.

        ABOUTME: Without one, the path is resolved on every call
        ABOUTME: (a .jsonc file created later takes over from .json)
        """
        self._explicit_path = config_path

    @property
    def name(self) -> str:
        """Human-readable platform name."""
        return "OpenCode"

    @property
    def app(self) -> AppName:
        return "opencode"

    @property
    def _path(self) -> Path:
        return self._explicit_path if self._explicit_path else get_opencode_config_path()

    @property
    def config_path(self) -> Path | None:
        """Path to platform config file."""
        path = self._path
        return path if path.exists() else None

    def read_config(self) -> dict[str, Any]:
        """Read the whole config as plain values (comments stripped).

        ABOUTME: A missing file reads as a config holding only $schema
        """
        data = read_jsonc_file(self._path, default={"$schema": OPENCODE_SCHEMA_URL})
        if not isinstance(data, dict):
            raise ValueError(f"OpenCode config {self._path} must contain a JSON object")
        return data

    @contextmanager
    def _edit(self) -> Iterator[CstRoot]:
        path = self._path
        seed = not path.exists()
        with edit_document(path) as root:
            if seed:
                root.object_value_or_set().set("$schema", OPENCODE_SCHEMA_URL)
            yield root

    def load(self) -> NormalizeReport:
        """Load existing MCP servers from platform config.

        ABOUTME: Entries live directly under 'mcp' (local/remote)
        """
        dialect = get_dialect("opencode")
        mcp = self.read_config().get("mcp")
        if not isinstance(mcp, dict):
            return NormalizeReport(dialect=dialect.name)
        return normalize_entries(dialect, mcp)

    def save(self, servers: dict[str, McpServer]) -> None:
        """Upsert MCP servers into the 'mcp' section."""
        entries = {server_id: server_to_opencode_dict(server) for server_id, server in servers.items()}
        with self._edit() as root:
            merge_entries(root.ensure_object_at("mcp"), entries, OPENCODE_TRANSPORT_FIELDS)
        logger.debug(f"Saved {len(entries)} server(s) to {self._path}")

    def remove(self, server_id: str) -> bool:
        if not self._path.exists():
            return False
        with self._edit() as root:
            mcp = root.object_at("mcp")
            return mcp is not None and mcp.remove(server_id)

    def get_providers(self) -> dict[str, Any]:
        providers = self.read_config().get("provider")
        return providers if isinstance(providers, dict) else {}

    def set_provider(self, provider_id: str, config: Any) -> None:
        """Set provider.<id>, replacing any previous value in place."""
        with self._edit() as root:
            root.ensure_object_at("provider").set(provider_id, config)

    def remove_provider(self, provider_id: str) -> bool:
        if not self._path.exists():
            return False
        with self._edit() as root:
            providers = root.object_at("provider")
            return providers is not None and providers.remove(provider_id)

    def add_plugin(self, plugin_name: str) -> bool:
        """Add a plugin, dropping members of conflicting plugin families.

        Returns:
            True if the plugin was appended, False if it was already listed
        """
        with self._edit() as root:
            added = plugins.add_entry(root.ensure_array_at("plugin"), plugin_name)
        if added:
            logger.info(f"Added plugin '{plugin_name}'")
        return added

    def remove_plugin_by_prefix(self, prefix: str) -> int:
        """Remove every plugin named prefix or prefix plus a suffix segment.

        ABOUTME: The 'plugin' key itself goes away once the list is empty

        Returns:
            Number of plugins removed
        """
        if not self._path.exists():
            return 0
        with self._edit() as root:
            plugin_list = root.array_at("plugin")
            removed = plugins.remove_entries_by_prefix(plugin_list, prefix) if plugin_list is not None else 0
        logger.info(f"Removed {removed} plugin(s) matching '{prefix}'")
        return removed
