# Codex CLI platform adapter
import copy
import logging
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

import tomli
import tomlkit
from tomlkit.exceptions import TOMLKitError

from mcpbridge.detect import NormalizeReport, get_dialect, normalize_entries
from mcpbridge.errors import ConfigIOError
from mcpbridge.models import AppName, McpServer, PlatformAdapter

logger = logging.getLogger(__name__)

CODEX_TRANSPORT_FIELDS = ("type", "command", "args", "env", "url", "http_headers", "headers")


def _drop_none(value: Any) -> Any:
    # TOML has no null
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_none(v) for v in value if v is not None]
    return value


def server_to_codex_dict(server: McpServer) -> dict[str, Any]:
    """Convert McpServer to a Codex mcp_servers table.

    ABOUTME: stdio entries carry no type; remote entries always carry one
    ABOUTME: headers are written as http_headers
    """
    result = copy.deepcopy(server.server)
    server_type = result.pop("type", "stdio")

    if server_type != "stdio":
        result["type"] = server_type
    if "headers" in result:
        headers = result.pop("headers")
        if headers:
            result["http_headers"] = headers
    for key in ("args", "env"):
        if key in result and not result[key]:
            del result[key]

    return _drop_none(result)


class CodexAdapter(PlatformAdapter):
    """Adapter for Codex CLI (~/.codex/config.toml).

    ABOUTME: Implements PlatformAdapter protocol for Codex CLI
    ABOUTME: Uses snake_case mcp_servers key (not mcpServers)
    ABOUTME: Edits go through tomlkit so comments and layout survive
    """

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize adapter with optional custom config path.

        ABOUTME: Defaults to ~/.codex/config.toml if not provided
        """
        self._config_path = config_path if config_path else Path.home() / ".codex" / "config.toml"

    @property
    def name(self) -> str:
        """Human-readable platform name."""
        return "Codex CLI"

    @property
    def app(self) -> AppName:
        return "codex"

    @property
    def config_path(self) -> Path | None:
        """Path to platform config file."""
        return self._config_path if self._config_path.exists() else None

    def _read(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            with open(self._config_path, "rb") as f:
                return tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {self._config_path}: {e}") from e
        except OSError as e:
            raise ConfigIOError(self._config_path, e) from e

    def _read_document(self) -> tomlkit.TOMLDocument:
        """Read config.toml as a style-preserving tomlkit document.

        ABOUTME: A missing file reads as an empty document
        """
        if not self._config_path.exists():
            return tomlkit.document()

        try:
            return tomlkit.parse(self._config_path.read_text(encoding="utf-8"))
        except TOMLKitError as e:
            raise ValueError(f"Invalid TOML in {self._config_path}: {e}") from e
        except OSError as e:
            raise ConfigIOError(self._config_path, e) from e

    def _write_document(self, doc: tomlkit.TOMLDocument) -> None:
        try:
            self._config_path.write_text(tomlkit.dumps(doc), encoding="utf-8")
        except OSError as e:
            raise ConfigIOError(self._config_path, e) from e
        logger.debug(f"Config written to {self._config_path}")

    def load(self) -> NormalizeReport:
        """Load existing MCP servers from platform config.

        ABOUTME: Returns an empty report if config doesn't exist
        ABOUTME: Parses 'mcp_servers' key from TOML (url without type means sse)
        """
        dialect = get_dialect("codex")
        mcp_servers = self._read().get("mcp_servers")
        if not isinstance(mcp_servers, dict):
            return NormalizeReport(dialect=dialect.name)
        return normalize_entries(dialect, mcp_servers)

    def save(self, servers: dict[str, McpServer]) -> None:
        """Upsert MCP servers into platform config.

        ABOUTME: Existing tables are updated key by key so comments stay put
        ABOUTME: Vendor keys of an existing entry (startup_timeout_sec, ...) survive
        """
        doc = self._read_document()
        mcp_servers = doc.get("mcp_servers")
        created = not isinstance(mcp_servers, MutableMapping)
        if created:
            mcp_servers = tomlkit.table(is_super_table=True)

        for server_id, server in servers.items():
            entry = server_to_codex_dict(server)
            existing = mcp_servers.get(server_id)
            if not isinstance(existing, MutableMapping):
                mcp_servers[server_id] = entry
                continue
            for field in CODEX_TRANSPORT_FIELDS:
                if field in existing and field not in entry:
                    del existing[field]
            for key, value in entry.items():
                # Unchanged values keep their inline comments
                if existing.get(key) != value:
                    existing[key] = value

        if created:
            doc["mcp_servers"] = mcp_servers
        self._write_document(doc)

    def remove(self, server_id: str) -> bool:
        if not self._config_path.exists():
            return False
        doc = self._read_document()
        mcp_servers = doc.get("mcp_servers")
        if not isinstance(mcp_servers, MutableMapping) or server_id not in mcp_servers:
            return False
        del mcp_servers[server_id]
        self._write_document(doc)
        return True
