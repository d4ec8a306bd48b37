# Configuration paths and the canonical server store for mcpbridge
import json
import os
from pathlib import Path
from typing import Any

from mcpbridge.errors import ConfigIOError
from mcpbridge.models import McpServer
from mcpbridge.utils.jsonc import read_jsonc_file

# ABOUTME: Environment variable overriding the mcpbridge home directory
HOME_ENV_VAR = "MCPBRIDGE_HOME"

# ABOUTME: Default config directory in user's home
CONFIG_DIR = Path.home() / ".mcpbridge"

# ABOUTME: Canonical server store (JSON map of id -> canonical entry)
SERVERS_FILENAME = "servers.json"


def get_config_dir() -> Path:
    """Return the mcpbridge config directory.

    ABOUTME: Honors $MCPBRIDGE_HOME, falls back to ~/.mcpbridge
    """
    override = os.environ.get(HOME_ENV_VAR)
    return Path(override).expanduser() if override else CONFIG_DIR


def get_servers_path() -> Path:
    """Return the path to the canonical server store.

    ABOUTME: File may not exist yet - use ensure_config_dir() first
    """
    return get_config_dir() / SERVERS_FILENAME


def ensure_config_dir() -> Path:
    """Create config directory if it doesn't exist.

    Returns:
        Path to config directory (guaranteed to exist)
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def load_servers(path: Path) -> dict[str, McpServer]:
    """Load the canonical server collection.

    ABOUTME: Returns an empty collection if the file doesn't exist
    ABOUTME: Fail-fast: this is our own file, so malformed entries are errors
    ABOUTME: Insertion order of the file is kept

    Args:
        path: Path to servers.json

    Returns:
        Ordered dict of id -> McpServer

    Raises:
        ParseError: If JSON syntax is invalid
        ValueError: If the root or an entry has the wrong shape
    """
    data = read_jsonc_file(path)

    if not isinstance(data, dict):
        raise ValueError(f"Server store {path} must contain a JSON object")

    servers: dict[str, McpServer] = {}
    for server_id, entry in data.items():
        if not isinstance(entry, dict):
            raise ValueError(f"Server '{server_id}' must be an object")
        servers[server_id] = McpServer.from_dict(server_id, entry)

    return servers


def save_servers(path: Path, servers: dict[str, McpServer]) -> None:
    """Save the canonical server collection.

    ABOUTME: Writes the canonical wire shape keyed by id
    ABOUTME: Creates parent directory if needed (it is our own state)

    Raises:
        ConfigIOError: If file cannot be written
    """
    data: dict[str, Any] = {server_id: server.to_dict() for server_id, server in servers.items()}

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
    except OSError as e:
        raise ConfigIOError(path, e) from e
