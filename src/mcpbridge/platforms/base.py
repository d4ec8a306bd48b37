# Platform adapter base utilities
import copy
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from mcpbridge.cst import CstObject
from mcpbridge.detect import Dialect, NormalizeReport, normalize_entries
from mcpbridge.editor import edit_document
from mcpbridge.merge import deep_merge
from mcpbridge.models import McpServer
from mcpbridge.utils.jsonc import read_jsonc_file

# ABOUTME: Fields that describe how to reach a server in canonical form
TRANSPORT_FIELDS = ("type", "command", "args", "env", "url", "headers")


def server_to_dict(server: McpServer) -> dict[str, Any]:
    """Convert McpServer to the mcpServers entry format.

    ABOUTME: Deep copy of the canonical spec; vendor fields ride along
    ABOUTME: Omits empty args/env/headers for cleaner output
    """
    result = copy.deepcopy(server.server)
    result.setdefault("type", server.server_type)
    for key in ("args", "env", "headers"):
        if key in result and not result[key]:
            del result[key]
    return result


def load_section(path: Path, section: str, dialect: Dialect) -> NormalizeReport:
    """Read a JSONC file and normalize the server map under section.

    ABOUTME: Returns an empty report if the file or section doesn't exist
    """
    data = read_jsonc_file(path)
    servers = data.get(section) if isinstance(data, dict) else None
    if not isinstance(servers, dict):
        return NormalizeReport(dialect=dialect.name)
    return normalize_entries(dialect, servers)


def merge_entries(
    section: CstObject,
    entries: Mapping[str, dict[str, Any]],
    transport_fields: Iterable[str],
) -> None:
    """Upsert entries into a CST object.

    ABOUTME: New entries are appended; existing ones are deep-merged in place
    ABOUTME: Transport fields the new entry lacks are dropped from the old one
    ABOUTME: so switching stdio <-> remote leaves no stale command or url
    ABOUTME: Unrelated vendor fields (timeouts, trust flags) survive
    """
    fields = tuple(transport_fields)
    for key, entry in entries.items():
        existing = section.object_value(key)
        if existing is None:
            section.set(key, entry)
            continue
        for field in fields:
            if field not in entry:
                existing.remove(field)
        deep_merge(existing, entry)


def upsert_entries(
    path: Path,
    section: str,
    entries: Mapping[str, dict[str, Any]],
    transport_fields: Iterable[str],
) -> None:
    """Upsert entries under section of a JSONC file in one edit."""
    with edit_document(path) as root:
        merge_entries(root.ensure_object_at(section), entries, transport_fields)
