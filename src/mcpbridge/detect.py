# ABOUTME: Structural detection of MCP server-list dialects and conversion to canonical specs
# ABOUTME: An ordered table of dialects; the first structural match wins, nothing is guessed
import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mcpbridge.errors import ConfigIOError, UnrecognizedFormatError
from mcpbridge.models import McpApps, McpServer, ParsedEntry
from mcpbridge.utils.jsonc import loads_jsonc
from mcpbridge.utils.validation import validate_server_spec

logger = logging.getLogger(__name__)

# ABOUTME: Type alias for a raw name -> entry map pulled out of a document
ServerMap = dict[str, Any]


@dataclass(frozen=True)
class SkippedEntry:
    """An entry dropped during normalization, with the reason."""
    name: str
    reason: str


@dataclass
class NormalizeReport:
    """Result of normalizing one document.

    ABOUTME: Partial success is normal; skipped entries never abort the batch
    ABOUTME: Tracks which dialect matched and per-entry outcomes
    """
    dialect: str
    entries: list[ParsedEntry] = field(default_factory=list)
    skipped: list[SkippedEntry] = field(default_factory=list)

    def add_entry(self, entry: ParsedEntry) -> None:
        self.entries.append(entry)

    def add_skipped(self, name: str, reason: str) -> None:
        """Record a skipped entry.

        ABOUTME: Logged as a warning, conversion continues
        """
        logger.warning(f"Skipping {self.dialect} entry '{name}': {reason}")
        self.skipped.append(SkippedEntry(name=name, reason=reason))

    @property
    def imported(self) -> int:
        return len(self.entries)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def summary(self) -> str:
        return f"Imported {self.imported} server(s), skipped {self.skipped_count}"

    def to_servers(self, apps: McpApps | None = None) -> dict[str, McpServer]:
        """Build canonical records keyed by id, in document order."""
        return {
            entry.id: entry.to_server(copy.deepcopy(apps) if apps is not None else None)
            for entry in self.entries
        }


@dataclass(frozen=True)
class Dialect:
    """One known server-list convention.

    ABOUTME: extract returns the name -> entry map if the document matches
    ABOUTME: convert maps one raw entry to a canonical server dict (None to skip)
    ABOUTME: carries_metadata marks entries whose apps/description/tags are kept
    """
    name: str
    extract: Callable[[dict[str, Any]], ServerMap | None]
    convert: Callable[[dict[str, Any]], dict[str, Any] | None]
    carries_metadata: bool = False


def _infer_type(server: dict[str, Any], remote_default: str) -> None:
    if "type" in server:
        return
    if "command" in server:
        server["type"] = "stdio"
    elif "url" in server:
        server["type"] = remote_default


def convert_opencode_entry(spec: dict[str, Any]) -> dict[str, Any]:
    """Convert an OpenCode entry (local -> stdio, remote -> http).

    ABOUTME: OpenCode stores command as one list: executable then arguments
    ABOUTME: Unknown kinds pass through under type as-is
    """
    kind = spec.get("type", "local")
    server: dict[str, Any] = {}

    if kind == "local":
        server["type"] = "stdio"
        command = spec.get("command")
        if isinstance(command, list) and command:
            server["command"] = command[0]
            if len(command) > 1:
                server["args"] = list(command[1:])
        elif isinstance(command, str):
            server["command"] = command
        if "environment" in spec:
            server["env"] = copy.deepcopy(spec["environment"])
    elif kind == "remote":
        server["type"] = "http"
        if "url" in spec:
            server["url"] = spec["url"]
        if "headers" in spec:
            server["headers"] = copy.deepcopy(spec["headers"])
    else:
        server["type"] = kind

    return server


def convert_canonical_entry(spec: dict[str, Any]) -> dict[str, Any] | None:
    # apps and metadata are read by normalize_entries
    server = spec.get("server")
    return copy.deepcopy(server) if isinstance(server, dict) else None


def convert_codex_entry(spec: dict[str, Any]) -> dict[str, Any]:
    """Convert a Codex entry.

    ABOUTME: Codex names headers http_headers
    ABOUTME: A url without a type means sse here, unlike mcpServers
    """
    server = copy.deepcopy(spec)
    if "http_headers" in server:
        server["headers"] = server.pop("http_headers")
    _infer_type(server, remote_default="sse")
    return server


def convert_standard_entry(spec: dict[str, Any]) -> dict[str, Any]:
    """Convert a Claude/Gemini/generic mcpServers entry (url alone means http)."""
    server = copy.deepcopy(spec)
    _infer_type(server, remote_default="http")
    return server


def _extract_opencode(document: dict[str, Any]) -> ServerMap | None:
    mcp = document.get("mcp")
    if not isinstance(mcp, dict):
        return None
    servers = mcp.get("servers")
    if isinstance(servers, dict):
        return servers
    # OpenCode's own config keeps entries directly under "mcp"
    if any(isinstance(v, dict) and v.get("type") in ("local", "remote") for v in mcp.values()):
        return mcp
    return None


def _extract_canonical(document: dict[str, Any]) -> ServerMap | None:
    if any(isinstance(v, dict) and "server" in v and "apps" in v for v in document.values()):
        return document
    return None


def _extract_key(key: str) -> Callable[[dict[str, Any]], ServerMap | None]:
    def extract(document: dict[str, Any]) -> ServerMap | None:
        servers = document.get(key)
        return servers if isinstance(servers, dict) else None

    return extract


def _extract_bare(document: dict[str, Any]) -> ServerMap | None:
    if any(isinstance(v, dict) and ("command" in v or "url" in v) for v in document.values()):
        return document
    return None


# ABOUTME: Detection order matters: first match wins
DIALECTS: tuple[Dialect, ...] = (
    Dialect("opencode", _extract_opencode, convert_opencode_entry),
    Dialect("canonical", _extract_canonical, convert_canonical_entry, carries_metadata=True),
    Dialect("codex", _extract_key("mcp_servers"), convert_codex_entry),
    Dialect("mcpServers", _extract_key("mcpServers"), convert_standard_entry),
    Dialect("bare", _extract_bare, convert_standard_entry),
)


def get_dialect(name: str) -> Dialect:
    for dialect in DIALECTS:
        if dialect.name == name:
            return dialect
    raise KeyError(f"Unknown dialect: {name}")


def detect_dialect(document: Any) -> tuple[Dialect, ServerMap]:
    """Find the first dialect whose structure matches document.

    Raises:
        UnrecognizedFormatError: If the root isn't an object or nothing matches
    """
    if not isinstance(document, dict):
        raise UnrecognizedFormatError("JSON root must be an object")

    for dialect in DIALECTS:
        servers = dialect.extract(document)
        if servers is not None:
            logger.debug(f"Detected {dialect.name} format with {len(servers)} entries")
            return dialect, servers

    raise UnrecognizedFormatError("Unrecognized MCP configuration format")


def _entry_name(key: str, spec: dict[str, Any]) -> str:
    name = spec.get("name")
    return name if isinstance(name, str) and name else key


def normalize_entries(dialect: Dialect, servers: ServerMap) -> NormalizeReport:
    """Convert every entry of a known dialect, skipping malformed ones.

    ABOUTME: Each entry is converted and validated independently
    ABOUTME: Input is never mutated; servers in the report are deep copies
    """
    report = NormalizeReport(dialect=dialect.name)

    for key, spec in servers.items():
        if not isinstance(spec, dict):
            report.add_skipped(key, f"entry must be an object, got {type(spec).__name__}")
            continue

        server = dialect.convert(spec)
        if server is None:
            report.add_skipped(key, "no server definition found")
            continue

        problems = validate_server_spec(key, server)
        errors = [p.message for p in problems if p.severity == "error"]
        if errors:
            report.add_skipped(key, "; ".join(errors))
            continue
        for problem in problems:
            logger.warning(f"Server '{key}': {problem.message}")

        apps = spec.get("apps") if dialect.carries_metadata else None
        report.add_entry(ParsedEntry(
            id=key,
            name=_entry_name(key, spec),
            server=server,
            apps=McpApps.from_dict(apps) if isinstance(apps, dict) else None,
            record=McpServer.from_dict(key, spec) if dialect.carries_metadata else None,
        ))

    return report


def detect_and_normalize(document: Any) -> NormalizeReport:
    """Detect a document's dialect and convert its entries to canonical specs.

    ABOUTME: Detection is structural, in fixed priority order:
    ABOUTME: opencode, canonical, codex (mcp_servers), mcpServers, bare map

    Args:
        document: Parsed (comment-free) JSON value

    Returns:
        NormalizeReport with converted entries and skipped ones

    Raises:
        UnrecognizedFormatError: If no known dialect matches

    Examples:
        >>> report = detect_and_normalize(
        ...     {"mcp": {"servers": {"fs": {"type": "local", "command": ["node", "server.js"]}}}}
        ... )
        >>> report.entries[0].server
        {'type': 'stdio', 'command': 'node', 'args': ['server.js']}
    """
    dialect, servers = detect_dialect(document)
    return normalize_entries(dialect, servers)


def parse_mcp_json_file(path: Path) -> NormalizeReport:
    """Read a JSON/JSONC file and normalize the MCP servers it declares.

    Raises:
        ConfigIOError: If the file can't be read
        ParseError: If the file isn't valid JSONC
        UnrecognizedFormatError: If no known dialect matches
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigIOError(path, e) from e

    return detect_and_normalize(loads_jsonc(content, source=path))
