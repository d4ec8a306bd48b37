# ABOUTME: Tests for MCP dialect detection and normalization
# ABOUTME: One class per dialect plus skip and failure behavior
import json
from pathlib import Path

import pytest

from mcpbridge.detect import (
    convert_opencode_entry,
    detect_and_normalize,
    detect_dialect,
    parse_mcp_json_file,
)
from mcpbridge.errors import ConfigIOError, ParseError, UnrecognizedFormatError
from mcpbridge.models import McpApps


class TestOpenCodeDialect:
    """Tests for the OpenCode mcp.servers shape."""

    def test_local_command_list_is_split(self) -> None:
        """Test local entries become stdio with command and args."""
        report = detect_and_normalize({"mcp": {"servers": {
            "fs": {"type": "local", "command": ["npx", "-y", "fs-mcp"], "environment": {"A": "1"}},
        }}})

        assert report.dialect == "opencode"
        assert report.entries[0].server == {
            "type": "stdio",
            "command": "npx",
            "args": ["-y", "fs-mcp"],
            "env": {"A": "1"},
        }

    def test_missing_type_defaults_to_local(self) -> None:
        """Test an untyped entry is treated as local."""
        report = detect_and_normalize({"mcp": {"servers": {"fs": {"command": ["node"]}}}})

        assert report.entries[0].server == {"type": "stdio", "command": "node"}

    def test_remote_becomes_http(self) -> None:
        """Test remote entries become http with url and headers."""
        report = detect_and_normalize({"mcp": {"servers": {
            "api": {"type": "remote", "url": "https://x/mcp", "headers": {"K": "v"}},
        }}})

        assert report.entries[0].server == {"type": "http", "url": "https://x/mcp", "headers": {"K": "v"}}

    def test_entries_directly_under_mcp(self) -> None:
        """Test OpenCode's own config layout is recognized."""
        report = detect_and_normalize({"mcp": {"fs": {"type": "local", "command": ["npx"]}}})

        assert report.dialect == "opencode"
        assert report.entries[0].id == "fs"

    def test_string_command_taken_as_is(self) -> None:
        """Test a plain string command is not split."""
        assert convert_opencode_entry({"type": "local", "command": "npx fs"})["command"] == "npx fs"

    def test_empty_command_list_is_skipped(self) -> None:
        """Test a local entry without a command fails validation."""
        report = detect_and_normalize({"mcp": {"servers": {"bad": {"type": "local", "command": []}}}})

        assert report.imported == 0
        assert report.skipped[0].name == "bad"


class TestCanonicalDialect:
    """Tests for the canonical id -> {server, apps} shape."""

    def test_server_object_is_taken(self) -> None:
        """Test canonical entries keep their server spec and name."""
        report = detect_and_normalize({
            "fs": {
                "name": "Filesystem",
                "server": {"type": "stdio", "command": "npx"},
                "apps": {"claude": True},
            },
        })

        assert report.dialect == "canonical"
        assert report.entries[0].id == "fs"
        assert report.entries[0].name == "Filesystem"
        assert report.entries[0].server == {"type": "stdio", "command": "npx"}

    def test_apps_and_metadata_are_kept(self) -> None:
        """Test an exported store re-imports with its flags, docs and tags."""
        report = detect_and_normalize({
            "fs": {
                "server": {"type": "stdio", "command": "npx"},
                "apps": {"claude": True, "gemini": True},
                "description": "file server",
                "homepage": "https://example.com",
                "tags": ["a", "b"],
            },
        })

        server = report.to_servers(McpApps(codex=True))["fs"]

        assert server.apps == McpApps(claude=True, gemini=True)
        assert server.description == "file server"
        assert server.homepage == "https://example.com"
        assert server.docs is None
        assert server.tags == ["a", "b"]

    def test_entry_without_apps_takes_given_apps(self) -> None:
        """Test apps passed in only apply to entries that have none."""
        report = detect_and_normalize({
            "fs": {"server": {"type": "stdio", "command": "npx"}, "apps": {"claude": True}},
            "git": {"server": {"type": "stdio", "command": "git-mcp"}, "tags": None},
        })

        servers = report.to_servers(McpApps(codex=True))

        assert servers["fs"].apps == McpApps(claude=True)
        assert servers["git"].apps == McpApps(codex=True)
        assert servers["git"].tags == []

    def test_entry_without_server_is_skipped(self) -> None:
        """Test an entry lacking a server object is skipped."""
        report = detect_and_normalize({
            "ok": {"server": {"type": "stdio", "command": "npx"}, "apps": {}},
            "bad": {"apps": {}},
        })

        assert [e.id for e in report.entries] == ["ok"]
        assert report.skipped[0].reason == "no server definition found"


class TestCodexDialect:
    """Tests for the Codex mcp_servers shape."""

    def test_url_without_type_means_sse(self) -> None:
        """Test codex infers sse and renames http_headers."""
        report = detect_and_normalize({"mcp_servers": {
            "api": {"url": "https://x/sse", "http_headers": {"K": "v"}},
        }})

        assert report.dialect == "codex"
        assert report.entries[0].server == {"type": "sse", "url": "https://x/sse", "headers": {"K": "v"}}

    def test_command_means_stdio(self) -> None:
        """Test a command infers stdio."""
        report = detect_and_normalize({"mcp_servers": {"fs": {"command": "npx", "args": ["-y"]}}})

        assert report.entries[0].server == {"command": "npx", "args": ["-y"], "type": "stdio"}


class TestMcpServersDialect:
    """Tests for the Claude/Gemini mcpServers shape."""

    def test_url_without_type_means_http(self) -> None:
        """Test url alone infers http here, unlike codex."""
        report = detect_and_normalize({"mcpServers": {"api": {"url": "https://x/mcp"}}})

        assert report.dialect == "mcpServers"
        assert report.entries[0].server == {"url": "https://x/mcp", "type": "http"}

    def test_explicit_type_is_kept(self) -> None:
        """Test an explicit type wins over inference."""
        report = detect_and_normalize({"mcpServers": {"api": {"type": "sse", "url": "https://x"}}})

        assert report.entries[0].server["type"] == "sse"

    def test_vendor_fields_ride_along(self) -> None:
        """Test unknown fields are kept in the spec."""
        report = detect_and_normalize({"mcpServers": {"fs": {"command": "npx", "timeout": 30}}})

        assert report.entries[0].server["timeout"] == 30


class TestBareDialect:
    """Tests for a bare name -> entry map."""

    def test_bare_map(self) -> None:
        """Test a top-level map of servers is recognized."""
        report = detect_and_normalize({
            "fs": {"command": "npx"},
            "api": {"url": "https://x"},
        })

        assert report.dialect == "bare"
        assert [e.id for e in report.entries] == ["fs", "api"]
        assert report.entries[1].server["type"] == "http"


class TestDetectionOrder:
    """Tests for dialect priority."""

    def test_opencode_wins_over_mcp_servers(self) -> None:
        """Test the first matching dialect is used."""
        dialect, _ = detect_dialect({
            "mcpServers": {"a": {"command": "x"}},
            "mcp": {"servers": {"b": {"command": ["y"]}}},
        })

        assert dialect.name == "opencode"

    def test_codex_wins_over_mcp_servers(self) -> None:
        """Test mcp_servers is checked before mcpServers."""
        dialect, servers = detect_dialect({
            "mcpServers": {"a": {"command": "x"}},
            "mcp_servers": {"b": {"command": "y"}},
        })

        assert dialect.name == "codex"
        assert list(servers) == ["b"]

    def test_canonical_wins_over_server_list_keys(self) -> None:
        """Test a canonical store is recognized before mcp_servers and mcpServers."""
        dialect, servers = detect_dialect({
            "fs": {"server": {"type": "stdio", "command": "npx"}, "apps": {}},
            "mcp_servers": {"b": {"command": "y"}},
            "mcpServers": {"a": {"command": "x"}},
        })

        assert dialect.name == "canonical"
        assert "fs" in servers

    def test_mcp_servers_wins_over_bare_map(self) -> None:
        """Test mcpServers is checked before the bare map."""
        dialect, servers = detect_dialect({
            "mcpServers": {"a": {"command": "x"}},
            "b": {"command": "y"},
        })

        assert dialect.name == "mcpServers"
        assert list(servers) == ["a"]


class TestFailures:
    """Tests for unrecognized input and skipped entries."""

    def test_non_object_root(self) -> None:
        """Test a JSON array root is rejected."""
        with pytest.raises(UnrecognizedFormatError, match="root must be an object"):
            detect_and_normalize([])

    def test_unrecognized_object(self) -> None:
        """Test an object with no known structure is rejected."""
        with pytest.raises(UnrecognizedFormatError, match="Unrecognized"):
            detect_and_normalize({"theme": "dark"})

    def test_malformed_entries_are_skipped(self) -> None:
        """Test bad entries are skipped and the rest still import."""
        report = detect_and_normalize({"mcpServers": {
            "good": {"command": "npx"},
            "string": "nope",
            "notype": {"args": ["x"]},
            "nourl": {"type": "http"},
        }})

        assert [e.id for e in report.entries] == ["good"]
        assert {s.name for s in report.skipped} == {"string", "notype", "nourl"}
        assert report.summary() == "Imported 1 server(s), skipped 3"

    def test_skipped_entries_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test skipping logs a warning naming the entry."""
        with caplog.at_level("WARNING"):
            detect_and_normalize({"mcpServers": {"nourl": {"type": "http"}}})

        assert "nourl" in caplog.text

    def test_input_is_not_mutated(self) -> None:
        """Test normalization copies instead of editing the document."""
        document = {"mcp_servers": {"api": {"url": "https://x", "http_headers": {"K": "v"}}}}
        snapshot = json.dumps(document, sort_keys=True)

        detect_and_normalize(document)

        assert json.dumps(document, sort_keys=True) == snapshot


class TestToServers:
    """Tests for building canonical records from a report."""

    def test_records_default_to_no_apps_and_no_tags(self) -> None:
        """Test preview records have every app off and no tags."""
        servers = detect_and_normalize({"mcpServers": {"fs": {"command": "npx"}}}).to_servers()

        assert servers["fs"].apps == McpApps()
        assert servers["fs"].tags == []

    def test_apps_are_copied_per_record(self) -> None:
        """Test records don't share one apps object."""
        report = detect_and_normalize({"a": {"command": "x"}, "b": {"command": "y"}})
        servers = report.to_servers(McpApps(claude=True))
        servers["a"].apps.codex = True

        assert servers["b"].apps == McpApps(claude=True)


class TestParseMcpJsonFile:
    """Tests for parse_mcp_json_file function."""

    def test_reads_commented_file(self, tmp_path: Path) -> None:
        """Test JSONC files are decoded before detection."""
        path = tmp_path / "mcp.json"
        path.write_text('{\n  // shared servers\n  "mcpServers": {"fs": {"command": "npx"}}\n}\n')

        assert parse_mcp_json_file(path).entries[0].id == "fs"

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file raises ConfigIOError."""
        with pytest.raises(ConfigIOError):
            parse_mcp_json_file(tmp_path / "missing.json")

    def test_invalid_file(self, tmp_path: Path) -> None:
        """Test invalid JSON raises ParseError."""
        path = tmp_path / "bad.json"
        path.write_text("{")

        with pytest.raises(ParseError):
            parse_mcp_json_file(path)
