# CLI interface for mcpbridge
import argparse
import json
import logging
import sys
from pathlib import Path

from mcpbridge import __version__
from mcpbridge.config import get_servers_path, load_servers, save_servers
from mcpbridge.detect import parse_mcp_json_file
from mcpbridge.errors import McpBridgeError
from mcpbridge.models import APP_NAMES, McpApps, PlatformAdapter
from mcpbridge.platforms import OpenCodeAdapter, get_all_platforms
from mcpbridge.sync import SyncReport, import_from_platforms, sync_all, toggle_app

# ABOUTME: Exit codes
# 0 = success, 1 = partial success, 2 = config error, 3 = fatal
EXIT_SUCCESS = 0
EXIT_PARTIAL = 1
EXIT_CONFIG_ERROR = 2
EXIT_FATAL = 3

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def _platform_for(app: str) -> PlatformAdapter:
    for platform in get_all_platforms():
        if platform.app == app:
            return platform
    raise ValueError(f"Unknown app '{app}'. Must be one of: {', '.join(APP_NAMES)}")


def _print_report(report: SyncReport, verb: str) -> int:
    for platform_name, count in report.servers_synced.items():
        removed = report.servers_removed.get(platform_name, 0)
        skipped = report.entries_skipped.get(platform_name, 0)
        line = f"  {platform_name} - {count} server(s) {verb}"
        if removed:
            line += f", {removed} removed"
        if skipped:
            line += f", {skipped} skipped"
        print(line)
    for platform_name in report.platforms_skipped:
        print(f"  {platform_name} - not installed, skipped")

    if report.errors:
        print()
        for error_msg in report.errors:
            print(f"  Error: {error_msg}")

    print()
    summary = f"{report.platforms_synced}/{report.platforms_total} platforms {verb}"
    if report.has_errors:
        print(f"Done: {summary}, {len(report.errors)} failed")
        return EXIT_PARTIAL
    print(f"Done: {summary}")
    return EXIT_SUCCESS


def cmd_list(args: argparse.Namespace) -> int:
    """Execute list command.

    ABOUTME: Shows every server in the canonical store with its enabled apps
    """
    servers_path = get_servers_path()
    servers = load_servers(servers_path)

    print(f"MCP Servers in {servers_path}:")
    print()

    for server_id, server in servers.items():
        print(f"  {server_id}" + (f" ({server.name})" if server.name != server_id else ""))
        print(f"    type: {server.server_type}")
        if server.server_type == "stdio":
            parts = [server.server.get("command", "")] + list(server.server.get("args", []))
            command = " ".join(str(part) for part in parts)
            print(f"    command: {command}")
        elif "url" in server.server:
            print(f"    url: {server.server['url']}")
        enabled = server.apps.enabled_apps()
        print(f"    apps: {', '.join(enabled) if enabled else '(none)'}")
        print()

    print(f"Total: {len(servers)} server(s)")
    return EXIT_SUCCESS


def cmd_import(args: argparse.Namespace) -> int:
    """Execute import command.

    ABOUTME: Detects the file's dialect and previews the servers found
    ABOUTME: With --save, new ids are added to the store (existing ids are kept)
    ABOUTME: Entries that bring their own apps keep them; --app fills in the rest
    """
    report = parse_mcp_json_file(args.file.expanduser())

    print(f"Detected {report.dialect} format in {args.file}")
    for entry in report.entries:
        print(f"  {entry.id} ({entry.server.get('type')})")
    for skipped in report.skipped:
        print(f"  Skipped {skipped.name}: {skipped.reason}")
    print(report.summary())

    if not args.save:
        return EXIT_PARTIAL if report.skipped else EXIT_SUCCESS

    apps = McpApps()
    for app in args.app or []:
        apps.set_enabled_for(app, True)

    servers_path = get_servers_path()
    servers = load_servers(servers_path)
    added = 0
    for server_id, server in report.to_servers(apps).items():
        if server_id in servers:
            print(f"  {server_id} already in store, keeping existing entry")
            continue
        servers[server_id] = server
        added += 1

    save_servers(servers_path, servers)
    print(f"Saved {added} new server(s) to {servers_path}")
    return EXIT_PARTIAL if report.skipped else EXIT_SUCCESS


def cmd_import_apps(args: argparse.Namespace) -> int:
    """Execute import-apps command.

    ABOUTME: Reads every installed app and records which servers each one has
    """
    servers_path = get_servers_path()
    servers = load_servers(servers_path)

    print("Importing from platforms...")
    report = import_from_platforms(servers)
    save_servers(servers_path, servers)
    print(f"Store now holds {len(servers)} server(s)")
    return _print_report(report, "imported")


def cmd_sync(args: argparse.Namespace) -> int:
    """Execute sync command.

    ABOUTME: Writes enabled servers to each app, removes disabled ones
    """
    servers_path = get_servers_path()
    servers = load_servers(servers_path)
    print(f"Loaded {len(servers)} server(s) from {servers_path}")

    print("Syncing to platforms...")
    report = sync_all(servers)
    return _print_report(report, "synced")


def cmd_toggle(args: argparse.Namespace) -> int:
    """Execute toggle command.

    ABOUTME: Updates the store and writes the change to the app's config
    """
    servers_path = get_servers_path()
    servers = load_servers(servers_path)
    enabled = args.state == "on"

    if args.id not in servers:
        print(f"Error: Server '{args.id}' not found in {servers_path}")
        return EXIT_CONFIG_ERROR

    platform = _platform_for(args.app)
    target = platform if platform.config_path is not None else None
    toggle_app(servers, args.id, args.app, enabled, platform=target)
    save_servers(servers_path, servers)

    state = "enabled" if enabled else "disabled"
    if target is None:
        print(f"'{args.id}' {state} for {args.app} ({platform.name} not installed, store only)")
    else:
        print(f"'{args.id}' {state} for {args.app}")
    return EXIT_SUCCESS


def cmd_provider(args: argparse.Namespace) -> int:
    """Execute provider set/remove commands on the OpenCode config."""
    adapter = OpenCodeAdapter()

    if args.provider_command == "set":
        try:
            config = json.loads(args.config)
        except json.JSONDecodeError as e:
            print(f"Error: Invalid provider JSON: {e}")
            return EXIT_CONFIG_ERROR
        adapter.set_provider(args.id, config)
        print(f"Provider '{args.id}' saved")
        return EXIT_SUCCESS

    if adapter.remove_provider(args.id):
        print(f"Provider '{args.id}' removed")
    else:
        print(f"Provider '{args.id}' not found")
    return EXIT_SUCCESS


def cmd_plugin(args: argparse.Namespace) -> int:
    """Execute plugin add/remove commands on the OpenCode config."""
    adapter = OpenCodeAdapter()

    if args.plugin_command == "add":
        if adapter.add_plugin(args.name):
            print(f"Plugin '{args.name}' added")
        else:
            print(f"Plugin '{args.name}' already present")
        return EXIT_SUCCESS

    removed = adapter.remove_plugin_by_prefix(args.prefix)
    print(f"Removed {removed} plugin(s) matching '{args.prefix}'")
    return EXIT_SUCCESS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcpbridge",
        description="Share MCP servers between Claude Code, Codex, Gemini CLI and OpenCode"
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"mcpbridge v{__version__}"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list command
    subparsers.add_parser(
        "list",
        help="List all servers in the store"
    )

    # import command
    import_parser = subparsers.add_parser(
        "import",
        help="Detect and import MCP servers from a JSON/JSONC file"
    )
    import_parser.add_argument(
        "file",
        type=Path,
        help="File to import (any supported dialect)"
    )
    import_parser.add_argument(
        "--save",
        action="store_true",
        help="Add new servers to the store (default: preview only)"
    )
    import_parser.add_argument(
        "--app",
        action="append",
        choices=APP_NAMES,
        help="Enable imported servers for this app (repeatable)"
    )

    # import-apps command
    subparsers.add_parser(
        "import-apps",
        help="Import servers already configured in each app"
    )

    # sync command
    subparsers.add_parser(
        "sync",
        help="Sync the store to all apps"
    )

    # toggle command
    toggle_parser = subparsers.add_parser(
        "toggle",
        help="Enable or disable a server for one app"
    )
    toggle_parser.add_argument("id", help="Server id")
    toggle_parser.add_argument("app", choices=APP_NAMES, help="Target app")
    toggle_parser.add_argument("state", choices=["on", "off"], help="New state")

    # provider command
    provider_parser = subparsers.add_parser(
        "provider",
        help="Edit OpenCode providers"
    )
    provider_sub = provider_parser.add_subparsers(dest="provider_command", required=True)
    provider_set = provider_sub.add_parser("set", help="Set a provider from JSON")
    provider_set.add_argument("id", help="Provider id")
    provider_set.add_argument("config", help="Provider config as a JSON object")
    provider_remove = provider_sub.add_parser("remove", help="Remove a provider")
    provider_remove.add_argument("id", help="Provider id")

    # plugin command
    plugin_parser = subparsers.add_parser(
        "plugin",
        help="Edit the OpenCode plugin list"
    )
    plugin_sub = plugin_parser.add_subparsers(dest="plugin_command", required=True)
    plugin_add = plugin_sub.add_parser("add", help="Add a plugin")
    plugin_add.add_argument("name", help="Plugin name (e.g. oh-my-opencode@latest)")
    plugin_remove = plugin_sub.add_parser("remove", help="Remove plugins by prefix")
    plugin_remove.add_argument("prefix", help="Plugin name prefix")

    return parser


COMMANDS = {
    "list": cmd_list,
    "import": cmd_import,
    "import-apps": cmd_import_apps,
    "sync": cmd_sync,
    "toggle": cmd_toggle,
    "provider": cmd_provider,
    "plugin": cmd_plugin,
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    ABOUTME: Parses args and dispatches to appropriate command
    ABOUTME: Maps errors to exit codes; returns exit code for sys.exit()
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    command = COMMANDS.get(args.command)
    if command is None:
        # No command specified, show help
        parser.print_help()
        return EXIT_SUCCESS

    try:
        return command(args)
    except (McpBridgeError, ValueError) as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except Exception as e:
        print(f"Fatal error: {e}")
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
