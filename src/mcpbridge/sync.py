# Sync orchestration for mcpbridge
import logging
from dataclasses import dataclass, field

from mcpbridge.models import McpApps, McpServer, PlatformAdapter
from mcpbridge.platforms import get_all_platforms

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Report from an import or sync operation.

    ABOUTME: Tracks success/failure across platforms
    ABOUTME: Contains per-platform server counts and any errors
    ABOUTME: Platforms without a config file are skipped, not failed
    """
    platforms_synced: int
    platforms_total: int
    servers_synced: dict[str, int] = field(default_factory=dict)
    servers_removed: dict[str, int] = field(default_factory=dict)
    entries_skipped: dict[str, int] = field(default_factory=dict)
    platforms_skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def add_platform_result(self, platform_name: str, count: int, removed: int = 0) -> None:
        """Record the result for a platform.

        ABOUTME: Always records server count, even 0
        """
        self.platforms_synced += 1
        self.servers_synced[platform_name] = count
        if removed:
            self.servers_removed[platform_name] = removed
        logger.info(f"{platform_name}: {count} server(s), {removed} removed")

    def add_skipped_platform(self, platform_name: str) -> None:
        logger.info(f"{platform_name}: config not found, skipping")
        self.platforms_skipped.append(platform_name)

    def add_error(self, error: str) -> None:
        """Record an error that occurred during sync.

        ABOUTME: Errors are non-fatal, sync continues
        """
        logger.error(error)
        self.errors.append(error)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def import_from_platforms(
    servers: dict[str, McpServer],
    platforms: list[PlatformAdapter] | None = None,
) -> SyncReport:
    """Pull the servers each app already has into the canonical collection.

    ABOUTME: Mutates servers in place
    ABOUTME: New ids are added with only the source app enabled
    ABOUTME: Existing ids keep their spec and just gain the app flag
    ABOUTME: An unreadable platform is recorded and the others still import

    Args:
        servers: Canonical collection (id -> McpServer), updated in place
        platforms: Adapters to read (defaults to all four)

    Returns:
        SyncReport with per-platform counts of servers found
    """
    platforms = platforms if platforms is not None else get_all_platforms()
    report = SyncReport(platforms_synced=0, platforms_total=len(platforms))

    for platform in platforms:
        if platform.config_path is None:
            report.add_skipped_platform(platform.name)
            continue

        try:
            loaded = platform.load()
        except Exception as e:
            # Record error but continue with other platforms
            report.add_error(f"{platform.name}: {e}")
            continue

        for entry in loaded.entries:
            existing = servers.get(entry.id)
            if existing is not None:
                existing.apps.set_enabled_for(platform.app, True)
            else:
                apps = McpApps()
                apps.set_enabled_for(platform.app, True)
                servers[entry.id] = entry.to_server(apps)

        if loaded.skipped_count:
            report.entries_skipped[platform.name] = loaded.skipped_count
        report.add_platform_result(platform.name, loaded.imported)

    return report


def _apply_to_platform(
    platform: PlatformAdapter, servers: dict[str, McpServer]
) -> tuple[int, int]:
    enabled = {
        server_id: server
        for server_id, server in servers.items()
        if server.apps.is_enabled_for(platform.app)
    }
    if enabled:
        platform.save(enabled)

    removed = 0
    for server_id in servers:
        if server_id not in enabled and platform.remove(server_id):
            removed += 1
    return len(enabled), removed


def sync_all(
    servers: dict[str, McpServer],
    platforms: list[PlatformAdapter] | None = None,
) -> SyncReport:
    """Sync the canonical collection to all platform adapters.

    ABOUTME: Upserts servers enabled for each app, removes ones disabled for it
    ABOUTME: Servers the collection doesn't know about are left alone (orphans)
    ABOUTME: Continues on platform errors, records them in report

    Args:
        servers: Canonical collection (id -> McpServer)
        platforms: Adapters to write (defaults to all four)

    Returns:
        SyncReport with results from all platforms
    """
    platforms = platforms if platforms is not None else get_all_platforms()
    report = SyncReport(platforms_synced=0, platforms_total=len(platforms))

    for platform in platforms:
        # Skip platform if config path doesn't exist
        if platform.config_path is None:
            report.add_skipped_platform(platform.name)
            continue

        try:
            count, removed = _apply_to_platform(platform, servers)
        except Exception as e:
            # Record error but continue with other platforms
            report.add_error(f"{platform.name}: {e}")
            continue

        report.add_platform_result(platform.name, count, removed)

    return report


def toggle_app(
    servers: dict[str, McpServer],
    server_id: str,
    app: str,
    enabled: bool,
    platform: PlatformAdapter | None = None,
) -> McpServer:
    """Enable or disable one server for one app.

    ABOUTME: With a platform, the change is written to that app right away

    Raises:
        KeyError: If server_id isn't in the collection
        ValueError: If app isn't a known app name
    """
    if server_id not in servers:
        raise KeyError(server_id)

    server = servers[server_id]
    server.apps.set_enabled_for(app, enabled)

    if platform is not None:
        if enabled:
            platform.save({server_id: server})
        else:
            platform.remove(server_id)
        logger.info(f"{'Enabled' if enabled else 'Disabled'} '{server_id}' for {platform.name}")

    return server
