# Platform adapter registry
from mcpbridge.models import PlatformAdapter
from mcpbridge.platforms.claude import ClaudeAdapter
from mcpbridge.platforms.codex import CodexAdapter
from mcpbridge.platforms.gemini import GeminiAdapter
from mcpbridge.platforms.opencode import OpenCodeAdapter

# Registry of all available platform adapters, in McpApps order
ALL_PLATFORMS: list[type[PlatformAdapter]] = [
    ClaudeAdapter,
    CodexAdapter,
    GeminiAdapter,
    OpenCodeAdapter,
]

__all__ = [
    "PlatformAdapter",
    "ClaudeAdapter",
    "CodexAdapter",
    "GeminiAdapter",
    "OpenCodeAdapter",
    "ALL_PLATFORMS",
    "get_all_platforms",
]


def get_all_platforms() -> list[PlatformAdapter]:
    """Instantiate and return all platform adapters.

    ABOUTME: Creates instances of all registered adapters
    ABOUTME: Returns list for easy iteration
    """
    return [platform_cls() for platform_cls in ALL_PLATFORMS]
