# ABOUTME: Error taxonomy for mcpbridge
# ABOUTME: Parse and format errors subclass ValueError, I/O errors subclass OSError
from pathlib import Path


class McpBridgeError(Exception):
    """Base class for all mcpbridge errors."""


class ParseError(McpBridgeError, ValueError):
    """Malformed JSON-with-comments text.

    ABOUTME: Carries a location hint (offset plus 1-based line/column)
    """

    def __init__(self, message: str, offset: int = 0, line: int = 1, column: int = 1) -> None:
        self.message = message
        self.offset = offset
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line} column {column}")

    @classmethod
    def at(cls, message: str, text: str, offset: int) -> "ParseError":
        """Build an error for a character offset into ``text``."""
        line = text.count("\n", 0, offset) + 1
        column = offset - (text.rfind("\n", 0, offset) + 1) + 1
        return cls(message, offset=offset, line=line, column=column)


class UnrecognizedFormatError(McpBridgeError, ValueError):
    """Document matched none of the known MCP server dialects."""


class ConfigIOError(McpBridgeError, OSError):
    """Reading or writing a config file failed.

    ABOUTME: Always names the path that failed
    """

    def __init__(self, path: Path, error: OSError) -> None:
        self.path = path
        self.error = error
        super().__init__(f"Failed to access {path}: {error}")
