# mcpbridge - Comment-preserving MCP config sharing across AI coding assistants
# ABOUTME: Version information
__version__ = "0.1.0"

# ABOUTME: Export core data models
# ABOUTME: Export the CST edit engine and the dialect detector
from mcpbridge.cst import CstArray, CstObject, CstRoot, parse, serialize
from mcpbridge.detect import NormalizeReport, detect_and_normalize, parse_mcp_json_file
from mcpbridge.editor import edit_document, merge_property, remove_property, set_property
from mcpbridge.errors import ConfigIOError, McpBridgeError, ParseError, UnrecognizedFormatError
from mcpbridge.merge import deep_merge
from mcpbridge.models import McpApps, McpServer, ParsedEntry, PlatformAdapter

__all__ = [
    "__version__",
    "McpApps",
    "McpServer",
    "ParsedEntry",
    "PlatformAdapter",
    "CstArray",
    "CstObject",
    "CstRoot",
    "parse",
    "serialize",
    "deep_merge",
    "edit_document",
    "set_property",
    "merge_property",
    "remove_property",
    "NormalizeReport",
    "detect_and_normalize",
    "parse_mcp_json_file",
    "McpBridgeError",
    "ParseError",
    "UnrecognizedFormatError",
    "ConfigIOError",
]
