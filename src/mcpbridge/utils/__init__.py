# ABOUTME: Utility modules for mcpbridge
# ABOUTME: Exports JSONC decoding and server spec validation functions

from mcpbridge.utils.jsonc import loads_jsonc, read_jsonc_file, strip_jsonc_comments
from mcpbridge.utils.validation import ValidationError, has_errors, validate_server_spec

__all__ = [
    "strip_jsonc_comments",
    "loads_jsonc",
    "read_jsonc_file",
    "ValidationError",
    "validate_server_spec",
    "has_errors",
]
