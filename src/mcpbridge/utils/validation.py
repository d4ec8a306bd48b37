# ABOUTME: Per-entry field checks for canonical server specs
# ABOUTME: Structural only; executables and endpoints are never probed
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from mcpbridge.models import SERVER_TYPES

_STDIO_FIELDS = ("command", "args", "env")
_REMOTE_FIELDS = ("url", "headers")


@dataclass(frozen=True)
class ValidationError:
    """Represents a validation error or warning.

    ABOUTME: Uses frozen dataclass for immutability
    ABOUTME: Severity level distinguishes between blocking errors and warnings
    """
    server_name: str
    message: str
    severity: str  # 'error' or 'warning'


def _check_string_map(
    field: str, value: Any, error: Callable[[str], None], warning: Callable[[str], None]
) -> None:
    if not isinstance(value, dict):
        error(f"'{field}' must be an object")
    elif not all(isinstance(v, str) for v in value.values()):
        warning(f"'{field}' has non-string values")


def validate_server_spec(name: str, server: Any) -> list[ValidationError]:
    """Validate a canonical server spec.

    ABOUTME: Errors mean the entry can't be used and should be skipped
    ABOUTME: Warnings are informational; the entry is still usable
    ABOUTME: Unknown types pass with a warning since they have no known fields

    Args:
        name: Entry key, used in messages
        server: Canonical server dict (type plus type-specific fields)

    Returns:
        List of ValidationError instances (empty if valid)

    Examples:
        >>> validate_server_spec("fs", {"type": "stdio", "command": "npx"})
        []
        >>> validate_server_spec("api", {"type": "http"})[0].message
        "missing required 'url' field for http type"
    """
    errors: list[ValidationError] = []

    def error(message: str) -> None:
        errors.append(ValidationError(server_name=name, message=message, severity="error"))

    def warning(message: str) -> None:
        errors.append(ValidationError(server_name=name, message=message, severity="warning"))

    if not isinstance(server, dict):
        error(f"entry must be an object, got {type(server).__name__}")
        return errors

    server_type = server.get("type")
    if server_type is None:
        error("missing 'type' and no 'command' or 'url' to infer it from")
        return errors
    if not isinstance(server_type, str):
        error("'type' must be a string")
        return errors

    if server_type == "stdio":
        command = server.get("command")
        if not isinstance(command, str) or not command:
            error("missing required 'command' field for stdio type")
        args = server.get("args", [])
        if not isinstance(args, list):
            error("'args' must be a list")
        elif not all(isinstance(arg, str) for arg in args):
            warning("'args' has non-string items")
        _check_string_map("env", server.get("env", {}), error, warning)
        if any(key in server for key in _REMOTE_FIELDS):
            warning("stdio server also carries url/headers, which will be ignored")

    elif server_type in ("http", "sse"):
        url = server.get("url")
        if not isinstance(url, str) or not url:
            error(f"missing required 'url' field for {server_type} type")
        _check_string_map("headers", server.get("headers", {}), error, warning)
        if any(key in server for key in _STDIO_FIELDS):
            warning(f"{server_type} server also carries command/args/env, which will be ignored")

    else:
        warning(f"unknown type '{server_type}'. Known types: {', '.join(SERVER_TYPES)}")

    return errors


def has_errors(errors: list[ValidationError]) -> bool:
    return any(err.severity == "error" for err in errors)
