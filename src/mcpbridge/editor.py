# ABOUTME: Comment-preserving read-modify-write cycles on JSONC config files
# ABOUTME: Every call re-reads the file; nothing is cached between calls
import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from mcpbridge.cst import CstRoot, parse, serialize
from mcpbridge.errors import ConfigIOError
from mcpbridge.merge import deep_merge

logger = logging.getLogger(__name__)


def read_config_raw(path: Path) -> str:
    """Read a config file as raw text.

    ABOUTME: Returns "{}" if the file doesn't exist yet
    ABOUTME: Keeps comments and formatting for CST round-trips
    """
    if not path.exists():
        return "{}"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigIOError(path, e) from e


def write_config_raw(path: Path, content: str) -> None:
    """Write raw text to a config file.

    ABOUTME: Never creates parent directories; the caller owns the layout
    """
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ConfigIOError(path, e) from e
    logger.debug(f"Config written to {path}")


@contextmanager
def edit_document(path: Path) -> Iterator[CstRoot]:
    """Parse a config file, yield its CST, then write it back.

    ABOUTME: All-or-nothing: an exception inside the block skips the write
    ABOUTME: Skips the write when the serialized text didn't change
    ABOUTME: Use it to batch several edits into one parse and one write

    Raises:
        ParseError: If the file isn't valid JSONC
        ConfigIOError: If reading or writing fails

    Examples:
        >>> with edit_document(path) as root:
        ...     root.ensure_object_at("provider").set("foo", {"npm": "foo"})
        ...     root.ensure_object_at("mcp").remove("old")
    """
    raw = read_config_raw(path)
    root = parse(raw)
    yield root
    updated = serialize(root)
    if updated != raw:
        write_config_raw(path, updated)


def set_property(path: Path, section: str, key: str, value: Any) -> None:
    """Set section.key to value, creating section if needed.

    ABOUTME: Replaces an existing value in place (its comments stay)
    ABOUTME: Appends key at the end of section if missing
    """
    with edit_document(path) as root:
        root.ensure_object_at(section).set(key, value)


def merge_property(path: Path, section: str, key: str, value: Mapping[str, Any]) -> None:
    """Deep-merge value into section.key, creating either if needed.

    ABOUTME: Fields under section.key that value doesn't mention survive
    """
    with edit_document(path) as root:
        section_obj = root.ensure_object_at(section)
        existing = section_obj.object_value(key)
        if existing is None:
            section_obj.set(key, dict(value))
        else:
            deep_merge(existing, value)


def remove_property(path: Path, section: str, key: str) -> bool:
    """Remove section.key.

    ABOUTME: No-op (not an error) if section or key is missing

    Returns:
        True if the key was found and removed
    """
    with edit_document(path) as root:
        section_obj = root.object_at(section)
        return section_obj is not None and section_obj.remove(key)
