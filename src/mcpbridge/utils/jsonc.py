# ABOUTME: Read-only decoding of JSON-with-comments (JSONC) documents
# ABOUTME: Stripping is lossy, so stripped text is never written back
import json
from pathlib import Path
from typing import Any

from mcpbridge.errors import ConfigIOError, ParseError


def strip_jsonc_comments(text: str) -> str:
    """Strip // and /* */ comments from JSONC using a state machine.

    ABOUTME: Tracks string literals so "//" inside a URL survives
    ABOUTME: Escaped quotes do not end a string literal
    ABOUTME: Leaves trailing commas alone (plain JSON decoding rejects them)

    Args:
        text: Raw JSONC document

    Returns:
        The document with all comments removed

    Examples:
        >>> strip_jsonc_comments('{"url": "http://x" // note\\n}')
        '{"url": "http://x" \\n}'
    """
    result: list[str] = []
    i = 0
    length = len(text)
    in_string = False
    escape = False

    while i < length:
        ch = text[i]

        if in_string:
            result.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            result.append(ch)
            i += 1
            continue

        nxt = text[i + 1] if i + 1 < length else ""
        if ch == "/" and nxt == "/":
            # Line comment runs up to (not including) the newline
            end = text.find("\n", i)
            i = length if end == -1 else end
            continue
        if ch == "/" and nxt == "*":
            end = text.find("*/", i + 2)
            i = length if end == -1 else end + 2
            continue

        result.append(ch)
        i += 1

    return "".join(result)


def loads_jsonc(text: str, source: str | Path | None = None) -> Any:
    """Decode a JSONC document into plain Python values.

    ABOUTME: Fail-fast with a ParseError naming the offending text

    Raises:
        ParseError: If the text is not valid JSON once comments are removed
    """
    stripped = strip_jsonc_comments(text)
    where = f" in {source}" if source else ""
    try:
        return json.loads(stripped)
    except RecursionError as e:
        raise ParseError(f"Invalid JSON{where}: document nested too deeply") from e
    except json.JSONDecodeError as e:
        snippet = stripped[e.pos:e.pos + 20].split("\n")[0]
        raise ParseError(
            f"Invalid JSON{where}: {e.msg} near {snippet!r}",
            offset=e.pos,
            line=e.lineno,
            column=e.colno,
        ) from e


def read_jsonc_file(path: Path, default: Any = None) -> Any:
    """Read and decode a JSONC file.

    ABOUTME: Returns default (or an empty dict) if the file doesn't exist
    ABOUTME: Raises ConfigIOError for other read failures
    """
    if not path.exists():
        return {} if default is None else default

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigIOError(path, e) from e

    return loads_jsonc(content, source=path)
