# ABOUTME: Concrete syntax tree for JSON-with-comments (JSONC) documents
# ABOUTME: serialize(parse(text)) == text, and edits only rewrite the edited span
import json
import re
from collections.abc import Mapping
from typing import Any, NamedTuple

from mcpbridge.errors import ParseError

# ABOUTME: Indent unit used when the document gives no hint
DEFAULT_INDENT_UNIT = "  "

# ABOUTME: Deepest object/array nesting the parser accepts
MAX_NESTING_DEPTH = 200

_TOKEN_PATTERN = re.compile(
    r"""
      (?P<ws>[ \t\r\n\ufeff]+)
    | (?P<line_comment>//[^\n]*)
    | (?P<block_comment>/\*.*?\*/)
    | (?P<string>"(?:[^"\\\x00-\x1f]|\\(?:["\\/bfnrt]|u[0-9a-fA-F]{4}))*")
    | (?P<number>-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?)
    | (?P<literal>true|false|null)
    | (?P<punct>[{}\[\]:,])
    """,
    re.VERBOSE | re.DOTALL,
)

_TRIVIA = frozenset({"ws", "line_comment", "block_comment"})

# Lines that open with a key or a closing bracket reveal the indent unit
_INDENT_PATTERN = re.compile(r"\n([ \t]+)[\"\]}]")


class _Token(NamedTuple):
    kind: str
    text: str
    offset: int


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    length = len(text)

    while pos < length:
        match = _TOKEN_PATTERN.match(text, pos)
        if match is None:
            raise ParseError.at(_describe_bad_input(text, pos), text, pos)
        kind = match.lastgroup or ""
        value = match.group()
        if kind == "punct":
            kind = value
        tokens.append(_Token(kind, value, pos))
        pos = match.end()

    return tokens


def _describe_bad_input(text: str, pos: int) -> str:
    if text.startswith("/*", pos):
        return "Unterminated block comment"
    if text[pos] == '"':
        return "Invalid or unterminated string literal"
    if text[pos] == "'":
        return "Single-quoted strings are not allowed"
    return f"Unexpected character {text[pos]!r}"


def _detect_indent_unit(text: str) -> str:
    """Guess one indentation step from the document's own lines."""
    indents = [m.group(1) for m in _INDENT_PATTERN.finditer(text)]
    if not indents:
        return DEFAULT_INDENT_UNIT
    if any(indent.startswith("\t") for indent in indents):
        return "\t"
    return " " * min(len(indent) for indent in indents)


def _split_same_line(tokens: list[_Token]) -> tuple[str, str]:
    """Split trivia into the part on the current line and the rest.

    ABOUTME: Never splits inside a comment
    ABOUTME: Without a newline everything counts as the rest
    """
    for i, tok in enumerate(tokens):
        if tok.kind == "ws" and "\n" in tok.text:
            cut = tok.text.index("\n")
            head = "".join(t.text for t in tokens[:i]) + tok.text[:cut]
            rest = tok.text[cut:] + "".join(t.text for t in tokens[i + 1:])
            return head, rest
        if tok.kind == "block_comment" and "\n" in tok.text:
            break
    return "", "".join(t.text for t in tokens)


def _split_trivia(trivia: str) -> tuple[str, str]:
    return _split_same_line(_tokenize(trivia))


def _ends_with_line_comment(trivia: str) -> bool:
    tokens = [t for t in _tokenize(trivia) if t.kind != "ws" or "\n" in t.text]
    return bool(tokens) and tokens[-1].kind == "line_comment"


def _trailing_whitespace(trivia: str) -> str:
    match = re.search(r"[ \t\r\n]*\Z", trivia)
    return match.group() if match else ""


def _line_whitespace(trivia: str) -> str:
    """Indentation on the last line of a trivia run."""
    last_line = trivia[trivia.rfind("\n") + 1:]
    match = re.match(r"[ \t]*", last_line)
    return match.group() if match else ""


class CstNode:
    """A value inside a CST.

    ABOUTME: Knows its parent so it can replace or remove itself
    """

    def __init__(self) -> None:
        self.parent: "_Container | CstRoot | None" = None

    def to_string(self) -> str:
        raise NotImplementedError

    def to_python(self) -> Any:
        raise NotImplementedError

    def replace(self, value: Any) -> "CstNode":
        """Replace this node in its parent with a plain Python value."""
        if self.parent is None:
            raise ValueError("Cannot replace a detached node")
        return self.parent._replace_child(self, value)

    def remove(self) -> None:
        """Remove this node (and its property or element) from its parent."""
        if self.parent is None:
            raise ValueError("Cannot remove a detached node")
        self.parent._remove_child(self)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_string()!r})"


class _Leaf(CstNode):
    def __init__(self, raw: str) -> None:
        super().__init__()
        self.raw = raw

    def to_string(self) -> str:
        return self.raw

    def to_python(self) -> Any:
        return json.loads(self.raw)


class CstNull(_Leaf):
    pass


class CstBool(_Leaf):
    @property
    def value(self) -> bool:
        return self.raw == "true"


class CstNumber(_Leaf):
    """Number kept as its original literal so no precision is lost."""

    @property
    def value(self) -> int | float:
        return self.to_python()


class CstString(_Leaf):
    @property
    def value(self) -> str:
        return self.to_python()


class _Entry:
    """One slot in a container with the trivia around it.

    ABOUTME: leading is the trivia before the entry, trailing the trivia before
    ABOUTME: the next ',' or closing bracket, tail the same-line trivia after ','
    """

    def __init__(self, leading: str, value: CstNode, trailing: str = "", tail: str = "") -> None:
        self.leading = leading
        self.value = value
        self.trailing = trailing
        self.tail = tail

    def head(self) -> str:
        return self.leading

    def to_string(self) -> str:
        return self.head() + self.value.to_string() + self.trailing


class CstElement(_Entry):
    """An array element."""


class CstProperty(_Entry):
    """An object property: key, colon and value."""

    def __init__(
        self,
        leading: str,
        key_raw: str,
        pre_colon: str,
        post_colon: str,
        value: CstNode,
        trailing: str = "",
        tail: str = "",
    ) -> None:
        super().__init__(leading, value, trailing, tail)
        self.key_raw = key_raw
        self.pre_colon = pre_colon
        self.post_colon = post_colon

    @property
    def key(self) -> str:
        return json.loads(self.key_raw)

    def head(self) -> str:
        return self.leading + self.key_raw + self.pre_colon + ":" + self.post_colon


class _Container(CstNode):
    _open = ""
    _close = ""

    def __init__(self, indent: str = "", unit: str = DEFAULT_INDENT_UNIT) -> None:
        super().__init__()
        self._entries: list[Any] = []
        self._inner = ""  # trivia between the brackets when empty
        self.indent = indent
        self.unit = unit

    def __len__(self) -> int:
        return len(self._entries)

    def to_string(self) -> str:
        parts = [self._open]
        if not self._entries:
            parts.append(self._inner)
        for i, entry in enumerate(self._entries):
            if i:
                parts.append(",")
                parts.append(self._entries[i - 1].tail)
            parts.append(entry.to_string())
        parts.append(self._close)
        return "".join(parts)

    def _is_multiline(self) -> bool:
        if not self._entries:
            return "\n" in self._inner
        return any("\n" in e.leading for e in self._entries) or "\n" in self._entries[-1].trailing

    def _child_indent(self) -> str:
        for entry in reversed(self._entries):
            if "\n" in entry.leading:
                return _line_whitespace(entry.leading)
        return self.indent + self.unit

    def _opens_multiline(self, value: Any) -> bool:
        raise NotImplementedError

    def _opens_empty_multiline(self, value: Any) -> bool:
        return "\n" in self._inner or self._opens_multiline(value)

    def _entry_line_indent(self, value: Any) -> str:
        """Indentation of the line a new or replaced value starts on."""
        if self._entries:
            return self._child_indent() if self._is_multiline() else self.indent
        return self.indent + self.unit if self._opens_empty_multiline(value) else self.indent

    def _index_of(self, node: CstNode) -> int:
        for i, entry in enumerate(self._entries):
            if entry.value is node:
                return i
        raise ValueError("Node is not a child of this container")

    def _add_entry(self, entry: _Entry, value: Any) -> None:
        entry.value.parent = self

        if not self._entries:
            core = self._inner.rstrip()
            if self._opens_empty_multiline(value):
                entry.leading = core + "\n" + self.indent + self.unit
                entry.trailing = "\n" + self.indent
            else:
                entry.leading = core + " " if core else ""
                entry.trailing = ""
            self._inner = ""
            self._entries.append(entry)
            return

        last = self._entries[-1]
        if self._is_multiline():
            same_line, rest = _split_trivia(last.trailing)
            last.trailing = ""
            last.tail = same_line
            entry.leading = "\n" + self._child_indent()
            entry.trailing = rest
        else:
            separator = self._entries[-1].leading if len(self._entries) > 1 else " "
            entry.leading = separator if not separator.strip() else " "
            # Comments stay with their value; only the closing whitespace moves
            closing = _trailing_whitespace(last.trailing)
            last.trailing = last.trailing[:len(last.trailing) - len(closing)]
            last.tail = ""
            entry.trailing = closing
        self._entries.append(entry)

    def _replace_child(self, old: CstNode, value: Any) -> CstNode:
        entry = self._entries[self._index_of(old)]
        node = value_to_cst(value, self._entry_line_indent(value), self.unit)
        node.parent = self
        old.parent = None
        entry.value = node
        return node

    def _remove_child(self, node: CstNode) -> None:
        index = self._index_of(node)
        removed = self._entries.pop(index)
        removed.value.parent = None

        if not self._entries:
            self._inner = ""
            return

        if index == len(self._entries):
            # Removed the last entry: the previous one loses its comma
            prev = self._entries[-1]
            kept = prev.trailing + prev.tail
            closing = _trailing_whitespace(removed.trailing)
            if _ends_with_line_comment(kept) and "\n" not in closing:
                closing = "\n" + self.indent
            prev.trailing = kept + closing
            prev.tail = ""
        elif index == 0 and "\n" not in self._entries[0].leading:
            self._entries[0].leading = removed.leading


class CstObject(_Container):
    """A JSON object whose properties keep their comments and layout."""

    _open = "{"
    _close = "}"

    def _opens_multiline(self, value: Any) -> bool:
        return True

    def properties(self) -> list[CstProperty]:
        return list(self._entries)

    def keys(self) -> list[str]:
        return [prop.key for prop in self._entries]

    def _find(self, key: str) -> CstProperty | None:
        for prop in self._entries:
            if prop.key == key:
                return prop
        return None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._find(key) is not None

    def get(self, key: str) -> CstNode | None:
        prop = self._find(key)
        return prop.value if prop else None

    def set(self, key: str, value: Any) -> CstNode:
        """Replace the value of key in place, or append key if missing.

        ABOUTME: Replacing keeps the key's own comments and whitespace
        """
        prop = self._find(key)
        if prop is not None:
            return prop.value.replace(value)
        return self.append(key, value)

    def append(self, key: str, value: Any) -> CstNode:
        """Append a new property at the end with the container's formatting."""
        node = value_to_cst(value, self._entry_line_indent(value), self.unit)
        entry = CstProperty("", json.dumps(key, ensure_ascii=False), "", " ", node)
        self._add_entry(entry, value)
        return node

    def remove(self, key: str | None = None) -> bool:  # type: ignore[override]
        """Remove key, or this object itself when called without a key.

        ABOUTME: Returns False if key wasn't present
        """
        if key is None:
            super().remove()
            return True
        prop = self._find(key)
        if prop is None:
            return False
        prop.value.remove()
        return True

    def object_value(self, key: str) -> "CstObject | None":
        node = self.get(key)
        return node if isinstance(node, CstObject) else None

    def object_value_or_set(self, key: str) -> "CstObject":
        """Return the object at key, creating (or overwriting with) {} if needed."""
        node = self.get(key)
        if isinstance(node, CstObject):
            return node
        created = self.append(key, {}) if node is None else node.replace({})
        assert isinstance(created, CstObject)
        return created

    def array_value(self, key: str) -> "CstArray | None":
        node = self.get(key)
        return node if isinstance(node, CstArray) else None

    def array_value_or_set(self, key: str) -> "CstArray":
        node = self.get(key)
        if isinstance(node, CstArray):
            return node
        created = self.append(key, []) if node is None else node.replace([])
        assert isinstance(created, CstArray)
        return created

    def to_python(self) -> dict[str, Any]:
        return {prop.key: prop.value.to_python() for prop in self._entries}


class CstArray(_Container):
    """A JSON array whose elements keep their comments and layout."""

    _open = "["
    _close = "]"

    def _opens_multiline(self, value: Any) -> bool:
        return isinstance(value, (Mapping, list, tuple))

    def elements(self) -> list[CstNode]:
        return [entry.value for entry in self._entries]

    def append(self, value: Any) -> CstNode:
        node = value_to_cst(value, self._entry_line_indent(value), self.unit)
        self._add_entry(CstElement("", node), value)
        return node

    def to_python(self) -> list[Any]:
        return [entry.value.to_python() for entry in self._entries]


class CstRoot:
    """A whole parsed document: trivia, one top-level value, trivia.

    ABOUTME: Owns the tree; child nodes are reached through path helpers
    """

    def __init__(
        self,
        leading: str = "",
        value: CstNode | None = None,
        trailing: str = "",
        unit: str = DEFAULT_INDENT_UNIT,
    ) -> None:
        self.leading = leading
        self.value = value
        self.trailing = trailing
        self.unit = unit
        if value is not None:
            value.parent = self

    def to_string(self) -> str:
        body = self.value.to_string() if self.value is not None else ""
        return self.leading + body + self.trailing

    def __str__(self) -> str:
        return self.to_string()

    def to_python(self) -> Any:
        return self.value.to_python() if self.value is not None else None

    def set_value(self, value: Any) -> CstNode:
        """Replace the top-level value."""
        if self.value is None and not self.leading.strip() and not self.trailing:
            self.trailing = "\n"
        node = value_to_cst(value, "", self.unit)
        if self.value is not None:
            self.value.parent = None
        node.parent = self
        self.value = node
        return node

    def _replace_child(self, old: CstNode, value: Any) -> CstNode:
        return self.set_value(value)

    def _remove_child(self, node: CstNode) -> None:
        node.parent = None
        self.value = None

    def object_value(self) -> CstObject | None:
        return self.value if isinstance(self.value, CstObject) else None

    def object_value_or_set(self) -> CstObject:
        """Return the root object, replacing a missing or non-object root with {}."""
        if isinstance(self.value, CstObject):
            return self.value
        created = self.set_value({})
        assert isinstance(created, CstObject)
        return created

    def array_value(self) -> CstArray | None:
        return self.value if isinstance(self.value, CstArray) else None

    def object_at(self, *path: str) -> CstObject | None:
        """Walk nested objects by key. Returns None if any step is missing."""
        node = self.object_value()
        for key in path:
            if node is None:
                return None
            node = node.object_value(key)
        return node

    def ensure_object_at(self, *path: str) -> CstObject:
        """Walk nested objects by key, creating each missing one."""
        node = self.object_value_or_set()
        for key in path:
            node = node.object_value_or_set(key)
        return node

    def array_at(self, *path: str) -> CstArray | None:
        if not path:
            return self.array_value()
        parent = self.object_at(*path[:-1])
        return parent.array_value(path[-1]) if parent is not None else None

    def ensure_array_at(self, *path: str) -> CstArray:
        if not path:
            raise ValueError("ensure_array_at() needs at least one key")
        return self.ensure_object_at(*path[:-1]).array_value_or_set(path[-1])


class _Parser:
    def __init__(self, text: str, unit: str | None = None, base_indent: str = "") -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0
        self.unit = unit or _detect_indent_unit(text)
        self.base_indent = base_indent
        self.depth = 0

    def _peek(self) -> _Token | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _error(self, message: str, token: _Token | None = None) -> ParseError:
        offset = token.offset if token is not None else len(self.text)
        return ParseError.at(message, self.text, offset)

    def _trivia_tokens(self) -> list[_Token]:
        start = self.pos
        while self.pos < len(self.tokens) and self.tokens[self.pos].kind in _TRIVIA:
            self.pos += 1
        return self.tokens[start:self.pos]

    def _trivia(self) -> str:
        return "".join(t.text for t in self._trivia_tokens())

    def _line_indent(self, offset: int) -> str:
        start = self.text.rfind("\n", 0, offset) + 1
        match = re.match(r"[ \t]*", self.text[start:offset])
        indent = match.group() if match else ""
        return self.base_indent + indent if start == 0 else indent

    def parse_root(self) -> CstRoot:
        leading = self._trivia()
        if self._peek() is None:
            return CstRoot(leading, None, "", self.unit)
        value = self._parse_value()
        trailing = self._trivia()
        tok = self._peek()
        if tok is not None:
            raise self._error(f"Unexpected {tok.text!r} after the top-level value", tok)
        return CstRoot(leading, value, trailing, self.unit)

    def parse_value(self) -> CstNode:
        value = self._parse_value()
        tok = self._peek()
        if tok is not None:
            raise self._error(f"Unexpected {tok.text!r} after value", tok)
        return value

    def _parse_value(self) -> CstNode:
        tok = self._peek()
        if tok is None:
            raise self._error("Unexpected end of input, expected a value")
        if tok.kind == "{":
            return self._parse_container(CstObject(self._line_indent(tok.offset), self.unit))
        if tok.kind == "[":
            return self._parse_container(CstArray(self._line_indent(tok.offset), self.unit))

        self.pos += 1
        if tok.kind == "string":
            return CstString(tok.text)
        if tok.kind == "number":
            return CstNumber(tok.text)
        if tok.kind == "literal":
            return CstNull(tok.text) if tok.text == "null" else CstBool(tok.text)
        raise self._error(f"Unexpected {tok.text!r}, expected a value", tok)

    def _parse_entry(self, container: _Container, leading: str) -> _Entry:
        if isinstance(container, CstArray):
            return CstElement(leading, self._parse_value())

        tok = self._peek()
        if tok is None or tok.kind != "string":
            raise self._error("Expected a property name in double quotes", tok)
        self.pos += 1
        pre_colon = self._trivia()
        colon = self._peek()
        if colon is None or colon.kind != ":":
            raise self._error("Expected ':' after property name", colon)
        self.pos += 1
        post_colon = self._trivia()
        return CstProperty(leading, tok.text, pre_colon, post_colon, self._parse_value())

    def _parse_container(self, node: _Container) -> CstNode:
        if self.depth >= MAX_NESTING_DEPTH:
            raise self._error(f"Document nested more than {MAX_NESTING_DEPTH} levels deep", self._peek())
        self.depth += 1
        try:
            return self._parse_entries(node)
        finally:
            self.depth -= 1

    def _parse_entries(self, node: _Container) -> CstNode:
        self.pos += 1  # opening bracket
        close = node._close
        leading = self._trivia()

        tok = self._peek()
        if tok is not None and tok.kind == close:
            self.pos += 1
            node._inner = leading
            return node

        entries: list[_Entry] = []
        while True:
            entry = self._parse_entry(node, leading)
            entry.trailing = self._trivia()
            entries.append(entry)

            tok = self._peek()
            if tok is None:
                raise self._error(f"Unexpected end of input, expected ',' or '{close}'")
            if tok.kind == close:
                self.pos += 1
                break
            if tok.kind != ",":
                raise self._error(f"Expected ',' or '{close}', found {tok.text!r}", tok)
            self.pos += 1
            entry.tail, leading = _split_same_line(self._trivia_tokens())

            tok = self._peek()
            if tok is not None and tok.kind == close:
                raise self._error("Trailing comma is not allowed", tok)

        for entry in entries:
            entry.value.parent = node
        node._entries = entries
        return node


def parse(text: str) -> CstRoot:
    """Parse a JSONC document into a round-trippable CST.

    ABOUTME: Strict JSON plus // and /* */ comments
    ABOUTME: No trailing commas, unquoted keys or single-quoted strings

    Raises:
        ParseError: With the line and column of the first problem
    """
    return _Parser(text).parse_root()


def serialize(root: CstRoot) -> str:
    """Render a CST back to text; untouched regions come back byte-for-byte."""
    return root.to_string()


def _render(value: Any, indent: str, unit: str) -> str:
    if isinstance(value, Mapping):
        if not value:
            return "{}"
        inner = indent + unit
        items = []
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"Object keys must be strings, got {type(key).__name__}")
            items.append(f"{inner}{json.dumps(key, ensure_ascii=False)}: {_render(item, inner, unit)}")
        return "{\n" + ",\n".join(items) + "\n" + indent + "}"

    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        if not any(isinstance(item, (Mapping, list, tuple)) for item in value):
            return "[" + ", ".join(_render(item, indent, unit) for item in value) + "]"
        inner = indent + unit
        items = [inner + _render(item, inner, unit) for item in value]
        return "[\n" + ",\n".join(items) + "\n" + indent + "]"

    if value is None or isinstance(value, (bool, int, float, str)):
        return json.dumps(value, ensure_ascii=False, allow_nan=False)

    raise TypeError(f"Cannot convert {type(value).__name__} to a JSON value")


def value_to_cst(value: Any, indent: str = "", unit: str = DEFAULT_INDENT_UNIT) -> CstNode:
    """Build a detached CST node from a plain Python value.

    ABOUTME: Nested dicts render multi-line; lists of scalars render inline

    Args:
        value: dict, list, str, int, float, bool or None
        indent: Indentation of the line the value starts on
        unit: One indentation step

    Raises:
        TypeError: If value (or anything inside it) is not JSON-compatible
    """
    text = _render(value, indent, unit)
    return _Parser(text, unit=unit, base_indent=indent).parse_value()
