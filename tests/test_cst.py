# ABOUTME: Tests for the JSONC concrete syntax tree
# ABOUTME: Round-trips, edit locality, appends, removals and parse errors
import json

import pytest

from mcpbridge.cst import (
    MAX_NESTING_DEPTH,
    CstArray,
    CstNumber,
    CstObject,
    CstString,
    parse,
    serialize,
    value_to_cst,
)
from mcpbridge.errors import ParseError
from mcpbridge.utils.jsonc import loads_jsonc

DOCUMENT = """// top comment
{
  /* block */ "a" /* pre */ : /* post */ 1, // after a
  "b": [ 1,2 ,3 ],
  "c": { },
  "d": [ // inside
  ],
  "e": "caf\\u00e9",
  "f": -1.50e+3,
  "g": null, "h": true
}
// end
"""

SIMPLE = """{
  // keep me
  "a": 1, // note
  "b": [1, 2]
}"""

THREE = """{
  "a": 1, // ca
  "b": 2, // cb
  "c": 3
}"""


class TestRoundTrip:
    """Tests that parse then serialize is the identity."""

    @pytest.mark.parametrize("text", [
        DOCUMENT,
        SIMPLE,
        THREE,
        "{}",
        "[]",
        "  \n",
        "\ufeff{\"a\": 1}\n",
        "{\n\t\"tabbed\": [\n\t\t\"x\"\n\t]\n}",
        '"just a string"',
        "{\r\n  \"crlf\": 1\r\n}\r\n",
    ])
    def test_round_trip_is_byte_identical(self, text: str) -> None:
        """Test serialize(parse(text)) == text."""
        assert serialize(parse(text)) == text

    def test_to_python_matches_stripped_decode(self) -> None:
        """Test the tree's plain value matches comment-stripped decoding."""
        assert parse(DOCUMENT).to_python() == loads_jsonc(DOCUMENT)

    def test_number_literal_kept_verbatim(self) -> None:
        """Test numbers keep their original spelling."""
        root = parse('{"n": 1.0e10}')
        node = root.object_value().get("n")

        assert isinstance(node, CstNumber)
        assert node.value == 1.0e10
        assert serialize(root) == '{"n": 1.0e10}'

    def test_string_value_is_decoded(self) -> None:
        """Test escaped strings decode through .value."""
        node = parse(DOCUMENT).object_value().get("e")

        assert isinstance(node, CstString)
        assert node.value == "café"


class TestReplace:
    """Tests for replacing values in place."""

    def test_replace_scalar_keeps_everything_else(self) -> None:
        """Test only the replaced value changes."""
        root = parse(SIMPLE)
        root.object_value().set("a", 5)

        assert serialize(root) == SIMPLE.replace('"a": 1', '"a": 5')

    def test_replace_keeps_comments_around_key(self) -> None:
        """Test comments between key and value survive a replace."""
        root = parse('{"a" /* k */: 1}')
        root.object_value().set("a", 2)

        assert serialize(root) == '{"a" /* k */: 2}'

    def test_replace_scalar_with_object_is_indented(self) -> None:
        """Test a nested object renders at the property's depth."""
        root = parse('{\n  "a": 1\n}')
        root.object_value().set("a", {"b": 2})

        assert serialize(root) == '{\n  "a": {\n    "b": 2\n  }\n}'

    def test_object_value_or_set_overwrites_non_object(self) -> None:
        """Test a scalar in the way is replaced with {}."""
        root = parse('{"a": 1}')
        created = root.object_value().object_value_or_set("a")

        assert isinstance(created, CstObject)
        assert serialize(root) == '{"a": {}}'


class TestAppend:
    """Tests for appending properties and elements."""

    def test_append_to_multiline_object(self) -> None:
        """Test a new property gets its own line at the sibling indent."""
        root = parse(SIMPLE)
        root.object_value().set("c", True)

        assert serialize(root) == """{
  // keep me
  "a": 1, // note
  "b": [1, 2],
  "c": true
}"""

    def test_append_object_value(self) -> None:
        """Test an appended object is laid out multi-line."""
        root = parse(SIMPLE)
        root.object_value().set("d", {"x": 1})

        assert serialize(root).endswith('"b": [1, 2],\n  "d": {\n    "x": 1\n  }\n}')

    def test_append_after_trailing_line_comment(self) -> None:
        """Test the comma goes before a trailing // comment, not inside it."""
        root = parse('{\n  "a": 1 // note\n}')
        root.object_value().set("b", 2)

        assert serialize(root) == '{\n  "a": 1, // note\n  "b": 2\n}'

    def test_append_to_empty_object(self) -> None:
        """Test the first property opens the object onto new lines."""
        root = parse("{}")
        root.object_value().set("a", 1)

        assert serialize(root) == '{\n  "a": 1\n}'

    def test_append_to_empty_object_keeps_inner_comment(self) -> None:
        """Test a comment inside an empty object stays."""
        root = parse("{ /* c */ }")
        root.object_value().set("a", 1)

        assert serialize(root) == '{ /* c */\n  "a": 1\n}'

    def test_append_to_inline_array(self) -> None:
        """Test scalars append inline with the existing separator."""
        root = parse('["a", "b"]')
        root.array_value().append("c")

        assert serialize(root) == '["a", "b", "c"]'

    def test_append_inline_keeps_comment_on_its_value(self) -> None:
        """Test a block comment after the last value stays before the new comma."""
        root = parse('{"a": 1 /* about a */}')
        root.object_value().set("b", 2)

        assert serialize(root) == '{"a": 1 /* about a */, "b": 2}'

    def test_append_inline_moves_closing_space(self) -> None:
        """Test padding before the closing bracket follows the new last element."""
        root = parse("[1, 2 ]")
        root.array_value().append(3)

        assert serialize(root) == "[1, 2, 3 ]"

    def test_append_to_empty_array(self) -> None:
        """Test a scalar goes inline into an empty array."""
        root = parse('{"plugin": []}')
        root.array_at("plugin").append("x")

        assert serialize(root) == '{"plugin": ["x"]}'

    def test_append_uses_four_space_indent(self) -> None:
        """Test the document's indent unit is reused."""
        root = parse('{\n    "a": 1\n}')
        root.object_value().set("b", {"x": 1})

        assert serialize(root) == '{\n    "a": 1,\n    "b": {\n        "x": 1\n    }\n}'

    def test_append_uses_tab_indent(self) -> None:
        """Test tab-indented documents stay tab-indented."""
        root = parse('{\n\t"a": 1\n}')
        root.object_value().set("b", 2)

        assert serialize(root) == '{\n\t"a": 1,\n\t"b": 2\n}'

    def test_ensure_object_on_blank_document(self) -> None:
        """Test a blank document grows a root object."""
        root = parse("")
        root.ensure_object_at("mcp")

        assert serialize(root) == '{\n  "mcp": {}\n}\n'

    def test_nested_ensure_then_set(self) -> None:
        """Test nested creation produces valid, indented JSON."""
        root = parse("{}")
        root.ensure_object_at("mcp").set("fs", {"type": "local"})

        text = serialize(root)
        assert json.loads(text) == {"mcp": {"fs": {"type": "local"}}}
        assert '\n    "fs": {\n      "type": "local"\n    }' in text

    def test_unsupported_value_raises_type_error(self) -> None:
        """Test non-JSON values are rejected."""
        root = parse("{}")
        with pytest.raises(TypeError):
            root.object_value().set("a", object())

    def test_nan_is_rejected(self) -> None:
        """Test NaN is not written as invalid JSON."""
        root = parse("{}")
        with pytest.raises(ValueError):
            root.object_value().set("a", float("nan"))


class TestRemove:
    """Tests for removing properties and elements."""

    def test_remove_middle_property(self) -> None:
        """Test the removed line and its comment go, neighbours stay."""
        root = parse(THREE)
        assert root.object_value().remove("b") is True

        assert serialize(root) == '{\n  "a": 1, // ca\n  "c": 3\n}'

    def test_remove_last_property_drops_comma(self) -> None:
        """Test the new last property loses its comma but keeps its comment."""
        root = parse(THREE)
        root.object_value().remove("c")

        assert serialize(root) == '{\n  "a": 1, // ca\n  "b": 2 // cb\n}'

    def test_remove_first_property(self) -> None:
        """Test removing the first property."""
        root = parse(THREE)
        root.object_value().remove("a")

        assert serialize(root) == '{\n  "b": 2, // cb\n  "c": 3\n}'

    def test_remove_every_property(self) -> None:
        """Test an emptied object collapses to {}."""
        root = parse(THREE)
        obj = root.object_value()
        for key in ("a", "b", "c"):
            obj.remove(key)

        assert serialize(root) == "{}"

    def test_remove_missing_key_is_noop(self) -> None:
        """Test removing an absent key returns False and changes nothing."""
        root = parse(THREE)

        assert root.object_value().remove("zzz") is False
        assert serialize(root) == THREE

    def test_remove_inline_properties(self) -> None:
        """Test removals in a single-line object."""
        root = parse('{"a": 1, "b": 2}')
        root.object_value().remove("a")
        assert serialize(root) == '{"b": 2}'

        root = parse('{"a": 1, "b": 2}')
        root.object_value().remove("b")
        assert serialize(root) == '{"a": 1}'

    def test_remove_inline_array_element(self) -> None:
        """Test removing a middle element keeps separators tidy."""
        root = parse("[1, 2, 3]")
        array = root.array_value()
        array.elements()[1].remove()

        assert serialize(root) == "[1, 3]"

    def test_remove_node_itself(self) -> None:
        """Test an object can remove itself from its parent."""
        root = parse('{\n  "a": 1,\n  "b": {}\n}')
        root.object_value().object_value("b").remove()

        assert serialize(root) == '{\n  "a": 1\n}'

    def test_detached_node_cannot_be_removed(self) -> None:
        """Test a node with no parent raises ValueError."""
        with pytest.raises(ValueError):
            value_to_cst(1).remove()


class TestParseErrors:
    """Tests for malformed input."""

    def test_trailing_comma(self) -> None:
        """Test trailing commas are rejected with their location."""
        with pytest.raises(ParseError, match="Trailing comma") as exc_info:
            parse('{"a": 1,}')

        assert exc_info.value.line == 1
        assert exc_info.value.column == 9

    def test_unquoted_key(self) -> None:
        """Test bare keys are rejected."""
        with pytest.raises(ParseError, match="Unexpected character 'a'"):
            parse("{a: 1}")

    def test_single_quoted_string(self) -> None:
        """Test single quotes are rejected."""
        with pytest.raises(ParseError, match="Single-quoted"):
            parse("{'a': 1}")

    def test_missing_comma(self) -> None:
        """Test two properties without a comma."""
        with pytest.raises(ParseError, match="Expected ',' or '}'"):
            parse('{"a": 1 "b": 2}')

    def test_unterminated_block_comment(self) -> None:
        """Test an unclosed /* comment."""
        with pytest.raises(ParseError, match="Unterminated block comment"):
            parse("{} /* x")

    def test_missing_value_reports_line_and_column(self) -> None:
        """Test locations on later lines."""
        with pytest.raises(ParseError) as exc_info:
            parse('{\n  "a": ,\n}')

        assert exc_info.value.line == 2
        assert exc_info.value.column == 8
        assert str(exc_info.value).endswith("at line 2 column 8")

    def test_content_after_top_level_value(self) -> None:
        """Test a second top-level value is rejected."""
        with pytest.raises(ParseError, match="after the top-level value"):
            parse("{} {}")

    def test_unexpected_end(self) -> None:
        """Test truncated input."""
        with pytest.raises(ParseError, match="Unexpected end of input"):
            parse('{"a": [1, 2')

    def test_deep_nesting(self) -> None:
        """Test a deeply nested document is rejected with a location."""
        with pytest.raises(ParseError, match="nested more than 200 levels") as exc_info:
            parse("[" * 5000 + "]" * 5000)

        assert exc_info.value.column == 201

    def test_nesting_at_the_limit_round_trips(self) -> None:
        """Test documents up to the depth limit still parse."""
        text = "[" * MAX_NESTING_DEPTH + "]" * MAX_NESTING_DEPTH

        assert serialize(parse(text)) == text


class TestPathHelpers:
    """Tests for CstRoot path helpers."""

    def test_object_at_missing_returns_none(self) -> None:
        """Test object_at walks nested objects and stops at gaps."""
        root = parse('{"a": {"b": {}}}')

        assert isinstance(root.object_at("a", "b"), CstObject)
        assert root.object_at("a", "x") is None
        assert root.object_at("a", "b", "c") is None

    def test_ensure_array_at_creates_list(self) -> None:
        """Test ensure_array_at creates the array and its parents."""
        root = parse("{}")
        array = root.ensure_array_at("plugin")

        assert isinstance(array, CstArray)
        assert root.to_python() == {"plugin": []}

    def test_keys_keep_document_order(self) -> None:
        """Test keys() follows the text order."""
        root = parse('{"z": 1, "a": 2, "m": 3}')

        assert root.object_value().keys() == ["z", "a", "m"]
        assert "a" in root.object_value()
