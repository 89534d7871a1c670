"""Tests for the built-in template functions.

Pure unit tests calling the functions directly, no template involved.
"""

import pytest

from netbox.docgen.errors import IndexOutOfRangeError, TemplateExecutionError
from netbox.docgen.functions import (
    index,
    join,
    length,
    lower,
    plainmarkdown,
    prefixlines,
    split,
    title,
    trimspace,
    upper,
)

SAMPLES = [
    "",
    "my Odly cAsed striNg",
    "  padded\t",
    "Ünïcödé Text",
    "line one\nLine Two\n",
    "MiXeD 123 _under_score",
]


class TestCaseFolding:
    """Verify upper and lower case folding."""

    @pytest.mark.parametrize("s", SAMPLES)
    def test_upper_after_lower(self, s):
        assert upper(lower(s)) == upper(s)

    @pytest.mark.parametrize("s", SAMPLES)
    def test_lower_after_upper(self, s):
        assert lower(upper(s)) == lower(s)

    def test_upper(self):
        assert upper("my Odly cAsed striNg") == "MY ODLY CASED STRING"

    def test_lower(self):
        assert lower("my Odly cAsed striNg") == "my odly cased string"

    def test_rejects_non_string(self):
        with pytest.raises(TemplateExecutionError, match="error calling upper"):
            upper(3)


class TestTitle:
    """Verify title casing of words."""

    def test_lowercases_rest_of_word(self):
        assert title("my Odly cAsed striNg") == "My Odly Cased String"

    def test_apostrophe_stays_inside_word(self):
        assert title("don't STOP") == "Don't Stop"

    def test_keeps_separators(self):
        assert title("hello-world  x") == "Hello-World  X"

    def test_empty(self):
        assert title("") == ""

    @pytest.mark.parametrize("s, expected", [
        ("ip_address", "Ip_address"),
        ("VLAN_GROUP id", "Vlan_group Id"),
        ("_private name", "_Private Name"),
    ])
    def test_underscore_joins_word(self, s, expected):
        assert title(s) == expected


class TestTrimspace:
    """Verify surrounding whitespace removal."""

    @pytest.mark.parametrize("s", SAMPLES + ["\n\t x y \r\n"])
    def test_no_surrounding_whitespace(self, s):
        result = trimspace(s)
        assert result == result.strip()

    @pytest.mark.parametrize("s", SAMPLES)
    def test_idempotent(self, s):
        assert trimspace(trimspace(s)) == trimspace(s)

    def test_inner_whitespace_kept(self):
        assert trimspace("  a  b  ") == "a  b"


class TestPrefixlines:
    """Verify every line gets the prefix."""

    def test_every_line_prefixed(self):
        assert prefixlines("  ", "This text used\nmultiple lines") == "  This text used\n  multiple lines"

    def test_blank_lines_prefixed(self):
        assert prefixlines("> ", "a\n\nb") == "> a\n> \n> b"

    def test_trailing_newline_gives_prefixed_empty_line(self):
        assert prefixlines("# ", "a\n") == "# a\n# "

    @pytest.mark.parametrize("s", SAMPLES)
    def test_line_count_preserved(self, s):
        assert prefixlines("--", s).count("\n") == s.count("\n")

    @pytest.mark.parametrize("s", SAMPLES)
    def test_all_lines_start_with_prefix(self, s):
        assert all(line.startswith("--") for line in prefixlines("--", s).split("\n"))

    @pytest.mark.parametrize("s", SAMPLES)
    def test_empty_prefix_is_identity(self, s):
        assert prefixlines("", s) == s


class TestSplit:
    """Verify splitting on a literal separator."""

    def test_basic(self):
        assert split("my Odly cAsed striNg", " ") == ["my", "Odly", "cAsed", "striNg"]

    def test_empty_fields_kept(self):
        assert split("a,b,,c", ",") == ["a", "b", "", "c"]

    def test_multi_character_separator(self):
        assert split("a<>b<>c", "<>") == ["a", "b", "c"]

    def test_separator_is_literal(self):
        assert split("a.b|c", ".") == ["a", "b|c"]

    def test_empty_string(self):
        assert split("", ",") == [""]

    def test_empty_separator_splits_characters(self):
        assert split("abc", "") == ["a", "b", "c"]


class TestIndex:
    """Verify positional and key lookups."""

    def test_position(self):
        assert index(["a", "b", "c", "d"], 3) == "d"

    def test_nested(self):
        assert index([["a", "b"], ["c", "d"]], 1, 0) == "c"

    def test_no_indices_returns_item(self):
        assert index(["a"]) == ["a"]

    def test_mapping_key(self):
        assert index({"k": "v"}, "k") == "v"

    def test_mapping_missing_key_is_none(self):
        assert index({"k": "v"}, "other") is None

    def test_out_of_range(self):
        with pytest.raises(IndexOutOfRangeError) as exc_info:
            index(["a", "b"], 2)
        assert exc_info.value.position == 2
        assert exc_info.value.length == 2
        assert "index out of range" in str(exc_info.value)

    def test_negative_is_out_of_range(self):
        with pytest.raises(IndexOutOfRangeError):
            index(["a", "b"], -1)

    def test_non_integer_position(self):
        with pytest.raises(TemplateExecutionError, match="cannot index"):
            index(["a"], "0")

    def test_nil(self):
        with pytest.raises(TemplateExecutionError, match="nil"):
            index(None, 0)

    def test_unindexable(self):
        with pytest.raises(TemplateExecutionError, match="can't index"):
            index(5, 0)


class TestPlainmarkdown:
    """Verify markdown markers are stripped to plain text."""

    def test_plain_text_unchanged(self):
        assert plainmarkdown("my Odly cAsed striNg") == "my Odly cAsed striNg"

    @pytest.mark.parametrize("markdown, expected", [
        ("# Heading", "Heading"),
        ("## Closed heading ##", "Closed heading"),
        ("**bold** and __strong__", "bold and strong"),
        ("*em* and _em_", "em and em"),
        ("~~gone~~", "gone"),
        ("use `terraform plan`", "use terraform plan"),
        ("[official documentation](https://docs.netbox.dev/)", "official documentation"),
        ("![diagram](img/diagram.png)", "diagram"),
        ("see [the docs][ref]", "see the docs"),
        ("<https://netbox.dev>", "https://netbox.dev"),
        ("> quoted text", "quoted text"),
        ("<b>bold</b> text", "bold text"),
        ("snake_case_name", "snake_case_name"),
    ])
    def test_strips_markers(self, markdown, expected):
        assert plainmarkdown(markdown) == expected

    def test_list_markers(self):
        assert plainmarkdown("- item one\n* item two\n1. item three") == "item one\nitem two\nitem three"

    def test_code_fence(self):
        assert plainmarkdown("```hcl\nresource \"netbox_tag\" \"x\" {}\n```") == 'resource "netbox_tag" "x" {}'

    @pytest.mark.parametrize("markdown, expected", [
        (r"Use \*glob\* patterns", "Use *glob* patterns"),
        (r"\_private\_ field", "_private_ field"),
        (r"a \`literal\` tick", "a `literal` tick"),
        (r"**bold** and \*\*not bold\*\*", "bold and **not bold**"),
        (r"\[not a link\](x)", "[not a link](x)"),
        (r"back\\slash", "back\\slash"),
    ])
    def test_escaped_markers_kept(self, markdown, expected):
        assert plainmarkdown(markdown) == expected

    def test_reference_definition_removed(self):
        assert plainmarkdown("text\n\n[ref]: https://example.com") == "text"

    def test_quoted_link_paragraph(self):
        source = (
            "From the [official documentation](https://docs.netbox.dev/en/stable/):\n"
            "\n"
            "> NetBox allows us to specify the portions of IP space."
        )
        assert plainmarkdown(source) == (
            "From the official documentation:\n"
            "\n"
            "NetBox allows us to specify the portions of IP space."
        )


class TestLenAndJoin:
    """Verify the len and join helpers."""

    def test_len(self):
        assert length("abc") == 3
        assert length(["a", "b"]) == 2
        assert length({"a": 1}) == 1

    def test_len_rejects_number(self):
        with pytest.raises(TemplateExecutionError, match="len of type int"):
            length(3)

    def test_join_reverses_split(self):
        assert join(split("a b c", " "), " ") == "a b c"

    def test_join_rejects_string(self):
        with pytest.raises(TemplateExecutionError, match="expected list"):
            join("abc", ",")
