"""Unit tests for the marker tokenizer."""

import io

import pytest

from stencil.exceptions import TemplateFormatError
from stencil.templates.markers import (
    Marker,
    MarkerType,
    ModifierCall,
    check_template,
    iter_markers,
    parse_section,
    parse_variable,
    read_marker,
)
from stencil.templates.reader import PagedReader


def reader_for(text: str) -> PagedReader:
    """Create a paged reader over a string."""
    return PagedReader(io.StringIO(text))


class TestReadMarker:
    """Tests for read_marker()."""

    @pytest.mark.parametrize(
        ("text", "kind", "body"),
        [
            ("#list}}", MarkerType.SECTION_START, "list"),
            ("/list}}", MarkerType.SECTION_END, "list"),
            (">leaf.txt}}", MarkerType.INCLUDE, "leaf.txt"),
            ("!a comment}}", MarkerType.COMMENT, "a comment"),
            ("name:^html}}", MarkerType.VARIABLE, "name:^html"),
            (".}}", MarkerType.VARIABLE, "."),
        ],
    )
    def test_marker_kinds(self, text: str, kind: MarkerType, body: str) -> None:
        """Test that the first body character selects the marker kind."""
        assert read_marker(reader_for(text)) == Marker(kind, body)

    def test_stops_after_closing_braces(self) -> None:
        """Test that the reader is left just after the closing sequence."""
        reader = reader_for("a}}rest")

        read_marker(reader)

        assert reader.read() == "r"

    def test_unterminated_marker(self) -> None:
        """Test that EOF inside a marker raises."""
        with pytest.raises(TemplateFormatError, match="Unexpected end"):
            read_marker(reader_for("name"))

    def test_improperly_terminated_marker(self) -> None:
        """Test that a single closing brace raises."""
        with pytest.raises(TemplateFormatError, match="Improperly terminated"):
            read_marker(reader_for("name}x"))

    @pytest.mark.parametrize("text", ["}}", "#}}", ">}}", "!}}"])
    def test_empty_marker(self, text: str) -> None:
        """Test that an empty body raises."""
        with pytest.raises(TemplateFormatError, match="Invalid marker"):
            read_marker(reader_for(text))

    def test_empty_section_end(self) -> None:
        """Test that a section end needs no body."""
        assert read_marker(reader_for("/}}")) == Marker(MarkerType.SECTION_END, "")

    def test_error_carries_position(self) -> None:
        """Test that format errors report where they were detected."""
        with pytest.raises(TemplateFormatError) as exc_info:
            read_marker(reader_for("abc}x"))

        assert exc_info.value.position == 5


class TestParseSection:
    """Tests for parse_section()."""

    def test_plain_name(self) -> None:
        assert parse_section("list") == ("list", None)

    def test_separator(self) -> None:
        assert parse_section("list[, ]") == ("list", ", ")

    def test_empty_separator(self) -> None:
        assert parse_section("list[]") == ("list", "")

    def test_last_bracket_wins(self) -> None:
        """Test that the separator starts after the last '['."""
        assert parse_section("a[b][;]") == ("a[b]", ";")

    def test_unopened_bracket(self) -> None:
        assert parse_section("list]") == ("list]", None)


class TestParseVariable:
    """Tests for parse_variable()."""

    def test_key_only(self) -> None:
        reference = parse_variable("a.b.c")

        assert reference.key == "a.b.c"
        assert reference.modifiers == ()

    def test_modifier_chain(self) -> None:
        """Test that modifiers keep their order and arguments."""
        reference = parse_variable("price:format=currency:^html")

        assert reference.key == "price"
        assert reference.modifiers == (
            ModifierCall("format", "currency"),
            ModifierCall("^html", None),
        )

    def test_argument_may_contain_equals(self) -> None:
        """Test that only the first '=' separates name and argument."""
        reference = parse_variable("v:format=a=b")

        assert reference.modifiers == (ModifierCall("format", "a=b"),)

    def test_empty_argument(self) -> None:
        assert parse_variable("v:format=").modifiers == (ModifierCall("format", ""),)


class TestCheckTemplate:
    """Tests for iter_markers() and check_template()."""

    def test_iter_markers_skips_literals(self) -> None:
        """Test that literal text and lone braces are skipped."""
        markers = list(iter_markers(reader_for("a {b} {{x}} c {{!y}}")))

        assert markers == [
            Marker(MarkerType.VARIABLE, "x"),
            Marker(MarkerType.COMMENT, "y"),
        ]

    def test_balanced_sections(self) -> None:
        markers = check_template(reader_for("{{#a}}{{#b}}{{c}}{{/b}}{{/}}"))

        assert len(markers) == 5

    def test_unclosed_section(self) -> None:
        with pytest.raises(TemplateFormatError, match="unclosed"):
            check_template(reader_for("{{#a}}{{b}}"))

    def test_stray_section_end(self) -> None:
        with pytest.raises(TemplateFormatError, match="without section start"):
            check_template(reader_for("x{{/a}}"))

    def test_malformed_marker(self) -> None:
        with pytest.raises(TemplateFormatError):
            check_template(reader_for("{{a}"))
