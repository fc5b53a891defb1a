"""Marker tokenizer.

Markers are ``{{...}}`` sequences embedded in a template. The first
character of the body selects the marker kind:

    {{#name}}  {{#name[sep]}}   section start
    {{/...}}  {{/}}             section end (body ignored)
    {{>path}}                   include
    {{!...}}                    comment
    {{key:mod=arg:...}}         variable

The renderer consumes the opening ``{{`` itself and calls read_marker()
to collect the rest.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from stencil.exceptions import TemplateFormatError
from stencil.templates.reader import EOF, CharacterSource

MARKER_START = "{"
MARKER_END = "}"


class MarkerType(Enum):
    """Kind of marker, keyed by its leading character."""

    SECTION_START = "#"
    SECTION_END = "/"
    INCLUDE = ">"
    COMMENT = "!"
    VARIABLE = ""


_PREFIXES = {
    marker_type.value: marker_type
    for marker_type in MarkerType
    if marker_type is not MarkerType.VARIABLE
}


@dataclass(frozen=True)
class Marker:
    """A parsed marker.

    Attributes:
        kind: Marker kind
        body: Marker text without the opening/closing braces and prefix
    """

    kind: MarkerType
    body: str


@dataclass(frozen=True)
class ModifierCall:
    """One ``name`` or ``name=argument`` segment of a variable marker."""

    name: str
    argument: str | None = None


@dataclass(frozen=True)
class VariableReference:
    """A variable marker split into its key and modifier chain."""

    key: str
    modifiers: tuple[ModifierCall, ...] = field(default_factory=tuple)


def _position(reader: CharacterSource) -> int | None:
    return getattr(reader, "position", None)


def read_marker(reader: CharacterSource) -> Marker:
    """Read a marker body after the opening ``{{`` has been consumed.

    Args:
        reader: Character source positioned just after ``{{``

    Returns:
        The parsed marker

    Raises:
        TemplateFormatError: If the marker is unterminated, improperly
            closed, or empty (section ends may be empty)
    """
    c = reader.read()

    kind = _PREFIXES.get(c, MarkerType.VARIABLE)
    if kind is not MarkerType.VARIABLE:
        c = reader.read()

    body: list[str] = []
    while c != MARKER_END and c != EOF:
        body.append(c)
        c = reader.read()

    if c == EOF:
        raise TemplateFormatError("Unexpected end of character stream", _position(reader))

    if reader.read() != MARKER_END:
        raise TemplateFormatError("Improperly terminated marker", _position(reader))

    if not body and kind is not MarkerType.SECTION_END:
        raise TemplateFormatError("Invalid marker", _position(reader))

    return Marker(kind, "".join(body))


def iter_markers(reader: CharacterSource) -> Iterator[Marker]:
    """Yield every marker in a template, skipping literal text."""
    c = reader.read()
    while c != EOF:
        if c == MARKER_START and reader.read() == MARKER_START:
            yield read_marker(reader)
        c = reader.read()


def check_template(reader: CharacterSource) -> list[Marker]:
    """Tokenize a whole template and check that sections are balanced.

    Returns:
        Every marker in document order

    Raises:
        TemplateFormatError: On malformed markers or unbalanced sections
    """
    markers: list[Marker] = []
    depth = 0

    for marker in iter_markers(reader):
        if marker.kind is MarkerType.SECTION_START:
            depth += 1
        elif marker.kind is MarkerType.SECTION_END:
            depth -= 1
            if depth < 0:
                raise TemplateFormatError("Section end without section start", _position(reader))
        markers.append(marker)

    if depth > 0:
        raise TemplateFormatError(f"{depth} unclosed section(s)", _position(reader))

    return markers


def parse_section(body: str) -> tuple[str, str | None]:
    """Split a section start body into its name and optional separator.

    ``list[, ]`` yields ("list", ", "); ``list`` yields ("list", None).
    """
    if body.endswith("]"):
        i = body.rfind("[")
        if i != -1:
            return body[:i], body[i + 1:-1]

    return body, None


def parse_variable(body: str) -> VariableReference:
    """Split a variable body into its key and modifier chain.

    Examples:
        >>> parse_variable("price:format=currency:^html")
        VariableReference(key='price', modifiers=(ModifierCall(name='format', argument='currency'), ModifierCall(name='^html', argument=None)))
    """
    key, *components = body.split(":")

    modifiers = []
    for component in components:
        name, sep, argument = component.partition("=")
        modifiers.append(ModifierCall(name, argument if sep else None))

    return VariableReference(key, tuple(modifiers))
