"""Recursive template renderer.

Streams characters from a paged reader to a text sink, replacing markers
as they are encountered. Sections and includes recurse into render():

- A section renders its body once per element, rewinding the reader to
  the mark taken before each non-terminal element.
- An empty section renders its body once into a null sink to consume it.
- An include opens (or rewinds) a paged reader over the named template and
  renders the current dictionary over it.

One TemplateRenderer serves one write; it owns every reader it opens.
"""

import logging
from collections.abc import Mapping
from contextlib import ExitStack
from typing import Any, Protocol

from babel import Locale

from stencil.exceptions import MissingResourceError, TemplateFormatError
from stencil.modifiers import ModifierRegistry, get_registry
from stencil.templates.markers import (
    MARKER_START,
    MarkerType,
    ModifierCall,
    parse_section,
    parse_variable,
    read_marker,
)
from stencil.templates.reader import EOF, CharacterSource, EmptyReader, PagedReader
from stencil.templates.resources import (
    ResourceBundle,
    TemplateLocation,
    load_bundle,
    open_template,
    resolve_location,
)
from stencil.values import SCOPE_KEY, as_dictionary, is_section_value, to_text

logger = logging.getLogger(__name__)

RESOURCE_PREFIX = "@"
CONTEXT_PREFIX = "$"

_END = object()


class TextSink(Protocol):
    """Anything with a ``write(str)`` method."""

    def write(self, s: str, /) -> Any: ...


class NullWriter:
    """Text sink that discards everything written to it."""

    def write(self, s: str) -> int:
        return len(s)


class _EmptyIncludeTable(dict):
    """Include table whose every lookup yields an empty reader."""

    def get(self, key: Any, default: Any = None) -> CharacterSource:
        return EmptyReader()


def _position(reader: CharacterSource) -> int | None:
    return getattr(reader, "position", None)


class TemplateRenderer:
    """Renders one template write.

    Usage:
        with TemplateRenderer(path, locale) as renderer:
            reader = renderer.open(path)
            renderer.render(value, writer, reader)
    """

    def __init__(
        self,
        location: TemplateLocation,
        locale: Locale,
        *,
        charset: str = "utf-8",
        context: Mapping[str, Any] | None = None,
        modifiers: ModifierRegistry | None = None,
        base_name: str | None = None,
    ) -> None:
        """Initialize the renderer.

        Args:
            location: Location of the root template; includes and resource
                bundles resolve against it
            locale: Locale for bundle lookups and modifiers
            charset: Character set of the template and its includes
            context: Values addressed with ``$name``
            modifiers: Modifier table (defaults to the global registry)
            base_name: Resource bundle base name for ``@name`` lookups
        """
        self.location = location
        self.locale = locale
        self.charset = charset
        self.context = context if context is not None else {}
        self.modifiers = modifiers if modifiers is not None else get_registry()
        self.base_name = base_name

        self._includes: dict[str, CharacterSource] = {}
        self._history: list[dict[str, CharacterSource]] = []
        self._bundle: ResourceBundle | None = None
        self._resources = ExitStack()

    # =========================================================================
    # Resources
    # =========================================================================

    def open(self, location: TemplateLocation) -> PagedReader:
        """Open a template as a paged reader.

        The reader releases its stream once the template has been read to
        the end. Streams still open when rendering stops early are closed
        with the renderer.
        """
        logger.debug("Opening template: %s", location)
        stream = open_template(location, self.charset)
        self._resources.callback(stream.close)
        return PagedReader(stream)

    def close(self) -> None:
        """Close every reader opened by this renderer."""
        self._resources.close()

    def __enter__(self) -> "TemplateRenderer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # =========================================================================
    # Rendering
    # =========================================================================

    def render(self, root: Any, writer: TextSink, reader: CharacterSource) -> None:
        """Render from the reader's current position until EOF or a section end.

        Args:
            root: Current value; mappings become the dictionary, anything
                else is exposed as ``.``
            writer: Text sink
            reader: Template source

        Raises:
            TemplateFormatError: On malformed markers, invalid sections or
                invalid paths
            MissingResourceError: On missing templates, bundles or keys
        """
        dictionary = as_dictionary(root)

        c = reader.read()
        while c != EOF:
            if c == MARKER_START:
                c = reader.read()
                if c == MARKER_START:
                    marker = read_marker(reader)

                    if marker.kind is MarkerType.SECTION_START:
                        self._render_section(marker.body, dictionary, writer, reader)
                    elif marker.kind is MarkerType.SECTION_END:
                        return
                    elif marker.kind is MarkerType.INCLUDE:
                        self._render_include(marker.body, dictionary, writer)
                    elif marker.kind is MarkerType.VARIABLE:
                        self._render_variable(marker.body, dictionary, writer, reader)
                else:
                    writer.write(MARKER_START + c)
            else:
                writer.write(c)

            c = reader.read()

    def _render_section(
        self,
        body: str,
        dictionary: Mapping[str, Any],
        writer: TextSink,
        reader: CharacterSource,
    ) -> None:
        name, separator = parse_section(body)

        value = dictionary.get(name)
        if value is None:
            value = ()

        if not is_section_value(value):
            raise TemplateFormatError(f"Invalid section element: {name}", _position(reader))

        self._history.append(self._includes)
        try:
            iterator = iter(value)
            element = next(iterator, _END)

            if element is not _END:
                self._includes = {}

                first = True
                while element is not _END:
                    following = next(iterator, _END)

                    if following is not _END:
                        reader.mark()

                    if not first and separator is not None:
                        writer.write(separator)

                    self.render(element, writer, reader)

                    if following is not _END:
                        reader.reset()

                    first = False
                    element = following
            else:
                self._includes = _EmptyIncludeTable()
                self.render({}, NullWriter(), reader)
        finally:
            self._includes = self._history.pop()

    def _render_include(self, name: str, dictionary: Mapping[str, Any], writer: TextSink) -> None:
        include = self._includes.get(name)

        if include is None:
            include = self.open(resolve_location(self.location, name))
            self.render(dictionary, writer, include)
            self._includes[name] = include
        else:
            include.reset()
            self.render(dictionary, writer, include)

    def _render_variable(
        self,
        body: str,
        dictionary: Mapping[str, Any],
        writer: TextSink,
        reader: CharacterSource,
    ) -> None:
        reference = parse_variable(body)

        value = self.resolve(reference.key, dictionary, reader)
        if value is None:
            return

        value = self.apply_modifiers(value, reference.modifiers)
        if value is not None:
            writer.write(to_text(value))

    # =========================================================================
    # Value resolution
    # =========================================================================

    def resolve(
        self,
        key: str,
        dictionary: Mapping[str, Any],
        reader: CharacterSource | None = None,
    ) -> Any:
        """Resolve a variable key.

        ``@name`` reads the resource bundle, ``$name`` the context, ``.``
        the current scalar; anything else is a dotted path into the
        dictionary. Missing keys and null intermediates resolve to None.

        Raises:
            TemplateFormatError: If a path steps through a non-mapping
            MissingResourceError: If the bundle or message is missing
        """
        if key.startswith(RESOURCE_PREFIX):
            return self._get_bundle(key).get_string(key[len(RESOURCE_PREFIX):])

        if key.startswith(CONTEXT_PREFIX):
            return self.context.get(key[len(CONTEXT_PREFIX):])

        if key == SCOPE_KEY:
            return dictionary.get(SCOPE_KEY)

        value: Any = dictionary
        for segment in key.split("."):
            if not isinstance(value, Mapping):
                raise TemplateFormatError(
                    f"Invalid path: {key}",
                    _position(reader) if reader is not None else None,
                )

            value = value.get(segment)
            if value is None:
                break

        return value

    def apply_modifiers(self, value: Any, calls: tuple[ModifierCall, ...]) -> Any:
        """Thread a value through a modifier chain, left to right.

        Unknown modifiers are skipped; a modifier that raises leaves the
        value unchanged.
        """
        for call in calls:
            modifier = self.modifiers.get(call.name)
            if modifier is None:
                logger.debug("Unknown modifier: %s", call.name)
                continue

            try:
                value = modifier(value, call.argument, self.locale)
            except Exception as e:
                logger.debug("Modifier %s=%s failed: %s", call.name, call.argument, e)

        return value

    def _get_bundle(self, key: str) -> ResourceBundle:
        if self._bundle is None:
            if self.base_name is None:
                raise MissingResourceError(
                    f"No resource bundle configured for key {key}",
                    key=key[len(RESOURCE_PREFIX):],
                )
            self._bundle = load_bundle(self.base_name, self.locale, self.location, self.charset)
        return self._bundle
