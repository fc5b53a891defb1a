"""Encoder facade.

An encoder turns a value into bytes of a declared MIME type and character
set. TemplateEncoder does so by rendering a template resource:

    encoder = TemplateEncoder(Path("page.html"), "text/html")
    encoder.context["title"] = "Pets"
    with open("out.html", "wb") as output:
        encoder.write_value({"pets": pets}, output, locale="en_US")
"""

import codecs
import io
import logging
from abc import ABC, abstractmethod
from typing import Any, BinaryIO

import babel
from babel import Locale

from stencil.modifiers import ModifierRegistry, get_registry
from stencil.templates.renderer import TemplateRenderer, TextSink
from stencil.templates.resources import TemplateLocation

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "utf-8"

# Used when the environment does not name a locale
FALLBACK_LOCALE = "en_US"


def default_locale() -> Locale:
    """Get the process default locale from the environment."""
    try:
        return Locale.parse(babel.default_locale() or FALLBACK_LOCALE)
    except (ValueError, babel.UnknownLocaleError):
        logger.debug("Unsupported environment locale, using %s", FALLBACK_LOCALE)
        return Locale.parse(FALLBACK_LOCALE)


def resolve_locale(locale: Locale | str | None) -> Locale:
    """Normalize a locale argument; None selects the process default."""
    if locale is None:
        return default_locale()
    if isinstance(locale, Locale):
        return locale
    return Locale.parse(locale)


class Encoder(ABC):
    """Abstract base class for encoders.

    Attributes:
        mime_type: MIME type of the produced content
        charset: Character encoding of the produced bytes
    """

    def __init__(self, mime_type: str, charset: str = DEFAULT_CHARSET) -> None:
        """Initialize the encoder.

        Args:
            mime_type: MIME type of the produced content
            charset: Character encoding name

        Raises:
            ValueError: If the MIME type is empty
            LookupError: If the charset is unknown
        """
        if not mime_type:
            raise ValueError("MIME type is required")

        self.mime_type = mime_type
        self.charset = codecs.lookup(charset).name

    def write_value(
        self,
        value: Any,
        output_stream: BinaryIO,
        locale: Locale | str | None = None,
    ) -> None:
        """Write a value to a byte stream.

        The stream is flushed but left open.

        Args:
            value: Value to encode
            output_stream: Binary sink
            locale: Locale to encode with (process default if None)
        """
        writer = io.TextIOWrapper(output_stream, encoding=self.charset, newline="")
        try:
            self.write_text(value, writer, locale)
        finally:
            writer.flush()
            writer.detach()

    @abstractmethod
    def write_text(
        self,
        value: Any,
        writer: TextSink,
        locale: Locale | str | None = None,
    ) -> None:
        """Write a value to a text sink.

        Args:
            value: Value to encode
            writer: Text sink
            locale: Locale to encode with (process default if None)
        """

    def render(self, value: Any, locale: Locale | str | None = None) -> str:
        """Encode a value and return the text."""
        buffer = io.StringIO(newline="")
        self.write_text(value, buffer, locale)
        return buffer.getvalue()


class TemplateEncoder(Encoder):
    """Encoder that renders a template.

    Not safe for concurrent writes: the context mapping is shared by every
    write on the instance.

    Attributes:
        template: Location of the template
        base_name: Resource bundle base name for ``@name`` lookups
        context: Values addressed with ``$name``
    """

    def __init__(
        self,
        template: TemplateLocation,
        mime_type: str,
        charset: str = DEFAULT_CHARSET,
        base_name: str | None = None,
        modifiers: ModifierRegistry | None = None,
    ) -> None:
        """Initialize the template encoder.

        Args:
            template: Template path or URL
            mime_type: MIME type of the content the template produces
            charset: Character encoding of the template and the output
            base_name: Resource bundle base name, relative to the template
            modifiers: Modifier table (defaults to the global registry)
        """
        if not template:
            raise ValueError("Template location is required")

        super().__init__(mime_type, charset)

        self.template = template
        self.base_name = base_name
        self.context: dict[str, Any] = {}
        self._modifiers = modifiers

    @property
    def modifiers(self) -> ModifierRegistry:
        """Modifier table used by this encoder."""
        return self._modifiers if self._modifiers is not None else get_registry()

    def write_text(
        self,
        value: Any,
        writer: TextSink,
        locale: Locale | str | None = None,
    ) -> None:
        """Render the template against a value.

        A None value produces no output and does not open the template.

        Raises:
            TemplateFormatError: If the template is malformed
            MissingResourceError: If the template, an include, the bundle or
                a message is missing
            OSError: If reading the template or writing output fails
        """
        if value is None:
            return

        with TemplateRenderer(
            self.template,
            resolve_locale(locale),
            charset=self.charset,
            context=self.context,
            modifiers=self.modifiers,
            base_name=self.base_name,
        ) as renderer:
            reader = renderer.open(self.template)
            renderer.render(value, writer, reader)

        logger.debug("Rendered template: %s", self.template)
