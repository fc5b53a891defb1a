"""Exceptions raised by the template encoder.

- TemplateFormatError: malformed markers, invalid sections, invalid paths
- MissingResourceError: missing resource bundle or message key
- TemplateNotFoundError: missing template or include

I/O failures are not wrapped; they surface as the built-in OSError family.
"""


class StencilError(Exception):
    """Base class for all stencil errors."""


class TemplateFormatError(StencilError):
    """Raised when a template cannot be parsed or a section is invalid."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.message = message
        self.position = position
        full_message = message
        if position is not None:
            full_message += f" (at character {position})"
        super().__init__(full_message)


class MissingResourceError(StencilError, LookupError):
    """Raised when a resource bundle or one of its keys cannot be found."""

    def __init__(
        self,
        message: str,
        base_name: str | None = None,
        key: str | None = None,
    ) -> None:
        self.message = message
        self.base_name = base_name
        self.key = key
        super().__init__(message)


class TemplateNotFoundError(MissingResourceError):
    """Raised when a template or include cannot be opened."""

    def __init__(self, location: str, message: str | None = None) -> None:
        self.location = location
        super().__init__(message or f"Template not found: {location}")
