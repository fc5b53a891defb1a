"""Stencil - streaming text templates.

Stencil renders tree-shaped data (mappings, sequences, scalars) through
lightweight text templates:

- Variables: {{name}}, {{a.b.c}}, {{.}}, {{$context}}, {{@message}}
- Modifier chains: {{price:format=currency:^html}}
- Sections: {{#items[, ]}} ... {{/items}} (once per element, optional separator)
- Includes: {{>partial.txt}} (resolved against the template location)
- Comments: {{! ... }}

Templates are streamed one character at a time; sections rewind a paged
reader instead of compiling the template.
"""

from stencil.exceptions import (
    MissingResourceError,
    StencilError,
    TemplateFormatError,
    TemplateNotFoundError,
)
from stencil.templates import TemplateEncoder

__version__ = "0.1.0"
__author__ = "Stencil Contributors"

__all__ = [
    "MissingResourceError",
    "StencilError",
    "TemplateEncoder",
    "TemplateFormatError",
    "TemplateNotFoundError",
]
