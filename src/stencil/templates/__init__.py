"""Stencil template encoding.

This module provides the streaming template engine: a paged reader with
unbounded look-back, the marker tokenizer, the recursive renderer and the
encoder facade.
"""

from stencil.templates.encoder import Encoder, TemplateEncoder, default_locale, resolve_locale
from stencil.templates.markers import Marker, MarkerType, read_marker
from stencil.templates.reader import EOF, EmptyReader, PagedReader
from stencil.templates.renderer import NullWriter, TemplateRenderer
from stencil.templates.resources import ResourceBundle, load_bundle

__all__ = [
    "EOF",
    "EmptyReader",
    "Encoder",
    "Marker",
    "MarkerType",
    "NullWriter",
    "PagedReader",
    "ResourceBundle",
    "TemplateEncoder",
    "TemplateRenderer",
    "default_locale",
    "load_bundle",
    "read_marker",
    "resolve_locale",
]
