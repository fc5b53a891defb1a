"""Helpers for the dynamic value tree handed to the encoder.

Values are plain Python objects: None, str, numbers, bool, date/time
types, iterables (sections) and mappings (dictionaries).
"""

from collections.abc import Iterable, Mapping
from typing import Any

# Key under which a non-mapping root is exposed to the template
SCOPE_KEY = "."


def to_text(value: Any) -> str:
    """Return the emitted string form of a value.

    Booleans render as ``true``/``false``; everything else uses str().
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def is_section_value(value: Any) -> bool:
    """Return True if a section can iterate over the value.

    Strings, bytes and mappings are iterable in Python but are treated as
    scalars here.
    """
    if isinstance(value, (str, bytes, bytearray, Mapping)):
        return False
    return isinstance(value, Iterable)


def as_dictionary(value: Any) -> Mapping[str, Any]:
    """Return the scope dictionary for a render root.

    Mappings are used directly; anything else is wrapped under ``.``.
    """
    if isinstance(value, Mapping):
        return value
    return {SCOPE_KEY: value}
