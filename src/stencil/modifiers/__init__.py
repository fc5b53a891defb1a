"""Variable modifiers.

- registry: named modifier table (process-wide or per encoder)
- builtin: format, ^url, ^html, ^xml, ^json, ^csv
"""

from stencil.modifiers.registry import (
    Modifier,
    ModifierRegistry,
    get_registry,
    import_modifier,
    reset_registry,
)

__all__ = [
    "Modifier",
    "ModifierRegistry",
    "get_registry",
    "import_modifier",
    "reset_registry",
]
