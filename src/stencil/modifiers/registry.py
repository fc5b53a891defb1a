"""Modifier registry.

Maps modifier names, as written in a variable marker (``{{key:name=arg}}``),
to callables. The process-wide registry is filled with the built-ins on
first use; callers may register additional modifiers before rendering.

Adding a modifier:
    1. Write a callable ``(value, argument, locale) -> value``
    2. Register it: ``get_registry().register("upper", upper)``
    3. Reference it from a template: ``{{name:upper}}``
"""

import importlib
import logging
import threading
from collections.abc import Iterator
from typing import Any, Protocol

from babel import Locale

from stencil.modifiers.builtin import BUILTIN_MODIFIERS

logger = logging.getLogger(__name__)

# Characters that would split a marker body and make the name unreachable
_RESERVED_CHARACTERS = frozenset(":=}")


class Modifier(Protocol):
    """Transforms one resolved value."""

    def __call__(self, value: Any, argument: str | None, locale: Locale) -> Any: ...


class ModifierRegistry:
    """Named table of modifiers.

    Writes are serialized with a lock; lookups are plain dictionary reads,
    so a registry can be shared by many readers once it is populated.

    Attributes:
        modifiers: Registered modifiers by name
    """

    def __init__(self, include_builtins: bool = True) -> None:
        """Initialize the registry.

        Args:
            include_builtins: Whether to register format, ^url, ^html,
                ^xml, ^json and ^csv
        """
        self._modifiers: dict[str, Modifier] = {}
        self._lock = threading.Lock()

        if include_builtins:
            self._modifiers.update(BUILTIN_MODIFIERS)

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, name: str, modifier: Modifier) -> None:
        """Register a modifier, replacing any existing one with the same name.

        Args:
            name: Name used in templates
            modifier: Callable ``(value, argument, locale) -> value``

        Raises:
            ValueError: If the name is empty or contains ``:``, ``=`` or ``}``
            TypeError: If the modifier is not callable
        """
        if not name or _RESERVED_CHARACTERS.intersection(name):
            raise ValueError(f"Invalid modifier name: {name!r}")
        if not callable(modifier):
            raise TypeError(f"Modifier '{name}' is not callable")

        with self._lock:
            self._modifiers[name] = modifier

        logger.debug("Registered modifier: %s", name)

    def unregister(self, name: str) -> Modifier | None:
        """Remove a modifier.

        Returns:
            The removed modifier, or None if it was not registered
        """
        with self._lock:
            return self._modifiers.pop(name, None)

    # =========================================================================
    # Retrieval
    # =========================================================================

    def get(self, name: str) -> Modifier | None:
        """Get a modifier by name, or None if it is not registered."""
        return self._modifiers.get(name)

    def names(self) -> list[str]:
        """Get the registered modifier names in registration order."""
        return list(self._modifiers)

    def copy(self) -> "ModifierRegistry":
        """Return an independent registry with the same entries."""
        registry = ModifierRegistry(include_builtins=False)
        with self._lock:
            registry._modifiers.update(self._modifiers)
        return registry

    def __contains__(self, name: object) -> bool:
        return name in self._modifiers

    def __len__(self) -> int:
        return len(self._modifiers)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())


def import_modifier(target: str) -> Modifier:
    """Import a modifier from a ``package.module:function`` reference.

    Raises:
        ValueError: If the reference is malformed
        ImportError: If the module cannot be imported
        AttributeError: If the module has no such attribute
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Invalid modifier reference: {target!r} (expected 'module:function')")

    module = importlib.import_module(module_name)

    modifier: Any = module
    for part in attribute.split("."):
        modifier = getattr(modifier, part)

    return modifier


# Global registry instance
_registry: ModifierRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> ModifierRegistry:
    """Get the process-wide modifier registry.

    Returns:
        Global ModifierRegistry instance, created with the built-ins
    """
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = ModifierRegistry()
    return _registry


def reset_registry() -> None:
    """Reset the global registry (primarily for testing)."""
    global _registry
    with _registry_lock:
        _registry = None
