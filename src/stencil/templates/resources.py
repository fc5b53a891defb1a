"""Template and resource bundle locations.

A template location is either a filesystem path or a URL string
(``file:``, ``http:``, ...). Includes and resource bundles are resolved
relative to the location of the template that references them.

Resource bundles are YAML mappings of message keys to strings. For base
name ``messages`` and locale ``fr_CA`` the following files are consulted,
most specific first:

    messages_fr_CA.yaml
    messages_fr.yaml
    messages.yaml

A key missing from a specific bundle is looked up in the more general
ones.
"""

import io
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, TextIO
from urllib.error import HTTPError, URLError
from urllib.parse import urljoin, urlsplit
from urllib.request import urlopen

import yaml
from babel import Locale

from stencil.exceptions import MissingResourceError, TemplateNotFoundError
from stencil.values import to_text

logger = logging.getLogger(__name__)

TemplateLocation = str | Path

BUNDLE_SUFFIX = ".yaml"


def is_url(location: TemplateLocation) -> bool:
    """Return True if the location is a URL rather than a filesystem path."""
    if isinstance(location, Path):
        return False
    # Single-letter schemes are Windows drive letters
    return len(urlsplit(location).scheme) > 1


def resolve_location(base: TemplateLocation, name: str) -> TemplateLocation:
    """Resolve a relative resource name against a template location.

    Args:
        base: Location of the referencing template
        name: Relative (or absolute) name of the resource

    Returns:
        Location of the named resource
    """
    if is_url(base):
        return urljoin(str(base), name)
    return Path(base).parent / name


def open_template(location: TemplateLocation, encoding: str = "utf-8") -> TextIO:
    """Open a template location for reading as text.

    Line endings are passed through untranslated.

    Raises:
        TemplateNotFoundError: If nothing exists at the location
        OSError: For any other I/O failure
    """
    if is_url(location):
        try:
            response = urlopen(str(location))
        except HTTPError as e:
            if e.code == 404:
                raise TemplateNotFoundError(str(location)) from e
            raise
        except URLError as e:
            if isinstance(e.reason, FileNotFoundError):
                raise TemplateNotFoundError(str(location)) from e
            raise
        return io.TextIOWrapper(response, encoding=encoding, newline="")

    path = Path(location)
    try:
        return path.open(encoding=encoding, newline="")
    except FileNotFoundError as e:
        raise TemplateNotFoundError(str(path)) from e


class ResourceBundle:
    """Locale-specific message catalog.

    Attributes:
        base_name: Bundle base name
        location: Where the messages were loaded from
        parent: More general bundle consulted for missing keys
    """

    def __init__(
        self,
        base_name: str,
        messages: Mapping[str, Any],
        location: TemplateLocation | None = None,
        parent: "ResourceBundle | None" = None,
    ) -> None:
        self.base_name = base_name
        self.location = location
        self.parent = parent
        self._messages = dict(messages)

    def get_string(self, key: str) -> str:
        """Look up a message.

        Raises:
            MissingResourceError: If no bundle in the chain defines the key
        """
        bundle: ResourceBundle | None = self
        while bundle is not None:
            if key in bundle._messages:
                return to_text(bundle._messages[key])
            bundle = bundle.parent

        raise MissingResourceError(
            f"Can't find resource for bundle {self.base_name}, key {key}",
            base_name=self.base_name,
            key=key,
        )

    def __contains__(self, key: object) -> bool:
        return key in self._messages or (self.parent is not None and key in self.parent)

    def keys(self) -> set[str]:
        """Get every key defined in this bundle or its parents."""
        keys = set(self._messages)
        if self.parent is not None:
            keys |= self.parent.keys()
        return keys


def bundle_candidates(base_name: str, locale: Locale) -> list[str]:
    """Get the bundle names to try for a locale, most general first."""
    candidates = [base_name]
    if locale.language:
        candidates.append(f"{base_name}_{locale.language}")
        if locale.territory:
            candidates.append(f"{base_name}_{locale.language}_{locale.territory}")
    return candidates


def load_bundle(
    base_name: str,
    locale: Locale,
    template_location: TemplateLocation,
    encoding: str = "utf-8",
) -> ResourceBundle:
    """Load the resource bundle chain for a locale.

    Args:
        base_name: Bundle base name, relative to the template's directory
        locale: Locale selecting the bundle variants
        template_location: Location of the referencing template
        encoding: Character set of the bundle files

    Returns:
        The most specific bundle found, chained to the more general ones

    Raises:
        MissingResourceError: If no candidate bundle exists or a bundle is
            not a mapping
    """
    bundle: ResourceBundle | None = None

    for candidate in bundle_candidates(base_name, locale):
        location = resolve_location(template_location, candidate + BUNDLE_SUFFIX)
        try:
            stream = open_template(location, encoding)
        except TemplateNotFoundError:
            continue

        with stream:
            messages = yaml.safe_load(stream) or {}

        if not isinstance(messages, Mapping):
            raise MissingResourceError(
                f"Resource bundle is not a mapping: {location}",
                base_name=base_name,
            )

        logger.debug("Loaded resource bundle %s from %s", candidate, location)
        bundle = ResourceBundle(base_name, messages, location, parent=bundle)

    if bundle is None:
        raise MissingResourceError(
            f"Can't find bundle for base name {base_name}, locale {locale}",
            base_name=base_name,
        )

    return bundle
