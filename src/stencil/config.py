"""Stencil configuration system.

Configuration is YAML-based with per-run CLI overrides (--locale,
--charset, --bundle, --context). Supports environment variable
substitution (${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.stencil/config.yaml
3. ./stencil.yaml
"""

import codecs
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from babel import Locale, UnknownLocaleError

from stencil.modifiers import ModifierRegistry, import_modifier

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class EncoderSettings:
    """Template encoder settings.

    Attributes:
        mime_type: MIME type of the rendered content
        charset: Character set of templates and output
        base_name: Resource bundle base name for @key lookups
        locale: Locale identifier (e.g. "en_US"); process default if unset
    """

    mime_type: str = "text/plain"
    charset: str = "utf-8"
    base_name: str | None = None
    locale: str | None = None

    def __post_init__(self) -> None:
        """Validate encoder settings."""
        if not self.mime_type:
            raise ValueError("MIME type must not be empty")

        try:
            codecs.lookup(self.charset)
        except LookupError as e:
            raise ValueError(f"Unknown charset: {self.charset}") from e

        if self.locale is not None:
            try:
                Locale.parse(self.locale)
            except (ValueError, UnknownLocaleError) as e:
                raise ValueError(f"Invalid locale: {self.locale}") from e


@dataclass
class StencilConfig:
    """Top-level stencil configuration.

    Attributes:
        encoder: Encoder settings
        context: Values addressed with $name in templates
        modifiers: Extra modifiers, name -> "package.module:function"
    """

    encoder: EncoderSettings = field(default_factory=EncoderSettings)
    context: dict[str, Any] = field(default_factory=dict)
    modifiers: dict[str, str] = field(default_factory=dict)

    # Runtime overrides (set by CLI)
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path

    def register_modifiers(self, registry: ModifierRegistry) -> list[str]:
        """Import the configured modifiers and add them to a registry.

        Returns:
            Names of the registered modifiers

        Raises:
            ValueError: If a reference is malformed
            ImportError: If a module cannot be imported
            AttributeError: If a module lacks the named function
        """
        for name, target in self.modifiers.items():
            registry.register(name, import_modifier(target))
        return list(self.modifiers)


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax. Example: ${APP_NAME} -> value of APP_NAME

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return _ENV_VAR_PATTERN.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.stencil/config.yaml
    2. ./stencil.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".stencil" / "config.yaml",
        start_path / "stencil.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def load_config_from_dict(data: dict[str, Any]) -> StencilConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        StencilConfig instance

    Raises:
        ValueError: If a section has the wrong shape or a value is invalid
    """
    data = substitute_env_vars(data)

    config = StencilConfig()

    if "encoder" in data:
        encoder_data = data["encoder"] or {}
        if not isinstance(encoder_data, dict):
            raise ValueError("'encoder' must be a mapping")
        config.encoder = EncoderSettings(
            mime_type=encoder_data.get("mime_type", config.encoder.mime_type),
            charset=encoder_data.get("charset", config.encoder.charset),
            base_name=encoder_data.get("base_name"),
            locale=encoder_data.get("locale"),
        )

    if "context" in data:
        context_data = data["context"] or {}
        if not isinstance(context_data, dict):
            raise ValueError("'context' must be a mapping")
        config.context = dict(context_data)

    if "modifiers" in data:
        modifier_data = data["modifiers"] or {}
        if not isinstance(modifier_data, dict):
            raise ValueError("'modifiers' must be a mapping")
        config.modifiers = {str(name): str(target) for name, target in modifier_data.items()}

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> StencilConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        StencilConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {found_path}")
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = StencilConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# Stencil Configuration

# Encoder settings
encoder:
  mime_type: "text/plain"
  charset: "utf-8"
  # base_name: "messages"   # resource bundle for {{@key}} (messages_<locale>.yaml)
  # locale: "en_US"         # default: process locale

# Values for {{$name}} lookups
context: {}
#   app: "${APP_NAME}"

# Extra modifiers for {{key:name}}
modifiers: {}
#   upper: "mypackage.modifiers:upper"
'''
