"""Stencil CLI interface.

Commands:
- render: Render a template against a YAML/JSON data file
- validate: Check a template's markers and section balance
- modifiers: List registered modifiers
- init: Create a default configuration file

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log output
- --version: Show version and exit
"""

import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from babel import UnknownLocaleError

from stencil import __version__
from stencil.config import StencilConfig, create_default_config, load_config
from stencil.exceptions import StencilError
from stencil.modifiers import get_registry
from stencil.utils.logging import configure_from_cli, get_logger

app = typer.Typer(
    name="stencil",
    help="Render text templates against structured data",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: StencilConfig = StencilConfig()
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"stencil {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON log output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Stencil - streaming text templates.

    Render {{...}} templates with sections, includes, resource bundle
    lookups and modifier chains.
    """
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
        registered = _config.register_modifiers(get_registry())
        if registered:
            _logger.debug(f"Registered modifiers: {', '.join(registered)}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except (ValueError, ImportError, AttributeError, TypeError, yaml.YAMLError) as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)


# =============================================================================
# render command
# =============================================================================


def _load_data(data: Path | None) -> Any:
    """Load the render value from a YAML/JSON file, or stdin for '-'."""
    if data is None:
        return {}
    if str(data) == "-":
        return yaml.safe_load(sys.stdin)
    with open(data, encoding="utf-8") as f:
        return yaml.safe_load(f)


def _parse_context(pairs: list[str]) -> dict[str, str]:
    """Parse key=value context overrides."""
    context: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid context entry (expected key=value): {pair}")
        context[key] = value
    return context


@app.command()
def render(
    template: Annotated[
        str,
        typer.Argument(help="Template path or URL"),
    ],
    data: Annotated[
        Path | None,
        typer.Option(
            "--data",
            "-d",
            help="YAML or JSON data file ('-' for stdin)",
            dir_okay=False,
            allow_dash=True,
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output file (default: stdout)",
            dir_okay=False,
        ),
    ] = None,
    locale: Annotated[
        str | None,
        typer.Option(
            "--locale",
            "-l",
            help="Locale for bundles and formatting (overrides config)",
        ),
    ] = None,
    charset: Annotated[
        str | None,
        typer.Option(
            "--charset",
            help="Template and output charset (overrides config)",
        ),
    ] = None,
    bundle: Annotated[
        str | None,
        typer.Option(
            "--bundle",
            "-b",
            help="Resource bundle base name (overrides config)",
        ),
    ] = None,
    context: Annotated[
        list[str] | None,
        typer.Option(
            "--context",
            "-x",
            help="Context value as key=value (repeatable)",
        ),
    ] = None,
) -> None:
    """Render a template.

    Exit codes:
        0: Rendered successfully
        1: Error (bad template, missing resource, I/O, bad data)
    """
    from stencil.templates import TemplateEncoder
    from stencil.templates.resources import is_url

    settings = _config.encoder
    location: str | Path = template if is_url(template) else Path(template)

    try:
        value = _load_data(data)

        encoder = TemplateEncoder(
            location,
            settings.mime_type,
            charset=charset or settings.charset,
            base_name=bundle or settings.base_name,
        )
        encoder.context.update(_config.context)
        encoder.context.update(_parse_context(context or []))

        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            with open(output, "wb") as stream:
                encoder.write_value(value, stream, locale or settings.locale)
            _logger.info(f"Wrote {encoder.mime_type} output to {output}")
        else:
            stream = typer.get_binary_stream("stdout")
            encoder.write_value(value, stream, locale or settings.locale)
            stream.flush()

        _logger.structured(
            logging.DEBUG,
            "Rendered template",
            template=str(location),
            charset=encoder.charset,
            mime_type=encoder.mime_type,
        )
    except yaml.YAMLError as e:
        _logger.error(f"Invalid data file: {e}")
        raise typer.Exit(1)
    except (StencilError, OSError, LookupError, ValueError, UnknownLocaleError) as e:
        _logger.error(f"Rendering failed: {e}")
        raise typer.Exit(1)


# =============================================================================
# validate command
# =============================================================================


@app.command()
def validate(
    template: Annotated[
        Path,
        typer.Argument(
            help="Path to template to validate",
            exists=True,
            dir_okay=False,
        ),
    ],
    charset: Annotated[
        str | None,
        typer.Option(
            "--charset",
            help="Template charset (overrides config)",
        ),
    ] = None,
    bundle: Annotated[
        str | None,
        typer.Option(
            "--bundle",
            "-b",
            help="Resource bundle base name to check @ lookups against (overrides config)",
        ),
    ] = None,
    locale: Annotated[
        str | None,
        typer.Option(
            "--locale",
            "-l",
            help="Locale selecting the bundle variants (overrides config)",
        ),
    ] = None,
) -> None:
    """Validate a template.

    Checks that every marker is well-formed and sections are balanced.
    With a resource bundle, also checks that every @ lookup has a message.
    """
    from stencil.templates.encoder import resolve_locale
    from stencil.templates.markers import MarkerType, check_template, parse_variable
    from stencil.templates.reader import PagedReader
    from stencil.templates.renderer import RESOURCE_PREFIX
    from stencil.templates.resources import load_bundle, open_template

    settings = _config.encoder
    charset = charset or settings.charset
    base_name = bundle or settings.base_name

    _logger.info(f"Validating template: {template}")

    try:
        with PagedReader(open_template(template, charset)) as reader:
            markers = check_template(reader)
        messages = (
            load_bundle(base_name, resolve_locale(locale or settings.locale), template, charset)
            if base_name
            else None
        )
    except StencilError as e:
        typer.echo(f"❌ Template error: {e}")
        raise typer.Exit(1)
    except (OSError, LookupError, UnicodeDecodeError, ValueError, UnknownLocaleError) as e:
        _logger.error(f"Failed to read template: {e}")
        raise typer.Exit(1)

    sections = sum(1 for m in markers if m.kind is MarkerType.SECTION_START)
    includes = sorted({m.body for m in markers if m.kind is MarkerType.INCLUDE})

    typer.echo(f"✅ Template is valid: {template}")
    typer.echo(f"   Markers: {len(markers)} ({sections} section(s))")
    for include in includes:
        typer.echo(f"   Include: {include}")

    if messages is None:
        return

    lookups: set[str] = set()
    for marker in markers:
        if marker.kind is MarkerType.VARIABLE:
            key = parse_variable(marker.body).key
            if key.startswith(RESOURCE_PREFIX):
                lookups.add(key[len(RESOURCE_PREFIX):])
    missing = sorted(key for key in lookups if key not in messages)

    typer.echo(f"   Messages: {len(messages.keys())} in bundle {base_name}")
    if missing:
        for key in missing:
            typer.echo(f"❌ Missing message: {key}")
        raise typer.Exit(1)


# =============================================================================
# modifiers command
# =============================================================================


@app.command()
def modifiers() -> None:
    """List registered modifiers."""
    for name in get_registry().names():
        typer.echo(name)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize stencil configuration in ./.stencil/config.yaml."""
    config_dir = Path(".stencil")
    config_file = config_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_dir.mkdir(exist_ok=True)
    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.info(f"Created config: {config_file}")

    typer.echo(f"✅ Stencil configuration initialized: {config_file}")


if __name__ == "__main__":
    app()
