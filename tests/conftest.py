"""Shared pytest fixtures for stencil tests.

Fixtures are organized by category:
- Path fixtures: template fixture directory
- Template fixtures: helpers that write ad-hoc templates to tmp_path
- Registry fixtures: isolation of the process-wide modifier registry
"""

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from babel import Locale

from stencil.modifiers import reset_registry
from stencil.templates import TemplateEncoder
from tests.fixtures import TEMPLATES_DIR

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def templates_dir() -> Path:
    """Return the path to the template fixtures."""
    return TEMPLATES_DIR


# =============================================================================
# Template Fixtures
# =============================================================================


@pytest.fixture
def en_us() -> Locale:
    """Return a fixed locale so output does not depend on the environment."""
    return Locale.parse("en_US")


@pytest.fixture
def make_template(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes a template file and returns its path."""

    def _make(text: str, name: str = "template.txt") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8", newline="")
        return path

    return _make


@pytest.fixture
def render_text(make_template: Callable[..., Path], en_us: Locale) -> Callable[..., str]:
    """Return a helper rendering template text against a value."""

    def _render(text: str, value: Any, **encoder_args: Any) -> str:
        encoder = TemplateEncoder(make_template(text), "text/plain", **encoder_args)
        return encoder.render(value, en_us)

    return _render


# =============================================================================
# Registry Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_registry() -> Iterator[None]:
    """Discard modifiers registered by a test."""
    reset_registry()
    yield
    reset_registry()
