"""Test fixtures for stencil.

Templates:
- templates/*.txt: templates exercised by the encoder and CLI tests
- templates/*.yaml: resource bundles (resource1, resource2, messages_*)
"""

from pathlib import Path

# Path to fixtures directory
FIXTURES_DIR = Path(__file__).parent

# Path to template fixtures
TEMPLATES_DIR = FIXTURES_DIR / "templates"
