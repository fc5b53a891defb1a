"""Entry point for running stencil as a module.

Usage:
    python -m stencil [command] [options]

Example:
    python -m stencil render page.txt --data page.yaml
    python -m stencil validate page.txt
"""

from stencil.cli import app

if __name__ == "__main__":
    app()
