"""Stencil utility modules.

- logging: stderr logging with human/verbose/JSON modes
"""
