"""Bakelint - convention enforcement for generated TypeScript backends."""

__version__ = "0.4.0"
