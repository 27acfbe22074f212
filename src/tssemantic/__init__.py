"""Semantic highlighting for TypeScript and JavaScript over the Language Server Protocol."""

__version__ = "0.1.0"
