"""Prusti playground: image assembly, compiler wrapping, and session bootstrap."""

__version__ = "0.1.0"
