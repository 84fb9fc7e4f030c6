"""Crash-safe session storage primitives."""

__version__ = "0.1.0"
