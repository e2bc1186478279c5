"""Jungle Heritage Resort backend."""

__version__ = "1.0.0"
