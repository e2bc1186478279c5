"""Core utilities: logging, errors."""
