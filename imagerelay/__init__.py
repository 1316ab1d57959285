"""Prompt-to-image relay and form client."""

__version__ = "1.0.0"
