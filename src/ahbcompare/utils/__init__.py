"""Utility functions used across the project."""

from .normalize import collapse_whitespace, normalize_text, texts_equal

__all__ = [
    "collapse_whitespace",
    "normalize_text",
    "texts_equal",
]
