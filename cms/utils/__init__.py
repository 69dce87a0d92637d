"""
Utility functions for the cms application.

- slugs.py: URL slug derivation
- placeholders.py: placeholder token substitution in nested content
"""

from .slugs import derive_slug
from .placeholders import substitute_placeholders

__all__ = [
    "derive_slug",
    "substitute_placeholders",
]
