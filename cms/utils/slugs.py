"""
Slug derivation.

Slug rules:
- Accented characters are folded to their ASCII base letter
- Lowercase transformation
- Every run of characters outside [a-z0-9] becomes a single hyphen
- Leading and trailing hyphens are removed
"""

import re
import unicodedata

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def derive_slug(value: str) -> str:
    """
    Derive a URL slug from a human-readable name.

    Args:
        value: Title or name to slugify

    Returns:
        The slug, or an empty string if nothing alphanumeric is left

    Example:
        >>> derive_slug("  Café & Bar: Opening Hours! ")
        'cafe-bar-opening-hours'
    """
    if not value:
        return ""

    normalized = unicodedata.normalize("NFKD", value)
    normalized = normalized.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    return SLUG_PATTERN.sub("-", normalized).strip("-")
