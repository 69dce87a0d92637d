"""
Placeholder token substitution for demo content.

Demo documents reference images through tokens such as ``{{hero_image}}``.
Once images are rehosted, every string leaf of a content value is rewritten
with the token replaced by the public URL. Only strings are touched;
numbers, booleans, None and the structure of dicts and lists are preserved.
"""

from typing import Any, Dict


def _replace_tokens(text: str, replacements: Dict[str, str]) -> str:
    for token, url in replacements.items():
        if token and token in text:
            text = text.replace(token, url)
    return text


def substitute_placeholders(value: Any, replacements: Dict[str, str]) -> Any:
    """
    Return a copy of value with every known token replaced in every string leaf.

    Unknown tokens are left verbatim. Dict keys are never rewritten.

    Example:
        >>> substitute_placeholders({"src": "{{a}}", "n": 2}, {"{{a}}": "/uploads/a.jpg"})
        {'src': '/uploads/a.jpg', 'n': 2}
    """
    if not replacements:
        return value
    if isinstance(value, str):
        return _replace_tokens(value, replacements)
    if isinstance(value, dict):
        return {key: substitute_placeholders(item, replacements) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [substitute_placeholders(item, replacements) for item in value]
    return value
