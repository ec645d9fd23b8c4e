"""
Pure sanitizers for raw session input.

Session settings arrive as loosely typed mappings (form posts, YAML, CLI).
These helpers normalise individual values without raising; validation
decides what to do with a None.
"""

from typing import Any


def sanitize_text(value: Any) -> str:
    """Strip a value to a clean string; None becomes ''."""
    if value is None:
        return ""
    return str(value).strip()


def sanitize_tag(value: Any) -> str:
    """Upper-case identifier such as a contract type or currency."""
    return sanitize_text(value).upper()
