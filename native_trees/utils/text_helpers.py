"""
Text helpers for species descriptions.
"""
import html
import re

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

ELLIPSIS = "..."


def strip_markup(text: str) -> str:
    """
    Remove HTML tags and entities and collapse whitespace.

    Args:
        text: Raw description text, possibly HTML

    Returns:
        Plain single-line text
    """
    plain = html.unescape(_TAG_RE.sub(" ", text))
    return _WHITESPACE_RE.sub(" ", plain).strip()


def truncate_description(text: str, max_length: int = 300) -> str:
    """
    Truncate text to ``max_length`` characters.

    The ellipsis is appended only when characters were actually dropped,
    so a truncated result is ``max_length + 3`` characters long.

    Args:
        text: Description text
        max_length: Number of characters kept

    Returns:
        The text, truncated with an ellipsis if it was too long
    """
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS
